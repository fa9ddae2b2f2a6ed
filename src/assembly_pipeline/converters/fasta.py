"""NCBI FASTA converter (``*.fna`` nucleotide, ``*.faa`` protein).

Header shapes handled::

    NC_021160.1 Cicer arietinum cultivar CDC Frontier chromosome Ca1, ASM33114v1, ...
    XP_027192614.1 SWI/SNF-related ... isoform X1 [Cicer arietinum]
    lcl|NW_004522122.1_cds_XP_004517134.1_35487 [gene=LOC101515228] [protein=...]
        [protein_id=XP_004517134.1] [location=join(17..211,356..419)] [gbkey=CDS]
"""

import hashlib
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from Bio import SeqIO

from assembly_pipeline.gff.classifier import build_classifier
from assembly_pipeline.gff.registry import FeatureRegistry
from assembly_pipeline.items.models import FeatureKind, Item

logger = structlog.get_logger()

NUCLEOTIDE_SUFFIX = ".fna"
PROTEIN_SUFFIX = ".faa"
CDS_MARKER = "_cds_"
BRACKET_PATTERN = re.compile(r"\[([^=\]\s]+)=([^\]]*)\]")


@dataclass
class FastaHeader:
    """Parsed FASTA description line.

    Attributes:
        identifier: First token, or its second "|" field ("lcl|X" -> "X")
        name: Tokens after the identifier up to the first bracket token
        brackets: [key=value] tokens
    """

    identifier: str
    name: str | None = None
    brackets: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, description: str) -> "FastaHeader":
        tokens = description.split()
        first = tokens[0] if tokens else ""
        identifier = first.split("|")[1] if "|" in first else first

        name_tokens = []
        for token in tokens[1:]:
            if "[" in token:
                break
            name_tokens.append(token)

        return cls(
            identifier=identifier,
            name=" ".join(name_tokens) or None,
            brackets=dict(BRACKET_PATTERN.findall(description)),
        )

    @property
    def is_cds(self) -> bool:
        return self.brackets.get("gbkey") == "CDS" or CDS_MARKER in self.identifier


def md5_checksum(residues: str) -> str:
    return hashlib.md5(residues.encode("utf-8")).hexdigest()


class FastaConverter:
    """Create sequence-bearing features and their Sequence items from FASTA.

    ``.faa`` records become Proteins. ``.fna`` records become CDS when the
    header marks them as such, otherwise Chromosomes or Supercontigs through
    the shared feature registry. Proteins and genes named by CDS headers are
    cached on the session and flushed at close.
    """

    SUFFIXES = (NUCLEOTIDE_SUFFIX, PROTEIN_SUFFIX)

    def __init__(self, session):
        self.session = session
        self.registry = FeatureRegistry(
            session,
            build_classifier(session.config.sequences),
            unknown_policy=session.config.sequences.unknown,
            sequence_identifier=session.config.sequences.identifier,
        )

    @classmethod
    def accepts(cls, path: Path) -> bool:
        return Path(path).suffix in cls.SUFFIXES

    def process_file(self, path: Path) -> Counter:
        """
        Convert every record of a FASTA file.

        Returns:
            Counter of created feature classes plus "skipped" records

        Raises:
            UnclassifiedSequenceError: Unknown nucleotide sequence under FAIL
        """
        path = Path(path)
        is_protein = path.suffix == PROTEIN_SUFFIX
        logger.info("fasta_file_start", path=str(path), protein=is_protein)

        counts: Counter = Counter()
        try:
            with open(path, "r") as handle:
                for record in SeqIO.parse(handle, "fasta"):
                    feature = self.process_sequence(record.description, str(record.seq), is_protein)
                    if feature is None:
                        counts["skipped"] += 1
                    else:
                        counts[feature.class_name] += 1
        finally:
            logger.info("fasta_file_complete", source=path.name, counts=dict(counts))
        return counts

    def process_sequence(self, description: str, residues: str, is_protein: bool) -> Item | None:
        header = FastaHeader.parse(description)
        if is_protein:
            feature = self.get_protein(header.identifier)
            feature.set_attribute("name", header.name)
        elif header.is_cds:
            feature = self.process_cds(header)
        else:
            feature = self.process_assembled_sequence(header)
            if feature is None:
                logger.debug("fasta_sequence_skipped", identifier=header.identifier)
                return None

        sequence = self.session.create_item("Sequence")
        sequence.set_attribute("residues", residues)
        sequence.set_attribute("length", len(residues))
        sequence.set_attribute("md5checksum", md5_checksum(residues))
        self.session.store(sequence)

        feature.set_reference("sequence", sequence)
        feature.set_attribute("length", len(residues))
        return feature

    def process_cds(self, header: FastaHeader) -> Item:
        cds = self.registry.get_or_create(header.identifier, FeatureKind.CDS)
        cds.set_attribute("primaryIdentifier", header.identifier)
        self.session.stamp(cds)

        protein = None
        protein_id = header.brackets.get("protein_id")
        if protein_id:
            protein = self.get_protein(protein_id)
            cds.set_reference("protein", protein)

        gene_id = header.brackets.get("gene")
        if gene_id:
            gene = self.get_gene(gene_id, protein, header.brackets.get("protein"))
            cds.set_reference("gene", gene)
        return cds

    def process_assembled_sequence(self, header: FastaHeader) -> Item | None:
        """Upsert a chromosome or supercontig; None if unknown under SKIP."""
        feature = self.registry.get_sequence(header.identifier)
        if feature is not None:
            feature.set_attribute("name", header.name)
        return feature

    def get_protein(self, identifier: str) -> Item:
        protein = self.session.proteins.get(identifier)
        if protein is None:
            protein = self.session.create_item(FeatureKind.PROTEIN.value)
            protein.set_attribute("primaryIdentifier", identifier)
            self.session.stamp(protein)
            self.session.proteins[identifier] = protein
        return protein

    def get_gene(self, identifier: str, protein: Item | None = None, name: str | None = None) -> Item:
        """Return the gene for identifier.

        Name and protein are taken from the CDS that first mentions the gene;
        later CDS records of the same gene leave them alone.
        """
        gene = self.session.genes_by_identifier.get(identifier)
        if gene is None:
            gene = self.session.create_item(FeatureKind.GENE.value)
            gene.set_attribute("primaryIdentifier", identifier)
            if protein is not None:
                gene.set_attribute("name", name)
                gene.add_to_collection("proteins", protein)
            self.session.stamp(gene)
            self.session.genes_by_identifier[identifier] = gene
        return gene
