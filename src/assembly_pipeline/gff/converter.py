"""GFF3 feature processor: drive records through the resolution engine.

Each input line is one of:

- a ``#!`` header carrying assembly/annotation metadata::

      #!genome-build-accession NCBI_Assembly:GCF_000331145.1
      #!annotation-source NCBI Cicer arietinum Annotation Release 102

- any other ``#`` comment (ignored; ``##FASTA`` ends the feature section)
- a data line, parsed into a GFF3Record and dispatched on its type.
"""

from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Iterable

import structlog

from assembly_pipeline.config.schema import SequenceIdentifierField
from assembly_pipeline.gff.annotations import GeneAnnotator
from assembly_pipeline.gff.classifier import UnclassifiedSequenceError, build_classifier
from assembly_pipeline.gff.identifiers import IdentifierResolver
from assembly_pipeline.gff.linker import ParentLinker
from assembly_pipeline.gff.location import LocationAttacher
from assembly_pipeline.gff.record import GFF3Record, MalformedRecordError
from assembly_pipeline.gff.registry import FeatureRegistry
from assembly_pipeline.items.models import FeatureKind, Item

logger = structlog.get_logger()

HEADER_PREFIX = "#!"
COMMENT_PREFIX = "#"
FASTA_DIRECTIVE = "##FASTA"
ASSEMBLY_HEADER = "#!genome-build-accession"
ANNOTATION_HEADER = "#!annotation-source"


class RecordType(Enum):
    """Supported GFF3 record types. Everything else is UNSUPPORTED."""

    REGION = "region"
    GENE = FeatureKind.GENE
    MRNA = FeatureKind.MRNA
    TRNA = FeatureKind.TRNA
    RRNA = FeatureKind.RRNA
    NCRNA = FeatureKind.NCRNA
    TRANSCRIPT = FeatureKind.TRANSCRIPT
    EXON = FeatureKind.EXON
    UNSUPPORTED = None

    @classmethod
    def from_type(cls, record_type: str) -> "RecordType":
        """Map a GFF3 type column to a record type.

        Exact names first, then any other type containing "RNA" (ncRNA,
        lnc_RNA, snoRNA, ...) as NCRNA.
        """
        exact = _EXACT_TYPES.get(record_type)
        if exact is not None:
            return exact
        if "RNA" in record_type:
            return cls.NCRNA
        return cls.UNSUPPORTED

    @property
    def kind(self) -> FeatureKind | None:
        if isinstance(self.value, FeatureKind):
            return self.value
        return None


_EXACT_TYPES = {
    "region": RecordType.REGION,
    "gene": RecordType.GENE,
    "mRNA": RecordType.MRNA,
    "tRNA": RecordType.TRNA,
    "rRNA": RecordType.RRNA,
    "transcript": RecordType.TRANSCRIPT,
    "exon": RecordType.EXON,
}


class GFF3Converter:
    """
    Convert GFF3 files into feature items on a ConversionSession.

    One converter serves every GFF3 file of a job; all state lives in the
    session, so a gene defined in one file can be linked from another.
    Items are flushed when the session closes.
    """

    SUFFIXES = ("gff3", "gff")

    def __init__(self, session):
        """
        Build the resolution engine from the session's sequence settings.

        Args:
            session: ConversionSession receiving the items
        """
        sequence_config = session.config.sequences
        self.session = session
        self.classifier = build_classifier(sequence_config)
        self.sequence_identifier = sequence_config.identifier
        self.registry = FeatureRegistry(
            session,
            self.classifier,
            unknown_policy=sequence_config.unknown,
            sequence_identifier=sequence_config.identifier,
        )
        self.resolver = IdentifierResolver(session)
        self.linker = ParentLinker(self.registry)
        self.locations = LocationAttacher(session, self.registry)
        self.annotator = GeneAnnotator(session)

    @classmethod
    def accepts(cls, path: Path) -> bool:
        return Path(path).name.endswith(cls.SUFFIXES)

    def process_file(self, path: Path) -> Counter:
        """
        Convert one GFF3 file.

        Returns:
            Record count per GFF3 type

        Raises:
            MalformedRecordError: Unparseable data line
            UnclassifiedSequenceError: Unknown sequence under the FAIL policy
        """
        path = Path(path)
        logger.info("gff_file_start", path=str(path))
        with open(path, "r") as f:
            return self.process_lines(f, source=path.name)

    def process_lines(self, lines: Iterable[str], source: str = "<stream>") -> Counter:
        """Convert GFF3 lines; the record type counts are logged even on failure."""
        type_counts: Counter = Counter()
        try:
            for line_number, line in enumerate(lines, 1):
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                if line.startswith(HEADER_PREFIX):
                    self.process_header(line)
                    continue
                if line.startswith(FASTA_DIRECTIVE):
                    break
                if line.startswith(COMMENT_PREFIX):
                    continue

                try:
                    record = GFF3Record.from_line(line)
                    type_counts[record.type] += 1
                    self.process_record(record)
                except (MalformedRecordError, UnclassifiedSequenceError) as e:
                    raise type(e)(f"{source} line {line_number}: {e}") from e
        finally:
            logger.info(
                "gff_file_complete",
                source=source,
                record_type_counts=dict(type_counts),
            )
        return type_counts

    def process_header(self, line: str) -> None:
        """Take the data set and versions from #! header lines."""
        if line.startswith(ASSEMBLY_HEADER):
            value = line[len(ASSEMBLY_HEADER):].strip()
            if value:
                self.session.data_set_name = value
                self.session.assembly_version = value
        elif line.startswith(ANNOTATION_HEADER):
            value = line[len(ANNOTATION_HEADER):].strip()
            if value:
                self.session.data_set_description = value
                self.session.annotation_version = value

    def process_record(self, record: GFF3Record) -> Item | None:
        """Dispatch one record on its type.

        Returns:
            The created or updated item; None for unsupported types and for
            regions on skipped sequences
        """
        record_type = RecordType.from_type(record.type)
        if record_type == RecordType.UNSUPPORTED:
            logger.debug("gff_record_unsupported", type=record.type, id=record.id)
            return None
        if record_type == RecordType.REGION:
            return self.process_region(record)
        return self.process_feature(record, record_type.kind)

    def process_region(self, record: GFF3Record) -> Item | None:
        """Create or update a Chromosome/Supercontig from a region record.

        The sequence ID is used as identifier, never the region's own ID
        attribute, which varies between exports (``id0``,
        ``NC_021160.1:1..48359943``).
        """
        sequence = self.registry.get_sequence(record.sequence_id)
        if sequence is None:
            return None

        if self.sequence_identifier == SequenceIdentifierField.PRIMARY:
            sequence.set_attribute("primaryIdentifier", record.sequence_id)
            self.session.stamp(sequence)
            sequence.set_attribute("length", record.end)
            if record.names:
                sequence.set_attribute("secondaryIdentifier", record.names[0])
            sequence.set_attribute("score", record.score)
        else:
            sequence.set_attribute("secondaryIdentifier", record.sequence_id)
            self.session.stamp(sequence, versions=False)
        return sequence

    def process_feature(self, record: GFF3Record, kind: FeatureKind) -> Item:
        """Create or update a gene, transcript or exon and wire it up."""
        key = record.id or self.synthetic_key(record)
        feature = self.registry.get_or_create(key, kind)
        feature.set_attribute("primaryIdentifier", self.resolver.resolve(record, kind, key))
        self.session.stamp(feature)
        feature.set_attribute("length", record.length)
        feature.set_attribute("score", record.score)
        self.registry.set_sequence_reference(feature, record.sequence_id)
        self.locations.attach(feature, record)

        if kind == FeatureKind.GENE:
            self.annotator.annotate(feature, record)
        else:
            self.linker.link(feature, record, kind)
        return feature

    @staticmethod
    def synthetic_key(record: GFF3Record) -> str:
        """Registry key for a record without an ID attribute.

        ID-less records cannot be named as parents, so the key only has to
        keep distinct records apart.
        """
        return f"{record.type}:{record.sequence_id}:{record.start}..{record.end}"
