"""NCBI assembly report converter (``*_assembly_report.txt``).

Data lines have 10 tab-separated columns::

    Sequence-Name  Sequence-Role  Assigned-Molecule  Assigned-Molecule-Location/Type
    GenBank-Accn  Relationship  RefSeq-Accn  Assembly-Unit  Sequence-Length  UCSC-style-name

Only rows whose GenBank and RefSeq sequences are identical (Relationship "=")
are converted.
"""

from collections import Counter
from pathlib import Path
from typing import Iterable

import structlog

from assembly_pipeline.gff.classifier import build_classifier
from assembly_pipeline.gff.record import MalformedRecordError
from assembly_pipeline.gff.registry import FeatureRegistry
from assembly_pipeline.items.models import FeatureKind, Item

logger = structlog.get_logger()

REPORT_COLUMNS = 10
IDENTICAL_RELATIONSHIP = "="
CHROMOSOME_LOCATION = "Chromosome"
SCAFFOLD_ROLE = "scaffold"


class AssemblyReportConverter:
    """Create Chromosome and Supercontig items from an assembly report.

    Rows go through the shared feature registry keyed by RefSeq accession,
    so a report row and a GFF3 region for the same sequence end up as one
    item.
    """

    SUFFIXES = ("assembly_report.txt",)

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
        return Path(path).name.endswith(cls.SUFFIXES)

    def process_file(self, path: Path) -> Counter:
        path = Path(path)
        logger.info("assembly_report_start", path=str(path))
        with open(path, "r") as f:
            return self.process_lines(f, source=path.name)

    def process_lines(self, lines: Iterable[str], source: str = "<stream>") -> Counter:
        """
        Convert assembly report lines.

        Returns:
            Counter of created sequence classes plus "skipped" rows

        Raises:
            MalformedRecordError: Wrong column count or empty RefSeq accession
        """
        counts: Counter = Counter()
        try:
            for line_number, line in enumerate(lines, 1):
                line = line.rstrip("\r\n")
                if not line.strip() or line.startswith("#"):
                    continue
                try:
                    item = self.process_row(line.split("\t"))
                except MalformedRecordError as e:
                    raise MalformedRecordError(f"{source} line {line_number}: {e}") from e
                if item is None:
                    counts["skipped"] += 1
                else:
                    counts[item.class_name] += 1
        finally:
            logger.info("assembly_report_complete", source=source, counts=dict(counts))
        return counts

    def process_row(self, fields: list[str]) -> Item | None:
        """Convert one split report row; None when the row is not converted."""
        if len(fields) != REPORT_COLUMNS:
            raise MalformedRecordError(
                f"assembly report row has {len(fields)} columns, expected {REPORT_COLUMNS}"
            )

        sequence_name = fields[0]
        role = fields[1]
        molecule_location = fields[3]
        relationship = fields[5]
        refseq_accession = fields[6].strip()
        sequence_length = fields[8]

        if relationship != IDENTICAL_RELATIONSHIP:
            return None
        if not refseq_accession:
            raise MalformedRecordError("assembly report row is missing its RefSeq accession")

        if molecule_location == CHROMOSOME_LOCATION:
            kind = FeatureKind.CHROMOSOME
        elif SCAFFOLD_ROLE in role:
            kind = FeatureKind.SUPERCONTIG
        else:
            return None

        sequence = self.registry.get_or_create(refseq_accession, kind)
        sequence.set_attribute("primaryIdentifier", refseq_accession)
        sequence.set_attribute("secondaryIdentifier", sequence_name)
        if sequence_length.strip().isdigit():
            sequence.set_attribute("length", int(sequence_length))
        self.session.stamp(sequence)
        return sequence
