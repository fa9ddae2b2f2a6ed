"""Conversion job: route input files to converters over one shared session."""

from collections import Counter
from pathlib import Path
from typing import Iterable, Optional

import structlog

from assembly_pipeline.config.schema import PipelineConfig
from assembly_pipeline.converters.assembly_report import AssemblyReportConverter
from assembly_pipeline.converters.fasta import FastaConverter
from assembly_pipeline.converters.taxonomy import TaxonomyConverter
from assembly_pipeline.gff.converter import GFF3Converter
from assembly_pipeline.items.session import ConversionSession
from assembly_pipeline.persistence.item_writer import ItemWriter
from assembly_pipeline.persistence.provenance import ProvenanceTracker

logger = structlog.get_logger()


class ConversionJob:
    """
    One conversion run over a set of input files.

    Files are processed sequentially, in the order given, by the converter
    whose file name pattern matches. All converters share one
    ConversionSession, so features referenced across files converge.
    close() flushes the session and then closes the writer.
    """

    def __init__(
        self,
        config: PipelineConfig,
        writer: ItemWriter,
        provenance: Optional[ProvenanceTracker] = None,
    ):
        self.config = config
        self.writer = writer
        self.provenance = provenance
        self.session = ConversionSession(config, writer)
        self.converters = [
            ("assembly_report", AssemblyReportConverter(self.session)),
            ("taxonomy", TaxonomyConverter(self.session)),
            ("gff3", GFF3Converter(self.session)),
            ("fasta", FastaConverter(self.session)),
        ]
        self.skipped_files: list[Path] = []
        self.flush_counts: dict[str, int] = {}

    def converter_for(self, path: Path):
        """Return (converter name, converter) for path, or None if unrecognised."""
        for name, converter in self.converters:
            if converter.accepts(path):
                return name, converter
        return None

    def process_file(self, path: Path) -> Counter | None:
        """Convert one file; unrecognised files are noted and skipped."""
        path = Path(path)
        match = self.converter_for(path)
        if match is None:
            logger.info("input_file_skipped", path=str(path))
            self.skipped_files.append(path)
            return None

        name, converter = match
        counts = converter.process_file(path)
        if self.provenance is not None:
            self.provenance.record_conversion(name, path.name, counts)
        return counts

    def run(self, paths: Iterable[Path]) -> Counter:
        """
        Convert every file and close the job.

        The session is not flushed if a file fails; the first error aborts
        the job.

        Returns:
            Items stored per warehouse class
        """
        for path in paths:
            self.process_file(path)
        self.close()
        return self.writer.counts

    def close(self) -> None:
        self.flush_counts = self.session.close()
        self.writer.close()
        logger.info(
            "conversion_job_complete",
            items_stored=sum(self.writer.counts.values()),
            skipped_files=len(self.skipped_files),
        )
