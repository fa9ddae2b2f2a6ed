"""File converters and the job that drives them."""

from assembly_pipeline.converters.assembly_report import AssemblyReportConverter
from assembly_pipeline.converters.fasta import FastaConverter, FastaHeader
from assembly_pipeline.converters.job import ConversionJob
from assembly_pipeline.converters.taxonomy import TaxonomyConverter

__all__ = [
    "AssemblyReportConverter",
    "FastaConverter",
    "FastaHeader",
    "ConversionJob",
    "TaxonomyConverter",
]
