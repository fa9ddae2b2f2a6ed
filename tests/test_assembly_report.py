"""Tests for the NCBI assembly report converter."""

import pytest
from structlog.testing import capture_logs

from assembly_pipeline.config.schema import PipelineConfig
from assembly_pipeline.converters.assembly_report import AssemblyReportConverter
from assembly_pipeline.gff.converter import GFF3Converter
from assembly_pipeline.gff.record import MalformedRecordError
from assembly_pipeline.items import ConversionSession
from assembly_pipeline.persistence import MemoryItemWriter


SAMPLE_REPORT = (
    "# Assembly name:  ASM33114v1\n"
    "# Organism name:  Cicer arietinum (chickpea)\n"
    "# Sequence-Name\tSequence-Role\tAssigned-Molecule\tAssigned-Molecule-Location/Type\t"
    "GenBank-Accn\tRelationship\tRefSeq-Accn\tAssembly-Unit\tSequence-Length\tUCSC-style-name\n"
    "Ca1\tassembled-molecule\t1\tChromosome\tCM001764.1\t=\tNC_021160.1\tPrimary Assembly\t48359943\tna\n"
    "Ca2\tassembled-molecule\t2\tChromosome\tCM001765.1\t=\tNC_021161.1\tPrimary Assembly\t36634854\tna\n"
    "scaffold1\tunplaced-scaffold\tna\tna\tAHII01000001.1\t=\tNW_004515636.1\tPrimary Assembly\t45271\tna\n"
    "scaffold2\tunplaced-scaffold\tna\tna\tAHII01000002.1\t<>\tna\tPrimary Assembly\t1200\tna\n"
    "\n"
)


@pytest.fixture
def session(tmp_path):
    config = PipelineConfig.model_validate({
        "data_dir": tmp_path / "data",
        "duckdb_path": tmp_path / "test.duckdb",
        "organism": {"taxon_id": "3827", "strain": "CDCFrontier"},
        "data_source": {"name": "NCBI"},
        "data_set": {"name": "test data set"},
        "versions": {"assembly": "ASM33114v1"},
    })
    return ConversionSession(config, MemoryItemWriter())


def test_accepts():
    assert AssemblyReportConverter.accepts("GCF_000331145.1_ASM33114v1_assembly_report.txt")
    assert not AssemblyReportConverter.accepts("assembly_stats.txt")


def test_sample_report(session):
    converter = AssemblyReportConverter(session)

    counts = converter.process_lines(SAMPLE_REPORT.splitlines(keepends=True))

    assert counts == {"Chromosome": 2, "Supercontig": 1, "skipped": 1}
    chromosome = session.features["NC_021160.1"]
    assert chromosome.class_name == "Chromosome"
    assert chromosome.get_attribute("primaryIdentifier") == "NC_021160.1"
    assert chromosome.get_attribute("secondaryIdentifier") == "Ca1"
    assert chromosome.get_attribute("length") == "48359943"
    assert chromosome.get_attribute("assemblyVersion") == "ASM33114v1"
    supercontig = session.features["NW_004515636.1"]
    assert supercontig.class_name == "Supercontig"
    assert supercontig.get_attribute("secondaryIdentifier") == "scaffold1"


def test_report_and_region_converge(session):
    """A report row and a GFF3 region for the same sequence are one item."""
    AssemblyReportConverter(session).process_lines(SAMPLE_REPORT.splitlines(keepends=True))
    GFF3Converter(session).process_lines([
        "NC_021160.1\tRefSeq\tregion\t1\t48359943\t.\t+\t.\tID=NC_021160.1:1..48359943;Name=Ca1\n",
    ])

    chromosomes = [f for f in session.features.values() if f.class_name == "Chromosome"]
    assert len(chromosomes) == 2
    chromosome = session.features["NC_021160.1"]
    assert chromosome.get_attribute("primaryIdentifier") == "NC_021160.1"
    assert chromosome.get_attribute("secondaryIdentifier") == "Ca1"


def test_wrong_column_count_is_fatal(session):
    converter = AssemblyReportConverter(session)

    with pytest.raises(MalformedRecordError, match="report.txt line 2"):
        converter.process_lines(
            ["# header\n", "Ca1\tassembled-molecule\t1\tChromosome\n"],
            source="report.txt",
        )


def test_missing_refseq_accession_is_fatal(session):
    converter = AssemblyReportConverter(session)
    line = "Ca1\tassembled-molecule\t1\tChromosome\tCM001764.1\t=\t \tPrimary Assembly\t48359943\tna\n"

    with pytest.raises(MalformedRecordError, match="RefSeq"):
        converter.process_lines([line])


def test_counts_logged_when_row_is_fatal(session):
    converter = AssemblyReportConverter(session)
    lines = SAMPLE_REPORT.splitlines(keepends=True) + ["Ca9\tassembled-molecule\n"]

    with capture_logs() as logs:
        with pytest.raises(MalformedRecordError):
            converter.process_lines(lines, source="report.txt")

    complete = [e for e in logs if e["event"] == "assembly_report_complete"]
    assert complete[0]["source"] == "report.txt"
    assert complete[0]["counts"] == {"Chromosome": 2, "Supercontig": 1, "skipped": 1}


def test_process_file(tmp_path, session):
    report = tmp_path / "GCF_000331145.1_ASM33114v1_assembly_report.txt"
    report.write_text(SAMPLE_REPORT)

    counts = AssemblyReportConverter(session).process_file(report)

    assert counts["Chromosome"] == 2
