"""Tests for persistence layer (DuckDB store, item writers, provenance tracking)."""

import json

import polars as pl
import pytest

from assembly_pipeline.config.loader import load_config
from assembly_pipeline.items import ItemFactory
from assembly_pipeline.persistence import (
    DuckDBItemWriter,
    DuplicateItemError,
    MemoryItemWriter,
    PipelineStore,
    ProvenanceTracker,
)
from assembly_pipeline.persistence.item_writer import records_to_dataframe


@pytest.fixture
def test_config(tmp_path):
    """Create a minimal test config."""
    config_path = tmp_path / "test_config.yaml"
    config_path.write_text("""
data_dir: {data_dir}
duckdb_path: {duckdb_path}
organism:
  taxon_id: "3827"
  strain: CDCFrontier
data_source:
  name: NCBI
data_set:
  name: NCBI Cicer arietinum Annotation Release 102
versions:
  assembly: ASM33114v1
  annotation: "102"
""".format(
        data_dir=str(tmp_path / "data"),
        duckdb_path=str(tmp_path / "test.duckdb"),
    ))
    return load_config(config_path)


# ============================================================================
# DuckDB Store Tests
# ============================================================================

def test_store_creates_database(tmp_path):
    """Test that PipelineStore creates .duckdb file at specified path."""
    db_path = tmp_path / "nested" / "test.duckdb"
    assert not db_path.exists()

    store = PipelineStore(db_path)
    store.close()

    assert db_path.exists()


def test_save_and_load_polars(tmp_path):
    """Test saving and loading polars DataFrame."""
    store = PipelineStore(tmp_path / "test.duckdb")

    df = pl.DataFrame({
        "primaryIdentifier": ["NC_021160.1", "NC_021161.1"],
        "secondaryIdentifier": ["Ca1", "Ca2"],
        "length": ["48359943", "36634854"],
    })
    store.save_dataframe(df, "chromosome", "test chromosomes")

    loaded = store.load_dataframe("chromosome")

    assert loaded.shape == df.shape
    assert loaded.columns == df.columns
    assert loaded["secondaryIdentifier"].to_list() == ["Ca1", "Ca2"]

    store.close()


def test_save_append(tmp_path):
    """Test appending rows with replace=False."""
    store = PipelineStore(tmp_path / "test.duckdb")

    store.save_dataframe(pl.DataFrame({"a": ["1"], "b": ["x"]}), "t", "first")
    store.save_dataframe(pl.DataFrame({"b": ["y"], "a": ["2"]}), "t", "second", replace=False)

    loaded = store.load_dataframe("t")
    assert sorted(loaded["a"].to_list()) == ["1", "2"]
    assert store.list_checkpoints()[0]["row_count"] == 2

    store.close()


def test_save_rejects_non_polars(tmp_path):
    store = PipelineStore(tmp_path / "test.duckdb")

    with pytest.raises(ValueError):
        store.save_dataframe([{"a": 1}], "t")

    store.close()


def test_list_checkpoints(tmp_path):
    """Test listing checkpoints returns metadata, ordered by table name."""
    store = PipelineStore(tmp_path / "test.duckdb")

    for i in (2, 0, 1):
        df = pl.DataFrame({"val": list(range(i + 1))})
        store.save_dataframe(df, f"table_{i}", f"description {i}")

    checkpoints = store.list_checkpoints()

    assert [c["table_name"] for c in checkpoints] == ["table_0", "table_1", "table_2"]
    assert checkpoints[0]["row_count"] == 1
    assert checkpoints[0]["description"] == "description 0"
    assert checkpoints[2]["row_count"] == 3

    store.close()


def test_execute_query(tmp_path):
    with PipelineStore(tmp_path / "test.duckdb") as store:
        df = pl.DataFrame({"class": ["Gene", "Exon", "Gene"]})
        store.save_dataframe(df, "items")

        result = store.execute_query(
            'SELECT COUNT(*) AS n FROM items WHERE "class" = ?', ["Gene"]
        )

    assert result["n"].to_list() == [2]


def test_load_nonexistent_returns_none(tmp_path):
    """Test that loading non-existent table returns None."""
    store = PipelineStore(tmp_path / "test.duckdb")

    assert store.load_dataframe("nonexistent_table") is None
    assert not store.has_checkpoint("nonexistent_table")

    store.close()


def test_context_manager(tmp_path):
    """Test context manager support."""
    db_path = tmp_path / "test.duckdb"
    df = pl.DataFrame({"col": [1, 2, 3]})

    with PipelineStore(db_path) as store:
        store.save_dataframe(df, "test_table", "test")
        assert store.has_checkpoint("test_table")

    # reopen to verify the data persisted
    with PipelineStore(db_path) as store:
        loaded = store.load_dataframe("test_table")
        assert loaded is not None
        assert loaded.shape == df.shape


# ============================================================================
# Item Writer Tests
# ============================================================================

def test_memory_writer_stores_items():
    factory = ItemFactory()
    gene = factory.create("Gene")
    location = factory.create("Location")

    writer = MemoryItemWriter()
    writer.store_all([gene, location])

    assert writer.get(gene.identifier) is gene
    assert writer.by_class("Location") == [location]
    assert writer.counts == {"Gene": 1, "Location": 1}


def test_writer_rejects_duplicate_identifier():
    """Test that storing the same identifier twice raises DuplicateItemError."""
    gene = ItemFactory().create("Gene")
    writer = MemoryItemWriter()
    writer.store(gene)

    with pytest.raises(DuplicateItemError, match="gene_1"):
        writer.store(gene)


def test_records_to_dataframe_union_schema():
    """Test that records with different fields share one table schema."""
    df = records_to_dataframe([
        {"item_id": "gene_1", "primaryIdentifier": "LOC1", "dataSets": ["dataset_1"]},
        {"item_id": "gene_2", "description": "kinase"},
    ])

    assert set(df.columns) == {"item_id", "primaryIdentifier", "dataSets", "description"}
    assert df.schema["dataSets"] == pl.List(pl.Utf8)
    assert df["description"].to_list() == [None, "kinase"]
    assert df["dataSets"].to_list() == [["dataset_1"], None]


def test_duckdb_writer_one_table_per_class(tmp_path):
    """Test that DuckDBItemWriter writes one table per warehouse class."""
    factory = ItemFactory()
    chromosome = factory.create("Chromosome")
    chromosome.set_attribute("primaryIdentifier", "NC_021160.1")
    mrna = factory.create("MRNA")
    mrna.set_attribute("primaryIdentifier", "XM_004485378.1")
    mrna.set_reference("chromosome", chromosome)
    mrna.add_to_collection("dataSets", "dataset_1")

    with PipelineStore(tmp_path / "test.duckdb") as store:
        writer = DuckDBItemWriter(store)
        writer.store_all([chromosome, mrna])
        writer.close()

        assert [c["table_name"] for c in store.list_checkpoints()] == ["chromosome", "mrna"]
        df = store.load_dataframe("mrna")

    assert df["item_id"].to_list() == ["mrna_1"]
    assert df["primaryIdentifier"].to_list() == ["XM_004485378.1"]
    assert df["chromosome"].to_list() == ["chromosome_1"]
    assert df["dataSets"].to_list() == [["dataset_1"]]


# ============================================================================
# Provenance Tests
# ============================================================================

def test_provenance_metadata_structure(test_config):
    """Test that provenance metadata has all required keys."""
    tracker = ProvenanceTracker("0.1.0", test_config)

    metadata = tracker.create_metadata()

    assert metadata["pipeline_version"] == "0.1.0"
    assert metadata["config_hash"] == test_config.config_hash()
    assert metadata["taxon_id"] == "3827"
    assert metadata["strain"] == "CDCFrontier"
    assert metadata["data_set"] == "NCBI Cicer arietinum Annotation Release 102"
    assert metadata["assembly_version"] == "ASM33114v1"
    assert metadata["annotation_version"] == "102"
    assert "created_at" in metadata
    assert metadata["conversions"] == []


def test_provenance_records_conversions(test_config):
    """Test that each converted file is recorded in order with its counts."""
    tracker = ProvenanceTracker("0.1.0", test_config)

    tracker.record_conversion("assembly_report", "assembly_report.txt", {"Chromosome": 8})
    entry = tracker.record_conversion("gff3", "genomic.gff", {"gene": 2})

    assert [c["converter"] for c in tracker.conversions] == ["assembly_report", "gff3"]
    assert entry["file"] == "genomic.gff"
    assert entry["record_counts"] == {"gene": 2}
    assert "converted_at" in entry


def test_provenance_sidecar(test_config, tmp_path):
    """Test that the sidecar lands beside the output path and holds the metadata."""
    tracker = ProvenanceTracker("0.1.0", test_config)
    tracker.record_conversion("taxonomy", "names.dmp", {"scientific name": 1})

    sidecar_path = tracker.save_sidecar(tmp_path / "out" / "convert.json")

    assert sidecar_path == tmp_path / "out" / "convert.provenance.json"
    loaded = json.loads(sidecar_path.read_text())
    assert loaded["config_hash"] == test_config.config_hash()
    assert loaded["conversions"][0]["file"] == "names.dmp"


def test_provenance_save_to_store(test_config, tmp_path):
    """Test saving provenance to DuckDB store."""
    store = PipelineStore(tmp_path / "test.duckdb")
    tracker = ProvenanceTracker.from_config(test_config)
    tracker.record_conversion("fasta", "protein.faa", {"Protein": 3})

    tracker.save_to_store(store)

    rows = store.conn.execute(
        "SELECT version, config_hash, data_set, assembly_version, conversions_json FROM _provenance"
    ).fetchall()
    assert len(rows) == 1
    version, config_hash, data_set, assembly_version, conversions_json = rows[0]
    assert version == "0.1.0"
    assert config_hash == test_config.config_hash()
    assert data_set == "NCBI Cicer arietinum Annotation Release 102"
    assert assembly_version == "ASM33114v1"
    assert json.loads(conversions_json)[0]["record_counts"] == {"Protein": 3}

    store.close()
