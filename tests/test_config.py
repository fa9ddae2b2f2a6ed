"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from assembly_pipeline.config import load_config, load_config_with_overrides
from assembly_pipeline.config.schema import (
    ClassificationMode,
    PipelineConfig,
    SequenceIdentifierField,
    UnknownSequencePolicy,
)


def write_config(tmp_path, body: str) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(body.format(tmp=tmp_path))
    return config_path


MINIMAL_CONFIG = """
data_dir: {tmp}/data
duckdb_path: {tmp}/test.duckdb
organism:
  taxon_id: 3827
  strain: CDCFrontier
data_source:
  name: NCBI
data_set:
  name: NCBI Cicer arietinum Annotation Release 102
"""


def test_load_valid_config():
    """Test loading valid default configuration."""
    config = load_config("config/default.yaml")

    assert isinstance(config, PipelineConfig)
    assert config.organism.taxon_id == "3827"
    assert config.organism.strain == "CDCFrontier"
    assert config.versions.assembly == "ASM33114v1"
    assert config.versions.annotation == "102"
    assert config.sequences.classification == ClassificationMode.NCBI
    assert config.sequences.unknown == UnknownSequencePolicy.FAIL
    assert config.taxonomy.taxon_ids == ["3827", "3885"]


def test_minimal_config_defaults(tmp_path):
    """Test defaults for optional sections."""
    config = load_config(write_config(tmp_path, MINIMAL_CONFIG))

    # unquoted numbers are read as strings
    assert config.organism.taxon_id == "3827"
    assert config.versions.assembly is None
    assert config.sequences.identifier == SequenceIdentifierField.PRIMARY
    assert config.taxonomy.taxon_ids == ["3827"]
    assert (tmp_path / "data").is_dir()


def test_invalid_config_missing_field(tmp_path):
    """Test that a missing organism raises ValidationError."""
    config_path = write_config(tmp_path, """
data_dir: {tmp}/data
duckdb_path: {tmp}/test.duckdb
data_source:
  name: NCBI
data_set:
  name: Some data set
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(config_path)

    assert "organism" in str(exc_info.value)


@pytest.mark.parametrize("original,blank,location", [
    ("strain: CDCFrontier", 'strain: "  "', "organism.strain"),
    ("name: NCBI\n", 'name: ""\n', "data_source.name"),
    ("name: NCBI Cicer arietinum Annotation Release 102", 'name: " "', "data_set.name"),
])
def test_blank_required_value_is_missing(tmp_path, original, blank, location):
    """Test that blank strings are rejected like missing values."""
    body = MINIMAL_CONFIG.replace(original, blank)

    with pytest.raises(ValidationError) as exc_info:
        load_config(write_config(tmp_path, body))

    assert location in str(exc_info.value)


def test_prefix_classification_requires_prefixes(tmp_path):
    """Test that prefix classification without prefixes is rejected."""
    config_path = write_config(tmp_path, MINIMAL_CONFIG + """
sequences:
  classification: prefix
  chromosome_prefix: Ca
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(config_path)

    assert "supercontig_prefix" in str(exc_info.value)


def test_prefix_classification_valid(tmp_path):
    config_path = write_config(tmp_path, MINIMAL_CONFIG + """
sequences:
  classification: prefix
  chromosome_prefix: Ca
  supercontig_prefix: scaffold
  unknown: skip
  identifier: secondary
""")

    config = load_config(config_path)

    assert config.sequences.classification == ClassificationMode.PREFIX
    assert config.sequences.unknown == UnknownSequencePolicy.SKIP
    assert config.sequences.identifier == SequenceIdentifierField.SECONDARY


def test_config_hash_deterministic():
    """Test that config hash is deterministic and changes with config."""
    config1 = load_config("config/default.yaml")
    config2 = load_config("config/default.yaml")

    assert config1.config_hash() == config2.config_hash()
    assert len(config1.config_hash()) == 64

    config3 = load_config_with_overrides(
        "config/default.yaml",
        {"organism.strain": "ICC4958"},
    )
    assert config3.organism.strain == "ICC4958"
    assert config1.config_hash() != config3.config_hash()


def test_override_enum_value():
    config = load_config_with_overrides(
        "config/default.yaml",
        {"sequences.unknown": "skip"},
    )

    assert config.sequences.unknown == UnknownSequencePolicy.SKIP


def test_missing_config_file():
    """Test that a missing config file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_config("does/not/exist.yaml")
