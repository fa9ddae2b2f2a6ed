"""Pydantic models for pipeline configuration."""

import hashlib
import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _require_text(value: str | None) -> str | None:
    """Treat blank strings as missing values."""
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


class ClassificationMode(str, Enum):
    """How sequence IDs are split into chromosomes and supercontigs."""

    NCBI = "ncbi"
    PREFIX = "prefix"


class UnknownSequencePolicy(str, Enum):
    """What to do with a sequence ID that is neither chromosome nor supercontig."""

    FAIL = "fail"
    SKIP = "skip"


class SequenceIdentifierField(str, Enum):
    """Which identifier a GFF region's sequence ID populates."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class OrganismConfig(BaseModel):
    """Organism and strain every loaded feature belongs to."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    taxon_id: str = Field(
        ...,
        description="NCBI taxon ID of the organism (e.g. 3827)",
    )
    strain: str = Field(
        ...,
        description="Strain identifier (e.g. CDCFrontier)",
    )

    @field_validator("taxon_id", "strain")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _require_text(v)


class DataSourceConfig(BaseModel):
    """Data source the loaded data sets are attributed to."""

    name: str = Field(..., description="Data source name (e.g. NCBI)")
    url: str | None = Field(default=None, description="Data source URL")
    description: str | None = Field(default=None, description="Data source description")

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _require_text(v)


class DataSetConfig(BaseModel):
    """Data set tag stamped on every loaded feature.

    GFF3 header lines (``#!genome-build-accession``) may override the name
    per file.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = Field(..., description="Data set name")
    description: str | None = Field(default=None, description="Data set description")
    licence: str | None = Field(default=None, description="Data set licence")
    version: str | None = Field(default=None, description="Data set version")

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _require_text(v)


class VersionConfig(BaseModel):
    """Assembly and annotation versions stamped on features."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    assembly: str | None = Field(default=None, description="Assembly version")
    annotation: str | None = Field(default=None, description="Annotation version")


class SequenceConfig(BaseModel):
    """Sequence classification settings.

    NCBI sources use the fixed NC_/NW_ prefixes and fail on anything else.
    Secondary sources configure their own prefixes and usually skip unknown
    sequences.
    """

    classification: ClassificationMode = Field(
        default=ClassificationMode.NCBI,
        description="ncbi (NC_/NW_) or prefix (configured prefixes)",
    )
    chromosome_prefix: str | None = Field(
        default=None,
        description="Chromosome ID prefix (required for prefix classification)",
    )
    supercontig_prefix: str | None = Field(
        default=None,
        description="Supercontig ID prefix (required for prefix classification)",
    )
    unknown: UnknownSequencePolicy = Field(
        default=UnknownSequencePolicy.FAIL,
        description="fail or skip on unclassifiable sequence IDs",
    )
    identifier: SequenceIdentifierField = Field(
        default=SequenceIdentifierField.PRIMARY,
        description="Whether region sequence IDs are primary or secondary identifiers",
    )

    @model_validator(mode="after")
    def check_prefixes(self) -> "SequenceConfig":
        """Prefix classification needs both prefixes."""
        if self.classification == ClassificationMode.PREFIX:
            for name in ("chromosome_prefix", "supercontig_prefix"):
                value = getattr(self, name)
                if value is None or not value.strip():
                    raise ValueError(f"{name} is required for prefix classification")
        return self


class TaxonomyConfig(BaseModel):
    """Taxonomy dump filter."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    taxon_ids: list[str] = Field(
        default_factory=list,
        description="Taxon IDs retained from names.dmp (default: organism.taxon_id)",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    data_dir: Path = Field(
        ...,
        description="Directory for provenance sidecars and reports",
    )
    duckdb_path: Path = Field(
        ...,
        description="Path to DuckDB database file",
    )
    organism: OrganismConfig = Field(
        ...,
        description="Organism and strain",
    )
    data_source: DataSourceConfig = Field(
        ...,
        description="Data source",
    )
    data_set: DataSetConfig = Field(
        ...,
        description="Data set",
    )
    versions: VersionConfig = Field(
        default_factory=VersionConfig,
        description="Assembly and annotation versions",
    )
    sequences: SequenceConfig = Field(
        default_factory=SequenceConfig,
        description="Sequence classification",
    )
    taxonomy: TaxonomyConfig = Field(
        default_factory=TaxonomyConfig,
        description="Taxonomy dump filter",
    )

    @field_validator("data_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def default_taxon_ids(self) -> "PipelineConfig":
        """Retain the configured organism from names.dmp when no list is given."""
        if not self.taxonomy.taxon_ids:
            self.taxonomy.taxon_ids = [self.organism.taxon_id]
        return self

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking which settings produced a load.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
