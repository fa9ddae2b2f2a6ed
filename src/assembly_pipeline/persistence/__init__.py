"""Persistence layer: DuckDB store, item sinks and provenance tracking."""

from assembly_pipeline.persistence.duckdb_store import PipelineStore
from assembly_pipeline.persistence.item_writer import (
    DuckDBItemWriter,
    DuplicateItemError,
    ItemWriter,
    MemoryItemWriter,
)
from assembly_pipeline.persistence.provenance import ProvenanceTracker

__all__ = [
    "PipelineStore",
    "DuckDBItemWriter",
    "DuplicateItemError",
    "ItemWriter",
    "MemoryItemWriter",
    "ProvenanceTracker",
]
