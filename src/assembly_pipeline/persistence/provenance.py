"""Provenance of a conversion run: which inputs went into the warehouse, and how."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional


class ProvenanceTracker:
    """
    Collects what a conversion run did so the warehouse can be traced back
    to its inputs.

    Holds the organism, data set and source versions the run was configured
    with, the config hash, and one conversion entry per input file in the
    order the files were converted.
    """

    def __init__(self, pipeline_version: str, config: "PipelineConfig"):
        self.pipeline_version = pipeline_version
        self.config_hash = config.config_hash()
        self.taxon_id = config.organism.taxon_id
        self.strain = config.organism.strain
        self.data_source = config.data_source.name
        self.data_set = config.data_set.name
        self.assembly_version = config.versions.assembly
        self.annotation_version = config.versions.annotation
        self.conversions: list[dict] = []
        self.created_at = datetime.now(timezone.utc)

    def record_conversion(
        self,
        converter: str,
        source: str,
        record_counts: Mapping[str, int],
    ) -> dict:
        """
        Record one converted input file.

        Args:
            converter: Name of the converter that handled the file
            source: File name of the input
            record_counts: Per-file diagnostic counts the converter returned

        Returns:
            The recorded entry
        """
        entry = {
            "converter": converter,
            "file": source,
            "record_counts": dict(record_counts),
            "converted_at": datetime.now(timezone.utc).isoformat(),
        }
        self.conversions.append(entry)
        return entry

    def create_metadata(self) -> dict:
        return {
            "pipeline_version": self.pipeline_version,
            "config_hash": self.config_hash,
            "taxon_id": self.taxon_id,
            "strain": self.strain,
            "data_source": self.data_source,
            "data_set": self.data_set,
            "assembly_version": self.assembly_version,
            "annotation_version": self.annotation_version,
            "created_at": self.created_at.isoformat(),
            "conversions": self.conversions,
        }

    def save_sidecar(self, output_path: Path) -> Path:
        """
        Write the metadata as JSON next to output_path.

        The sidecar replaces the suffix of output_path with
        ``.provenance.json``.

        Returns:
            Path of the sidecar file
        """
        sidecar_path = Path(output_path).with_suffix(".provenance.json")
        sidecar_path.parent.mkdir(parents=True, exist_ok=True)

        with open(sidecar_path, "w") as f:
            json.dump(self.create_metadata(), f, indent=2, default=str)
        return sidecar_path

    def save_to_store(self, store: "PipelineStore") -> None:
        """Append one row for this run to the store's _provenance table."""
        store.conn.execute("""
            CREATE TABLE IF NOT EXISTS _provenance (
                version VARCHAR,
                config_hash VARCHAR,
                data_set VARCHAR,
                assembly_version VARCHAR,
                annotation_version VARCHAR,
                created_at TIMESTAMP,
                conversions_json VARCHAR
            )
        """)

        store.conn.execute("""
            INSERT INTO _provenance (
                version, config_hash, data_set, assembly_version,
                annotation_version, created_at, conversions_json
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, [
            self.pipeline_version,
            self.config_hash,
            self.data_set,
            self.assembly_version,
            self.annotation_version,
            self.created_at.isoformat(),
            json.dumps(self.conversions, default=str),
        ])

    @classmethod
    def from_config(
        cls,
        config: "PipelineConfig",
        version: Optional[str] = None
    ) -> "ProvenanceTracker":
        """Tracker stamped with the installed package version unless one is given."""
        if version is None:
            from assembly_pipeline import __version__
            version = __version__

        return cls(version, config)
