"""Primary identifier assignment for GFF3 features.

Priority, first match wins:

1. ``Name``. A gene name already claimed by a different gene falls back to
   the record ID, so gene primary identifiers stay unique within a job.
   Names of other features are used as given.
2. ``gene`` or else ``transcript_id``, suffixed with a per-value counter:
   ``XM_1.1``, ``XM_1.2``, ... The counter advances on every request.
3. The raw ``ID``, or the registry key standing in for it on records
   without one.

Raw IDs come last because NCBI IDs such as ``id0`` or ``rna-XM_1`` are
export artifacts rather than stable names.
"""

import structlog

from assembly_pipeline.gff.record import GFF3Record
from assembly_pipeline.items.models import FeatureKind

logger = structlog.get_logger()

COUNTER_KEY_ATTRIBUTES = ("gene", "transcript_id")


class IdentifierResolver:
    """Resolve primary identifiers against the session's name claims and counters."""

    def __init__(self, session):
        self.gene_names = session.gene_names
        self.suffix_counters = session.suffix_counters

    def resolve(self, record: GFF3Record, kind: FeatureKind, key: str | None = None) -> str:
        key = key or record.id
        names = record.names
        if names:
            name = names[0]
            if kind != FeatureKind.GENE:
                return name
            return self._claim_gene_name(name, key)

        for attribute in COUNTER_KEY_ATTRIBUTES:
            counter_key = record.first(attribute)
            if counter_key is not None:
                return self.next_suffixed(counter_key)

        return key

    def _claim_gene_name(self, name: str, gene_key: str) -> str:
        claimed_by = self.gene_names.get(name)
        if claimed_by is None:
            self.gene_names[name] = gene_key
            return name
        if claimed_by == gene_key:
            # same gene seen again
            return name
        logger.debug("gene_name_collision", name=name, claimed_by=claimed_by, gene=gene_key)
        return gene_key

    def next_suffixed(self, counter_key: str) -> str:
        count = self.suffix_counters.get(counter_key, 0) + 1
        self.suffix_counters[counter_key] = count
        return f"{counter_key}.{count}"
