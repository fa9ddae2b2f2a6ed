"""Parent resolution: exons to transcripts, transcripts to genes."""

import structlog

from assembly_pipeline.gff.record import GFF3Record
from assembly_pipeline.gff.registry import FeatureRegistry
from assembly_pipeline.items.models import TRANSCRIPT_KINDS, FeatureKind, Item

logger = structlog.get_logger()

# exon gbkey -> kind of the parent transcript
EXON_PARENT_KINDS = {
    "mRNA": FeatureKind.MRNA,
    "ncRNA": FeatureKind.NCRNA,
    "tRNA": FeatureKind.TRNA,
    "rRNA": FeatureKind.RRNA,
    "misc_RNA": FeatureKind.TRANSCRIPT,
}

# exons with this gbkey have no transcript parent
UNLINKED_EXON_GBKEY = "exon"


class ParentLinker:
    """Link a feature to its first Parent through the registry's stub path.

    Only the first Parent value is used; GFF3 multi-parent features are not
    supported.
    """

    def __init__(self, registry: FeatureRegistry):
        self.registry = registry

    def parent_kind(self, record: GFF3Record, kind: FeatureKind) -> FeatureKind | None:
        """Kind of the parent a feature of this kind should link to, if any."""
        if kind in TRANSCRIPT_KINDS:
            return FeatureKind.GENE
        if kind != FeatureKind.EXON:
            return None

        gbkey = record.first("gbkey")
        if gbkey == UNLINKED_EXON_GBKEY:
            return None
        parent_kind = EXON_PARENT_KINDS.get(gbkey)
        if parent_kind is None:
            logger.warning("unusual_exon_gbkey", gbkey=gbkey, exon=record.id)
        return parent_kind

    def link(self, feature: Item, record: GFF3Record, kind: FeatureKind) -> Item | None:
        """Resolve and set the parent reference of feature.

        Transcripts get a "gene" reference, exons a "transcript" reference.

        Returns:
            The parent item, or None when there is nothing to link
        """
        parent_kind = self.parent_kind(record, kind)
        if parent_kind is None:
            return None

        parents = record.parents
        if not parents:
            logger.debug("feature_without_parent", feature=record.id, type=record.type)
            return None

        parent = self.registry.get_or_create_stub(parents[0], parent_kind, record.sequence_id)
        reference = "gene" if parent_kind == FeatureKind.GENE else "transcript"
        feature.set_reference(reference, parent)
        return parent
