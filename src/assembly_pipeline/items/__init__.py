"""Warehouse entity model and per-job conversion state."""

from assembly_pipeline.items.models import (
    TRANSCRIPT_KINDS,
    FeatureKind,
    Item,
    ItemFactory,
)
from assembly_pipeline.items.session import ConversionSession

__all__ = [
    "TRANSCRIPT_KINDS",
    "FeatureKind",
    "Item",
    "ItemFactory",
    "ConversionSession",
]
