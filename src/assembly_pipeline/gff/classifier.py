"""Chromosome vs. supercontig classification of sequence IDs."""

from enum import Enum

from assembly_pipeline.config.schema import ClassificationMode, SequenceConfig
from assembly_pipeline.items.models import FeatureKind

NCBI_CHROMOSOME_PREFIX = "NC_"
NCBI_SUPERCONTIG_PREFIX = "NW_"


class SequenceClass(Enum):
    CHROMOSOME = FeatureKind.CHROMOSOME
    SUPERCONTIG = FeatureKind.SUPERCONTIG
    UNKNOWN = None

    @property
    def kind(self) -> FeatureKind | None:
        return self.value


class UnclassifiedSequenceError(ValueError):
    """Raised when a sequence ID is neither a chromosome nor a supercontig."""


class PrefixClassifier:
    """Classify sequence IDs by configured starts-with prefixes.

    Used for secondary sources whose sequence names follow their own
    convention (e.g. "Ca" chromosomes, "scaffold" supercontigs).
    """

    def __init__(self, chromosome_prefix: str, supercontig_prefix: str):
        self.chromosome_prefix = chromosome_prefix
        self.supercontig_prefix = supercontig_prefix

    def is_chromosome(self, sequence_id: str) -> bool:
        return sequence_id.startswith(self.chromosome_prefix)

    def is_supercontig(self, sequence_id: str) -> bool:
        return sequence_id.startswith(self.supercontig_prefix)

    def classify(self, sequence_id: str) -> SequenceClass:
        if self.is_chromosome(sequence_id):
            return SequenceClass.CHROMOSOME
        if self.is_supercontig(sequence_id):
            return SequenceClass.SUPERCONTIG
        return SequenceClass.UNKNOWN

    def __repr__(self):
        return (
            f"{type(self).__name__}(chromosome_prefix={self.chromosome_prefix!r}, "
            f"supercontig_prefix={self.supercontig_prefix!r})"
        )


class NcbiPrefixClassifier(PrefixClassifier):
    """RefSeq accessions: NC_ chromosomes, NW_ supercontigs."""

    def __init__(self):
        super().__init__(NCBI_CHROMOSOME_PREFIX, NCBI_SUPERCONTIG_PREFIX)


def build_classifier(config: SequenceConfig) -> PrefixClassifier:
    """Create the classifier selected by the sequence configuration."""
    if config.classification == ClassificationMode.PREFIX:
        return PrefixClassifier(config.chromosome_prefix, config.supercontig_prefix)
    return NcbiPrefixClassifier()
