"""Feature registry: one feature item per registry key for the whole job."""

import structlog

from assembly_pipeline.config.schema import SequenceIdentifierField, UnknownSequencePolicy
from assembly_pipeline.gff.classifier import (
    PrefixClassifier,
    SequenceClass,
    UnclassifiedSequenceError,
)
from assembly_pipeline.items.models import FeatureKind, Item

logger = structlog.get_logger()


class FeatureRegistry:
    """
    Create-or-update access to the session's feature map.

    Keys are GFF3 IDs for annotated features and sequence IDs for
    chromosomes and supercontigs. A stub created for a forward reference
    and the later full definition share the key, so they converge on one
    item.
    """

    def __init__(
        self,
        session,
        classifier: PrefixClassifier,
        unknown_policy: UnknownSequencePolicy = UnknownSequencePolicy.FAIL,
        sequence_identifier: SequenceIdentifierField = SequenceIdentifierField.PRIMARY,
    ):
        """
        Args:
            session: ConversionSession owning the feature map
            classifier: Chromosome/supercontig classifier
            unknown_policy: FAIL raises on unclassifiable sequence IDs,
                            SKIP leaves features without a sequence
            sequence_identifier: Identifier field a sequence ID populates
        """
        self.session = session
        self.features = session.features
        self.classifier = classifier
        self.unknown_policy = unknown_policy
        self.sequence_identifier = sequence_identifier

    def __contains__(self, key: str) -> bool:
        return key in self.features

    def __len__(self) -> int:
        return len(self.features)

    def get(self, key: str) -> Item | None:
        return self.features.get(key)

    def get_or_create(self, key: str, kind: FeatureKind) -> Item:
        """Return the feature for key, creating an empty one of kind if absent.

        The caller sets the attributes; values written on a later visit
        replace earlier ones.
        """
        feature = self.features.get(key)
        if feature is None:
            feature = self.session.create_item(kind.value)
            self.features[key] = feature
        elif feature.class_name != kind.value:
            logger.warning(
                "feature_kind_mismatch",
                key=key,
                existing=feature.class_name,
                requested=kind.value,
            )
        return feature

    def get_or_create_stub(self, key: str, kind: FeatureKind, sequence_id: str) -> Item:
        """Return the feature for key, creating a placeholder if absent.

        A stub carries only its key as primary identifier, the common stamp
        and its containing sequence; its own record fills in the rest if it
        turns up later.
        """
        feature = self.features.get(key)
        if feature is not None:
            return feature

        feature = self.get_or_create(key, kind)
        feature.set_attribute("primaryIdentifier", key)
        self.session.stamp(feature)
        self.set_sequence_reference(feature, sequence_id)
        logger.debug("feature_stub_created", key=key, kind=kind.value)
        return feature

    def classify(self, sequence_id: str) -> SequenceClass:
        """Classify a sequence ID, applying the unknown-sequence policy.

        Raises:
            UnclassifiedSequenceError: Unknown sequence under the FAIL policy
        """
        sequence_class = self.classifier.classify(sequence_id)
        if (
            sequence_class == SequenceClass.UNKNOWN
            and self.unknown_policy == UnknownSequencePolicy.FAIL
        ):
            raise UnclassifiedSequenceError(
                f"Sequence ID {sequence_id} is neither a chromosome nor a supercontig"
            )
        return sequence_class

    def get_sequence(self, sequence_id: str) -> Item | None:
        """Return the Chromosome or Supercontig for sequence_id.

        Created on first use. Returns None for an unknown sequence under the
        SKIP policy.
        """
        sequence = self.features.get(sequence_id)
        if sequence is not None:
            return sequence

        sequence_class = self.classify(sequence_id)
        if sequence_class == SequenceClass.UNKNOWN:
            return None

        sequence = self.get_or_create(sequence_id, sequence_class.kind)
        if self.sequence_identifier == SequenceIdentifierField.PRIMARY:
            sequence.set_attribute("primaryIdentifier", sequence_id)
            self.session.stamp(sequence)
        else:
            sequence.set_attribute("secondaryIdentifier", sequence_id)
            self.session.stamp(sequence, versions=False)
        return sequence

    def set_sequence_reference(self, feature: Item, sequence_id: str) -> Item | None:
        """Point feature.chromosome or feature.supercontig at its sequence."""
        sequence = self.get_sequence(sequence_id)
        if sequence is None:
            return None
        if sequence.class_name == FeatureKind.CHROMOSOME.value:
            feature.set_reference("chromosome", sequence)
        else:
            feature.set_reference("supercontig", sequence)
        return sequence
