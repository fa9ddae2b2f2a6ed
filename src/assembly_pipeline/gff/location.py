"""Location records placing features on chromosomes and supercontigs."""

from assembly_pipeline.gff.record import GFF3Record
from assembly_pipeline.gff.registry import FeatureRegistry
from assembly_pipeline.items.models import FeatureKind, Item

LOCATION_REFERENCES = {
    FeatureKind.CHROMOSOME.value: "chromosomeLocation",
    FeatureKind.SUPERCONTIG.value: "supercontigLocation",
}


class LocationAttacher:
    """Create a Location per placement event.

    Locations are never deduplicated: each visit of a feature appends a new
    one, stored right away. The feature keeps exactly one of
    chromosomeLocation / supercontigLocation, pointing at the latest.
    """

    def __init__(self, session, registry: FeatureRegistry):
        self.session = session
        self.registry = registry

    def attach(self, feature: Item, record: GFF3Record) -> Item | None:
        """
        Place feature at the record's coordinates.

        Returns:
            The new Location, or None if the sequence is unknown and the
            registry skips unknown sequences

        Raises:
            UnclassifiedSequenceError: Unknown sequence under the FAIL policy
        """
        sequence = self.registry.get_sequence(record.sequence_id)
        if sequence is None:
            return None

        location = self.session.create_item("Location")
        location.set_reference("locatedOn", sequence)
        location.set_attribute("start", record.start)
        location.set_attribute("end", record.end)
        location.set_attribute("strand", record.strand)
        location.set_reference("feature", feature)
        location.add_to_collection("dataSets", self.session.get_data_set())
        self.session.store(location)

        reference = LOCATION_REFERENCES[sequence.class_name]
        for other in LOCATION_REFERENCES.values():
            if other != reference:
                feature.references.pop(other, None)
        feature.set_reference(reference, location)
        return location
