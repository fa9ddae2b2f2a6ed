"""Warehouse entity model: generic items addressed by handles."""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum


class FeatureKind(str, Enum):
    """Sequence feature classes the converters create.

    The value is the warehouse class name.
    """

    CHROMOSOME = "Chromosome"
    SUPERCONTIG = "Supercontig"
    GENE = "Gene"
    MRNA = "MRNA"
    NCRNA = "NcRNA"
    TRNA = "TRNA"
    RRNA = "RRNA"
    TRANSCRIPT = "Transcript"
    EXON = "Exon"
    CDS = "CDS"
    PROTEIN = "Protein"


TRANSCRIPT_KINDS = frozenset({
    FeatureKind.MRNA,
    FeatureKind.NCRNA,
    FeatureKind.TRNA,
    FeatureKind.RRNA,
    FeatureKind.TRANSCRIPT,
})


@dataclass
class Item:
    """A single warehouse entity.

    Attributes:
        identifier: Run-unique handle (e.g. "gene_12"), used by other items
                    to refer to this one
        class_name: Warehouse class (e.g. "Gene", "Location")
        attributes: Attribute name -> string value
        references: Reference name -> identifier of the referenced item
        collections: Collection name -> identifiers, insertion ordered and
                     free of duplicates

    Items never hold other items directly; references and collections are
    handles so the whole graph can be flushed table by table.
    """

    identifier: str
    class_name: str
    attributes: dict[str, str] = field(default_factory=dict)
    references: dict[str, str] = field(default_factory=dict)
    collections: dict[str, list[str]] = field(default_factory=dict)

    def set_attribute(self, name: str, value) -> None:
        """Set an attribute, stored as a string. None leaves it untouched."""
        if value is None:
            return
        self.attributes[name] = str(value)

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set_reference(self, name: str, target: "Item | str") -> None:
        if isinstance(target, Item):
            target = target.identifier
        self.references[name] = target

    def get_reference(self, name: str) -> str | None:
        return self.references.get(name)

    def add_to_collection(self, name: str, target: "Item | str") -> None:
        if isinstance(target, Item):
            target = target.identifier
        members = self.collections.setdefault(name, [])
        if target not in members:
            members.append(target)

    def to_record(self) -> dict:
        """Flatten into a single row: item_id, attributes, references, collections."""
        record = {"item_id": self.identifier}
        record.update(self.attributes)
        record.update(self.references)
        for name, members in self.collections.items():
            record[name] = list(members)
        return record


class ItemFactory:
    """Create items with run-unique, class-scoped identifiers."""

    def __init__(self):
        self._counters: dict[str, int] = defaultdict(int)

    def create(self, class_name: str) -> Item:
        self._counters[class_name] += 1
        identifier = f"{class_name.lower()}_{self._counters[class_name]}"
        return Item(identifier=identifier, class_name=class_name)
