"""Conversion session: every piece of state that lives for one conversion job."""

import structlog

from assembly_pipeline.config.schema import PipelineConfig
from assembly_pipeline.items.models import Item, ItemFactory

logger = structlog.get_logger()


class ConversionSession:
    """
    State shared by every converter of one job.

    Created empty at job start, flushed once by close(). Holds the feature
    registry map, the gene-name claims and identifier suffix counters, the
    ontology term / protein domain caches and the provenance items
    (organism, strain, data source, data sets).

    Items that are never revisited (locations, join records, sequences,
    strains, data sources, data sets) are written to the sink as soon as
    they are created. Everything else is written by close().
    """

    def __init__(self, config: PipelineConfig, writer):
        """
        Initialize an empty session.

        Args:
            config: Validated pipeline configuration
            writer: ItemWriter sink receiving the items
        """
        self.config = config
        self.writer = writer
        self.factory = ItemFactory()

        # feature registry: registry key -> feature item
        self.features: dict[str, Item] = {}
        # gene name -> registry key of the gene that claimed it
        self.gene_names: dict[str, str] = {}
        # counter key (gene / transcript_id) -> last suffix handed out
        self.suffix_counters: dict[str, int] = {}

        self.ontology_terms: dict[str, Item] = {}
        self.protein_domains: dict[str, Item] = {}
        # (gene, term) pairs that already have an OntologyAnnotation
        self.ontology_annotations: set[tuple[str, str]] = set()
        self.organisms: dict[str, Item] = {}
        self.proteins: dict[str, Item] = {}
        self.genes_by_identifier: dict[str, Item] = {}

        # GFF3 headers may replace these per file
        self.assembly_version = config.versions.assembly
        self.annotation_version = config.versions.annotation
        self.data_set_name = config.data_set.name
        self.data_set_description = config.data_set.description

        self._strain: Item | None = None
        self._data_source: Item | None = None
        self._data_sets: dict[str, Item] = {}
        self._closed = False

    def create_item(self, class_name: str) -> Item:
        return self.factory.create(class_name)

    def store(self, item: Item) -> None:
        """Hand an item to the sink right away."""
        self.writer.store(item)

    def get_organism(self, taxon_id: str | None = None) -> Item:
        """Return the Organism for taxon_id (default: the configured organism)."""
        if taxon_id is None:
            taxon_id = self.config.organism.taxon_id
        organism = self.organisms.get(taxon_id)
        if organism is None:
            organism = self.create_item("Organism")
            organism.set_attribute("taxonId", taxon_id)
            self.organisms[taxon_id] = organism
        return organism

    def get_strain(self) -> Item:
        if self._strain is None:
            strain = self.create_item("Strain")
            strain.set_attribute("identifier", self.config.organism.strain)
            strain.set_reference("organism", self.get_organism())
            self.store(strain)
            self._strain = strain
        return self._strain

    def get_data_source(self) -> Item:
        if self._data_source is None:
            source_config = self.config.data_source
            data_source = self.create_item("DataSource")
            data_source.set_attribute("name", source_config.name)
            data_source.set_attribute("url", source_config.url)
            data_source.set_attribute("description", source_config.description)
            self.store(data_source)
            self._data_source = data_source
        return self._data_source

    def get_data_set(self) -> Item:
        """Return the DataSet for the current data set name, creating it once."""
        data_set = self._data_sets.get(self.data_set_name)
        if data_set is None:
            set_config = self.config.data_set
            data_set = self.create_item("DataSet")
            data_set.set_attribute("name", self.data_set_name)
            data_set.set_attribute("description", self.data_set_description)
            data_set.set_attribute("licence", set_config.licence)
            data_set.set_attribute("version", set_config.version)
            data_set.set_reference("dataSource", self.get_data_source())
            self.store(data_set)
            self._data_sets[self.data_set_name] = data_set
        return data_set

    def stamp(self, item: Item, versions: bool = True) -> None:
        """Set organism, strain, data set and (optionally) versions on an item.

        Safe to repeat on every visit: the values are the same each time or
        fill fields a stub left empty.
        """
        item.set_reference("organism", self.get_organism())
        item.set_reference("strain", self.get_strain())
        item.add_to_collection("dataSets", self.get_data_set())
        if versions:
            item.set_attribute("assemblyVersion", self.assembly_version)
            item.set_attribute("annotationVersion", self.annotation_version)

    def close(self) -> dict[str, int]:
        """
        Flush every accumulated item to the sink exactly once.

        Returns:
            Number of items flushed per cache
        """
        if self._closed:
            raise RuntimeError("Conversion session already closed")
        self._closed = True

        flushed = {
            "features": self.features,
            "ontology_terms": self.ontology_terms,
            "protein_domains": self.protein_domains,
            "proteins": self.proteins,
            "genes_by_identifier": self.genes_by_identifier,
            "organisms": self.organisms,
        }
        counts = {}
        for name, cache in flushed.items():
            self.writer.store_all(cache.values())
            counts[name] = len(cache)

        logger.info("session_flush_complete", **counts)
        return counts
