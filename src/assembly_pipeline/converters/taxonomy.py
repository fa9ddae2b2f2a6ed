"""NCBI taxonomy dump converter (``names.dmp``).

Lines look like ``3827\\t|\\tCicer arietinum\\t|\\t\\t|\\tscientific name\\t|``:
tax_id, name_txt, unique name, name class.
"""

from collections import Counter
from pathlib import Path
from typing import Iterable

import structlog

from assembly_pipeline.gff.record import MalformedRecordError

logger = structlog.get_logger()

NAMES_DUMP = "names.dmp"
SCIENTIFIC_NAME = "scientific name"
COMMON_NAME = "genbank common name"
MIN_FIELDS = 4


class TaxonomyConverter:
    """Fill Organism items for the configured taxon ids.

    Organisms are shared with the other converters through the session, so
    the names land on the same Organism the features reference. Every other
    taxon id in the dump is ignored.
    """

    def __init__(self, session):
        self.session = session
        self.taxon_ids = set(session.config.taxonomy.taxon_ids)

    @classmethod
    def accepts(cls, path: Path) -> bool:
        return Path(path).name == NAMES_DUMP

    def process_file(self, path: Path) -> Counter:
        path = Path(path)
        logger.info("taxonomy_dump_start", path=str(path), taxon_ids=sorted(self.taxon_ids))
        with open(path, "r") as f:
            return self.process_lines(f, source=path.name)

    def process_lines(self, lines: Iterable[str], source: str = "<stream>") -> Counter:
        """
        Convert names.dmp lines.

        Returns:
            Counter of name classes applied to organisms

        Raises:
            MalformedRecordError: Line with fewer than 4 fields
        """
        counts: Counter = Counter()
        try:
            for line_number, line in enumerate(lines, 1):
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                fields = line.replace("\t", "").split("|")
                if len(fields) < MIN_FIELDS:
                    raise MalformedRecordError(
                        f"{source} line {line_number}: taxonomy line has {len(fields)} fields, "
                        f"expected {MIN_FIELDS}"
                    )

                taxon_id, name, _unique_name, name_class = fields[:MIN_FIELDS]
                if taxon_id not in self.taxon_ids:
                    continue
                if self.apply_name(taxon_id, name, name_class):
                    counts[name_class] += 1
        finally:
            logger.info("taxonomy_dump_complete", source=source, counts=dict(counts))
        return counts

    def apply_name(self, taxon_id: str, name: str, name_class: str) -> bool:
        """Set the organism fields a name class maps to; False if it maps to none."""
        organism = self.session.get_organism(taxon_id)
        if name_class == COMMON_NAME:
            organism.set_attribute("commonName", name)
            return True
        if name_class != SCIENTIFIC_NAME:
            return False

        organism.set_attribute("name", name)
        parts = name.split()
        if len(parts) < 2:
            logger.warning("scientific_name_without_species", taxon_id=taxon_id, name=name)
            return True
        genus, species = parts[0], parts[1]
        organism.set_attribute("genus", genus)
        organism.set_attribute("species", species)
        organism.set_attribute("shortName", f"{genus[0]}. {species}")
        return True
