"""Gene cross references: descriptions, ontology annotations and protein domains.

LIS gene records carry them as attributes::

    Note=serine hydroxymethyltransferase 7...
    Dbxref=Gene3D:G3DSA:3.40.640.10,InterPro:IPR001085,Pfam:PF00464
    Ontology_term=GO:0003824,GO:0004372
"""

import structlog

from assembly_pipeline.gff.record import GFF3Record
from assembly_pipeline.items.models import Item

logger = structlog.get_logger()

GO_PREFIX = "GO:"
INTERPRO_PREFIX = "InterPro"


class GeneAnnotator:
    """Attach ontology terms and protein domains to genes.

    Terms and domains are cached on the session by external identifier, so
    each is created once per job however many genes cite it. The
    OntologyAnnotation join records are stored as soon as they are made,
    once per gene and term.
    """

    def __init__(self, session):
        self.session = session
        self.ontology_terms = session.ontology_terms
        self.protein_domains = session.protein_domains
        self.annotated_pairs = session.ontology_annotations

    def annotate(self, gene: Item, record: GFF3Record) -> None:
        notes = record.attributes.get("Note")
        if notes:
            # commas in a Note split it into several values
            gene.set_attribute("description", ",".join(notes))

        for identifier in record.attributes.get("Ontology_term", []):
            self.add_ontology_annotation(gene, identifier)

        for dbxref in record.attributes.get("Dbxref", []):
            if dbxref.startswith(INTERPRO_PREFIX) and ":" in dbxref:
                domain = self.get_protein_domain(dbxref.split(":", 1)[1])
                gene.add_to_collection("proteinDomains", domain)

    def get_ontology_term(self, identifier: str) -> Item:
        term = self.ontology_terms.get(identifier)
        if term is None:
            class_name = "GOTerm" if identifier.startswith(GO_PREFIX) else "OntologyTerm"
            term = self.session.create_item(class_name)
            term.set_attribute("identifier", identifier)
            self.ontology_terms[identifier] = term
        return term

    def get_protein_domain(self, identifier: str) -> Item:
        domain = self.protein_domains.get(identifier)
        if domain is None:
            domain = self.session.create_item("ProteinDomain")
            domain.set_attribute("primaryIdentifier", identifier)
            self.protein_domains[identifier] = domain
        return domain

    def add_ontology_annotation(self, gene: Item, identifier: str) -> Item | None:
        """Create the gene/term join record unless this gene already has it."""
        term = self.get_ontology_term(identifier)
        pair = (gene.identifier, term.identifier)
        if pair in self.annotated_pairs:
            return None
        self.annotated_pairs.add(pair)

        annotation = self.session.create_item("OntologyAnnotation")
        annotation.set_reference("subject", gene)
        annotation.set_reference("ontologyTerm", term)
        annotation.add_to_collection("dataSets", self.session.get_data_set())
        self.session.store(annotation)
        return annotation
