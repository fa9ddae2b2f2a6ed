"""GFF3 feature-resolution engine."""

from assembly_pipeline.gff.annotations import GeneAnnotator
from assembly_pipeline.gff.classifier import (
    NcbiPrefixClassifier,
    PrefixClassifier,
    SequenceClass,
    UnclassifiedSequenceError,
    build_classifier,
)
from assembly_pipeline.gff.converter import GFF3Converter, RecordType
from assembly_pipeline.gff.identifiers import IdentifierResolver
from assembly_pipeline.gff.linker import ParentLinker
from assembly_pipeline.gff.location import LocationAttacher
from assembly_pipeline.gff.record import GFF3Record, MalformedRecordError, parse_attributes
from assembly_pipeline.gff.registry import FeatureRegistry

__all__ = [
    "GeneAnnotator",
    "NcbiPrefixClassifier",
    "PrefixClassifier",
    "SequenceClass",
    "UnclassifiedSequenceError",
    "build_classifier",
    "GFF3Converter",
    "RecordType",
    "IdentifierResolver",
    "ParentLinker",
    "LocationAttacher",
    "GFF3Record",
    "MalformedRecordError",
    "parse_attributes",
    "FeatureRegistry",
]
