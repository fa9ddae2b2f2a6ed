"""Assembly pipeline: load genome assembly metadata into warehouse entities."""

__version__ = "0.1.0"
