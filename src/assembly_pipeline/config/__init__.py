from .loader import load_config, load_config_with_overrides
from .schema import (
    ClassificationMode,
    DataSetConfig,
    DataSourceConfig,
    OrganismConfig,
    PipelineConfig,
    SequenceConfig,
    SequenceIdentifierField,
    UnknownSequencePolicy,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "ClassificationMode",
    "DataSetConfig",
    "DataSourceConfig",
    "OrganismConfig",
    "PipelineConfig",
    "SequenceConfig",
    "SequenceIdentifierField",
    "UnknownSequencePolicy",
]
