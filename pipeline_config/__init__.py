"""
Declarative configuration loader for the derivatives data pipeline
"""

from .configuration import (
    SECTION_MODELS,
    AccelerationConfig,
    DataPathsConfig,
    DataScopeConfig,
    ExecutionConfig,
    ExportConfig,
    LoggerConfig,
    MarketConstantsConfig,
    MarketTimingConfig,
    PipelineConfig,
    PostComputeConfig,
    PreprocessingConfig,
    StreamLoggingConfig,
    SymbolMatchingConfig,
    SymbolRegistryConfig,
)
from .errors import FileOpenError, LoadError, ParseError, SchemaError
from .loader import (
    LoadResult,
    build_config,
    build_section,
    load_from_file,
    load_from_string,
    to_flat_map,
)
from .logging_setup import configure_logging

__all__ = [
    "SECTION_MODELS",
    "AccelerationConfig",
    "DataPathsConfig",
    "DataScopeConfig",
    "ExecutionConfig",
    "ExportConfig",
    "LoggerConfig",
    "MarketConstantsConfig",
    "MarketTimingConfig",
    "PipelineConfig",
    "PostComputeConfig",
    "PreprocessingConfig",
    "StreamLoggingConfig",
    "SymbolMatchingConfig",
    "SymbolRegistryConfig",
    "FileOpenError",
    "LoadError",
    "ParseError",
    "SchemaError",
    "LoadResult",
    "build_config",
    "build_section",
    "load_from_file",
    "load_from_string",
    "to_flat_map",
    "configure_logging",
]
