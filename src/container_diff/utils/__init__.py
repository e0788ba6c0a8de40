"""Utility functions for container-diff."""

from container_diff.utils.hashing import hash_file, parse_digest
from container_diff.utils.logging import configure_logging, get_logger, get_logger_with_context
from container_diff.utils.errors import (
    ContainerDiffError,
    ArgumentError,
    UnknownAnalyzerError,
    ResolutionError,
    ResolutionFailure,
    ImageNotFoundError,
    TransportError,
    ExtractError,
    AnalysisError,
    ConfigurationError,
    classify_reference,
    classify_references,
)
from container_diff.utils.config import (
    ContainerDiffConfig,
    ResolverConfig,
    RegistryConfig,
    FilesystemConfig,
    EngineConfig,
    OutputConfig,
    load_config,
    get_config,
    set_config,
)

__all__ = [
    # Hashing
    "hash_file",
    "parse_digest",
    # Logging
    "configure_logging",
    "get_logger",
    "get_logger_with_context",
    # Errors
    "ContainerDiffError",
    "ArgumentError",
    "UnknownAnalyzerError",
    "ResolutionError",
    "ResolutionFailure",
    "ImageNotFoundError",
    "TransportError",
    "ExtractError",
    "AnalysisError",
    "ConfigurationError",
    "classify_reference",
    "classify_references",
    # Config
    "ContainerDiffConfig",
    "ResolverConfig",
    "RegistryConfig",
    "FilesystemConfig",
    "EngineConfig",
    "OutputConfig",
    "load_config",
    "get_config",
    "set_config",
]
