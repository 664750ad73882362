"""
cobertura-graph config package public API.

File: src/cobertura_graph/config/__init__.py

Purpose
- Export the coverage extension, option validation and loading entrypoints.

Functional requirements
- Support loading from ``cobertura.toml`` + ``COBERTURA_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from cobertura_graph.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    env_name_for,
    load_config,
    load_coverage_config,
)
from cobertura_graph.config.schema import (
    DEFAULT_CONFIG,
    REPORT_FORMATS,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    CoverageExtension,
    ExtensionFrozenError,
    assert_valid_config,
    default_config,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "CoverageExtension",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ExtensionFrozenError",
    "REPORT_FORMATS",
    "assert_valid_config",
    "default_config",
    "env_name_for",
    "load_config",
    "load_coverage_config",
    "validate_config",
]
