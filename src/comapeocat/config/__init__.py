"""
comapeocat config package public API.

File: src/comapeocat/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``comapeocat.toml`` + ``COMAPEOCAT_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from comapeocat.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
)
from comapeocat.config.schema import (
    DEFAULT_CONFIG,
    ComapeocatConfig,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    assert_valid_config,
    default_config,
    limits_from_config,
    merge_config,
    validate_config,
)

__all__ = [
    "ComapeocatConfig",
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "limits_from_config",
    "load_config",
    "merge_config",
    "validate_config",
]
