"""
comapeocat — configuration schema and validation.

File: src/comapeocat/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

What should be included in this file
- Validation rules for required fields, types, enums, and numeric constraints.
- Deterministic deep-merge helpers.
- Conversion of the ``limits`` section into ``ArchiveLimits``.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Unknown sections and keys are rejected.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from comapeocat.constants import (
    DEFAULT_COMPRESSION_LEVEL,
    MAX_ENTRIES,
    MAX_ICON_SIZE,
    MAX_JSON_SIZE,
    MAX_VERSION_SIZE,
    ArchiveLimits,
)
from comapeocat.errors import ValidationIssue
from comapeocat.schema._common import IssueCollector, join

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")

_LIMIT_KEYS: Final[tuple[str, ...]] = (
    "max_entries",
    "max_json_size",
    "max_icon_size",
    "max_version_size",
)


class LimitsConfig(TypedDict):
    max_entries: int
    max_json_size: int
    max_icon_size: int
    max_version_size: int


class WriterConfig(TypedDict):
    compression_level: int


class LoggingConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]


class ComapeocatConfig(TypedDict):
    limits: LimitsConfig
    writer: WriterConfig
    logging: LoggingConfig


DEFAULT_CONFIG: Final[ComapeocatConfig] = {
    "limits": {
        "max_entries": MAX_ENTRIES,
        "max_json_size": MAX_JSON_SIZE,
        "max_icon_size": MAX_ICON_SIZE,
        "max_version_size": MAX_VERSION_SIZE,
    },
    "writer": {
        "compression_level": DEFAULT_COMPRESSION_LEVEL,
    },
    "logging": {
        "log_level": "WARNING",
        "log_format": "text",
    },
}


ConfigValidationIssue = ValidationIssue


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


def default_config() -> ComapeocatConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    _reject_unknown_keys(root, {"limits", "writer", "logging"}, "", issues)
    _require_keys(root, {"limits", "writer", "logging"}, "", issues)

    out: dict[str, Any] = {}
    _section(root, key="limits", issues=issues, validator=_validate_limits, out=out)
    _section(root, key="writer", issues=issues, validator=_validate_writer, out=out)
    _section(root, key="logging", issues=issues, validator=_validate_logging, out=out)

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=out, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def limits_from_config(config: Mapping[str, Any]) -> ArchiveLimits:
    section = config.get("limits", {})
    return ArchiveLimits(**{key: section[key] for key in _LIMIT_KEYS if key in section})


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    issues: IssueCollector,
    validator: Callable[[dict[str, object], str, IssueCollector], dict[str, Any]],
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_obj = _as_object(raw, key, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, key, issues)


def _validate_limits(
    payload: Mapping[str, object], path: str, issues: IssueCollector
) -> dict[str, Any]:
    allowed = set(_LIMIT_KEYS)
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    for key in _LIMIT_KEYS:
        if key not in payload:
            continue
        parsed = _as_int(payload[key], join(path, key), issues, minimum=1)
        if parsed is not None:
            out[key] = parsed
    return out


def _validate_writer(
    payload: Mapping[str, object], path: str, issues: IssueCollector
) -> dict[str, Any]:
    allowed = {"compression_level"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "compression_level" in payload:
        parsed = _as_int(
            payload["compression_level"],
            join(path, "compression_level"),
            issues,
            minimum=0,
            maximum=9,
        )
        if parsed is not None:
            out["compression_level"] = parsed
    return out


def _validate_logging(
    payload: Mapping[str, object], path: str, issues: IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_format"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        parsed_log_level = _as_enum(
            payload["log_level"],
            join(path, "log_level"),
            issues,
            allowed_values=LOG_LEVELS,
            normalize=str.upper,
        )
        if parsed_log_level is not None:
            out["log_level"] = parsed_log_level

    if "log_format" in payload:
        parsed_log_format = _as_enum(
            payload["log_format"],
            join(path, "log_format"),
            issues,
            allowed_values=LOG_FORMATS,
            normalize=str.lower,
        )
        if parsed_log_format is not None:
            out["log_format"] = parsed_log_format
    return out


def _as_object(value: object, path: str, issues: IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_int(
    value: object,
    path: str,
    issues: IssueCollector,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    if maximum is not None and value > maximum:
        issues.add(path, f"must be <= {maximum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: IssueCollector,
    *,
    allowed_values: tuple[str, ...],
    normalize: Callable[[str], str],
) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = normalize(value.strip())
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {value!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(join(path, key), "missing required field")


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(value):
        item = value[key]
        out[key] = _deep_copy_mapping(item) if isinstance(item, Mapping) else copy.deepcopy(item)
    return out


__all__ = [
    "ComapeocatConfig",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "LimitsConfig",
    "LoggingConfig",
    "WriterConfig",
    "assert_valid_config",
    "default_config",
    "limits_from_config",
    "merge_config",
    "validate_config",
]
