"""Shared validation primitives for schema contracts."""

from __future__ import annotations

import math
from collections.abc import Mapping
from types import MappingProxyType
from typing import TypeAlias

from comapeocat.errors import SchemaError, ValidationIssue

TagValue: TypeAlias = str | int | float | bool | None
TagMap: TypeAlias = Mapping[str, TagValue]

EMPTY_TAGS: TagMap = MappingProxyType({})


class IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ValidationIssue(path=path or "<root>", message=message))

    def items(self) -> tuple[ValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)

    def raise_for(self, source: str) -> None:
        if self._items:
            raise SchemaError(source, self._items)


def join(path: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    if not path:
        return key
    return f"{path}.{key}"


def type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def as_object(value: object, path: str, issues: IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type_name(value)}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type_name(key)}")
            continue
        out[key] = item
    return out


def as_str(
    value: object,
    path: str,
    issues: IssueCollector,
    *,
    min_length: int = 0,
    max_length: int | None = None,
) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type_name(value)}")
        return None
    if len(value) < min_length:
        if min_length == 1:
            issues.add(path, "must not be empty")
        else:
            issues.add(path, f"must be at least {min_length} characters")
        return None
    if max_length is not None and len(value) > max_length:
        issues.add(path, f"must be at most {max_length} characters")
        return None
    return value


def as_number(value: object, path: str, issues: IssueCollector) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type_name(value)}")
        return None
    if isinstance(value, float) and not math.isfinite(value):
        issues.add(path, "must be finite")
        return None
    return value


def as_list(value: object, path: str, issues: IssueCollector) -> list[object] | None:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        issues.add(path, f"expected array, got {type_name(value)}")
        return None
    return list(value)


def as_string_list(
    value: object,
    path: str,
    issues: IssueCollector,
    *,
    min_item_length: int = 0,
) -> tuple[str, ...] | None:
    items = as_list(value, path, issues)
    if items is None:
        return None
    out: list[str] = []
    valid = True
    for index, item in enumerate(items):
        parsed = as_str(item, join(path, index), issues, min_length=min_item_length)
        if parsed is None:
            valid = False
            continue
        out.append(parsed)
    return tuple(out) if valid else None


def is_tag_value(value: object) -> bool:
    if value is None or isinstance(value, (str, bool, int)):
        return True
    return isinstance(value, float) and math.isfinite(value)


def as_tag_map(
    value: object,
    path: str,
    issues: IssueCollector,
    *,
    min_entries: int = 0,
) -> TagMap | None:
    payload = as_object(value, path, issues)
    if payload is None:
        return None
    if len(payload) < min_entries:
        issues.add(path, f"must have at least {min_entries} tag(s)")
        return None
    out: dict[str, TagValue] = {}
    valid = True
    for key, item in payload.items():
        if not is_tag_value(item):
            issues.add(
                join(path, key),
                f"tag value must be a string, number, boolean or null, got {type_name(item)}",
            )
            valid = False
            continue
        out[key] = item  # type: ignore[assignment]
    return MappingProxyType(out) if valid else None


def require_keys(
    payload: Mapping[str, object],
    required: tuple[str, ...],
    path: str,
    issues: IssueCollector,
) -> bool:
    missing = [key for key in required if key not in payload]
    for key in missing:
        issues.add(join(path, key), "missing required field")
    return not missing


def reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: frozenset[str],
    path: str,
    issues: IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(join(path, key), "unknown field")


__all__ = [
    "EMPTY_TAGS",
    "IssueCollector",
    "TagMap",
    "TagValue",
    "as_list",
    "as_number",
    "as_object",
    "as_str",
    "as_string_list",
    "as_tag_map",
    "is_tag_value",
    "join",
    "reject_unknown_keys",
    "require_keys",
    "type_name",
]
