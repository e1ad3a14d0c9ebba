"""Category selection contract and its deprecated ``defaults`` predecessor."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from comapeocat.constants import DOCUMENT_TYPES, GEOMETRY_TYPES, DocumentType
from comapeocat.errors import SchemaError
from comapeocat.schema._common import (
    IssueCollector,
    as_object,
    as_string_list,
    require_keys,
)


@dataclass(frozen=True, slots=True)
class Selection:
    """Ordered category ids offered first for each document type."""

    observation: tuple[str, ...] = ()
    track: tuple[str, ...] = ()

    def for_document_type(self, document_type: DocumentType) -> tuple[str, ...]:
        if document_type is DocumentType.OBSERVATION:
            return self.observation
        return self.track

    def items(self) -> Iterator[tuple[DocumentType, tuple[str, ...]]]:
        for document_type in DOCUMENT_TYPES:
            yield document_type, self.for_document_type(document_type)

    def to_dict(self) -> dict[str, Any]:
        return {document_type.value: list(ids) for document_type, ids in self.items()}


@dataclass(frozen=True, slots=True)
class Defaults:
    """Deprecated per-geometry ordering."""

    point: tuple[str, ...]
    line: tuple[str, ...]
    area: tuple[str, ...]


def parse_selection(raw: object, *, source: str = "category selection") -> Selection:
    issues = IssueCollector()
    lists = _validate_id_lists(raw, tuple(item.value for item in DOCUMENT_TYPES), issues)
    if lists is None:
        raise SchemaError(source, issues.items())
    return Selection(observation=lists["observation"], track=lists["track"])


def parse_defaults(raw: object, *, source: str = "defaults") -> Defaults:
    issues = IssueCollector()
    lists = _validate_id_lists(raw, tuple(item.value for item in GEOMETRY_TYPES), issues)
    if lists is None:
        raise SchemaError(source, issues.items())
    return Defaults(point=lists["point"], line=lists["line"], area=lists["area"])


def _validate_id_lists(
    raw: object, keys: tuple[str, ...], issues: IssueCollector
) -> dict[str, tuple[str, ...]] | None:
    payload = as_object(raw, "", issues)
    if payload is None:
        return None
    if not require_keys(payload, keys, "", issues):
        return None
    out: dict[str, tuple[str, ...]] = {}
    for key in keys:
        ids = as_string_list(payload[key], key, issues, min_item_length=1)
        if ids is not None:
            out[key] = ids
    if issues.has_issues:
        return None
    return out


__all__ = ["Defaults", "Selection", "parse_defaults", "parse_selection"]
