"""Translation set contract for one language."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from types import MappingProxyType
from typing import Any, Final, TypeAlias

from comapeocat.errors import SchemaError
from comapeocat.migration import migrate_translation_kinds
from comapeocat.schema._common import IssueCollector, as_object, as_str, join

TRANSLATION_KINDS: Final[tuple[str, ...]] = ("category", "field")

DocTranslations: TypeAlias = Mapping[str, Mapping[str, str]]

_EMPTY: DocTranslations = MappingProxyType({})


def _empty() -> DocTranslations:
    return _EMPTY


@dataclass(frozen=True, slots=True)
class Translations:
    """Localized strings keyed by entity id and property reference.

    References to ids or properties that do not exist are allowed and ignored by
    consumers.
    """

    category: DocTranslations = dataclass_field(default_factory=_empty)
    field: DocTranslations = dataclass_field(default_factory=_empty)

    def for_kind(self, kind: str) -> DocTranslations:
        if kind == "category":
            return self.category
        if kind == "field":
            return self.field
        raise KeyError(kind)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for kind in TRANSLATION_KINDS:
            entries = self.for_kind(kind)
            if entries:
                out[kind] = {doc_id: dict(props) for doc_id, props in entries.items()}
        return out


def parse_translations(raw: object, *, source: str = "translations") -> Translations:
    """Validate a translation set; the legacy ``preset`` kind is folded into ``category``."""

    issues = IssueCollector()
    payload = as_object(raw, "", issues)
    if payload is None:
        raise SchemaError(source, issues.items())
    payload = migrate_translation_kinds(payload)

    parsed: dict[str, DocTranslations] = {}
    for kind in sorted(payload):
        if kind not in TRANSLATION_KINDS:
            issues.add(kind, "unknown translation kind; expected category or field")
            continue
        entries = _validate_doc_translations(payload[kind], kind, issues)
        if entries is not None:
            parsed[kind] = entries

    if issues.has_issues:
        raise SchemaError(source, issues.items())
    return Translations(**parsed)


def _validate_doc_translations(
    value: object, path: str, issues: IssueCollector
) -> DocTranslations | None:
    entries = as_object(value, path, issues)
    if entries is None:
        return None
    out: dict[str, Mapping[str, str]] = {}
    for doc_id, props_raw in entries.items():
        doc_path = join(path, doc_id)
        if not doc_id:
            issues.add(path, "entity id must not be empty")
            continue
        props = as_object(props_raw, doc_path, issues)
        if props is None:
            continue
        strings: dict[str, str] = {}
        for property_ref, message in props.items():
            if not property_ref:
                issues.add(doc_path, "property reference must not be empty")
                continue
            text = as_str(message, join(doc_path, property_ref), issues)
            if text is not None:
                strings[property_ref] = text
        out[doc_id] = MappingProxyType(strings)
    return MappingProxyType(out)


__all__ = ["DocTranslations", "TRANSLATION_KINDS", "Translations", "parse_translations"]
