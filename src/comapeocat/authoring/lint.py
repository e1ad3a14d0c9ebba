"""
comapeocat — authoring directory lint.

File: src/comapeocat/authoring/lint.py

Purpose
- Check an authoring directory before it is built: every file against its schema,
  then tag uniqueness and cross references.

Functional requirements
- Fatal problems raise the corresponding ``comapeocat.errors`` exception.
- Non-fatal findings (deprecated files, unused fields and icons, message ids that
  point nowhere) are returned as warnings alongside the successful checks.
- Selection entries naming a missing category are fatal here, unlike on build.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from comapeocat.authoring.messages import has_property
from comapeocat.authoring.read_files import SourceKind, read_files
from comapeocat.migration import defaults_to_selection
from comapeocat.references import validate_category_tags, validate_references
from comapeocat.schema.category import Category, parse_category_input
from comapeocat.schema.messages import parse_message_id, parse_messages
from comapeocat.schema.selection import Selection, parse_defaults, parse_selection

_LOGGER = structlog.get_logger(__name__)

_COUNTED_KINDS: tuple[SourceKind, ...] = (
    SourceKind.CATEGORY,
    SourceKind.FIELD,
    SourceKind.ICON,
    SourceKind.MESSAGES,
    SourceKind.CATEGORY_SELECTION,
    SourceKind.DEFAULTS,
    SourceKind.METADATA,
)
_SINGLE_FILE_KINDS: frozenset[SourceKind] = frozenset(
    {SourceKind.METADATA, SourceKind.CATEGORY_SELECTION}
)
_BOTH_SELECTIONS_WARNING = (
    "Both defaults.json and categorySelection.json found, ignoring defaults.json"
)


@dataclass(frozen=True, slots=True)
class LintReport:
    counts: Mapping[str, int]
    successes: tuple[str, ...]
    warnings: tuple[str, ...]

    @property
    def clean(self) -> bool:
        return not self.warnings

    def to_dict(self) -> dict[str, Any]:
        return {
            "counts": dict(self.counts),
            "successes": list(self.successes),
            "warnings": list(self.warnings),
        }


async def lint(directory: str | os.PathLike[str]) -> LintReport:
    counts = {kind.value: 0 for kind in _COUNTED_KINDS}
    categories: dict[str, Category] = {}
    category_docs: dict[str, dict[str, Any]] = {}
    fields: dict[str, Any] = {}
    icon_ids: set[str] = set()
    selection: Selection | None = None
    messages: dict[str, dict[str, Any]] = {}
    successes: list[str] = []
    warnings: list[str] = []

    async for source in read_files(directory):
        counts[source.kind.value] += 1
        if source.kind is SourceKind.CATEGORY:
            category = parse_category_input(source.value, source=source.id).category
            categories[source.id] = category
            category_docs[source.id] = category.to_dict()
        elif source.kind is SourceKind.FIELD:
            fields[source.id] = source.value
        elif source.kind is SourceKind.ICON:
            icon_ids.add(source.id)
        elif source.kind is SourceKind.CATEGORY_SELECTION:
            selection = parse_selection(source.value)
        elif source.kind is SourceKind.DEFAULTS:
            if selection is not None:
                warnings.append(_BOTH_SELECTIONS_WARNING)
            else:
                selection = defaults_to_selection(parse_defaults(source.value))
                warnings.append(
                    "defaults.json is deprecated, please update to categorySelection.json"
                )
        elif source.kind is SourceKind.MESSAGES:
            messages[source.id] = source.value

    for kind in _COUNTED_KINDS:
        count = counts[kind.value]
        if kind in _SINGLE_FILE_KINDS and count == 0:
            warnings.append(f"No {kind.value}.json file found")
        elif count:
            successes.append(f"{count} valid {kind.value} file{'s' if count > 1 else ''}")
        elif kind is not SourceKind.DEFAULTS:
            warnings.append(f"No {kind.value} file found")

    message_warnings = _check_messages(messages, category_docs, fields)
    if message_warnings:
        warnings.extend(message_warnings)
    elif messages:
        plural = "s" if len(messages) > 1 else ""
        successes.append(f"All {len(messages)} message{plural} files valid")

    validate_category_tags(categories)
    successes.append("All categories have tags which are unique")
    validate_references(categories, fields, icon_ids, selection)
    successes.append("All categories reference existing fields and icons")
    if selection is not None:
        successes.append("Category selection references existing categories")
        successes.append("Category selection references categories with matching document types")

    referenced_fields = {
        field_id for category in categories.values() for field_id in category.fields
    }
    referenced_icons = {category.icon for category in categories.values() if category.icon}
    _report_unreferenced("field", set(fields) - referenced_fields, successes, warnings)
    _report_unreferenced("icon", icon_ids - referenced_icons, successes, warnings)

    report = LintReport(counts=counts, successes=tuple(successes), warnings=tuple(warnings))
    _LOGGER.info(
        "authoring_lint_finished",
        directory=os.fspath(directory),
        successes=len(report.successes),
        warnings=len(report.warnings),
    )
    return report


def _check_messages(
    messages: Mapping[str, Any],
    categories: Mapping[str, Mapping[str, Any]],
    fields: Mapping[str, Any],
) -> list[str]:
    warnings: list[str] = []
    for lang, raw in messages.items():
        for message_id, message in parse_messages(raw, source=lang).items():
            parsed = parse_message_id(message_id)
            if parsed is None:
                continue
            documents = categories if parsed.kind == "category" else fields
            document = documents.get(parsed.doc_id)
            if document is None:
                warnings.append(
                    f'Message ID "{message_id}" ({lang}) references non-existent '
                    f'{parsed.kind} "{parsed.doc_id}"'
                )
                continue
            if message.message and not has_property(document, parsed.property_ref):
                warnings.append(
                    f'Message ID "{message_id}" ({lang}) references non-existent property '
                    f'"{parsed.property_ref}" in {parsed.kind} "{parsed.doc_id}"'
                )
    return warnings


def _report_unreferenced(
    kind: str, unreferenced: set[str], successes: list[str], warnings: list[str]
) -> None:
    if not unreferenced:
        successes.append(f"All {kind} files are referenced by at least one category")
        return
    plural = "s" if len(unreferenced) > 1 else ""
    listing = "\n".join(f"  - {item}" for item in sorted(unreferenced))
    warnings.append(
        f"{len(unreferenced)} {kind} file{plural} found with no categories referencing them:\n"
        f"{listing}"
    )


__all__ = ["LintReport", "lint"]
