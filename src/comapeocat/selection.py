"""Derive a category selection from deprecated per-category sort hints."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from comapeocat.constants import DocumentType
from comapeocat.schema.selection import Selection


@dataclass(frozen=True, slots=True)
class SelectionCandidate:
    name: str
    applies_to: Sequence[DocumentType]
    sort: int | float | None = None


def generate_selection(candidates: Mapping[str, SelectionCandidate]) -> Selection:
    """Order categories per document type.

    Categories with a sort hint come first, by ascending hint and then by name;
    the rest follow ordered by name. Names compare by code point.
    """

    ordered: dict[DocumentType, list[str]] = {}
    for document_type in DocumentType:
        members = [
            (category_id, candidate)
            for category_id, candidate in candidates.items()
            if document_type in candidate.applies_to
        ]
        hinted = sorted(
            (item for item in members if item[1].sort is not None),
            key=lambda item: (item[1].sort, item[1].name),
        )
        unhinted = sorted(
            (item for item in members if item[1].sort is None),
            key=lambda item: item[1].name,
        )
        ordered[document_type] = [category_id for category_id, _ in (*hinted, *unhinted)]

    return Selection(
        observation=tuple(ordered[DocumentType.OBSERVATION]),
        track=tuple(ordered[DocumentType.TRACK]),
    )


__all__ = ["SelectionCandidate", "generate_selection"]
