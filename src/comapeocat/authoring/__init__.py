"""Authoring-directory tools: read, lint, extract messages and build archives."""

from comapeocat.authoring.build import build_archive
from comapeocat.authoring.lint import LintReport, lint
from comapeocat.authoring.messages import (
    extract_messages,
    has_property,
    messages_to_translations,
    parse_property_ref,
)
from comapeocat.authoring.read_files import SourceFile, SourceKind, read_files

__all__ = [
    "LintReport",
    "SourceFile",
    "SourceKind",
    "build_archive",
    "extract_messages",
    "has_property",
    "lint",
    "messages_to_translations",
    "parse_property_ref",
    "read_files",
]
