"""
comapeocat — categories archive engine.

File: src/comapeocat/__init__.py

Purpose
- Package root. Exposes the archive ``Writer`` and ``Reader``, the schema contracts,
  the integrity checks and the error base class.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from comapeocat.constants import PACKAGE_VERSION, ArchiveLimits, DocumentType
from comapeocat.errors import CategoriesArchiveError, ErrorKind, is_validation_error
from comapeocat.language import normalize_language_tag
from comapeocat.reader import Reader
from comapeocat.references import validate_category_tags, validate_references
from comapeocat.schema import (
    parse_category,
    parse_field,
    parse_metadata,
    parse_selection,
    parse_translations,
)
from comapeocat.selection import generate_selection
from comapeocat.svg import sanitize_svg
from comapeocat.version import parse_version
from comapeocat.writer import Writer

__version__ = PACKAGE_VERSION

__all__ = [
    "ArchiveLimits",
    "CategoriesArchiveError",
    "DocumentType",
    "ErrorKind",
    "Reader",
    "Writer",
    "__version__",
    "generate_selection",
    "is_validation_error",
    "normalize_language_tag",
    "parse_category",
    "parse_field",
    "parse_metadata",
    "parse_selection",
    "parse_translations",
    "parse_version",
    "sanitize_svg",
    "validate_category_tags",
    "validate_references",
]
