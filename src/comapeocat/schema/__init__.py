"""
comapeocat schema contracts.

Purpose
- Export the validators that turn raw JSON into immutable entity records, and the
  records themselves.

Functional requirements
- Every parser raises ``SchemaError`` carrying structured ``ValidationIssue`` items.
"""

from comapeocat.schema._common import TagMap, TagValue
from comapeocat.schema.category import (
    Category,
    CategoryInput,
    parse_category,
    parse_category_input,
    parse_preset,
)
from comapeocat.schema.field import (
    Field,
    FieldType,
    NumberField,
    SelectMultipleField,
    SelectOneField,
    SelectOption,
    TextAppearance,
    TextField,
    parse_field,
)
from comapeocat.schema.messages import (
    Message,
    MessageId,
    escape_id,
    format_message_id,
    parse_message_id,
    parse_messages,
)
from comapeocat.schema.metadata import Metadata, parse_metadata, parse_metadata_input
from comapeocat.schema.selection import Defaults, Selection, parse_defaults, parse_selection
from comapeocat.schema.translations import TRANSLATION_KINDS, Translations, parse_translations

__all__ = [
    "Category",
    "CategoryInput",
    "Defaults",
    "Field",
    "FieldType",
    "Message",
    "MessageId",
    "Metadata",
    "NumberField",
    "SelectMultipleField",
    "SelectOneField",
    "SelectOption",
    "Selection",
    "TRANSLATION_KINDS",
    "TagMap",
    "TagValue",
    "TextAppearance",
    "TextField",
    "Translations",
    "escape_id",
    "format_message_id",
    "parse_category",
    "parse_category_input",
    "parse_defaults",
    "parse_field",
    "parse_message_id",
    "parse_messages",
    "parse_metadata",
    "parse_metadata_input",
    "parse_preset",
    "parse_selection",
    "parse_translations",
]
