"""Writer behavior: validate-at-the-call, finalize checks, and terminal failure state."""

from __future__ import annotations

import asyncio
import gc
import io
import json
import zipfile

import pytest

from comapeocat.errors import (
    DuplicateTagsError,
    InvalidSelectionError,
    MissingCategoriesError,
    MissingDocumentTypeError,
    MissingMetadataError,
    MissingReferenceError,
    MissingSelectionError,
    SchemaError,
    SvgInvalidError,
    WriterClosedError,
)
from comapeocat.writer import Writer, WriterState

from . import (
    FIXED_EPOCH_MS,
    ICON_SVG,
    SAMPLE_METADATA,
    make_category,
    new_writer,
    populate_writer,
    sample_categories,
    sample_fields,
)


class _FailingOutput:
    def __init__(self) -> None:
        self.flushed = False

    def write(self, data: bytes) -> int:
        raise OSError("disk full")

    def flush(self) -> None:
        self.flushed = True


def _entries(buffer: io.BytesIO) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(buffer.getvalue())) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def _names(buffer: io.BytesIO) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(buffer.getvalue())) as archive:
        return archive.namelist()


@pytest.mark.asyncio
async def test_finish_writes_streamed_entries_before_final_entries() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await populate_writer(writer, translations={"es": {"category": {"tree": {"name": "Árbol"}}}})

    await writer.finish()

    assert writer.state is WriterState.CLOSED
    assert writer.failure is None
    assert _names(buffer) == [
        "icons/tree.svg",
        "translations/es.json",
        "categories.json",
        "fields.json",
        "categorySelection.json",
        "metadata.json",
        "VERSION",
    ]
    assert writer.entry_count == 7
    assert writer.bytes_written == len(buffer.getvalue())


@pytest.mark.asyncio
async def test_finish_stamps_metadata_and_version() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await populate_writer(writer)
    await writer.finish()

    entries = _entries(buffer)
    assert entries["VERSION"] == b"1.0"
    assert json.loads(entries["metadata.json"]) == {
        **SAMPLE_METADATA,
        "buildDateValue": FIXED_EPOCH_MS,
        "builderName": "comapeocat",
        "builderVersion": "1.0.0",
    }


@pytest.mark.asyncio
async def test_entries_use_fixed_timestamp_and_deflate() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await populate_writer(writer)
    await writer.finish()

    with zipfile.ZipFile(io.BytesIO(buffer.getvalue())) as archive:
        for info in archive.infolist():
            assert info.date_time == (1980, 1, 1, 0, 0, 0)
            assert info.compress_type == zipfile.ZIP_DEFLATED


@pytest.mark.asyncio
async def test_identical_input_produces_identical_bytes() -> None:
    first = io.BytesIO()
    second = io.BytesIO()
    for buffer in (first, second):
        writer = new_writer(buffer)
        await populate_writer(writer)
        await writer.finish()

    assert first.getvalue() == second.getvalue()


def test_invalid_category_is_rejected_at_the_call() -> None:
    writer = new_writer(io.BytesIO())

    with pytest.raises(SchemaError, match="tags"):
        writer.add_category("tree", {"name": "Tree", "appliesTo": ["observation"], "tags": {}})

    assert writer.state is WriterState.OPEN


def test_empty_id_is_rejected() -> None:
    writer = new_writer(io.BytesIO())

    with pytest.raises(SchemaError, match="non-empty"):
        writer.add_field("", {"type": "number", "tagKey": "height", "label": "Height"})


def test_compression_level_must_be_in_range() -> None:
    with pytest.raises(ValueError, match="compression_level"):
        Writer(io.BytesIO(), compression_level=10)
    with pytest.raises(ValueError, match="compression_level"):
        Writer(io.BytesIO(), compression_level=True)


def test_add_preset_warns_and_migrates_geometry() -> None:
    writer = new_writer(io.BytesIO())

    with pytest.warns(DeprecationWarning, match="add_category"):
        category = writer.add_preset(
            "tree", {"name": "Tree", "geometry": ["point", "area"], "tags": {"natural": "tree"}}
        )

    assert [item.value for item in category.applies_to] == ["observation"]


def test_set_defaults_warns_and_converts_to_selection() -> None:
    writer = new_writer(io.BytesIO())

    with pytest.warns(DeprecationWarning):
        selection = writer.set_defaults({"point": ["tree"], "line": ["path"], "area": ["lake"]})

    assert selection.to_dict() == {"observation": ["tree"], "track": ["path"]}


@pytest.mark.asyncio
async def test_icon_is_sanitized_before_writing() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    sanitized = await writer.add_icon(
        "tree",
        '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24">'
        "<script>alert(1)</script><path d='M0 0h24v24H0z'/></svg>",
    )

    assert "script" not in sanitized
    assert 'viewBox="0 0 24 24"' in sanitized


@pytest.mark.asyncio
async def test_duplicate_and_nested_icon_ids_are_rejected() -> None:
    writer = new_writer(io.BytesIO())
    await writer.add_icon("tree", ICON_SVG)

    with pytest.raises(SchemaError, match="already added"):
        await writer.add_icon("tree", ICON_SVG)
    with pytest.raises(SchemaError, match="'/'"):
        await writer.add_icon("nature/tree", ICON_SVG)
    with pytest.raises(SvgInvalidError):
        await writer.add_icon("broken", "<svg")

    assert writer.state is WriterState.OPEN


@pytest.mark.asyncio
async def test_translation_language_is_normalized_and_unique() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await writer.add_translations("pt-br", {"category": {"tree": {"name": "Árvore"}}})

    with pytest.raises(SchemaError, match="already added"):
        await writer.add_translations("PT-BR", {"field": {}})

    await populate_writer(writer)
    await writer.finish()

    assert "translations/pt-BR.json" in _names(buffer)


@pytest.mark.asyncio
async def test_concurrent_icon_writes_are_serialized() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)

    await asyncio.gather(*(writer.add_icon(f"icon{index}", ICON_SVG) for index in range(20)))

    assert writer.entry_count == 20


@pytest.mark.asyncio
async def test_missing_metadata_fails_finish_without_completing_archive() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    for category_id, raw in sample_categories().items():
        writer.add_category(category_id, raw)
    for field_id, raw in sample_fields().items():
        writer.add_field(field_id, raw)
    await writer.add_icon("tree", ICON_SVG)
    writer.set_selection({"observation": [], "track": []})

    with pytest.raises(MissingMetadataError):
        await writer.finish()

    assert writer.state is WriterState.OPEN
    assert writer.failure is None
    assert not zipfile.is_zipfile(io.BytesIO(buffer.getvalue()))

    writer.set_metadata(SAMPLE_METADATA)
    await writer.finish()

    assert writer.state is WriterState.CLOSED
    assert "metadata.json" in _names(buffer)


@pytest.mark.asyncio
async def test_missing_categories_fails_finish() -> None:
    writer = new_writer(io.BytesIO())
    writer.set_metadata({"name": "Empty"})
    writer.set_selection({"observation": [], "track": []})

    with pytest.raises(MissingCategoriesError):
        await writer.finish()


@pytest.mark.asyncio
async def test_missing_selection_fails_finish_for_canonical_categories() -> None:
    writer = new_writer(io.BytesIO())
    writer.add_category("river", make_category("River", {"waterway": "river"}))
    writer.set_metadata({"name": "No selection"})

    with pytest.raises(MissingSelectionError):
        await writer.finish()


@pytest.mark.asyncio
async def test_deprecated_sort_hints_generate_selection() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    writer.add_category("a", {"name": "B", "geometry": ["point"], "tags": {"a": 1}, "sort": 2})
    writer.add_category("b", {"name": "C", "geometry": ["point"], "tags": {"b": 1}, "sort": 1})
    writer.add_category("c", {"name": "Aardvark", "geometry": ["point", "line"], "tags": {"c": 1}})
    writer.set_metadata({"name": "Generated"})

    await writer.finish()

    selection = json.loads(_entries(buffer)["categorySelection.json"])
    assert selection == {"observation": ["b", "a", "c"], "track": ["c"]}


@pytest.mark.asyncio
async def test_missing_field_reference_names_referencing_categories() -> None:
    writer = new_writer(io.BytesIO())
    await populate_writer(writer, fields={"species": sample_fields()["species"]})

    with pytest.raises(MissingReferenceError) as excinfo:
        await writer.finish()

    assert excinfo.value.property_name == "field"
    assert excinfo.value.missing_refs == {"height": ("tree",)}


@pytest.mark.asyncio
async def test_finish_can_be_retried_after_adding_missing_field() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await populate_writer(writer, fields={"species": sample_fields()["species"]})

    with pytest.raises(MissingReferenceError):
        await writer.finish()
    writer.add_field("height", sample_fields()["height"])
    await writer.finish()

    assert writer.failure is None
    assert json.loads(_entries(buffer)["fields.json"]).keys() == {"species", "height"}


@pytest.mark.asyncio
async def test_missing_icon_reference_fails_finish() -> None:
    writer = new_writer(io.BytesIO())
    await populate_writer(writer, icons={})

    with pytest.raises(MissingReferenceError) as excinfo:
        await writer.finish()

    assert excinfo.value.property_name == "icon"
    assert excinfo.value.missing_refs == {"tree": ("tree",)}


@pytest.mark.asyncio
async def test_every_document_type_needs_a_category() -> None:
    writer = new_writer(io.BytesIO())
    categories = {"tree": make_category("Tree", {"natural": "tree"}, applies_to=("observation",))}
    await populate_writer(
        writer,
        categories=categories,
        fields={},
        icons={},
        selection={"observation": ["tree"], "track": []},
    )

    with pytest.raises(MissingDocumentTypeError, match="track"):
        await writer.finish()


@pytest.mark.asyncio
async def test_duplicate_tags_fail_finish() -> None:
    writer = new_writer(io.BytesIO())
    categories = {
        **sample_categories(),
        "stream": make_category("Stream", {"waterway": "river"}, applies_to=("track",)),
    }
    await populate_writer(writer, categories=categories)

    with pytest.raises(DuplicateTagsError) as excinfo:
        await writer.finish()

    [group] = excinfo.value.groups
    assert group.document_type == "track"
    assert group.category_ids == ("river", "stream")


@pytest.mark.asyncio
async def test_selection_with_unknown_ids_is_written() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await populate_writer(writer, selection={"observation": ["tree", "ghost"], "track": []})

    await writer.finish()

    selection = json.loads(_entries(buffer)["categorySelection.json"])
    assert selection["observation"] == ["tree", "ghost"]


@pytest.mark.asyncio
async def test_selection_with_wrong_document_type_fails_finish() -> None:
    writer = new_writer(io.BytesIO())
    await populate_writer(writer, selection={"observation": ["path"], "track": ["tree"]})

    with pytest.raises(InvalidSelectionError) as excinfo:
        await writer.finish()

    assert excinfo.value.invalid_refs == {"observation": ("path",), "track": ("tree",)}


@pytest.mark.asyncio
async def test_closed_writer_rejects_every_mutator() -> None:
    writer = new_writer(io.BytesIO())
    await populate_writer(writer)
    await writer.finish()

    with pytest.raises(WriterClosedError):
        writer.add_category("lake", make_category("Lake", {"natural": "water"}))
    with pytest.raises(WriterClosedError):
        writer.set_metadata({"name": "Again"})
    with pytest.raises(WriterClosedError):
        await writer.add_icon("lake", ICON_SVG)
    with pytest.raises(WriterClosedError):
        await writer.finish()


@pytest.mark.asyncio
async def test_sink_failure_closes_writer_for_good() -> None:
    writer = new_writer(_FailingOutput())

    with pytest.raises(OSError, match="disk full"):
        await writer.add_icon("tree", ICON_SVG)

    assert writer.state is WriterState.CLOSED
    assert isinstance(writer.failure, OSError)
    with pytest.raises(WriterClosedError):
        await writer.add_icon("other", ICON_SVG)


@pytest.mark.asyncio
async def test_abort_leaves_no_complete_archive() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await writer.add_icon("tree", ICON_SVG)

    writer.abort()
    writer.abort()

    assert writer.state is WriterState.CLOSED
    assert not zipfile.is_zipfile(io.BytesIO(buffer.getvalue()))
    with pytest.raises(WriterClosedError):
        await writer.finish()


@pytest.mark.asyncio
async def test_dropped_writer_does_not_complete_archive() -> None:
    buffer = io.BytesIO()
    writer = new_writer(buffer)
    await writer.add_icon("tree", ICON_SVG)
    written = len(buffer.getvalue())

    del writer
    gc.collect()

    assert len(buffer.getvalue()) == written
    assert not zipfile.is_zipfile(io.BytesIO(buffer.getvalue()))
