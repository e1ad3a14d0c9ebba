"""Atomic output files."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from comapeocat.utils.fs import atomic_output, atomic_write

if TYPE_CHECKING:
    from pathlib import Path


def test_atomic_write_replaces_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "messages.json"
    target.write_text("old", encoding="utf-8")

    atomic_write(target, "{\"a\": 1}\n")

    assert target.read_text(encoding="utf-8") == "{\"a\": 1}\n"
    assert [path.name for path in tmp_path.iterdir()] == ["messages.json"]


def test_atomic_output_streams_bytes(tmp_path: Path) -> None:
    target = tmp_path / "out.comapeocat"

    with atomic_output(target) as handle:
        handle.write(b"PK")
        handle.write(b"\x03\x04")

    assert target.read_bytes() == b"PK\x03\x04"


def test_failure_leaves_destination_untouched(tmp_path: Path) -> None:
    target = tmp_path / "out.comapeocat"
    target.write_bytes(b"previous")

    with pytest.raises(RuntimeError, match="build failed"), atomic_output(target) as handle:
        handle.write(b"partial")
        raise RuntimeError("build failed")

    assert target.read_bytes() == b"previous"
    assert [path.name for path in tmp_path.iterdir()] == ["out.comapeocat"]


def test_missing_parent_directory_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        atomic_write(tmp_path / "absent" / "out.json", "{}")
