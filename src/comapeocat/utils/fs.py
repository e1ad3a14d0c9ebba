"""
comapeocat — filesystem utilities

File: src/comapeocat/utils/fs.py

Purpose
- Write build outputs atomically so that a failed build never leaves a partial
  archive or messages file at the destination.

Functional requirements
- Atomic writes use temp files in the destination directory and replace in a single step.
- On any exception the temp file is removed and the destination is untouched.

Non-functional requirements
- Standard library only and cross-platform behavior where feasible.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from collections.abc import Iterator

PathLike = str | os.PathLike[str]

__all__ = [
    "atomic_output",
    "atomic_write",
]


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """Atomically write ``data`` to ``path``."""

    payload = data.encode(encoding) if isinstance(data, str) else data
    with atomic_output(path) as handle:
        handle.write(payload)


@contextmanager
def atomic_output(path: PathLike) -> Iterator[BinaryIO]:
    """
    Yield a binary handle whose content replaces ``path`` when the block succeeds.

    The write strategy is:
    1. create temp file in the same directory,
    2. let the caller stream into it, then flush + fsync,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "wb") as file_handle:
            yield file_handle
            file_handle.flush()
            os.fsync(file_handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except BaseException:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def _fsync_directory(path: Path) -> None:
    """
    Best-effort directory fsync for metadata durability after ``os.replace``.

    Some platforms/filesystems do not support fsync on directories.
    """

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)
