"""Output rendering for the comapeocat CLI.

File: src/comapeocat/ui/render.py

Purpose
- Provide a thin rendering layer for human-readable CLI output.
- Keep report text off stdout when stdout carries the archive or messages payload.

Functional requirements
- Plain-text rendering, deterministic and free of color codes.
- All public methods must be safe to call in any environment.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence


class CLIRenderer:
    """Thin CLI output renderer writing to one text stream."""

    def __init__(self, *, stream: TextIO | None = None, verbose: bool = False) -> None:
        self.verbose = verbose
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _print(self, line: str = "") -> None:
        print(line, file=self.stream)

    def heading(self, text: str) -> None:
        self._print(text)

    def kv(self, key: str, value: object) -> None:
        """Print a key: value pair."""

        self._print(f"{key}: {value}")

    def text(self, line: str) -> None:
        self._print(line)

    def blank(self) -> None:
        self._print()

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        self._print(f"\n{title}")

    def warning(self, text: str) -> None:
        """Print a warning; continuation lines keep their own indentation."""

        first, *rest = text.splitlines() or [""]
        self._print(f"  Warning: {first}")
        for line in rest:
            self._print(f"  {line}")

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            self._print(f"  {prefix}{entry}")

    def ok(self, label: str) -> None:
        """Print a passing check."""

        self._print(f"  OK  {label}")

    def fail(self, label: str) -> None:
        """Print a failing check."""

        self._print(f"  FAIL  {label}")


def create_renderer(*, stream: TextIO | None = None, verbose: bool = False) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(stream=stream, verbose=verbose)


__all__ = ["CLIRenderer", "create_renderer"]
