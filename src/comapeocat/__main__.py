"""Module entrypoint for ``python -m comapeocat``."""

from __future__ import annotations

from comapeocat.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
