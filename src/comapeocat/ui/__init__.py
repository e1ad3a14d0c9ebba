"""Command-line surface for comapeocat."""

from comapeocat.ui.cli import CLIError, build_parser, run_cli

__all__ = ["CLIError", "build_parser", "run_cli"]
