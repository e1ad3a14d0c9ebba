"""Command-line interface router for comapeocat."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from comapeocat.authoring import build_archive, extract_messages, lint, read_files
from comapeocat.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    limits_from_config,
    load_config,
)
from comapeocat.config.schema import LOG_FORMATS, LOG_LEVELS
from comapeocat.constants import ArchiveLimits
from comapeocat.observability import configure_logging
from comapeocat.reader import Reader
from comapeocat.ui.render import CLIRenderer, create_renderer
from comapeocat.utils.fs import atomic_output, atomic_write

DEFAULT_INPUT_DIR: Final[str] = "."


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="comapeocat",
        description=(
            "comapeocat — build, lint and validate categories archives.\n\n"
            "Common workflows:\n"
            "  comapeocat lint ./config             Check an authoring directory\n"
            "  comapeocat build ./config -o out.comapeocat\n"
            "  comapeocat validate out.comapeocat   Check a built archive\n"
            "  comapeocat messages ./config         Extract translatable strings\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./comapeocat.toml if present).",
    )
    common.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level for diagnostics written to stderr.",
    )
    common.add_argument(
        "--log-format",
        default=None,
        type=str.lower,
        choices=LOG_FORMATS,
        help="Log output format.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # build ---------------------------------------------------------------
    build_parser_ = subparsers.add_parser(
        "build",
        parents=[common],
        help="Build a categories archive from an authoring directory",
        description=(
            "Build a categories archive. The output file is only replaced once the\n"
            "archive is complete; without --output the archive is written to stdout.\n\n"
            "Examples:\n"
            "  comapeocat build ./config -o out.comapeocat\n"
            "  comapeocat build --name 'My categories' --version 1.2 > out.comapeocat\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    build_parser_.add_argument("input_dir", nargs="?", default=DEFAULT_INPUT_DIR)
    build_parser_.add_argument("-o", "--output", default=None, help="Output archive path")
    build_parser_.add_argument("--name", default=None, help="Archive name (overrides metadata)")
    build_parser_.add_argument(
        "--version",
        dest="archive_version",
        default=None,
        help="Archive version (overrides metadata)",
    )
    build_parser_.set_defaults(handler=_cmd_build)

    # lint ----------------------------------------------------------------
    lint_parser = subparsers.add_parser(
        "lint",
        parents=[common],
        help="Check an authoring directory without building",
        description=(
            "Validate every file of an authoring directory and report warnings.\n\n"
            "Examples:\n"
            "  comapeocat lint ./config\n"
            "  comapeocat lint ./config --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    lint_parser.add_argument("input_dir", nargs="?", default=DEFAULT_INPUT_DIR)
    lint_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    lint_parser.set_defaults(handler=_cmd_lint)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Validate a built categories archive",
        description=(
            "Open an archive, parse every entry and check references.\n\n"
            "Examples:\n"
            "  comapeocat validate out.comapeocat\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    validate_parser.add_argument("archive", help="Archive file to validate")
    validate_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    validate_parser.set_defaults(handler=_cmd_validate)

    # messages ------------------------------------------------------------
    messages_parser = subparsers.add_parser(
        "messages",
        parents=[common],
        help="Extract translatable messages from an authoring directory",
        description=(
            "Write the messages document used as the source for translations.\n\n"
            "Examples:\n"
            "  comapeocat messages ./config -o messages/en.json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    messages_parser.add_argument("input_dir", nargs="?", default=DEFAULT_INPUT_DIR)
    messages_parser.add_argument("-o", "--output", default=None, help="Output JSON path")
    messages_parser.set_defaults(handler=_cmd_messages)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration",
        description=(
            "Display the effective config after merging defaults, file, env and flags.\n\n"
            "Examples:\n"
            "  comapeocat config\n"
            "  comapeocat config --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code.

    Archive and validation errors propagate to the caller, which maps them to
    exit codes.
    """

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        namespace.effective_config = _load_effective_config(namespace)
        logging_config = namespace.effective_config["logging"]
        configure_logging(logging_config["log_level"], logging_config["log_format"])
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_build(args: argparse.Namespace) -> int:
    input_dir = _input_dir(args)
    config = args.effective_config
    options: dict[str, Any] = {
        "name": args.name,
        "version": args.archive_version,
        "limits": limits_from_config(config),
        "compression_level": config["writer"]["compression_level"],
    }

    if args.output is None:
        output = sys.stdout.buffer
        asyncio.run(build_archive(input_dir, output, **options))
        output.flush()
        return 0

    target = Path(args.output)
    if not target.parent.is_dir():
        raise CLIError(f"output directory does not exist: {target.parent}", exit_code=2)
    with atomic_output(target) as handle:
        writer = asyncio.run(build_archive(input_dir, handle, **options))

    renderer = _get_renderer(args)
    renderer.ok(f"Built {target} ({writer.entry_count} entries, {writer.bytes_written} bytes)")
    return 0


def _cmd_lint(args: argparse.Namespace) -> int:
    input_dir = _input_dir(args)
    report = asyncio.run(lint(input_dir))

    if _flag(args, "json"):
        _emit_json({"command": "lint", "input_dir": str(input_dir), **report.to_dict()})
        return 0

    renderer = _get_renderer(args)
    renderer.heading(f"Linting {input_dir}")
    for success in report.successes:
        renderer.ok(success)
    for warning in report.warnings:
        renderer.warning(warning)
    renderer.text("\nNo problems found." if report.clean else "\nLint passed with warnings.")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    path = Path(args.archive)
    summary = asyncio.run(_validate_archive(path, limits_from_config(args.effective_config)))

    if _flag(args, "json"):
        _emit_json({"command": "validate", "archive": str(path), "valid": True, **summary})
        return 0

    renderer = _get_renderer(args)
    renderer.ok(f"{path} is a valid categories archive")
    for key, value in summary.items():
        renderer.kv(f"  {key}", value)
    return 0


async def _validate_archive(path: Path, limits: ArchiveLimits) -> dict[str, object]:
    async with Reader(path, limits=limits) as reader:
        await reader.validate()
        metadata = await reader.metadata()
        languages = [entry.lang async for entry in reader.translations()]
        return {
            "name": metadata.name,
            "version": metadata.version,
            "format_version": str(reader.version),
            "layout": str(reader.layout),
            "categories": len(await reader.categories()),
            "fields": len(await reader.fields()),
            "icons": len(await reader.icon_names()),
            "languages": sorted(languages),
        }


def _cmd_messages(args: argparse.Namespace) -> int:
    input_dir = _input_dir(args)
    messages = asyncio.run(_collect_messages(input_dir))
    payload = json.dumps(messages, indent=2, ensure_ascii=False) + "\n"

    if args.output is None:
        sys.stdout.write(payload)
        return 0

    target = Path(args.output)
    if not target.parent.is_dir():
        raise CLIError(f"output directory does not exist: {target.parent}", exit_code=2)
    atomic_write(target, payload)
    _get_renderer(args).ok(f"Wrote {len(messages)} messages to {target}")
    return 0


async def _collect_messages(input_dir: Path) -> dict[str, dict[str, str]]:
    return extract_messages([source async for source in read_files(input_dir)])


def _cmd_config(args: argparse.Namespace) -> int:
    config = args.effective_config
    if _flag(args, "json"):
        _emit_json({"command": "config", "config": config})
        return 0

    renderer = create_renderer()
    renderer.kv("Config file", args.config_path or "(default)")
    renderer.text(dump_effective_config(config))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    """Human-readable reports go to stderr so stdout stays a clean payload stream."""

    return create_renderer(stream=sys.stderr)


def _input_dir(args: argparse.Namespace) -> Path:
    candidate = Path(args.input_dir).expanduser()
    if not candidate.is_dir():
        raise CLIError(f"input directory not found: {candidate}", exit_code=2)
    return candidate


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides = {
        "logging.log_level": getattr(args, "log_level", None),
        "logging.log_format": getattr(args, "log_format", None),
    }
    try:
        return load_config(getattr(args, "config_path", None), cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
