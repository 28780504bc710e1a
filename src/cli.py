"""Command-line interface for formatcheck."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from check.facts import check_facts
from check.report import write_report
from check.runner import run_check
from rules.config import ConfigError, load_config


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--out",
        default=None,
        help="Write diagnostics to this file instead of stdout",
    )
    parser.add_argument(
        "--format",
        choices=("text", "jsonl"),
        default=None,
        help="Diagnostic output format (default: config report.format, else text)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="formatcheck")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check", help="Check format method declarations and calls in a repository"
    )
    check_parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root (default: .)",
    )
    check_parser.add_argument(
        "--config",
        default=None,
        help="Path to a formatcheck.toml (default: <root>/formatcheck.toml)",
    )
    _add_common_options(check_parser)

    facts_parser = subparsers.add_parser(
        "facts", help="Validate declaration/call facts from a JSONL file"
    )
    facts_parser.add_argument("file", help="JSONL facts file")
    _add_common_options(facts_parser)

    return parser


def _resolve_out(out: str | None) -> Path | None:
    if out is None:
        return None
    return Path(out).expanduser().resolve()


def _handle_check(
    root: Path, config_path: str | None, out: str | None, fmt: str | None
) -> int:
    try:
        config = load_config(
            root,
            Path(config_path).expanduser().resolve() if config_path else None,
        )
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    result = run_check(root, config)
    write_report(
        result.diagnostics,
        fmt=fmt or config.report.format,
        out_path=_resolve_out(out),
        stdout=sys.stdout,
    )
    return 0 if result.ok else 1


def _handle_facts(file: str, out: str | None, fmt: str | None) -> int:
    path = Path(file).expanduser()
    try:
        result = check_facts(path)
    except OSError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    write_report(
        result.diagnostics,
        fmt=fmt or "text",
        out_path=_resolve_out(out),
        stdout=sys.stdout,
    )
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "check":
        root = Path(args.root).expanduser().resolve()
        return _handle_check(root, args.config, args.out, args.format)

    if args.command == "facts":
        return _handle_facts(args.file, args.out, args.format)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
