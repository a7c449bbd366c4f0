"""Command-line entrypoint: ``chessmind analyze GAME.pgn``."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from chessmind.app.wiring import build_single_engine_use_case
from chessmind.config import get_settings
from chessmind.errors import ChessmindError
from chessmind.utils.logger import get_logger, set_level, set_stream

logger = get_logger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chessmind",
        description="Evaluate a chess game with a UCI engine and report cognitive metrics.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=_LOG_LEVELS,
        default=None,
        help="Override CHESSMIND_LOG_LEVEL",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    analyze = commands.add_parser("analyze", help="Analyze one game and print JSON metrics")
    analyze.add_argument("pgn", help="Path to a PGN file, or '-' to read standard input")
    analyze.add_argument("--depth", type=int, default=None, help="Search depth per position")
    analyze.add_argument("--engine", default=None, help="Path to the UCI engine binary")
    analyze.add_argument("--indent", type=int, default=2, help="JSON indentation")
    return parser


def _read_pgn(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def run_analyze(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.engine:
        overrides["engine_path"] = Path(args.engine)
    if args.depth is not None:
        if args.depth < 1:
            print("error: --depth must be at least 1", file=sys.stderr)
            return 2
        overrides["engine_depth"] = args.depth
    settings = get_settings(**overrides)
    try:
        set_level(args.log_level or settings.log_level)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    try:
        pgn = _read_pgn(args.pgn)
    except OSError as exc:
        print(f"error: cannot read {args.pgn}: {exc}", file=sys.stderr)
        return 1
    # Logs go to stderr so stdout carries only the JSON payload.
    previous_stream = set_stream(sys.stderr)
    try:
        result = build_single_engine_use_case(settings).execute(pgn)
    except ChessmindError as exc:
        logger.error("Analysis failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        set_stream(previous_stream)
    print(json.dumps(result.to_dict(), indent=args.indent))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == "analyze":
        return run_analyze(args)
    return 2


if __name__ == "__main__":
    sys.exit(main())
