#!/usr/bin/env python3
"""Lint the story CSV tables. Exit 0 = clean, 1 = content errors, 2 = fatal read failure."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from storygraph.config import configure_logging, settings
from storygraph.modules.lint.service import EXIT_FATAL, format_table, lint_data
from storygraph.modules.story_data.errors import StoryDataError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate the story CSV tables and print diagnostics.")
    parser.add_argument(
        "--data-dir",
        default=str(settings.data_csv_dir),
        help="Directory holding nodes.csv, items.csv, enemies.csv and encounters.csv.",
    )
    parser.add_argument("--format", choices=["table", "json"], default="table")
    parser.add_argument(
        "--max-warnings",
        type=int,
        default=settings.lint_max_warnings,
        help="Fail when there are more warnings than this.",
    )
    parser.add_argument("--strict", action="store_true", help="Treat every warning as an error.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    try:
        report = lint_data(
            Path(args.data_dir),
            allowed_start_ids=settings.story_start_node_ids,
            dead_end_allowlist=settings.dead_end_allowlist,
            strict=bool(args.strict),
            max_warnings=args.max_warnings,
        )
    except StoryDataError as exc:
        print(f"Fatal: {exc.message}", file=sys.stderr)
        return EXIT_FATAL

    if args.format == "json":
        print(json.dumps(report.to_payload(), ensure_ascii=False))
    else:
        print(format_table(report))
    return report.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
