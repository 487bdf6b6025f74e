#!/usr/bin/env python3
"""Compile the story CSV tables into JSON artifacts for the runtime."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from storygraph.config import configure_logging, settings
from storygraph.modules.build.service import build_data
from storygraph.modules.lint.service import EXIT_CONTENT_ERRORS, EXIT_FATAL, EXIT_OK
from storygraph.modules.story_data.errors import StoryDataError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compile story CSV tables into JSON.")
    parser.add_argument("--data-dir", default=str(settings.data_csv_dir), help="Directory holding the CSV tables.")
    parser.add_argument("--out-dir", default=str(settings.compiled_dir), help="Directory for the compiled JSON.")
    parser.add_argument("--validate-only", action="store_true", help="Report diagnostics without writing output.")
    parser.add_argument("--force-write", action="store_true", help="Write output even when errors are present.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    try:
        result = build_data(
            Path(args.data_dir),
            Path(args.out_dir),
            allowed_start_ids=settings.story_start_node_ids,
            dead_end_allowlist=settings.dead_end_allowlist,
            validate_only=bool(args.validate_only),
            force_write=bool(args.force_write),
        )
    except StoryDataError as exc:
        print(f"Fatal: {exc.message}", file=sys.stderr)
        return EXIT_FATAL

    for item in result.warnings:
        print(f"Warning: {item.message}", file=sys.stderr)
    for item in result.errors:
        print(f"Error: {item.message}", file=sys.stderr)

    if args.validate_only:
        print("Validation complete.", "Errors found." if result.errors else "No errors.")
    for path in result.written:
        print(f"Wrote {path}")
    return EXIT_OK if result.ok else EXIT_CONTENT_ERRORS


if __name__ == "__main__":
    raise SystemExit(main())
