"""Lint report assembly and exit-code policy for the data linter."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from storygraph.modules.story_data import check_model, compile_tables, table_duplicate_diagnostics
from storygraph.modules.story_data.constants import SEVERITY_ERROR
from storygraph.modules.story_data.diagnostics import attach_files, dump_diagnostics
from storygraph.modules.story_data.schemas import Diagnostic
from storygraph.modules.story_data.tables import read_tables

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONTENT_ERRORS = 1
EXIT_FATAL = 2

GLOBAL_FILE_LABEL = "(global)"


@dataclass(slots=True)
class LintReport:
    errors: list[Diagnostic] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)
    max_warnings: int | None = None

    @property
    def over_warning_limit(self) -> bool:
        return self.max_warnings is not None and len(self.warnings) > self.max_warnings

    @property
    def success(self) -> bool:
        return not self.errors and not self.over_warning_limit

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.success else EXIT_CONTENT_ERRORS

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "errorCount": len(self.errors),
            "warningCount": len(self.warnings),
            "errors": dump_diagnostics(self.errors),
            "warnings": dump_diagnostics(self.warnings),
        }


def lint_data(
    csv_dir: Path,
    *,
    allowed_start_ids: Iterable[str] | None = None,
    dead_end_allowlist: Iterable[str] | None = None,
    strict: bool = False,
    max_warnings: int | None = None,
) -> LintReport:
    """Raises ``TableReadError`` when a table cannot be read at all."""
    tables = read_tables(csv_dir)
    model = compile_tables(tables)
    result = check_model(model, allowed_start_ids=allowed_start_ids, dead_end_allowlist=dead_end_allowlist)

    errors = attach_files(result.errors)
    warnings = [*table_duplicate_diagnostics(tables), *attach_files(result.warnings)]
    if strict:
        errors.extend(item.model_copy(update={"severity": SEVERITY_ERROR}) for item in warnings)
        warnings = []
    return LintReport(errors=errors, warnings=warnings, max_warnings=max_warnings)


def _group_by_file(diagnostics: Iterable[Diagnostic]) -> dict[str, list[Diagnostic]]:
    grouped: dict[str, list[Diagnostic]] = {}
    for item in diagnostics:
        grouped.setdefault(item.file or GLOBAL_FILE_LABEL, []).append(item)
    return grouped


def format_table(report: LintReport) -> str:
    lines: list[str] = []
    for label, diagnostics in (("error", report.errors), ("warning", report.warnings)):
        for file_name, items in _group_by_file(diagnostics).items():
            lines.append("")
            lines.append(f"{file_name} [{label}]")
            for item in items:
                location = f":{item.row}" if item.row is not None else ""
                lines.append(f"  {item.code}{location}: {item.message}")
    if report.errors or report.warnings:
        lines.append("")
        lines.append(f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)")
    else:
        lines.append("No errors or warnings.")
    return "\n".join(lines)
