from __future__ import annotations

from typing import Any, Iterable

from storygraph.modules.story_data.constants import (
    ENCOUNTERS_FILE,
    ENEMIES_FILE,
    ITEMS_FILE,
    NODES_FILE,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
)
from storygraph.modules.story_data.schemas import Diagnostic

_FILE_BY_CONTEXT_KEY = (
    ("nodeId", NODES_FILE),
    ("itemId", ITEMS_FILE),
    ("enemyId", ENEMIES_FILE),
    ("encounterId", ENCOUNTERS_FILE),
)


def diag(
    *,
    severity: str,
    code: str,
    message: str,
    context: dict[str, Any] | None = None,
    hint: str | None = None,
    file: str | None = None,
    row: int | None = None,
) -> Diagnostic:
    return Diagnostic(
        code=code,
        severity=severity,
        message=message,
        context=dict(context or {}),
        hint=hint,
        file=file,
        row=row,
    )


def error(code: str, message: str, context: dict[str, Any] | None = None, hint: str | None = None) -> Diagnostic:
    return diag(severity=SEVERITY_ERROR, code=code, message=message, context=context, hint=hint)


def warning(code: str, message: str, context: dict[str, Any] | None = None, hint: str | None = None) -> Diagnostic:
    return diag(severity=SEVERITY_WARNING, code=code, message=message, context=context, hint=hint)


def attach_file(diagnostic: Diagnostic) -> Diagnostic:
    """Fill in ``file`` from the entity the diagnostic's context points at."""
    if diagnostic.file:
        return diagnostic
    context = diagnostic.context or {}
    for key, file_name in _FILE_BY_CONTEXT_KEY:
        if context.get(key) is not None:
            return diagnostic.model_copy(update={"file": file_name})
    return diagnostic


def attach_files(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    return [attach_file(item) for item in diagnostics]


def dump_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json", exclude_none=True) for item in diagnostics]
