from __future__ import annotations

TABLE_READ_FAILED = "TABLE_READ_FAILED"
TABLE_WRITE_FAILED = "TABLE_WRITE_FAILED"
PACKAGE_INVALID_MANIFEST = "PACKAGE_INVALID_MANIFEST"
PACKAGE_INVALID_PAYLOAD = "PACKAGE_INVALID_PAYLOAD"


class StoryDataError(RuntimeError):
    """Failure of the system itself, as opposed to diagnostics about content."""

    def __init__(self, *, code: str, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.code = str(code)
        self.message = str(message)
        self.hint = str(hint) if hint is not None else None

    def to_detail(self) -> dict[str, str]:
        detail = {"code": self.code, "message": self.message}
        if self.hint:
            detail["hint"] = self.hint
        return detail


class TableReadError(StoryDataError):
    def __init__(self, *, path: str, detail: str | None = None) -> None:
        message = f"Could not read table {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(code=TABLE_READ_FAILED, message=message, hint="Check that the file exists and is valid CSV.")
        self.path = path


class TableWriteError(StoryDataError):
    def __init__(self, *, path: str, detail: str | None = None) -> None:
        message = f"Could not write table {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(code=TABLE_WRITE_FAILED, message=message)
        self.path = path


class PackageImportError(StoryDataError):
    """Bundle is structurally unusable (bad manifest or payload shape)."""
