"""Thin CSV file wrappers around the pure story-data core."""
from __future__ import annotations

import csv
import logging
import shutil
from pathlib import Path

from storygraph.modules.story_data.constants import TABLE_FILES
from storygraph.modules.story_data.errors import TableReadError, TableWriteError

logger = logging.getLogger(__name__)


def read_table(path: Path) -> list[dict[str, str]]:
    """Rows of ``path`` with trimmed headers and values; blank lines are skipped."""
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            reader = csv.reader(handle, strict=True)
            header = next(reader, None)
            if header is None:
                return []
            columns = [name.strip() for name in header]
            rows: list[dict[str, str]] = []
            for cells in reader:
                if not any(cell.strip() for cell in cells):
                    continue
                padded = cells + [""] * (len(columns) - len(cells))
                rows.append({name: value.strip() for name, value in zip(columns, padded) if name})
            return rows
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise TableReadError(path=str(path), detail=str(exc)) from exc


def read_tables(directory: Path) -> dict[str, list[dict[str, str]]]:
    return {file_name: read_table(directory / file_name) for file_name in TABLE_FILES}


def backup_file(path: Path, stamp_ms: int) -> Path | None:
    """Copy ``path`` to ``<path>.bak.<stamp_ms>``; ``None`` when there was nothing to back up."""
    target = path.with_name(f"{path.name}.bak.{stamp_ms}")
    try:
        shutil.copy2(path, target)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise TableWriteError(path=str(target), detail=str(exc)) from exc
    logger.info("Backed up %s to %s", path, target)
    return target


def write_text(path: Path, text: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise TableWriteError(path=str(path), detail=str(exc)) from exc
    return path


def write_texts(files: dict[Path, str]) -> list[Path]:
    """Write every file or none: all contents are staged first, then swapped in."""
    staged: list[tuple[Path, Path]] = []
    try:
        for path, text in files.items():
            temp = write_text(path.with_name(f"{path.name}.tmp"), text)
            staged.append((temp, path))
    except TableWriteError:
        for temp, _ in staged:
            temp.unlink(missing_ok=True)
        raise
    for temp, path in staged:
        try:
            temp.replace(path)
        except OSError as exc:
            raise TableWriteError(path=str(path), detail=str(exc)) from exc
    return [path for _, path in staged]
