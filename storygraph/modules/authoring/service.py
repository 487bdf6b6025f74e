from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from storygraph.config import settings
from storygraph.modules.story_data import StoryModel, ValidationResult, check_model, compile_tables, serialize_model
from storygraph.modules.story_data.constants import TABLE_FILES
from storygraph.modules.story_data.diagnostics import attach_files, dump_diagnostics
from storygraph.modules.story_data.errors import TableReadError
from storygraph.modules.story_data.pipeline import table_duplicate_diagnostics
from storygraph.modules.story_data.schemas import dump_collection
from storygraph.modules.story_data.tables import backup_file, read_tables, write_text, write_texts
from storygraph.utils.time import unix_millis, utc_now_iso

logger = logging.getLogger(__name__)


def csv_dir() -> Path:
    return Path(settings.data_csv_dir)


def draft_path() -> Path:
    return csv_dir() / settings.draft_file_name


def check_story(model: StoryModel) -> ValidationResult:
    return check_model(
        model,
        allowed_start_ids=settings.story_start_node_ids,
        dead_end_allowlist=settings.dead_end_allowlist,
    )


def model_payload(model: StoryModel) -> dict[str, Any]:
    return {
        "nodes": dump_collection(model.nodes),
        "items": dump_collection(model.items),
        "enemies": dump_collection(model.enemies),
        "encounters": dump_collection(model.encounters),
    }


def load_current_model(directory: Path | None = None) -> tuple[StoryModel, list]:
    """Compile the tables on disk; also returns the raw-row duplicate diagnostics."""
    tables = read_tables(directory or csv_dir())
    return compile_tables(tables), table_duplicate_diagnostics(tables)


def load_story() -> dict[str, Any]:
    model, duplicates = load_current_model()
    result = check_story(model)
    errors = attach_files(result.errors)
    warnings = attach_files([*duplicates, *result.warnings])
    logger.info(
        "Loaded story data: %d nodes, %d items, %d enemies, %d encounters (%d errors, %d warnings)",
        len(model.nodes),
        len(model.items),
        len(model.enemies),
        len(model.encounters),
        len(errors),
        len(warnings),
    )
    return {
        **model_payload(model),
        "errors": dump_diagnostics(errors),
        "warnings": dump_diagnostics(warnings),
    }


def validate_story(model: StoryModel) -> dict[str, Any]:
    result = check_story(model)
    return {
        "errors": dump_diagnostics(attach_files(result.errors)),
        "warnings": dump_diagnostics(attach_files(result.warnings)),
    }


def save_story(model: StoryModel) -> dict[str, Any]:
    """Validate, then back up and overwrite all four tables; nothing is written on errors."""
    result = check_story(model)
    warnings = dump_diagnostics(attach_files(result.warnings))
    if not result.ok:
        logger.warning("Save rejected: %d validation errors", len(result.errors))
        return {
            "success": False,
            "errors": dump_diagnostics(attach_files(result.errors)),
            "warnings": warnings,
        }

    directory = csv_dir()
    texts = serialize_model(model)
    stamp = unix_millis()
    backups = [backup_file(directory / file_name, stamp) for file_name in TABLE_FILES]
    written = write_texts({directory / file_name: texts[file_name] for file_name in TABLE_FILES})
    logger.info("Saved story data to %s (%d backups)", directory, sum(1 for item in backups if item))
    return {
        "success": True,
        "written": [str(path) for path in written],
        "backups": [str(path) for path in backups if path is not None],
        "warnings": warnings,
    }


def save_draft(model: StoryModel) -> dict[str, Any]:
    saved_at = utc_now_iso()
    path = write_text(
        draft_path(),
        json.dumps({"savedAt": saved_at, "model": model_payload(model)}, ensure_ascii=False, indent=2),
    )
    logger.info("Saved authoring draft to %s", path)
    return {"success": True, "savedAt": saved_at}


def load_draft() -> dict[str, Any]:
    path = draft_path()
    if not path.exists():
        return {"exists": False}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise TableReadError(path=str(path), detail=str(exc)) from exc
    if not isinstance(data, dict):
        raise TableReadError(path=str(path), detail="draft is not a JSON object")
    return {"exists": True, "savedAt": data.get("savedAt"), "model": data.get("model")}
