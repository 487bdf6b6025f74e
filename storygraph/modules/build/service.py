from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from storygraph.modules.story_data import StoryModel, check_model, compile_tables
from storygraph.modules.story_data.schemas import Diagnostic, dump_collection
from storygraph.modules.story_data.tables import read_tables, write_text

logger = logging.getLogger(__name__)

COMPILED_FILES = ("nodes.json", "items.json", "enemies.json", "encounters.json")


@dataclass(slots=True)
class BuildResult:
    model: StoryModel
    errors: list[Diagnostic] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def render_compiled(model: StoryModel) -> dict[str, str]:
    """JSON text per compiled artifact, entities sorted by id for stable diffs."""
    collections = (model.nodes, model.items, model.enemies, model.encounters)
    rendered: dict[str, str] = {}
    for file_name, entities in zip(COMPILED_FILES, collections):
        payload = dump_collection(dict(sorted(entities.items())))
        rendered[file_name] = json.dumps(payload, ensure_ascii=False, indent=2) + "\n"
    return rendered


def build_data(
    csv_dir: Path,
    out_dir: Path,
    *,
    allowed_start_ids: Iterable[str] | None = None,
    dead_end_allowlist: Iterable[str] | None = None,
    validate_only: bool = False,
    force_write: bool = False,
) -> BuildResult:
    model = compile_tables(read_tables(csv_dir))
    checked = check_model(model, allowed_start_ids=allowed_start_ids, dead_end_allowlist=dead_end_allowlist)
    result = BuildResult(model=model, errors=checked.errors, warnings=checked.warnings)

    if validate_only:
        return result
    if not result.ok and not force_write:
        logger.warning("Build skipped writing: %d validation errors", len(result.errors))
        return result

    for file_name, text in render_compiled(model).items():
        result.written.append(write_text(out_dir / file_name, text))
    logger.info(
        "Compiled %d nodes, %d items, %d enemies, %d encounters into %s",
        len(model.nodes),
        len(model.items),
        len(model.enemies),
        len(model.encounters),
        out_dir,
    )
    return result
