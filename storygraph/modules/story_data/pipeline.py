from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from storygraph.modules.story_data.compilers import (
    Row,
    duplicate_id_diagnostics,
    parse_encounters,
    parse_enemies,
    parse_items,
    parse_nodes,
)
from storygraph.modules.story_data.constants import ENCOUNTERS_FILE, ENEMIES_FILE, ITEMS_FILE, NODES_FILE, TABLE_FILES
from storygraph.modules.story_data.graph import analyze_graph
from storygraph.modules.story_data.schemas import Diagnostic, StoryModel
from storygraph.modules.story_data.tokens import WarningSink
from storygraph.modules.story_data.validation import ValidationResult, validate_data


def compile_tables(tables: Mapping[str, Sequence[Row]], sink: WarningSink | None = None) -> StoryModel:
    return StoryModel(
        nodes=parse_nodes(tables.get(NODES_FILE, ()), sink),
        items=parse_items(tables.get(ITEMS_FILE, ()), sink),
        enemies=parse_enemies(tables.get(ENEMIES_FILE, ()), sink),
        encounters=parse_encounters(tables.get(ENCOUNTERS_FILE, ()), sink),
    )


def table_duplicate_diagnostics(tables: Mapping[str, Sequence[Row]]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for file_name in TABLE_FILES:
        diagnostics.extend(duplicate_id_diagnostics(tables.get(file_name, ()), file_name))
    return diagnostics


def check_model(
    model: StoryModel,
    *,
    allowed_start_ids: Iterable[str] | None = None,
    dead_end_allowlist: Iterable[str] | None = None,
) -> ValidationResult:
    """Validator output with the graph analyzer's diagnostics appended to the warnings."""
    result = validate_data(model.nodes, model.items, model.enemies, model.encounters)
    report = analyze_graph(
        model.nodes,
        model.encounters,
        allowed_start_ids=allowed_start_ids,
        dead_end_allowlist=dead_end_allowlist,
    )
    for diagnostic in report.diagnostics:
        result.add(diagnostic)
    return result
