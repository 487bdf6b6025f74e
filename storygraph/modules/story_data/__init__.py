from storygraph.modules.story_data.compilers import (
    duplicate_id_diagnostics,
    parse_encounters,
    parse_enemies,
    parse_items,
    parse_nodes,
)
from storygraph.modules.story_data.graph import GraphReport, analyze_graph
from storygraph.modules.story_data.pipeline import check_model, compile_tables, table_duplicate_diagnostics
from storygraph.modules.story_data.schemas import Diagnostic, StoryModel
from storygraph.modules.story_data.serializer import serialize_model
from storygraph.modules.story_data.tokens import parse_action, parse_mechanic, parse_on_enter, parse_visibility
from storygraph.modules.story_data.validation import ValidationResult, validate_data

__all__ = [
    "Diagnostic",
    "GraphReport",
    "StoryModel",
    "ValidationResult",
    "analyze_graph",
    "check_model",
    "compile_tables",
    "duplicate_id_diagnostics",
    "parse_action",
    "parse_encounters",
    "parse_enemies",
    "parse_items",
    "parse_mechanic",
    "parse_nodes",
    "parse_on_enter",
    "parse_visibility",
    "serialize_model",
    "table_duplicate_diagnostics",
    "validate_data",
]
