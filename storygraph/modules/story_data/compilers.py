"""Row compilers: flat table rows -> id-keyed entity dictionaries."""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from storygraph.modules.story_data.constants import (
    CODE_DUPLICATE_ID,
    ENEMY_DEFAULT_AC,
    ENEMY_DEFAULT_DAMAGE,
    ENEMY_DEFAULT_HP,
)
from storygraph.modules.story_data.diagnostics import diag
from storygraph.modules.story_data.schemas import (
    Choice,
    Diagnostic,
    EncounterModel,
    EncounterResolution,
    EnemyTemplate,
    ItemTemplate,
    Outcome,
    StoryNode,
)
from storygraph.modules.story_data.tokens import (
    WarningSink,
    as_boolean,
    as_number,
    parse_action,
    parse_encounter_enemies,
    parse_mechanic,
    parse_on_enter,
    parse_visibility,
    preview_broken_row,
    resolve_sink,
)

Row = Mapping[str, str | None]

_CHOICE_ID_COLUMN_RE = re.compile(r"^choice(\d+)_id$")
# Header is row 1, so the first data row is row 2.
_FIRST_DATA_ROW = 2


def _cell(row: Row, key: str) -> str:
    value = row.get(key)
    return str(value).strip() if value is not None else ""


def _has_cell(row: Row, key: str) -> bool:
    return _cell(row, key) != ""


def choice_slots(row: Row) -> list[int]:
    slots = {int(match.group(1)) for match in map(_CHOICE_ID_COLUMN_RE.match, row.keys()) if match}
    return sorted(slots)


def _iter_identified_rows(rows: Iterable[Row], kind: str, warn: WarningSink):
    seen: set[str] = set()
    for row in rows:
        entity_id = _cell(row, "id")
        if not entity_id:
            warn(f"Skipped {kind} row due to missing ID. Row data: {preview_broken_row(row)}")
            continue
        if entity_id in seen:
            warn(f"Skipped duplicate {kind} ID {entity_id!r}; the first occurrence is kept.")
            continue
        seen.add(entity_id)
        yield entity_id, row


def _parse_choices(node_id: str, row: Row, warn: WarningSink) -> list[Choice]:
    choices: list[Choice] = []
    for index in choice_slots(row):
        prefix = f"choice{index}"
        choice_id = _cell(row, f"{prefix}_id")
        if not choice_id:
            continue
        mechanic = parse_mechanic(_cell(row, f"{prefix}_mechanic"), warn)
        if mechanic is None:
            warn(f"Node {node_id!r}: dropped {prefix} {choice_id!r} because its mechanic did not parse.")
            continue
        choices.append(
            Choice(
                id=choice_id,
                label=_cell(row, f"{prefix}_label"),
                visibility_requirements=parse_visibility(_cell(row, f"{prefix}_visibility"), warn),
                mechanic=mechanic,
            )
        )
    return choices


def parse_nodes(rows: Iterable[Row], sink: WarningSink | None = None) -> dict[str, StoryNode]:
    warn = resolve_sink(sink)
    nodes: dict[str, StoryNode] = {}
    for node_id, row in _iter_identified_rows(rows, "node", warn):
        choices = _parse_choices(node_id, row, warn)
        nodes[node_id] = StoryNode(
            id=node_id,
            type=_cell(row, "type"),
            text=_cell(row, "text"),
            image=_cell(row, "image") or None,
            on_enter=parse_on_enter(_cell(row, "onEnter"), warn),
            choices=choices or None,
        )
    return nodes


def parse_items(rows: Iterable[Row], sink: WarningSink | None = None) -> dict[str, ItemTemplate]:
    warn = resolve_sink(sink)
    items: dict[str, ItemTemplate] = {}
    for item_id, row in _iter_identified_rows(rows, "item", warn):
        effect = parse_action(_cell(row, "effect"), warn) if _has_cell(row, "effect") else None
        items[item_id] = ItemTemplate(
            id=item_id,
            name=_cell(row, "name") or item_id,
            type=_cell(row, "type"),
            damage=_cell(row, "damage") or None,
            attack_bonus=as_number(_cell(row, "attackBonus"), 0) if _has_cell(row, "attackBonus") else None,
            ac_bonus=as_number(_cell(row, "acBonus"), 0) if _has_cell(row, "acBonus") else None,
            effect=effect,
            scaling_attribute=_cell(row, "scalingAttribute") or None,
            aoe=as_boolean(_cell(row, "aoe"), False) if _has_cell(row, "aoe") else None,
        )
    return items


def parse_enemies(rows: Iterable[Row], sink: WarningSink | None = None) -> dict[str, EnemyTemplate]:
    warn = resolve_sink(sink)
    enemies: dict[str, EnemyTemplate] = {}
    for enemy_id, row in _iter_identified_rows(rows, "enemy", warn):
        enemies[enemy_id] = EnemyTemplate(
            id=enemy_id,
            name=_cell(row, "name") or enemy_id,
            hp=as_number(_cell(row, "hp"), ENEMY_DEFAULT_HP),
            ac=as_number(_cell(row, "ac"), ENEMY_DEFAULT_AC),
            attack_bonus=as_number(_cell(row, "attackBonus"), 0),
            damage=_cell(row, "damage") or ENEMY_DEFAULT_DAMAGE,
            xp_reward=as_number(_cell(row, "xpReward"), 0),
        )
    return enemies


def parse_encounters(rows: Iterable[Row], sink: WarningSink | None = None) -> dict[str, EncounterModel]:
    warn = resolve_sink(sink)
    encounters: dict[str, EncounterModel] = {}
    for encounter_id, row in _iter_identified_rows(rows, "encounter", warn):
        encounters[encounter_id] = EncounterModel(
            id=encounter_id,
            name=_cell(row, "name") or None,
            enemies=parse_encounter_enemies(_cell(row, "enemies")),
            resolution=EncounterResolution(
                on_victory=Outcome(next_node_id=_cell(row, "onVictory")),
                on_defeat=Outcome(next_node_id=_cell(row, "onDefeat")),
            ),
        )
    return encounters


def duplicate_id_diagnostics(rows: Iterable[Row], file: str, id_column: str = "id") -> list[Diagnostic]:
    first_row_by_id: dict[str, int] = {}
    diagnostics: list[Diagnostic] = []
    for offset, row in enumerate(rows):
        entity_id = _cell(row, id_column)
        if not entity_id:
            continue
        row_number = offset + _FIRST_DATA_ROW
        if entity_id not in first_row_by_id:
            first_row_by_id[entity_id] = row_number
            continue
        diagnostics.append(
            diag(
                severity="warning",
                code=CODE_DUPLICATE_ID,
                message=f'Duplicate ID "{entity_id}" (also at row {first_row_by_id[entity_id]})',
                context={"id": entity_id, "file": file, "firstRow": first_row_by_id[entity_id]},
                hint="Rename or remove the later row; only the first occurrence is compiled.",
                file=file,
                row=row_number,
            )
        )
    return diagnostics
