"""Entity dictionaries -> table rows -> delimited text.

The inverse of the row compilers: ``parse_*(rows_of(x))`` is equivalent to
``x``. Authored whitespace and comments are not preserved. Every table has a
fixed column order and absent optional fields become empty cells.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from storygraph.modules.story_data.constants import (
    CHOICE_COLUMN_FIELDS,
    DEFAULT_CHOICE_SLOTS,
    ENCOUNTER_COLUMNS,
    ENCOUNTERS_FILE,
    ENEMIES_FILE,
    ENEMY_COLUMNS,
    ITEM_COLUMNS,
    ITEMS_FILE,
    NODE_BASE_COLUMNS,
    NODES_FILE,
)
from storygraph.modules.story_data.schemas import (
    Action,
    AddItemAction,
    AdjustCurrencyAction,
    AdjustHpAction,
    CombatInitMechanic,
    EncounterModel,
    EnemyTemplate,
    HasFlagRequirement,
    HasItemRequirement,
    HealAction,
    ItemTemplate,
    Mechanic,
    NavigateMechanic,
    NotHasFlagRequirement,
    RemoveItemAction,
    SetFlagAction,
    SkillCheckMechanic,
    StatCheckRequirement,
    StoryModel,
    StoryNode,
    VisibilityRequirement,
)

CELL_SEPARATOR = " | "
_NEEDS_QUOTING = (",", '"', "\n", "\r")


def format_scalar(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_csv_field(value: object) -> str:
    text = format_scalar(value)
    if any(marker in text for marker in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def serialize_action(action: Action) -> str:
    if isinstance(action, SetFlagAction):
        return f"set_flag:{action.key}" + ("" if action.value else ":false")
    if isinstance(action, (AddItemAction, RemoveItemAction)):
        return f"{action.action}:{action.item_id}:{format_scalar(action.qty)}"
    if isinstance(action, (AdjustHpAction, AdjustCurrencyAction)):
        return f"{action.action}:{format_scalar(action.amount)}"
    if isinstance(action, HealAction):
        return f"heal:{action.amount}"
    return ""


def serialize_requirement(requirement: VisibilityRequirement) -> str:
    if isinstance(requirement, (HasFlagRequirement, NotHasFlagRequirement)):
        return f"{requirement.type}:{requirement.key}"
    if isinstance(requirement, HasItemRequirement):
        return f"has_item:{requirement.item_id}"
    if isinstance(requirement, StatCheckRequirement):
        return f"stat_check:{requirement.stat}:{requirement.operator}:{format_scalar(requirement.value)}"
    return ""


def serialize_mechanic(mechanic: Mechanic) -> str:
    if isinstance(mechanic, NavigateMechanic):
        return f"navigate:{mechanic.next_node_id}"
    if isinstance(mechanic, CombatInitMechanic):
        return f"combat_init:{mechanic.encounter_id}"
    if not isinstance(mechanic, SkillCheckMechanic):
        return ""
    parts = [
        "skill_check",
        mechanic.dice,
        format_scalar(mechanic.dc),
        mechanic.on_success.next_node_id,
        mechanic.on_failure.next_node_id,
    ]
    # The attribute is positional, so an absent encounter still takes its slot.
    if mechanic.on_failure_encounter_id or mechanic.attribute:
        parts.append(mechanic.on_failure_encounter_id or "")
    if mechanic.attribute:
        parts.append(mechanic.attribute)
    return ":".join(parts)


def join_cell(tokens: Iterable[str]) -> str:
    return CELL_SEPARATOR.join(token for token in tokens if token)


def node_columns(slot_count: int = DEFAULT_CHOICE_SLOTS) -> tuple[str, ...]:
    choice_columns = tuple(
        f"choice{index}_{name}" for index in range(1, slot_count + 1) for name in CHOICE_COLUMN_FIELDS
    )
    return NODE_BASE_COLUMNS + choice_columns


def choice_slot_count(nodes: Mapping[str, StoryNode]) -> int:
    longest = max((len(node.choices or []) for node in nodes.values()), default=0)
    return max(DEFAULT_CHOICE_SLOTS, longest)


def node_row(node: StoryNode, slot_count: int = DEFAULT_CHOICE_SLOTS) -> dict[str, str]:
    row = {
        "id": node.id,
        "type": node.type,
        "text": node.text,
        "image": node.image or "",
        "onEnter": join_cell(serialize_action(action) for action in node.on_enter or []),
    }
    choices = list(node.choices or [])
    for index in range(1, slot_count + 1):
        choice = choices[index - 1] if index <= len(choices) else None
        prefix = f"choice{index}"
        row[f"{prefix}_id"] = choice.id if choice else ""
        row[f"{prefix}_label"] = choice.label if choice else ""
        row[f"{prefix}_visibility"] = (
            join_cell(serialize_requirement(item) for item in choice.visibility_requirements or [])
            if choice
            else ""
        )
        row[f"{prefix}_mechanic"] = serialize_mechanic(choice.mechanic) if choice else ""
    return row


def item_row(item: ItemTemplate) -> dict[str, str]:
    return {
        "id": item.id,
        "name": item.name,
        "type": item.type,
        "damage": item.damage or "",
        "attackBonus": format_scalar(item.attack_bonus),
        "acBonus": format_scalar(item.ac_bonus),
        "effect": serialize_action(item.effect) if item.effect is not None else "",
        "scalingAttribute": item.scaling_attribute or "",
        "aoe": format_scalar(item.aoe),
    }


def enemy_row(enemy: EnemyTemplate) -> dict[str, str]:
    return {
        "id": enemy.id,
        "name": enemy.name,
        "hp": format_scalar(enemy.hp),
        "maxHp": format_scalar(enemy.hp),
        "ac": format_scalar(enemy.ac),
        "attackBonus": format_scalar(enemy.attack_bonus),
        "damage": enemy.damage,
        "xpReward": format_scalar(enemy.xp_reward),
    }


def encounter_row(encounter: EncounterModel) -> dict[str, str]:
    return {
        "id": encounter.id,
        "name": encounter.name or encounter.id,
        "enemies": join_cell(f"{spawn.enemy_id}:{format_scalar(spawn.count)}" for spawn in encounter.enemies),
        "onVictory": encounter.resolution.on_victory.next_node_id,
        "onDefeat": encounter.resolution.on_defeat.next_node_id,
    }


def to_csv(columns: Sequence[str], rows: Iterable[Mapping[str, str]]) -> str:
    lines = [",".join(escape_csv_field(name) for name in columns)]
    lines.extend(",".join(escape_csv_field(row.get(name, "")) for name in columns) for row in rows)
    return "\n".join(lines)


def nodes_to_csv(nodes: Mapping[str, StoryNode]) -> str:
    slot_count = choice_slot_count(nodes)
    return to_csv(node_columns(slot_count), (node_row(node, slot_count) for node in nodes.values()))


def items_to_csv(items: Mapping[str, ItemTemplate]) -> str:
    return to_csv(ITEM_COLUMNS, (item_row(item) for item in items.values()))


def enemies_to_csv(enemies: Mapping[str, EnemyTemplate]) -> str:
    return to_csv(ENEMY_COLUMNS, (enemy_row(enemy) for enemy in enemies.values()))


def encounters_to_csv(encounters: Mapping[str, EncounterModel]) -> str:
    return to_csv(ENCOUNTER_COLUMNS, (encounter_row(encounter) for encounter in encounters.values()))


def serialize_model(model: StoryModel) -> dict[str, str]:
    """CSV text for each of the four tables, keyed by file name."""
    return {
        NODES_FILE: nodes_to_csv(model.nodes),
        ITEMS_FILE: items_to_csv(model.items),
        ENEMIES_FILE: enemies_to_csv(model.enemies),
        ENCOUNTERS_FILE: encounters_to_csv(model.encounters),
    }
