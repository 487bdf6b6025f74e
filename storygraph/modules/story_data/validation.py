"""Cross-entity validation of compiled story data.

``validate_data`` never raises and never stops at the first problem: every
entity is visited and every violation becomes one diagnostic. The compiled
model is only observed, dangling references stay in place as authored.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from storygraph.modules.story_data.constants import (
    CODE_DICE_NOTATION,
    CODE_EMPTY_ENCOUNTER,
    CODE_ENEMY_STAT_BOUNDS,
    CODE_INVALID_ENUM,
    CODE_MISSING_ENCOUNTER,
    CODE_MISSING_ENEMY,
    CODE_MISSING_ITEM,
    CODE_MISSING_NODE,
    CODE_WEAPON_MISSING_DAMAGE,
    ITEM_TYPES,
    NODE_TYPES,
    SEVERITY_ERROR,
    STAT_CHECK_OPERATORS,
    STAT_CHECK_STATS,
    VALID_ATTRIBUTES,
)
from storygraph.modules.story_data.diagnostics import error, warning
from storygraph.modules.story_data.dice import is_valid_dice_expression
from storygraph.modules.story_data.schemas import (
    AddItemAction,
    Choice,
    CombatInitMechanic,
    Diagnostic,
    EncounterModel,
    EnemyTemplate,
    HasItemRequirement,
    ItemTemplate,
    NavigateMechanic,
    RemoveItemAction,
    SkillCheckMechanic,
    StatCheckRequirement,
    StoryNode,
)

_ITEM_ACTIONS = (AddItemAction, RemoveItemAction)


@dataclass(slots=True)
class ValidationResult:
    errors: list[Diagnostic] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)

    def add(self, diagnostic: Diagnostic) -> None:
        if diagnostic.severity == SEVERITY_ERROR:
            self.errors.append(diagnostic)
        else:
            self.warnings.append(diagnostic)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class _Index:
    node_ids: frozenset[str]
    item_ids: frozenset[str]
    enemy_ids: frozenset[str]
    encounter_ids: frozenset[str]


def _missing_node(prefix: str, branch: str, target: str, context: dict) -> Diagnostic:
    return error(
        CODE_MISSING_NODE,
        f'{prefix}: {branch} targets missing node "{target}"',
        {**context, "ref": target, "refType": "node"},
    )


def _check_mechanic(node_id: str, choice: Choice, index: _Index, result: ValidationResult) -> None:
    mechanic = choice.mechanic
    prefix = f'Node "{node_id}" choice "{choice.id}"'
    context = {"nodeId": node_id, "choiceId": choice.id}

    if isinstance(mechanic, NavigateMechanic):
        if mechanic.next_node_id not in index.node_ids:
            result.add(_missing_node(prefix, "navigate", mechanic.next_node_id, context))
        return

    if isinstance(mechanic, CombatInitMechanic):
        if mechanic.encounter_id not in index.encounter_ids:
            result.add(
                error(
                    CODE_MISSING_ENCOUNTER,
                    f'{prefix}: combat_init targets missing encounter "{mechanic.encounter_id}"',
                    {**context, "ref": mechanic.encounter_id, "refType": "encounter"},
                )
            )
        return

    if not isinstance(mechanic, SkillCheckMechanic):
        return
    for branch, outcome in (("onSuccess", mechanic.on_success), ("onFailure", mechanic.on_failure)):
        if outcome.next_node_id not in index.node_ids:
            result.add(_missing_node(prefix, f"skill_check {branch}", outcome.next_node_id, context))
    encounter_id = mechanic.on_failure_encounter_id
    if encounter_id and encounter_id not in index.encounter_ids:
        result.add(
            error(
                CODE_MISSING_ENCOUNTER,
                f'{prefix}: skill_check onFailureEncounterId missing encounter "{encounter_id}"',
                {**context, "ref": encounter_id, "refType": "encounter"},
            )
        )
    if not is_valid_dice_expression(mechanic.dice):
        result.add(
            warning(
                CODE_DICE_NOTATION,
                f'{prefix}: skill_check dice "{mechanic.dice}" is not valid notation',
                {**context, "value": mechanic.dice},
                hint="Use e.g. 1d20+3",
            )
        )
    if mechanic.attribute and mechanic.attribute not in VALID_ATTRIBUTES:
        result.add(
            error(
                CODE_INVALID_ENUM,
                f'{prefix}: skill_check invalid attribute "{mechanic.attribute}"',
                {**context, "attribute": mechanic.attribute},
                hint="Use strength, dexterity, or intelligence",
            )
        )


def _check_visibility(node_id: str, choice: Choice, index: _Index, result: ValidationResult) -> None:
    prefix = f'Node "{node_id}" choice "{choice.id}"'
    context = {"nodeId": node_id, "choiceId": choice.id}
    for requirement in choice.visibility_requirements or []:
        if isinstance(requirement, HasItemRequirement):
            if requirement.item_id not in index.item_ids:
                result.add(
                    error(
                        CODE_MISSING_ITEM,
                        f'{prefix}: has_item references missing item "{requirement.item_id}"',
                        {**context, "ref": requirement.item_id, "refType": "item"},
                    )
                )
        elif isinstance(requirement, StatCheckRequirement):
            if requirement.operator not in STAT_CHECK_OPERATORS:
                result.add(
                    error(
                        CODE_INVALID_ENUM,
                        f'{prefix}: stat_check invalid operator "{requirement.operator}"',
                        {**context, "operator": requirement.operator},
                        hint="Use one of >=, <=, ==, >, <",
                    )
                )
            if requirement.stat not in STAT_CHECK_STATS:
                result.add(
                    error(
                        CODE_INVALID_ENUM,
                        f'{prefix}: stat_check invalid stat "{requirement.stat}"',
                        {**context, "stat": requirement.stat},
                        hint="Use hpCurrent or currency",
                    )
                )


def _check_node(node_id: str, node: StoryNode, index: _Index, result: ValidationResult) -> None:
    if node.type not in NODE_TYPES:
        result.add(
            error(
                CODE_INVALID_ENUM,
                f'Node "{node_id}": invalid type "{node.type}". Must be one of: narrative, encounter, ending',
                {"nodeId": node_id, "type": node.type},
                hint="Set type to narrative, encounter, or ending",
            )
        )
    for choice in node.choices or []:
        _check_mechanic(node_id, choice, index, result)
        _check_visibility(node_id, choice, index, result)
    for action in node.on_enter or []:
        if isinstance(action, _ITEM_ACTIONS) and action.item_id not in index.item_ids:
            result.add(
                error(
                    CODE_MISSING_ITEM,
                    f'Node "{node_id}" onEnter: {action.action} references missing item "{action.item_id}"',
                    {"nodeId": node_id, "ref": action.item_id, "refType": "item"},
                )
            )


def _check_encounter(encounter_id: str, encounter: EncounterModel, index: _Index, result: ValidationResult) -> None:
    if not encounter.enemies:
        result.add(
            error(
                CODE_EMPTY_ENCOUNTER,
                f'Encounter "{encounter_id}": has no enemies',
                {"encounterId": encounter_id},
                hint="List at least one enemy as enemyId:count",
            )
        )
    for spawn in encounter.enemies:
        if spawn.enemy_id not in index.enemy_ids:
            result.add(
                error(
                    CODE_MISSING_ENEMY,
                    f'Encounter "{encounter_id}": references missing enemy "{spawn.enemy_id}"',
                    {"encounterId": encounter_id, "ref": spawn.enemy_id, "refType": "enemy"},
                )
            )
    resolution = encounter.resolution
    for branch, outcome in (("onVictory", resolution.on_victory), ("onDefeat", resolution.on_defeat)):
        if outcome.next_node_id not in index.node_ids:
            result.add(
                _missing_node(f'Encounter "{encounter_id}"', branch, outcome.next_node_id, {"encounterId": encounter_id})
            )


def _check_item(item_id: str, item: ItemTemplate, index: _Index, result: ValidationResult) -> None:
    if item.type not in ITEM_TYPES:
        result.add(
            error(
                CODE_INVALID_ENUM,
                f'Item "{item_id}": invalid type "{item.type}". Must be one of: weapon, consumable, tool, armor',
                {"itemId": item_id, "type": item.type},
            )
        )
    if item.type == "weapon" and not item.damage:
        result.add(
            warning(
                CODE_WEAPON_MISSING_DAMAGE,
                f'Item "{item_id}": weapon missing damage field',
                {"itemId": item_id},
                hint="Use e.g. 1d6+2",
            )
        )
    effect = item.effect
    if isinstance(effect, _ITEM_ACTIONS) and effect.item_id not in index.item_ids:
        result.add(
            error(
                CODE_MISSING_ITEM,
                f'Item "{item_id}" effect: {effect.action} references missing item "{effect.item_id}"',
                {"itemId": item_id, "ref": effect.item_id, "refType": "item"},
            )
        )
    if item.scaling_attribute and item.scaling_attribute not in VALID_ATTRIBUTES:
        result.add(
            error(
                CODE_INVALID_ENUM,
                f'Item "{item_id}": invalid scalingAttribute "{item.scaling_attribute}"',
                {"itemId": item_id, "scalingAttribute": item.scaling_attribute},
                hint="Use strength, dexterity, or intelligence",
            )
        )


def _check_enemy(enemy_id: str, enemy: EnemyTemplate, result: ValidationResult) -> None:
    if enemy.hp <= 0:
        result.add(error(CODE_ENEMY_STAT_BOUNDS, f'Enemy "{enemy_id}": hp must be > 0', {"enemyId": enemy_id}))
    if enemy.ac < 0:
        result.add(error(CODE_ENEMY_STAT_BOUNDS, f'Enemy "{enemy_id}": ac must be >= 0', {"enemyId": enemy_id}))
    if enemy.damage and not is_valid_dice_expression(enemy.damage):
        result.add(
            warning(
                CODE_DICE_NOTATION,
                f'Enemy "{enemy_id}": damage "{enemy.damage}" is not valid dice notation',
                {"enemyId": enemy_id, "value": enemy.damage},
                hint="Use e.g. 1d6+2",
            )
        )


def validate_data(
    nodes: Mapping[str, StoryNode],
    items: Mapping[str, ItemTemplate],
    enemies: Mapping[str, EnemyTemplate],
    encounters: Mapping[str, EncounterModel],
) -> ValidationResult:
    index = _Index(
        node_ids=frozenset(nodes),
        item_ids=frozenset(items),
        enemy_ids=frozenset(enemies),
        encounter_ids=frozenset(encounters),
    )
    result = ValidationResult()
    for node_id, node in nodes.items():
        _check_node(node_id, node, index, result)
    for encounter_id, encounter in encounters.items():
        _check_encounter(encounter_id, encounter, index, result)
    for item_id, item in items.items():
        _check_item(item_id, item, index, result)
    for enemy_id, enemy in enemies.items():
        _check_enemy(enemy_id, enemy, result)
    return result
