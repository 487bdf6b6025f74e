"""Parsers for the single-cell mini-DSL used by the story tables.

Every parser is total: malformed input is reported to the warning sink and
yields ``None`` so the caller can drop the enclosing field, choice or action.
"""
from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from storygraph.modules.story_data.schemas import (
    Action,
    AddItemAction,
    AdjustCurrencyAction,
    AdjustHpAction,
    CombatInitMechanic,
    EnemySpawn,
    HasFlagRequirement,
    HasItemRequirement,
    HealAction,
    Mechanic,
    NavigateMechanic,
    NotHasFlagRequirement,
    Outcome,
    RemoveItemAction,
    SetFlagAction,
    SkillCheckMechanic,
    StatCheckRequirement,
    VisibilityRequirement,
)

logger = logging.getLogger(__name__)

WarningSink = Callable[[str], None]
Number = int | float


def resolve_sink(sink: WarningSink | None) -> WarningSink:
    return sink if sink is not None else logger.warning


def _quote(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def split_pipe(value: str | None) -> list[str]:
    if not value:
        return []
    return [entry.strip() for entry in str(value).split("|") if entry.strip()]


def split_colon(value: object) -> list[str]:
    return [segment.strip() for segment in str(value if value is not None else "").split(":")]


def preview_broken_row(row: Mapping[str, Any] | None) -> str:
    text = (row or {}).get("text")
    if isinstance(text, str) and text.strip():
        return f"{text[:30]}..."
    return json.dumps(dict(row or {}), ensure_ascii=False, default=str)[:50]


def as_number(value: object, fallback: Number = 0) -> Number:
    if value is None or value == "":
        return fallback
    text = str(value).strip()
    if not text or "_" in text:
        return fallback
    try:
        parsed = float(text)
    except ValueError:
        return fallback
    if not math.isfinite(parsed):
        return fallback
    return int(parsed) if parsed.is_integer() else parsed


def as_boolean(value: object, fallback: bool = False) -> bool:
    if not value:
        return fallback
    normalized = str(value).strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    return fallback


def parse_action(token: object, sink: WarningSink | None = None) -> Action | None:
    warn = resolve_sink(sink)
    action, *parts = split_colon(token)
    if not action:
        warn(f"parse_action: empty or invalid action token: {_quote(token)}")
        return None

    if action == "set_flag":
        key = parts[0] if parts else ""
        raw_value = parts[1] if len(parts) > 1 else ""
        if not key:
            warn(f"parse_action: set_flag missing key. Token: {_quote(token)}")
            return None
        value = True if raw_value == "" else as_boolean(raw_value, True)
        return SetFlagAction(key=key, value=value)

    if action in {"add_item", "remove_item"}:
        item_id = parts[0] if parts else ""
        qty = parts[1] if len(parts) > 1 else None
        if not item_id:
            warn(f"parse_action: {action} missing itemId. Token: {_quote(token)}")
            return None
        model = AddItemAction if action == "add_item" else RemoveItemAction
        return model(item_id=item_id, qty=as_number(qty, 1))

    if action in {"adjust_hp", "adjust_currency"}:
        amount = as_number(parts[0] if parts else None, 0)
        model = AdjustHpAction if action == "adjust_hp" else AdjustCurrencyAction
        return model(amount=amount)

    if action == "heal":
        # Healing is rolled later, so the dice string is kept verbatim.
        amount = parts[0] if parts else ""
        return HealAction(amount=amount or "0")

    warn(f"parse_action: unknown action type: {action} Token: {_quote(token)}")
    return None


def parse_on_enter(value: str | None, sink: WarningSink | None = None) -> list[Action] | None:
    actions = [item for item in (parse_action(token, sink) for token in split_pipe(value)) if item is not None]
    return actions or None


def _parse_requirement(token: str, warn: WarningSink) -> VisibilityRequirement | None:
    requirement_type, *parts = split_colon(token)
    if not requirement_type:
        warn(f"parse_visibility: missing type. Token: {_quote(token)}")
        return None

    if requirement_type in {"has_flag", "not_has_flag"}:
        key = parts[0] if parts else ""
        if not key:
            warn(f"parse_visibility: {requirement_type} missing key. Token: {_quote(token)}")
            return None
        if requirement_type == "has_flag":
            return HasFlagRequirement(key=key)
        return NotHasFlagRequirement(key=key)

    if requirement_type == "has_item":
        item_id = parts[0] if parts else ""
        if not item_id:
            warn(f"parse_visibility: has_item missing itemId. Token: {_quote(token)}")
            return None
        return HasItemRequirement(item_id=item_id)

    if requirement_type == "stat_check":
        stat, operator, raw_value = (parts + ["", "", ""])[:3]
        if not stat or not operator or raw_value == "":
            warn(f"parse_visibility: stat_check missing stat/operator/value. Token: {_quote(token)}")
            return None
        return StatCheckRequirement(stat=stat, operator=operator, value=as_number(raw_value, 0))

    warn(f"parse_visibility: unknown type: {requirement_type} Token: {_quote(token)}")
    return None


def parse_visibility(value: str | None, sink: WarningSink | None = None) -> list[VisibilityRequirement] | None:
    """Return the requirements of a pipe-delimited cell, or ``None`` when none parse.

    ``None`` means "always visible" to callers; an empty list is never returned.
    """
    warn = resolve_sink(sink)
    requirements = [item for item in (_parse_requirement(token, warn) for token in split_pipe(value)) if item]
    return requirements or None


def _build_mechanic(value: object, warn: WarningSink) -> Mechanic | None:
    mechanic_type, *parts = split_colon(value)
    if not mechanic_type:
        warn(f"parse_mechanic: empty or missing mechanic type. Value: {_quote(value)}")
        return None

    if mechanic_type == "navigate":
        next_node_id = parts[0] if parts else ""
        if not next_node_id:
            warn(f"parse_mechanic: navigate missing nextNodeId. Value: {_quote(value)}")
            return None
        return NavigateMechanic(next_node_id=next_node_id)

    if mechanic_type == "combat_init":
        encounter_id = parts[0] if parts else ""
        if not encounter_id:
            warn(f"parse_mechanic: combat_init missing encounterId. Value: {_quote(value)}")
            return None
        return CombatInitMechanic(encounter_id=encounter_id)

    if mechanic_type == "skill_check":
        dice, dc_value, success_id, failure_id, failure_encounter_id, attribute = (parts + [""] * 6)[:6]
        if not dice or not dc_value or not success_id or not failure_id:
            warn(
                "parse_mechanic: skill_check missing dice/dc/successNodeId/failureNodeId. "
                f"Value: {_quote(value)}"
            )
            return None
        # Positions 5 and 6 are optional and independent of each other.
        return SkillCheckMechanic(
            dice=dice,
            dc=as_number(dc_value, 0),
            on_success=Outcome(next_node_id=success_id),
            on_failure=Outcome(next_node_id=failure_id),
            on_failure_encounter_id=failure_encounter_id or None,
            attribute=attribute or None,
        )

    warn(f"parse_mechanic: unknown mechanic type: {mechanic_type} Value: {_quote(value)}")
    return None


def parse_mechanic(value: object, sink: WarningSink | None = None) -> Mechanic | None:
    warn = resolve_sink(sink)
    try:
        return _build_mechanic(value, warn)
    except ValidationError as exc:
        # The mechanic cell is not pipe-split, so a stray "|" reaches the models.
        warn(f"parse_mechanic: invalid mechanic argument ({exc.error_count()} problems). Value: {_quote(value)}")
        return None


def parse_encounter_enemies(value: str | None) -> list[EnemySpawn]:
    spawns: list[EnemySpawn] = []
    for token in split_pipe(value):
        enemy_id, *rest = split_colon(token)
        if not enemy_id:
            continue
        spawns.append(EnemySpawn(enemy_id=enemy_id, count=as_number(rest[0] if rest else None, 1)))
    return spawns


