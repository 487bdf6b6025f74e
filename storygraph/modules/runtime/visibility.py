from __future__ import annotations

import operator
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from storygraph.modules.story_data.schemas import (
    Choice,
    HasFlagRequirement,
    HasItemRequirement,
    NotHasFlagRequirement,
    StatCheckRequirement,
    VisibilityRequirement,
)

_COMPARATORS = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
}


@dataclass(slots=True)
class VisibilityState:
    """The slice of player state that choice visibility depends on."""

    flags: Mapping[str, object] = field(default_factory=dict)
    items: Mapping[str, int | float] = field(default_factory=dict)
    hp_current: int | float = 0
    currency: int | float = 0


def _requirement_holds(requirement: VisibilityRequirement, state: VisibilityState) -> bool:
    if isinstance(requirement, HasFlagRequirement):
        return bool(state.flags.get(requirement.key))
    if isinstance(requirement, NotHasFlagRequirement):
        return not state.flags.get(requirement.key)
    if isinstance(requirement, HasItemRequirement):
        return state.items.get(requirement.item_id, 0) > 0
    if isinstance(requirement, StatCheckRequirement):
        compare = _COMPARATORS.get(requirement.operator)
        if compare is None:
            return False
        source = state.hp_current if requirement.stat == "hpCurrent" else state.currency
        return compare(source, requirement.value)
    return False


def is_choice_visible(requirements: Sequence[VisibilityRequirement] | None, state: VisibilityState) -> bool:
    # No requirements authored means always visible.
    if not requirements:
        return True
    return all(_requirement_holds(requirement, state) for requirement in requirements)


def visible_choices(choices: Sequence[Choice] | None, state: VisibilityState) -> list[Choice]:
    return [choice for choice in choices or [] if is_choice_visible(choice.visibility_requirements, state)]
