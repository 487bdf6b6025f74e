from __future__ import annotations

import logging
import math
import random
import re
from dataclasses import dataclass, field

from storygraph.modules.story_data.constants import DICE_NOTATION_RE

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiceResult:
    rolls: list[int] = field(default_factory=list)
    modifier: int | float = 0
    total: int | float = 0


def _flat_value(text: str) -> int | float | None:
    if not text or "_" in text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def is_plain_number(text: str | None) -> bool:
    return _flat_value(str(text or "").strip()) is not None


def is_dice_notation(text: str | None) -> bool:
    match = DICE_NOTATION_RE.match(str(text or ""))
    return bool(match) and int(match.group(1)) > 0 and int(match.group(2)) > 0


def is_valid_dice_expression(text: str | None) -> bool:
    """Notation the roller accepts without falling back: ``NdS[+-M]`` or a flat number."""
    return is_dice_notation(text) or is_plain_number(text)


def roll_dice(notation: str, rng: random.Random | None = None) -> DiceResult:
    normalized = str(notation or "").strip()

    flat = _flat_value(normalized)
    if flat is not None:
        return DiceResult(rolls=[], modifier=flat, total=flat)

    match = DICE_NOTATION_RE.match(re.sub(r"\s+", "", normalized))
    if not match:
        logger.warning("Invalid dice notation fallback to 0: %r", notation)
        return DiceResult()

    count = int(match.group(1))
    sides = int(match.group(2))
    modifier = int(match.group(3)) if match.group(3) else 0
    if count <= 0 or sides <= 0:
        logger.warning("Invalid dice bounds fallback to 0: %r", notation)
        return DiceResult()

    source = rng or random
    rolls = [source.randint(1, sides) for _ in range(count)]
    return DiceResult(rolls=rolls, modifier=modifier, total=sum(rolls) + modifier)
