"""Rules arithmetic used while applying effects."""

from __future__ import annotations

import math
from typing import Any

from bonome.core.constants import (
    DEFAULT_ABILITY_SCORE,
    DEFAULT_PROFICIENCY_BONUS,
    MAX_CHARACTER_LEVEL,
)


def to_number(value: Any, default: int | float = 0) -> int | float:
    """Coerce a loose JSON value to a number.

    Integral values come back as int. Booleans, None and unparsable values
    give ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number) if number.is_integer() else number


def ability_modifier(score: Any) -> int:
    """Calculate the ability modifier from an ability score.

    Example:
        >>> ability_modifier(10)
        0
        >>> ability_modifier(18)
        4
        >>> ability_modifier(7)
        -2
    """
    return math.floor((to_number(score, DEFAULT_ABILITY_SCORE) - DEFAULT_ABILITY_SCORE) / 2)


def proficiency_bonus(level: Any) -> int:
    """Get proficiency bonus for a given total character level."""
    level = int(to_number(level, 1))
    if level < 1:
        return DEFAULT_PROFICIENCY_BONUS
    level = min(level, MAX_CHARACTER_LEVEL)
    return 2 + (level - 1) // 4


__all__ = ["to_number", "ability_modifier", "proficiency_bonus"]
