"""Derived character values.

Pure, deterministic functions computing the values a character sheet shows
from its raw stats. None of these results are a source of truth; callers
recompute them whenever stats change.

Example:
    >>> calculate_modifier(14)
    2
    >>> calculate_hit_points(10, 14)
    12
    >>> calculate_armor_class(8)
    9
"""

from __future__ import annotations

from questkeeper.core.constants import BASE_ARMOR_CLASS


def calculate_modifier(score: int) -> int:
    """Calculate the ability modifier from an ability score.

    The modifier is calculated as: (score - 10) // 2, which floors toward
    negative infinity for scores below 10.

    Args:
        score: Any integer ability score.

    Returns:
        The ability modifier.

    Example:
        >>> calculate_modifier(10)
        0
        >>> calculate_modifier(3)
        -4
    """
    return (score - 10) // 2


def calculate_hit_points(base_hp: int, constitution: int) -> int:
    """Calculate starting hit points.

    Args:
        base_hp: Base hit points before the constitution modifier.
        constitution: Constitution score.

    Returns:
        Hit points, never lower than 1.
    """
    return max(1, base_hp + calculate_modifier(constitution))


def calculate_armor_class(dexterity: int) -> int:
    """Calculate unarmored armor class.

    Args:
        dexterity: Dexterity score.

    Returns:
        10 plus the dexterity modifier.
    """
    return BASE_ARMOR_CLASS + calculate_modifier(dexterity)


def proficiency_bonus_for_level(level: int) -> int:
    """Get the proficiency bonus for a character level.

    Args:
        level: Character level (1-20).

    Returns:
        Proficiency bonus (2-6 based on level).
    """
    return (level - 1) // 4 + 2


def format_modifier(modifier: int) -> str:
    """Format a modifier with an explicit sign, e.g. '+2' or '-1'."""
    return f"+{modifier}" if modifier >= 0 else str(modifier)


__all__ = [
    "calculate_modifier",
    "calculate_hit_points",
    "calculate_armor_class",
    "proficiency_bonus_for_level",
    "format_modifier",
]
