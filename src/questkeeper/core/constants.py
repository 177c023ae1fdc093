"""Application-wide constants for QuestKeeper.

Rules constants for character sheets and the fixed storage keys of the
four persisted collections.
"""

from __future__ import annotations

# =============================================================================
# Ability Scores
# =============================================================================

MIN_ABILITY_SCORE = 3
"""Lowest ability score a character sheet may hold."""

MAX_ABILITY_SCORE = 20
"""Highest ability score a character sheet may hold."""

DEFAULT_ABILITY_SCORE = 10
"""Ability score assigned when none is supplied."""

# =============================================================================
# Character Progression
# =============================================================================

MIN_CHARACTER_LEVEL = 1
"""Minimum character level."""

MAX_CHARACTER_LEVEL = 20
"""Maximum character level in D&D 5E."""

MIN_PROFICIENCY_BONUS = 2
"""Proficiency bonus at levels 1-4."""

MAX_PROFICIENCY_BONUS = 6
"""Proficiency bonus at levels 17-20."""

DEFAULT_PROFICIENCY_BONUS = MIN_PROFICIENCY_BONUS
"""Proficiency bonus for a new level 1 character."""

DEFAULT_BASE_HIT_POINTS = 10
"""Base hit points used when deriving a new character's hit points."""

BASE_ARMOR_CLASS = 10
"""Unarmored armor class before the dexterity modifier."""

# =============================================================================
# Dice
# =============================================================================

ABILITY_ROLL_DICE = 4
"""Number of d6 rolled per ability score (the lowest is dropped)."""

ABILITY_ROLL_SIDES = 6
"""Die size for ability score rolls."""


__all__ = [
    # Ability Scores
    "MIN_ABILITY_SCORE",
    "MAX_ABILITY_SCORE",
    "DEFAULT_ABILITY_SCORE",
    # Progression
    "MIN_CHARACTER_LEVEL",
    "MAX_CHARACTER_LEVEL",
    "MIN_PROFICIENCY_BONUS",
    "MAX_PROFICIENCY_BONUS",
    "DEFAULT_PROFICIENCY_BONUS",
    "DEFAULT_BASE_HIT_POINTS",
    "BASE_ARMOR_CLASS",
    # Dice
    "ABILITY_ROLL_DICE",
    "ABILITY_ROLL_SIDES",
]
