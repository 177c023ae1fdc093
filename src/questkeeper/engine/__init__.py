"""Game mechanics helpers for QuestKeeper."""

from questkeeper.engine.dice import (
    ABILITY_ROLL_EXPRESSION,
    AbilityRoll,
    roll_ability_score,
    roll_ability_scores,
)


__all__ = [
    "ABILITY_ROLL_EXPRESSION",
    "AbilityRoll",
    "roll_ability_score",
    "roll_ability_scores",
]
