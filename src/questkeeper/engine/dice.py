"""Ability score rolling for character creation.

Rolls use the d20 library. An ability score is 4d6 with the lowest die
dropped; a full set rolls once per ability in sheet order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import d20

from questkeeper.core.constants import ABILITY_ROLL_DICE, ABILITY_ROLL_SIDES
from questkeeper.core.logging import get_logger
from questkeeper.models.character import Stats
from questkeeper.models.enums import Ability


logger = get_logger(__name__)

ABILITY_ROLL_EXPRESSION = f"{ABILITY_ROLL_DICE}d{ABILITY_ROLL_SIDES}kh{ABILITY_ROLL_DICE - 1}"


@dataclass(frozen=True)
class AbilityRoll:
    """One rolled ability score.

    Attributes:
        total: Sum of the kept dice.
        rolls: Every die rolled, kept or not, in roll order.
    """

    total: int
    rolls: tuple[int, ...]

    @property
    def dropped(self) -> int:
        """The lowest die, which does not count toward the total."""
        return min(self.rolls)


def _dice_numbers(expr: Any) -> list[int]:
    numbers: list[int] = []

    def traverse(node: Any) -> None:
        if isinstance(node, d20.Dice):
            for die in node.values:
                numbers.append(die.number)
        elif hasattr(node, "children"):
            for child in node.children:
                traverse(child)

    traverse(expr)
    return numbers


def roll_ability_score() -> AbilityRoll:
    """Roll one ability score (4d6, drop lowest)."""
    result = d20.roll(ABILITY_ROLL_EXPRESSION)
    return AbilityRoll(total=result.total, rolls=tuple(_dice_numbers(result.expr)))


def roll_ability_scores(*, seed: int | None = None) -> Stats:
    """Roll a full set of ability scores.

    Args:
        seed: Optional random seed for reproducible rolls.

    Returns:
        Stats with one rolled score per ability.
    """
    if seed is not None:
        import random

        random.seed(seed)

    scores = {ability.value: roll_ability_score().total for ability in Ability}
    logger.debug("Ability scores rolled", **scores)
    return Stats.model_validate(scores)


__all__ = [
    "ABILITY_ROLL_EXPRESSION",
    "AbilityRoll",
    "roll_ability_score",
    "roll_ability_scores",
]
