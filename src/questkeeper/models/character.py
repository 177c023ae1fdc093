"""Character sheet schema.

A character stores its raw ability scores plus hit points, armor class and
proficiency bonus. Modifiers are never stored; they are computed from the
current scores on every read. Hit points and armor class are stored values:
they start out derived from the stats and may later be overridden by hand.

Example:
    >>> hero = Character(name="Thorin", race=Race.DWARF, stats={"Constitution": 14})
    >>> hero.modifiers[Ability.CON]
    2
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from questkeeper.core.constants import (
    BASE_ARMOR_CLASS,
    DEFAULT_ABILITY_SCORE,
    DEFAULT_BASE_HIT_POINTS,
    DEFAULT_PROFICIENCY_BONUS,
    MAX_ABILITY_SCORE,
    MAX_CHARACTER_LEVEL,
    MAX_PROFICIENCY_BONUS,
    MIN_ABILITY_SCORE,
    MIN_CHARACTER_LEVEL,
    MIN_PROFICIENCY_BONUS,
)
from questkeeper.models.derivations import (
    calculate_armor_class,
    calculate_hit_points,
    calculate_modifier,
    proficiency_bonus_for_level,
)
from questkeeper.models.enums import Ability, CharacterClass, Race
from questkeeper.models.records import BlankAsNone, Record


def clamp_ability_score(value: int) -> int:
    """Clamp an ability score into the character sheet bounds.

    Args:
        value: The supplied score.

    Returns:
        The score limited to [3, 20].
    """
    return max(MIN_ABILITY_SCORE, min(MAX_ABILITY_SCORE, value))


AbilityScore = Annotated[int, AfterValidator(clamp_ability_score)]


class Stats(BaseModel):
    """The six ability scores of a character.

    Scores outside [3, 20] are clamped on the way in, so a stored sheet
    never holds an out-of-range value. Serialized keys are the ability
    display names ("Strength", "Dexterity", ...).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    strength: AbilityScore = Field(default=DEFAULT_ABILITY_SCORE, alias=Ability.STR.value)
    dexterity: AbilityScore = Field(default=DEFAULT_ABILITY_SCORE, alias=Ability.DEX.value)
    constitution: AbilityScore = Field(default=DEFAULT_ABILITY_SCORE, alias=Ability.CON.value)
    intelligence: AbilityScore = Field(default=DEFAULT_ABILITY_SCORE, alias=Ability.INT.value)
    wisdom: AbilityScore = Field(default=DEFAULT_ABILITY_SCORE, alias=Ability.WIS.value)
    charisma: AbilityScore = Field(default=DEFAULT_ABILITY_SCORE, alias=Ability.CHA.value)

    def get_score(self, ability: Ability) -> int:
        """Get the raw score for an ability."""
        return getattr(self, ability.value.lower())

    def get_modifier(self, ability: Ability) -> int:
        """Get the modifier for an ability."""
        return calculate_modifier(self.get_score(ability))

    def as_dict(self) -> dict[Ability, int]:
        """Get all scores keyed by ability, in sheet order."""
        return {ability: self.get_score(ability) for ability in Ability}


class Character(Record):
    """Player character sheet.

    Attributes:
        name: Character name.
        race: Character race, unset while a draft is incomplete.
        character_class: Character class (serialized as ``class``).
        level: Character level (1-20).
        stats: Ability scores.
        hit_points: Maximum hit points.
        armor_class: Armor class.
        proficiency_bonus: Proficiency bonus (2-6).
        backstory: Free-text backstory.
        notes: Free-text player notes.
    """

    name: str = Field(default="", description="Character name")
    race: Annotated[Race | None, BlankAsNone] = Field(default=None, description="Character race")
    character_class: Annotated[CharacterClass | None, BlankAsNone] = Field(
        default=None,
        alias="class",
        description="Character class",
    )
    level: int = Field(
        default=MIN_CHARACTER_LEVEL,
        ge=MIN_CHARACTER_LEVEL,
        le=MAX_CHARACTER_LEVEL,
        description="Character level",
    )
    stats: Stats = Field(default_factory=Stats, description="Ability scores")
    hit_points: int = Field(default=DEFAULT_BASE_HIT_POINTS, ge=1, description="Hit points")
    armor_class: int = Field(default=BASE_ARMOR_CLASS, ge=1, description="Armor class")
    proficiency_bonus: int = Field(
        default=DEFAULT_PROFICIENCY_BONUS,
        ge=MIN_PROFICIENCY_BONUS,
        le=MAX_PROFICIENCY_BONUS,
        description="Proficiency bonus",
    )
    backstory: str = Field(default="", description="Backstory")
    notes: str = Field(default="", description="Player notes")

    @model_validator(mode="before")
    @classmethod
    def drop_unset_hit_points(cls, data: Any) -> Any:
        """Treat a zero hit point placeholder as not yet derived."""
        if not isinstance(data, dict):
            return data
        for key in ("hitPoints", "hit_points"):
            if key in data and data[key] in (0, None):
                data = {k: v for k, v in data.items() if k != key}
        return data

    @property
    def modifiers(self) -> dict[Ability, int]:
        """Ability modifiers computed from the current scores."""
        return {ability: self.stats.get_modifier(ability) for ability in Ability}

    @property
    def search_fields(self) -> tuple[str, ...]:
        return (self.name, self.backstory)

    def derived_values(self, base_hp: int = DEFAULT_BASE_HIT_POINTS) -> dict[str, int]:
        """Compute hit points, armor class and proficiency bonus from stats.

        Args:
            base_hp: Base hit points before the constitution modifier.

        Returns:
            Field name to derived value.
        """
        return {
            "hit_points": calculate_hit_points(base_hp, self.stats.constitution),
            "armor_class": calculate_armor_class(self.stats.dexterity),
            "proficiency_bonus": proficiency_bonus_for_level(self.level),
        }

    def with_derived_defaults(self, base_hp: int = DEFAULT_BASE_HIT_POINTS) -> Character:
        """Fill derived fields the caller did not set explicitly.

        Values the caller supplied are kept as manual overrides.

        Args:
            base_hp: Base hit points before the constitution modifier.

        Returns:
            A copy with unset derived fields computed from stats and level.
        """
        missing = {
            name: value
            for name, value in self.derived_values(base_hp).items()
            if name not in self.model_fields_set
        }
        if not missing:
            return self
        return self.model_copy(update=missing)

    def recalculated(self, base_hp: int = DEFAULT_BASE_HIT_POINTS) -> Character:
        """Recompute every derived field, discarding manual overrides."""
        return self.model_copy(update=self.derived_values(base_hp))


__all__ = [
    "AbilityScore",
    "Character",
    "Stats",
    "clamp_ability_score",
]
