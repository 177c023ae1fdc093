"""Tests for the character sheet schema."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from questkeeper.models import Ability, Character, CharacterClass, Race, Stats
from questkeeper.models.records import next_timestamp, utc_now


class TestStats:
    """Tests for the Stats model."""

    def test_defaults(self) -> None:
        """Test every ability defaults to 10."""
        stats = Stats()
        assert all(score == 10 for score in stats.as_dict().values())

    def test_accepts_display_names_and_field_names(self) -> None:
        stats = Stats.model_validate({"Strength": 16, "dexterity": 14})
        assert stats.strength == 16
        assert stats.dexterity == 14

    @pytest.mark.parametrize(
        "score,expected",
        [(1, 3), (3, 3), (12, 12), (20, 20), (25, 20)],
    )
    def test_scores_clamped(self, score: int, expected: int) -> None:
        """Test out-of-range scores are clamped into [3, 20]."""
        assert Stats(Constitution=score).constitution == expected

    def test_serialized_with_display_names(self) -> None:
        dumped = Stats(Wisdom=13).model_dump(by_alias=True)
        assert dumped["Wisdom"] == 13
        assert set(dumped) == {ability.value for ability in Ability}

    def test_get_modifier(self) -> None:
        stats = Stats(Charisma=8)
        assert stats.get_score(Ability.CHA) == 8
        assert stats.get_modifier(Ability.CHA) == -1


class TestCharacter:
    """Tests for the Character model."""

    @pytest.fixture
    def hero(self, sample_character_draft: dict) -> Character:
        """Create a character from the wizard draft."""
        return Character.model_validate(sample_character_draft)

    def test_camel_case_aliases(self, hero: Character) -> None:
        assert hero.race is Race.DWARF
        assert hero.character_class is CharacterClass.FIGHTER

    def test_modifiers_computed_from_stats(self, hero: Character) -> None:
        """Test modifiers follow the current ability scores."""
        assert hero.modifiers[Ability.STR] == 3
        assert hero.modifiers[Ability.CON] == 2
        assert hero.modifiers[Ability.CHA] == -1

    def test_serialization_uses_persisted_keys(self, hero: Character) -> None:
        data = hero.to_json_dict()
        assert data["class"] == "Fighter"
        assert data["hitPoints"] == hero.hit_points
        assert data["stats"]["Strength"] == 16
        assert "createdAt" in data
        assert "character_class" not in data

    def test_unknown_race_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Character(race="Ogre")

    def test_blank_race_and_class_unset(self) -> None:
        hero = Character.model_validate({"race": "", "class": "  "})
        assert hero.race is None
        assert hero.character_class is None

    def test_zero_hit_points_left_for_derivation(self) -> None:
        """Test a zero placeholder is treated as not supplied."""
        hero = Character.model_validate({"hitPoints": 0, "stats": {"Constitution": 16}})
        assert "hit_points" not in hero.model_fields_set
        assert hero.with_derived_defaults(10).hit_points == 13

    def test_negative_hit_points_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Character(hit_points=-1)

    @pytest.mark.parametrize("level", [0, 21])
    def test_level_bounds(self, level: int) -> None:
        with pytest.raises(PydanticValidationError):
            Character(level=level)

    def test_with_derived_defaults_fills_unset(self, hero: Character) -> None:
        """Test derived fields are computed when the draft omits them."""
        derived = hero.with_derived_defaults(10)
        assert derived.hit_points == 12
        assert derived.armor_class == 12
        assert derived.proficiency_bonus == 2

    def test_with_derived_defaults_keeps_overrides(self, sample_character_draft: dict) -> None:
        """Test explicitly supplied values are kept as manual overrides."""
        hero = Character.model_validate({**sample_character_draft, "hitPoints": 30})
        derived = hero.with_derived_defaults(10)
        assert derived.hit_points == 30
        assert derived.armor_class == 12

    def test_recalculated_discards_overrides(self, sample_character_draft: dict) -> None:
        hero = Character.model_validate({**sample_character_draft, "armorClass": 18, "level": 5})
        recalculated = hero.recalculated(10)
        assert recalculated.armor_class == 12
        assert recalculated.proficiency_bonus == 3

    def test_frozen(self, hero: Character) -> None:
        with pytest.raises(PydanticValidationError):
            hero.name = "Changed"  # type: ignore[misc]

    def test_updated_before_created_rejected(self) -> None:
        now = utc_now()
        with pytest.raises(PydanticValidationError):
            Character(created_at=now, updated_at=now - timedelta(seconds=1))


class TestTimestamps:
    """Tests for record timestamp helpers."""

    def test_next_timestamp_strictly_later(self) -> None:
        """Test a future timestamp is still superseded."""
        future = utc_now() + timedelta(hours=1)
        assert next_timestamp(future) > future

    def test_next_timestamp_uses_clock(self) -> None:
        past = utc_now() - timedelta(hours=1)
        assert next_timestamp(past) > past + timedelta(minutes=59)
