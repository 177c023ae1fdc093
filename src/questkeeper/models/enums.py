"""Enumeration types for QuestKeeper.

Closed vocabularies shared by the store and its callers: character races
and classes, the six ability names, note tags and content library types.
Values are the display strings persisted in the collection snapshots.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """D&D 5E ability scores.

    Values are the keys used in a character's ``stats`` mapping.
    """

    STR = "Strength"
    DEX = "Dexterity"
    CON = "Constitution"
    INT = "Intelligence"
    WIS = "Wisdom"
    CHA = "Charisma"

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'STR').
        """
        return self.name


class Race(StrEnum):
    """Playable character races."""

    HUMAN = "Human"
    ELF = "Elf"
    DWARF = "Dwarf"
    HALFLING = "Halfling"
    DRAGONBORN = "Dragonborn"
    GNOME = "Gnome"
    HALF_ELF = "Half-Elf"
    HALF_ORC = "Half-Orc"
    TIEFLING = "Tiefling"


class CharacterClass(StrEnum):
    """Playable character classes."""

    BARBARIAN = "Barbarian"
    BARD = "Bard"
    CLERIC = "Cleric"
    DRUID = "Druid"
    FIGHTER = "Fighter"
    MONK = "Monk"
    PALADIN = "Paladin"
    RANGER = "Ranger"
    ROGUE = "Rogue"
    SORCERER = "Sorcerer"
    WARLOCK = "Warlock"
    WIZARD = "Wizard"


class NoteTag(StrEnum):
    """Tags a campaign note can carry."""

    LOCATION = "Location"
    NPC = "NPC"
    QUEST = "Quest"
    COMBAT = "Combat"
    LORE = "Lore"
    MAGIC_ITEM = "Magic Item"
    IMPORTANT = "Important"


class ContentType(StrEnum):
    """Kinds of homebrew content in the library."""

    SPELL = "Spell"
    ITEM = "Item"
    NPC = "NPC"
    MONSTER = "Monster"
    LOCATION = "Location"
    QUEST = "Quest"


class CollectionKind(StrEnum):
    """The four persisted collections.

    Values double as the backing store keys.
    """

    CHARACTERS = "characters"
    CAMPAIGNS = "campaigns"
    NOTES = "notes"
    CONTENT_ITEMS = "contentItems"


__all__ = [
    "Ability",
    "Race",
    "CharacterClass",
    "NoteTag",
    "ContentType",
    "CollectionKind",
]
