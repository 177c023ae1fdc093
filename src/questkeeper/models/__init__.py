"""Pydantic V2 schemas for QuestKeeper.

The data model for the four persisted collections, the closed vocabularies
they draw from, and the pure derivation functions for character values.

Submodules:
    enums: Closed vocabularies (Race, CharacterClass, NoteTag, ContentType...)
    derivations: Ability modifier, hit point and armor class calculations
    records: Base record with id and timestamps
    character: Character sheet and ability scores
    campaign: Campaign and content library item
    note: Plain and quest note variants
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from questkeeper.models.enums import (
    Ability,
    CharacterClass,
    CollectionKind,
    ContentType,
    NoteTag,
    Race,
)

# =============================================================================
# Derivations
# =============================================================================
from questkeeper.models.derivations import (
    calculate_armor_class,
    calculate_hit_points,
    calculate_modifier,
    format_modifier,
    proficiency_bonus_for_level,
)

# =============================================================================
# Records
# =============================================================================
from questkeeper.models.records import Record, utc_now
from questkeeper.models.character import Character, Stats, clamp_ability_score
from questkeeper.models.campaign import Campaign, ContentItem
from questkeeper.models.note import NOTE_ADAPTER, Note, PlainNote, QuestNote


__all__ = [
    # === Enumerations ===
    "Ability",
    "CharacterClass",
    "CollectionKind",
    "ContentType",
    "NoteTag",
    "Race",
    # === Derivations ===
    "calculate_modifier",
    "calculate_hit_points",
    "calculate_armor_class",
    "proficiency_bonus_for_level",
    "format_modifier",
    # === Records ===
    "Record",
    "utc_now",
    "Character",
    "Stats",
    "clamp_ability_score",
    "Campaign",
    "ContentItem",
    "NOTE_ADAPTER",
    "Note",
    "PlainNote",
    "QuestNote",
]
