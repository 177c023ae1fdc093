"""AI suggestion prompts and response parsing.

Generative models are asked for small fixed-shape JSON objects: a character
idea (name, race, class, backstory) or a quest idea (title, description,
objectives, rewards). Responses are untrusted text, so parsing strips
markdown code fences, decodes the JSON and validates it against a pydantic
model. Anything malformed raises ``AIResponseError`` and no record is
created from it.

A parsed suggestion is turned into an ordinary store draft with
``to_draft`` / ``to_note_draft``; it only becomes a record once it goes
through ``StoreEngine.add``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from questkeeper.core.exceptions import AIResponseError
from questkeeper.core.logging import get_logger
from questkeeper.models.character import Stats
from questkeeper.models.enums import CharacterClass, NoteTag, Race


logger = get_logger(__name__)

MAX_NAME_WORDS = 5

QUEST_TYPES = (
    "Rescue Mission",
    "Treasure Hunt",
    "Investigation",
    "Escort Quest",
    "Dungeon Crawl",
    "Political Intrigue",
    "Monster Hunt",
    "Exploration",
)

QUEST_SETTINGS = (
    "Urban",
    "Forest",
    "Mountain",
    "Desert",
    "Coastal",
    "Underground",
    "Magical Realm",
    "Ancient Ruins",
)


# =============================================================================
# Prompts
# =============================================================================


CHARACTER_SUGGESTION_PROMPT = """Act as an expert Dungeons & Dragons Dungeon Master.
Generate a creative D&D 5e character.

Constraints:
- Name: Must be fantasy-based and NOT exceed {max_words} words.
- Race: Choose one from [{races}].
- Class: Choose one from [{classes}].

Return ONLY a JSON object with this exact structure:
{{
  "name": "Character Name",
  "race": "Selected Race",
  "class": "Selected Class",
  "backstory": "A compelling 2-3 sentence backstory."
}}
Do not include markdown code blocks."""

QUEST_SUGGESTION_PROMPT = """Act as an expert Dungeons & Dragons Dungeon Master.
Generate an original quest for a D&D 5e adventuring party.

Constraints:
{constraints}

Return ONLY a JSON object with this exact structure:
{{
  "title": "Quest Title",
  "description": "A 2-4 sentence summary of the situation and the hook.",
  "objectives": ["First objective", "Second objective"],
  "rewards": "What the party gains on success."
}}
Do not include markdown code blocks."""


def build_character_prompt() -> str:
    """Build the character suggestion prompt with the current vocabularies."""
    return CHARACTER_SUGGESTION_PROMPT.format(
        max_words=MAX_NAME_WORDS,
        races=", ".join(race.value for race in Race),
        classes=", ".join(cls.value for cls in CharacterClass),
    )


def build_quest_prompt(
    *,
    quest_type: str | None = None,
    setting: str | None = None,
    party_level: int | None = None,
) -> str:
    """Build the quest suggestion prompt.

    Args:
        quest_type: Kind of quest, e.g. "Treasure Hunt".
        setting: Where the quest takes place, e.g. "Ancient Ruins".
        party_level: Average party level the quest should suit.

    Returns:
        The prompt text.
    """
    constraints = []
    if quest_type:
        constraints.append(f"- Quest type: {quest_type}.")
    if setting:
        constraints.append(f"- Setting: {setting}.")
    if party_level:
        constraints.append(f"- Suitable for a party of level {party_level}.")
    if not constraints:
        constraints.append("- Any quest type and setting.")
    return QUEST_SUGGESTION_PROMPT.format(constraints="\n".join(constraints))


# =============================================================================
# Suggestion Models
# =============================================================================


class CharacterSuggestion(BaseModel):
    """A generated character idea."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    race: Race
    character_class: CharacterClass = Field(alias="class")
    backstory: str = ""

    @field_validator("name", "backstory", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name", mode="after")
    @classmethod
    def check_name_length(cls, value: str) -> str:
        """Reject names longer than the allowed word count."""
        if len(value.split()) > MAX_NAME_WORDS:
            raise ValueError(f"name must not exceed {MAX_NAME_WORDS} words")
        return value

    def to_draft(self, stats: Stats | None = None) -> dict[str, Any]:
        """Convert to a character draft for ``StoreEngine.add_character``.

        Args:
            stats: Ability scores to include, typically rolled locally.

        Returns:
            Draft dict with camelCase keys.
        """
        draft: dict[str, Any] = {
            "name": self.name,
            "race": self.race.value,
            "class": self.character_class.value,
            "backstory": self.backstory,
        }
        if stats is not None:
            draft["stats"] = stats.model_dump(by_alias=True)
        return draft


class QuestSuggestion(BaseModel):
    """A generated quest idea."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = Field(min_length=1)
    description: str = ""
    objectives: list[str] = Field(default_factory=list)
    rewards: str = ""

    @field_validator("objectives", mode="after")
    @classmethod
    def drop_blank_objectives(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]

    def to_note_draft(self, campaign_id: str | None = None) -> dict[str, Any]:
        """Convert to a quest note draft for ``StoreEngine.add_note``.

        Objectives are joined one per line into ``questObjectives``.

        Args:
            campaign_id: Owning campaign. Omitted to let the store use the
                current campaign.

        Returns:
            Draft dict with camelCase keys.
        """
        draft: dict[str, Any] = {
            "title": self.title,
            "isQuest": True,
            "questDescription": self.description,
            "questObjectives": "\n".join(self.objectives),
            "questRewards": self.rewards,
            "tags": [NoteTag.QUEST.value],
        }
        if campaign_id is not None:
            draft["campaignId"] = campaign_id
        return draft


# =============================================================================
# Parsing
# =============================================================================


def strip_code_fences(response: str) -> str:
    """Remove a surrounding markdown code fence from model output."""
    text = response.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    elif text.endswith("```"):
        text = text[:-3].strip()
    return text


def parse_json_object(response: str) -> dict[str, Any]:
    """Parse a JSON object out of model output.

    Args:
        response: Raw response text.

    Returns:
        The decoded object.

    Raises:
        AIResponseError: If the text is not a JSON object.
    """
    text = strip_code_fences(response)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AIResponseError(
            f"Failed to parse JSON from model response: {exc}",
            details={"response_preview": text[:500]},
        ) from exc

    if not isinstance(data, dict):
        raise AIResponseError(
            "Model response is not a JSON object",
            details={"response_preview": text[:500]},
        )
    return data


def parse_character_suggestion(response: str) -> CharacterSuggestion:
    """Parse a character suggestion response.

    Raises:
        AIResponseError: If the response is malformed or off-vocabulary.
    """
    data = parse_json_object(response)
    try:
        return CharacterSuggestion.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning("Invalid character suggestion", errors=exc.error_count())
        raise AIResponseError(f"Invalid character suggestion: {exc}") from exc


def parse_quest_suggestion(response: str) -> QuestSuggestion:
    """Parse a quest suggestion response.

    Raises:
        AIResponseError: If the response is malformed.
    """
    data = parse_json_object(response)
    try:
        return QuestSuggestion.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning("Invalid quest suggestion", errors=exc.error_count())
        raise AIResponseError(f"Invalid quest suggestion: {exc}") from exc


__all__ = [
    "CHARACTER_SUGGESTION_PROMPT",
    "CharacterSuggestion",
    "MAX_NAME_WORDS",
    "QUEST_SETTINGS",
    "QUEST_SUGGESTION_PROMPT",
    "QUEST_TYPES",
    "QuestSuggestion",
    "build_character_prompt",
    "build_quest_prompt",
    "parse_character_suggestion",
    "parse_json_object",
    "parse_quest_suggestion",
    "strip_code_fences",
]
