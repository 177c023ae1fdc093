"""Campaign note schemas.

A note is a tagged variant discriminated by ``isQuest``:

- ``PlainNote`` holds free-text ``content``.
- ``QuestNote`` holds a structured quest (description, newline-delimited
  objectives, rewards). Its ``content`` is computed from the quest
  description at read time and emitted on serialization, so list views that
  only know about ``content`` keep working without a duplicated field.

Example:
    >>> quest = NOTE_ADAPTER.validate_python(
    ...     {"title": "The Amulet", "isQuest": True, "questDescription": "Find the amulet"}
    ... )
    >>> quest.content
    'Find the amulet'
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Discriminator, Field, Tag, TypeAdapter, computed_field, field_validator

from questkeeper.models.enums import NoteTag
from questkeeper.models.records import Record


class NoteBase(Record):
    """Fields shared by both note variants.

    Attributes:
        title: Note or quest title.
        tags: Ordered, de-duplicated tags.
        campaign_id: Id of the owning campaign.
    """

    title: str = Field(default="", description="Note title")
    tags: list[NoteTag] = Field(default_factory=list, description="Note tags")
    campaign_id: str | None = Field(default=None, description="Owning campaign id")

    @field_validator("tags", mode="after")
    @classmethod
    def dedupe_tags(cls, value: list[NoteTag]) -> list[NoteTag]:
        """Drop repeated tags, keeping first occurrence order."""
        return list(dict.fromkeys(value))


class PlainNote(NoteBase):
    """A free-text campaign note."""

    is_quest: Literal[False] = False
    content: str = Field(default="", description="Note body")

    @property
    def search_fields(self) -> tuple[str, ...]:
        return (self.title, self.content)


class QuestNote(NoteBase):
    """A structured quest note.

    Attributes:
        quest_description: Quest summary; also the note's display content.
        quest_objectives: Objectives, one per line.
        quest_rewards: Free-text rewards.
    """

    is_quest: Literal[True] = True
    quest_description: str = Field(default="", description="Quest description")
    quest_objectives: str = Field(default="", description="Newline-delimited objectives")
    quest_rewards: str = Field(default="", description="Quest rewards")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def content(self) -> str:
        """Display content, always equal to the quest description."""
        return self.quest_description

    @property
    def objectives(self) -> list[str]:
        """Objectives split into lines, blank lines dropped."""
        return [line.strip() for line in self.quest_objectives.splitlines() if line.strip()]

    @property
    def search_fields(self) -> tuple[str, ...]:
        return (self.title, self.content)


def note_variant(value: Any) -> str:
    """Pick the note variant for raw input or an existing model.

    Args:
        value: A mapping (camelCase or snake_case keys) or a note instance.

    Returns:
        ``"quest"`` or ``"plain"``.
    """
    if isinstance(value, dict):
        flag = value.get("isQuest", value.get("is_quest", False))
    else:
        flag = getattr(value, "is_quest", False)
    return "quest" if flag else "plain"


Note = Annotated[
    Annotated[PlainNote, Tag("plain")] | Annotated[QuestNote, Tag("quest")],
    Discriminator(note_variant),
]

NOTE_ADAPTER: TypeAdapter[PlainNote | QuestNote] = TypeAdapter(Note)


__all__ = [
    "NOTE_ADAPTER",
    "Note",
    "NoteBase",
    "PlainNote",
    "QuestNote",
    "note_variant",
]
