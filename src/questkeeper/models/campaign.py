"""Campaign and content library schemas."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

from questkeeper.models.enums import ContentType
from questkeeper.models.records import BlankAsNone, Record


class Campaign(Record):
    """A campaign notebook that notes belong to.

    Attributes:
        name: Campaign name.
        description: Free-text description.
        session_count: Number of sessions played.
        is_active: Whether the campaign is still running.
    """

    name: str = Field(default="", description="Campaign name")
    description: str = Field(default="", description="Campaign description")
    session_count: int = Field(default=0, ge=0, description="Sessions played")
    is_active: bool = Field(default=True, description="Campaign is running")

    @property
    def search_fields(self) -> tuple[str, ...]:
        return (self.name, self.description)


class ContentItem(Record):
    """A homebrew entry in the content library.

    Attributes:
        name: Entry name.
        description: Free-text description.
        content_type: Kind of content (serialized as ``type``).
    """

    name: str = Field(default="", description="Content name")
    description: str = Field(default="", description="Content description")
    content_type: Annotated[ContentType | None, BlankAsNone] = Field(
        default=None,
        alias="type",
        description="Content type",
    )

    @property
    def search_fields(self) -> tuple[str, ...]:
        return (self.name, self.description)


__all__ = [
    "Campaign",
    "ContentItem",
]
