"""Derived, read-only views over store collections.

Pure functions: each takes records already read from the store and returns
a new list, leaving the input untouched and preserving insertion order.

Matching rules:
- Free-text search is a case-insensitive substring match against a
  record's ``search_fields`` (title/content for notes, name/description
  for campaigns and content items, name/backstory for characters).
- Tag filtering uses OR semantics: a note passes if it carries any of the
  requested tags. An empty tag set passes everything.
- Search and tag/type filters combine with AND.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar

from questkeeper.models.campaign import Campaign, ContentItem
from questkeeper.models.enums import ContentType, NoteTag
from questkeeper.models.note import PlainNote, QuestNote
from questkeeper.models.records import Record


R = TypeVar("R", bound=Record)

AnyNote = PlainNote | QuestNote


# =============================================================================
# Primitive Filters
# =============================================================================


def matches_search(record: Record, query: str | None) -> bool:
    """Check whether a record matches a free-text query.

    Args:
        record: Record to test.
        query: Search text, matched as typed. Empty or None matches everything.

    Returns:
        True if any search field contains the query, ignoring case.
    """
    if not query:
        return True
    needle = query.casefold()
    return any(needle in text.casefold() for text in record.search_fields)


def search(records: Iterable[R], query: str | None) -> list[R]:
    """Keep records matching a free-text query."""
    return [record for record in records if matches_search(record, query)]


def filter_by_tags(notes: Iterable[AnyNote], tags: Iterable[NoteTag | str] | None) -> list[AnyNote]:
    """Keep notes carrying at least one of ``tags``.

    Args:
        notes: Notes to filter.
        tags: Requested tags. Empty or None keeps every note.

    Returns:
        Matching notes in their original order.

    Raises:
        ValueError: If a tag is not a known note tag.
    """
    wanted = {NoteTag(tag) for tag in tags or ()}
    if not wanted:
        return list(notes)
    return [note for note in notes if wanted.intersection(note.tags)]


def filter_by_types(
    items: Iterable[ContentItem],
    types: Iterable[ContentType | str] | None,
) -> list[ContentItem]:
    """Keep content items whose type is one of ``types``.

    Items without a type only pass when no type filter is given.
    """
    wanted = {ContentType(kind) for kind in types or ()}
    if not wanted:
        return list(items)
    return [item for item in items if item.content_type in wanted]


# =============================================================================
# Screen Views
# =============================================================================


def notes_for_campaign(notes: Iterable[AnyNote], campaign_id: str | None) -> list[AnyNote]:
    """Get the notes belonging to a campaign.

    Args:
        notes: All notes.
        campaign_id: Campaign id. None yields an empty list.

    Returns:
        The campaign's notes in insertion order.
    """
    if campaign_id is None:
        return []
    return [note for note in notes if note.campaign_id == campaign_id]


def filter_notes(
    notes: Iterable[AnyNote],
    *,
    campaign_id: str | None = None,
    query: str | None = None,
    tags: Iterable[NoteTag | str] | None = None,
) -> list[AnyNote]:
    """Notebook view: campaign scope, then search AND tags.

    Args:
        notes: All notes.
        campaign_id: Restrict to one campaign when given.
        query: Free-text search over title and content.
        tags: Tag filter with OR semantics.

    Returns:
        Notes passing every given filter.
    """
    scoped = notes_for_campaign(notes, campaign_id) if campaign_id is not None else list(notes)
    return filter_by_tags(search(scoped, query), tags)


def filter_content(
    items: Iterable[ContentItem],
    *,
    query: str | None = None,
    types: Iterable[ContentType | str] | None = None,
) -> list[ContentItem]:
    """Content library view: search over name and description AND type."""
    return filter_by_types(search(items, query), types)


def orphaned_notes(notes: Iterable[AnyNote], campaigns: Sequence[Campaign]) -> list[AnyNote]:
    """Get notes whose campaign no longer exists.

    Campaign deletion does not cascade by default, so this surfaces the
    notes that lost their owner.
    """
    known = {campaign.id for campaign in campaigns}
    return [note for note in notes if note.campaign_id not in known]


__all__ = [
    "filter_by_tags",
    "filter_by_types",
    "filter_content",
    "filter_notes",
    "matches_search",
    "notes_for_campaign",
    "orphaned_notes",
    "search",
]
