"""Entity store for QuestKeeper.

The StoreEngine owns all in-memory state and its write-through persistence.
The views module holds the pure filters screens use to derive lists from it.
"""

from questkeeper.store.engine import StoreEngine
from questkeeper.store.views import (
    filter_by_tags,
    filter_by_types,
    filter_content,
    filter_notes,
    matches_search,
    notes_for_campaign,
    orphaned_notes,
    search,
)


__all__ = [
    "StoreEngine",
    "filter_by_tags",
    "filter_by_types",
    "filter_content",
    "filter_notes",
    "matches_search",
    "notes_for_campaign",
    "orphaned_notes",
    "search",
]
