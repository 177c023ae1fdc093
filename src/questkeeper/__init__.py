"""QuestKeeper - persisted record keeping for tabletop RPG campaigns.

Keeps characters, campaigns, campaign notes and a homebrew content library
in memory and writes every change through to a durable key/value store.

ARCHITECTURE:
- StoreEngine owns the four collections and the current selections
- Records are frozen pydantic models; updates replace them wholesale
- Each collection has a single writer, so the newest snapshot always wins
- Views are pure functions over what the store returns

Example:
    >>> from questkeeper import StoreEngine, MemoryBackend
    >>>
    >>> store = StoreEngine(MemoryBackend())
    >>> await store.initialize()
    >>> hero = store.add_character(name="Thorin", race="Dwarf", stats={"Constitution": 14})
    >>> hero.hit_points
    12

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 record schemas and derivation rules.
    storage: Key/value backends and the per-collection writer.
    store: The StoreEngine and filter/search views.
    ai: Character and quest suggestions via OpenRouter.
    engine: Ability score dice.
"""

from __future__ import annotations

# Core
from questkeeper.core.config import Settings, get_settings
from questkeeper.core.exceptions import QuestKeeperError
from questkeeper.core.logging import configure_logging, get_logger

# Models
from questkeeper.models import (
    Ability,
    Campaign,
    Character,
    CharacterClass,
    CollectionKind,
    ContentItem,
    ContentType,
    NoteTag,
    PlainNote,
    QuestNote,
    Race,
    Stats,
)

# Storage
from questkeeper.storage import MemoryBackend, SQLiteBackend, create_backend

# Store
from questkeeper.store import StoreEngine


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "QuestKeeperError",
    "Settings",
    "configure_logging",
    "get_logger",
    "get_settings",
    # Models
    "Ability",
    "Campaign",
    "Character",
    "CharacterClass",
    "CollectionKind",
    "ContentItem",
    "ContentType",
    "NoteTag",
    "PlainNote",
    "QuestNote",
    "Race",
    "Stats",
    # Storage
    "MemoryBackend",
    "SQLiteBackend",
    "create_backend",
    # Store
    "StoreEngine",
]
