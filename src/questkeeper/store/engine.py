"""Entity store engine.

The StoreEngine is the single source of truth for the four collections
(characters, campaigns, notes, content items) and the two current-selection
pointers. State lives in memory; every mutation is applied synchronously and
followed by a write-through of the affected collection's full snapshot to
the backing store.

LIFECYCLE:
- Construct with a backend (the application root owns the instance)
- ``await initialize()`` loads all collections; ``loading`` is True meanwhile
- Mutate with add / update / delete; persistence happens in the background
- ``await close()`` flushes pending writes

Example:
    >>> store = StoreEngine(MemoryBackend())
    >>> await store.initialize()
    >>> campaign = store.add_campaign(name="Lost Mines")
    >>> store.set_current(CollectionKind.CAMPAIGNS, campaign)
    >>> note = store.add_note(title="Gundren", tags=["NPC"])
    >>> note.campaign_id == campaign.id
    True
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from questkeeper.core.config import StoreSettings, get_settings
from questkeeper.core.exceptions import (
    RecordValidationError,
    ReferentialIntegrityError,
    StoreClosedError,
    ValidationError,
)
from questkeeper.core.logging import get_logger, log_context
from questkeeper.models.campaign import Campaign, ContentItem
from questkeeper.models.character import Character
from questkeeper.models.enums import CollectionKind
from questkeeper.models.note import NOTE_ADAPTER, PlainNote, QuestNote
from questkeeper.models.records import (
    Record,
    field_name_map,
    new_record_id,
    next_timestamp,
    normalize_keys,
    strip_immutable,
    utc_now,
)
from questkeeper.storage.backends import KeyValueBackend
from questkeeper.storage.writer import CollectionWriter


logger = get_logger(__name__)


# =============================================================================
# Collection Registry
# =============================================================================


_ADAPTERS: dict[CollectionKind, TypeAdapter[Any]] = {
    CollectionKind.CHARACTERS: TypeAdapter(Character),
    CollectionKind.CAMPAIGNS: TypeAdapter(Campaign),
    CollectionKind.NOTES: NOTE_ADAPTER,
    CollectionKind.CONTENT_ITEMS: TypeAdapter(ContentItem),
}

_FIELD_NAMES: dict[CollectionKind, dict[str, str]] = {
    CollectionKind.CHARACTERS: field_name_map(Character),
    CollectionKind.CAMPAIGNS: field_name_map(Campaign),
    CollectionKind.NOTES: field_name_map(PlainNote, QuestNote),
    CollectionKind.CONTENT_ITEMS: field_name_map(ContentItem),
}

_SELECTABLE = frozenset({CollectionKind.CHARACTERS, CollectionKind.CAMPAIGNS})

_STORE_ASSIGNED = ("id", "created_at", "updated_at")


# =============================================================================
# Store Engine
# =============================================================================


class StoreEngine:
    """In-memory entity store with write-through persistence.

    Unknown ids are never an error: update and delete on a missing record
    are silent no-ops. Persistence failures are logged by the collection
    writers and never reach the caller; in-memory state stays authoritative
    for the rest of the session.

    Attributes:
        settings: Store behavior settings.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        settings: StoreSettings | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            backend: Durable key/value backing store.
            settings: Store settings. Defaults to the application settings.
        """
        self.settings = settings or get_settings().store
        self._backend = backend
        self._collections: dict[CollectionKind, list[Any]] = {
            kind: [] for kind in CollectionKind
        }
        self._writers: dict[CollectionKind, CollectionWriter] = {
            kind: CollectionWriter(backend, kind.value) for kind in CollectionKind
        }
        self._current: dict[CollectionKind, str | None] = {kind: None for kind in _SELECTABLE}
        self._unreadable: dict[CollectionKind, list[Any]] = {kind: [] for kind in CollectionKind}
        self._held: set[CollectionKind] = set()
        self._loading = False
        self._closed = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def loading(self) -> bool:
        """True while the initial load is in progress."""
        return self._loading

    @property
    def closed(self) -> bool:
        """True once :meth:`close` has been called."""
        return self._closed

    async def initialize(self) -> None:
        """Load all four collections from the backing store in parallel.

        Replaces the in-memory collections. A collection that cannot be read
        or parsed loads as empty. Rows that fail validation are held aside
        and written back with every later snapshot, so a load never loses
        stored data. ``loading`` is cleared whatever happens.
        """
        self._loading = True
        logger.info("Loading collections")
        self._held.clear()
        try:
            kinds = list(CollectionKind)
            loaded = await asyncio.gather(*(self._load(kind) for kind in kinds))
            for kind, (records, unreadable) in zip(kinds, loaded):
                self._collections[kind] = records
                self._unreadable[kind] = unreadable
        finally:
            self._loading = False

        for kind in _SELECTABLE:
            if self._current[kind] is not None and self._resolve_current(kind) is None:
                self._current[kind] = None

        logger.info(
            "Collections loaded",
            **{kind.value: len(self._collections[kind]) for kind in CollectionKind},
        )

    async def flush(self) -> None:
        """Wait for every pending write-through to finish."""
        await asyncio.gather(*(writer.flush() for writer in self._writers.values()))

    async def close(self) -> None:
        """Flush pending writes and reject further mutations."""
        if self._closed:
            return
        await self.flush()
        self._closed = True
        logger.info("Store closed")

    async def __aenter__(self) -> StoreEngine:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def characters(self) -> list[Character]:
        return list(self._collections[CollectionKind.CHARACTERS])

    @property
    def campaigns(self) -> list[Campaign]:
        return list(self._collections[CollectionKind.CAMPAIGNS])

    @property
    def notes(self) -> list[PlainNote | QuestNote]:
        return list(self._collections[CollectionKind.NOTES])

    @property
    def content_items(self) -> list[ContentItem]:
        return list(self._collections[CollectionKind.CONTENT_ITEMS])

    def all(self, kind: CollectionKind | str) -> list[Any]:
        """Get a copy of a collection in insertion order."""
        return list(self._collections[CollectionKind(kind)])

    def get(self, kind: CollectionKind | str, record_id: str) -> Any | None:
        """Get a record by id, or None if absent."""
        collection = self._collections[CollectionKind(kind)]
        index = self._index_of(collection, record_id)
        return None if index is None else collection[index]

    def unreadable(self, kind: CollectionKind | str) -> list[Any]:
        """Raw stored rows of a collection that failed validation on load.

        They are not visible as records but are kept in storage until
        :meth:`discard_unreadable` is called.
        """
        return list(self._unreadable[CollectionKind(kind)])

    @property
    def current_character(self) -> Character | None:
        """The selected character, resolved against the live collection."""
        return self._resolve_current(CollectionKind.CHARACTERS)

    @property
    def current_campaign(self) -> Campaign | None:
        """The selected campaign, resolved against the live collection."""
        return self._resolve_current(CollectionKind.CAMPAIGNS)

    @property
    def current_campaign_id(self) -> str | None:
        return self._current[CollectionKind.CAMPAIGNS]

    # =========================================================================
    # Generic Mutations
    # =========================================================================

    def add(self, kind: CollectionKind | str, draft: Mapping[str, Any] | None = None) -> Any:
        """Create a record from a draft and append it to its collection.

        Args:
            kind: Target collection.
            draft: Field values, camelCase or snake_case keys. Any id or
                timestamps in the draft are replaced.

        Returns:
            The stored record.

        Raises:
            RecordValidationError: If the draft cannot form a valid record.
            ReferentialIntegrityError: If a note's campaign cannot be resolved.
            StoreClosedError: If the store has been closed.
        """
        kind = CollectionKind(kind)
        self._ensure_open()

        data = normalize_keys(draft or {}, _FIELD_NAMES[kind])
        for name in _STORE_ASSIGNED:
            data.pop(name, None)

        now = utc_now()
        data.update(id=new_record_id(), created_at=now, updated_at=now)

        if kind is CollectionKind.NOTES:
            data["campaign_id"] = self._resolve_campaign_id(data.get("campaign_id"))

        record = self._validate(kind, data)
        if isinstance(record, Character):
            record = record.with_derived_defaults(self.settings.base_hit_points)

        self._collections[kind].append(record)
        self._persist(kind)

        logger.info("Record added", collection=kind.value, record_id=record.id)
        return record

    def update(
        self,
        kind: CollectionKind | str,
        record_id: str,
        patch: Mapping[str, Any] | None = None,
    ) -> Any | None:
        """Shallow-merge a patch into an existing record.

        ``id`` and ``createdAt`` in the patch are ignored; ``updatedAt`` is
        always refreshed. For characters, hit points and armor class are
        recomputed when stats change unless the patch sets them, and the
        proficiency bonus likewise follows level.

        Args:
            kind: Target collection.
            record_id: Id of the record to update.
            patch: Field values to apply.

        Returns:
            The updated record, or None if no record has that id.

        Raises:
            RecordValidationError: If the merged record is invalid.
            ReferentialIntegrityError: If a note is moved to an unknown campaign.
            StoreClosedError: If the store has been closed.
        """
        kind = CollectionKind(kind)
        self._ensure_open()

        collection = self._collections[kind]
        index = self._index_of(collection, record_id)
        if index is None:
            logger.debug("Update ignored, record not found", collection=kind.value, record_id=record_id)
            return None

        previous = collection[index]
        changes = strip_immutable(normalize_keys(patch or {}, _FIELD_NAMES[kind]))
        changes.pop("updated_at", None)

        if kind is CollectionKind.NOTES and "campaign_id" in changes:
            if changes["campaign_id"] != previous.campaign_id:
                self._require_campaign(changes["campaign_id"])

        data = previous.model_dump()
        data.update(changes)
        data["updated_at"] = next_timestamp(previous.updated_at)

        record = self._validate(kind, data)
        if isinstance(record, Character):
            record = self._rederive(previous, record, changes)

        collection[index] = record
        self._persist(kind)

        logger.info("Record updated", collection=kind.value, record_id=record_id)
        return record

    def delete(
        self,
        kind: CollectionKind | str,
        record_id: str,
        *,
        cascade: bool | None = None,
    ) -> bool:
        """Remove a record.

        Clears the current selection if it pointed at the removed record.
        Deleting a campaign leaves its notes in place unless ``cascade`` is
        True (default: the ``cascade_campaign_delete`` setting).

        Args:
            kind: Target collection.
            record_id: Id of the record to delete.
            cascade: Also delete a campaign's notes.

        Returns:
            True if a record was removed, False if none had that id.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        kind = CollectionKind(kind)
        self._ensure_open()

        collection = self._collections[kind]
        index = self._index_of(collection, record_id)
        if index is None:
            logger.debug("Delete ignored, record not found", collection=kind.value, record_id=record_id)
            return False

        del collection[index]
        if kind in _SELECTABLE and self._current[kind] == record_id:
            self._current[kind] = None
        self._persist(kind)

        logger.info("Record deleted", collection=kind.value, record_id=record_id)

        if kind is CollectionKind.CAMPAIGNS:
            if cascade is None:
                cascade = self.settings.cascade_campaign_delete
            if cascade:
                self._delete_campaign_notes(record_id)

        return True

    def set_current(self, kind: CollectionKind | str, record: Record | str | None) -> None:
        """Select the current character or campaign.

        The selection lives in memory only and is never persisted.

        Args:
            kind: ``characters`` or ``campaigns``.
            record: The record (or its id) to select, or None to clear.

        Raises:
            ValidationError: If ``kind`` has no current selection, or the id
                names no record in the collection.
        """
        kind = CollectionKind(kind)
        if kind not in _SELECTABLE:
            raise ValidationError(
                f"{kind.value} has no current selection",
                field_name="kind",
                invalid_value=kind.value,
            )
        record_id = record.id if isinstance(record, Record) else record
        if record_id is not None and self.get(kind, record_id) is None:
            raise ValidationError(
                f"No {kind.value} record to select",
                field_name="record_id",
                invalid_value=record_id,
            )
        self._current[kind] = record_id
        logger.debug("Current selection changed", collection=kind.value, record_id=record_id)

    def discard_unreadable(self, kind: CollectionKind | str) -> int:
        """Drop the held-aside rows of a collection from storage.

        Returns:
            Number of rows discarded.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        kind = CollectionKind(kind)
        self._ensure_open()

        count = len(self._unreadable[kind])
        if count:
            self._unreadable[kind] = []
            self._persist(kind)
            logger.info("Unreadable records discarded", collection=kind.value, count=count)
        return count

    # =========================================================================
    # Typed Helpers
    # =========================================================================

    def add_character(self, draft: Mapping[str, Any] | None = None, **fields: Any) -> Character:
        return self.add(CollectionKind.CHARACTERS, {**(draft or {}), **fields})

    def update_character(
        self, character_id: str, patch: Mapping[str, Any] | None = None, **fields: Any
    ) -> Character | None:
        return self.update(CollectionKind.CHARACTERS, character_id, {**(patch or {}), **fields})

    def delete_character(self, character_id: str) -> bool:
        return self.delete(CollectionKind.CHARACTERS, character_id)

    def add_campaign(self, draft: Mapping[str, Any] | None = None, **fields: Any) -> Campaign:
        return self.add(CollectionKind.CAMPAIGNS, {**(draft or {}), **fields})

    def update_campaign(
        self, campaign_id: str, patch: Mapping[str, Any] | None = None, **fields: Any
    ) -> Campaign | None:
        return self.update(CollectionKind.CAMPAIGNS, campaign_id, {**(patch or {}), **fields})

    def delete_campaign(self, campaign_id: str, *, cascade: bool | None = None) -> bool:
        return self.delete(CollectionKind.CAMPAIGNS, campaign_id, cascade=cascade)

    def add_note(
        self, draft: Mapping[str, Any] | None = None, **fields: Any
    ) -> PlainNote | QuestNote:
        return self.add(CollectionKind.NOTES, {**(draft or {}), **fields})

    def update_note(
        self, note_id: str, patch: Mapping[str, Any] | None = None, **fields: Any
    ) -> PlainNote | QuestNote | None:
        return self.update(CollectionKind.NOTES, note_id, {**(patch or {}), **fields})

    def delete_note(self, note_id: str) -> bool:
        return self.delete(CollectionKind.NOTES, note_id)

    def add_content_item(self, draft: Mapping[str, Any] | None = None, **fields: Any) -> ContentItem:
        return self.add(CollectionKind.CONTENT_ITEMS, {**(draft or {}), **fields})

    def update_content_item(
        self, item_id: str, patch: Mapping[str, Any] | None = None, **fields: Any
    ) -> ContentItem | None:
        return self.update(CollectionKind.CONTENT_ITEMS, item_id, {**(patch or {}), **fields})

    def delete_content_item(self, item_id: str) -> bool:
        return self.delete(CollectionKind.CONTENT_ITEMS, item_id)

    # =========================================================================
    # Internals
    # =========================================================================

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Store is closed")

    @staticmethod
    def _index_of(collection: list[Any], record_id: str) -> int | None:
        for index, record in enumerate(collection):
            if record.id == record_id:
                return index
        return None

    def _resolve_current(self, kind: CollectionKind) -> Any | None:
        record_id = self._current[kind]
        if record_id is None:
            return None
        return self.get(kind, record_id)

    def _validate(self, kind: CollectionKind, data: dict[str, Any]) -> Any:
        try:
            return _ADAPTERS[kind].validate_python(data)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            raise RecordValidationError(
                f"Invalid {kind.value} record: {first['msg']}",
                collection=kind.value,
                field_name=".".join(str(part) for part in first["loc"]),
                invalid_value=first.get("input"),
            ) from exc

    def _campaign_exists(self, campaign_id: str) -> bool:
        return self._index_of(self._collections[CollectionKind.CAMPAIGNS], campaign_id) is not None

    def _require_campaign(self, campaign_id: str | None) -> str:
        if campaign_id is None or not self._campaign_exists(campaign_id):
            raise ReferentialIntegrityError(
                "Note must belong to an existing campaign",
                campaign_id=campaign_id,
            )
        return campaign_id

    def _resolve_campaign_id(self, campaign_id: str | None) -> str:
        if campaign_id is None:
            campaign_id = self.current_campaign_id
        return self._require_campaign(campaign_id)

    def _rederive(self, previous: Character, record: Character, changes: dict[str, Any]) -> Character:
        derived = record.derived_values(self.settings.base_hit_points)
        refresh: dict[str, int] = {}
        stats_changed = record.stats != previous.stats
        for name in ("hit_points", "armor_class"):
            if name not in record.model_fields_set or (stats_changed and name not in changes):
                refresh[name] = derived[name]
        if record.level != previous.level and "proficiency_bonus" not in changes:
            refresh["proficiency_bonus"] = derived["proficiency_bonus"]
        if not refresh:
            return record
        return record.model_copy(update=refresh)

    def _delete_campaign_notes(self, campaign_id: str) -> None:
        notes = self._collections[CollectionKind.NOTES]
        kept = [note for note in notes if note.campaign_id != campaign_id]
        removed = len(notes) - len(kept)
        if removed:
            self._collections[CollectionKind.NOTES] = kept
            self._persist(CollectionKind.NOTES)
            logger.info("Campaign notes deleted", campaign_id=campaign_id, count=removed)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _serialize(self, kind: CollectionKind) -> str:
        rows = [record.to_json_dict() for record in self._collections[kind]]
        return json.dumps(rows + self._unreadable[kind])

    def _persist(self, kind: CollectionKind) -> None:
        if self._loading:
            logger.warning("Mutation during initial load", collection=kind.value)
        if kind in self._held:
            logger.warning("Write-through held, stored snapshot was not read", collection=kind.value)
            return
        self._writers[kind].submit(self._serialize(kind))

    async def _load(self, kind: CollectionKind) -> tuple[list[Any], list[Any]]:
        with log_context(collection=kind.value):
            try:
                raw = await self._backend.get(kind.value)
            except Exception as exc:
                logger.error("Failed to read collection", error=str(exc))
                self._held.add(kind)
                return [], []
            if raw is None:
                return [], []

            items = self._decode(raw)
            if items is None:
                await self._preserve_snapshot(kind, raw)
                return [], []
            return self._deserialize(kind, items)

    @staticmethod
    def _decode(raw: str) -> list[Any] | None:
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Corrupt collection snapshot", error=str(exc))
            return None
        if not isinstance(items, list):
            logger.warning("Collection snapshot is not a list")
            return None
        return items

    async def _preserve_snapshot(self, kind: CollectionKind, raw: str) -> None:
        backup_key = f"{kind.value}.unreadable.{utc_now():%Y%m%dT%H%M%S%f}"
        try:
            await self._backend.set(backup_key, raw)
        except Exception as exc:
            logger.error("Failed to preserve corrupt snapshot", error=str(exc))
            self._held.add(kind)
            return
        logger.warning("Corrupt snapshot moved aside", backup_key=backup_key)

    def _deserialize(self, kind: CollectionKind, items: list[Any]) -> tuple[list[Any], list[Any]]:
        records: list[Any] = []
        unreadable: list[Any] = []
        seen: set[str] = set()
        for position, item in enumerate(items):
            try:
                record = _ADAPTERS[kind].validate_python(item)
            except PydanticValidationError as exc:
                logger.warning("Holding invalid record aside", position=position, error=str(exc))
                unreadable.append(item)
                continue
            if record.id in seen:
                logger.warning("Holding duplicate record id aside", record_id=record.id)
                unreadable.append(item)
                continue
            if isinstance(record, Character):
                record = record.with_derived_defaults(self.settings.base_hit_points)
            seen.add(record.id)
            records.append(record)
        return records, unreadable


__all__ = [
    "StoreEngine",
]
