"""Tests for the StoreEngine."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from questkeeper.core.config import StoreSettings
from questkeeper.core.exceptions import (
    RecordValidationError,
    ReferentialIntegrityError,
    StoreClosedError,
    ValidationError,
)
from questkeeper.models import Campaign, Character, CollectionKind, PlainNote, QuestNote
from questkeeper.storage import MemoryBackend
from questkeeper.store import StoreEngine


def stored_character(record_id: str, **fields: Any) -> dict[str, Any]:
    """Build a character row as the mobile client persists it."""
    return {
        "id": record_id,
        "createdAt": "2024-05-01T12:00:00+00:00",
        "updatedAt": "2024-05-01T12:00:00+00:00",
        "level": 1,
        "stats": {"Constitution": 10},
        **fields,
    }


class TestAdd:
    """Tests for creating records."""

    def test_add_assigns_identity(self, store: StoreEngine, sample_campaign_draft: dict[str, Any]) -> None:
        """Test a new record gets an id and equal timestamps."""
        campaign = store.add_campaign(sample_campaign_draft)

        assert isinstance(campaign, Campaign)
        assert campaign.id
        assert campaign.created_at == campaign.updated_at
        assert store.campaigns == [campaign]

    def test_ids_unique(self, store: StoreEngine) -> None:
        ids = {store.add_campaign(name=f"Campaign {i}").id for i in range(20)}
        assert len(ids) == 20

    def test_draft_identity_replaced(self, store: StoreEngine) -> None:
        """Test a caller cannot choose the id or timestamps."""
        campaign = store.add_campaign({"id": "mine", "createdAt": "2001-01-01T00:00:00Z", "name": "X"})

        assert campaign.id != "mine"
        assert campaign.created_at.year != 2001

    def test_insertion_order_kept(self, store: StoreEngine) -> None:
        names = ["A", "B", "C"]
        for name in names:
            store.add_content_item(name=name, type="Spell")

        assert [item.name for item in store.content_items] == names

    def test_character_derived_values(self, store: StoreEngine, sample_character_draft: dict[str, Any]) -> None:
        """Test hit points, armor class and proficiency are derived from the draft."""
        hero = store.add_character(sample_character_draft)

        assert isinstance(hero, Character)
        assert hero.hit_points == 12
        assert hero.armor_class == 12
        assert hero.proficiency_bonus == 2

    def test_character_supplied_values_kept(self, store: StoreEngine, sample_character_draft: dict[str, Any]) -> None:
        hero = store.add_character({**sample_character_draft, "hitPoints": 44, "armorClass": 18})

        assert hero.hit_points == 44
        assert hero.armor_class == 18

    def test_base_hit_points_setting(self, memory_backend: MemoryBackend) -> None:
        store = StoreEngine(memory_backend, settings=StoreSettings(base_hit_points=8))

        hero = store.add_character(stats={"Constitution": 14})

        assert hero.hit_points == 10

    def test_low_constitution_hit_points(self, store: StoreEngine) -> None:
        hero = store.add_character(stats={"Constitution": 3})
        assert hero.hit_points == 6

    def test_invalid_draft_rejected(self, store: StoreEngine) -> None:
        """Test a bad enum value raises and creates nothing."""
        with pytest.raises(RecordValidationError) as exc_info:
            store.add_character(name="Grog", race="Goliath")

        assert exc_info.value.details["collection"] == "characters"
        assert exc_info.value.details["field_name"] == "race"
        assert store.characters == []

    def test_blank_draft_shape_accepted(self, store: StoreEngine) -> None:
        """Test the creation wizard's empty starting draft can be saved."""
        hero = store.add_character(name="", race="", hitPoints=0, **{"class": ""})

        assert hero.race is None
        assert hero.character_class is None
        assert hero.hit_points == 10

    def test_add_after_close_rejected(self, store: StoreEngine) -> None:
        store._closed = True
        with pytest.raises(StoreClosedError):
            store.add_campaign(name="Too late")


class TestNotes:
    """Tests for note campaign ownership."""

    def test_note_uses_current_campaign(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Lost Mines")
        store.set_current(CollectionKind.CAMPAIGNS, campaign)

        note = store.add_note(title="Gundren", content="Missing dwarf", tags=["NPC"])

        assert isinstance(note, PlainNote)
        assert note.campaign_id == campaign.id

    def test_note_explicit_campaign(self, store: StoreEngine) -> None:
        first = store.add_campaign(name="First")
        second = store.add_campaign(name="Second")
        store.set_current(CollectionKind.CAMPAIGNS, first)

        note = store.add_note(title="Elsewhere", campaignId=second.id)

        assert note.campaign_id == second.id

    def test_note_without_campaign_rejected(self, store: StoreEngine) -> None:
        """Test a note needs an owning campaign."""
        with pytest.raises(ReferentialIntegrityError):
            store.add_note(title="Orphan")

        assert store.notes == []

    def test_note_unknown_campaign_rejected(self, store: StoreEngine) -> None:
        store.add_campaign(name="Real")
        with pytest.raises(ReferentialIntegrityError) as exc_info:
            store.add_note(title="Ghost", campaignId="missing")

        assert exc_info.value.details["campaign_id"] == "missing"

    def test_quest_note(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Lost Mines")
        store.set_current("campaigns", campaign)

        quest = store.add_note(
            title="The Amulet",
            isQuest=True,
            questDescription="Find the amulet",
            questObjectives="Search the crypt\nDefeat the lich",
        )

        assert isinstance(quest, QuestNote)
        assert quest.content == "Find the amulet"
        assert quest.objectives == ["Search the crypt", "Defeat the lich"]

    def test_patch_moves_note_to_existing_campaign(self, store: StoreEngine) -> None:
        first = store.add_campaign(name="First")
        second = store.add_campaign(name="Second")
        note = store.add_note(title="Wanderer", campaignId=first.id)

        moved = store.update_note(note.id, campaignId=second.id)

        assert moved is not None
        assert moved.campaign_id == second.id

    def test_patch_to_unknown_campaign_rejected(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Only")
        note = store.add_note(title="Stay", campaignId=campaign.id)

        with pytest.raises(ReferentialIntegrityError):
            store.update_note(note.id, campaignId="nowhere")

        assert store.get(CollectionKind.NOTES, note.id).campaign_id == campaign.id

    def test_unrelated_update_keeps_campaign(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Only")
        note = store.add_note(title="Stay", campaignId=campaign.id)
        store.set_current(CollectionKind.CAMPAIGNS, store.add_campaign(name="Other"))

        updated = store.update_note(note.id, title="Renamed")

        assert updated.campaign_id == campaign.id

    def test_plain_note_becomes_quest(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Only")
        note = store.add_note(title="Rumor", content="A dragon", campaignId=campaign.id)

        quest = store.update_note(note.id, isQuest=True, questDescription="Slay the dragon")

        assert isinstance(quest, QuestNote)
        assert quest.id == note.id
        assert quest.content == "Slay the dragon"


class TestUpdate:
    """Tests for updating records."""

    def test_patch_applied(self, store: StoreEngine) -> None:
        """Test the patch is applied and updatedAt moves forward."""
        campaign = store.add_campaign(name="Old", description="Keep me")

        updated = store.update_campaign(campaign.id, {"name": "New", "sessionCount": 4})

        assert updated.name == "New"
        assert updated.description == "Keep me"
        assert updated.session_count == 4
        assert updated.created_at == campaign.created_at
        assert updated.updated_at > campaign.updated_at
        assert store.campaigns == [updated]

    def test_content_item_type_by_alias(self, store: StoreEngine) -> None:
        item = store.add_content_item(name="Owlbear", type="Monster")

        updated = store.update_content_item(item.id, type="Item", description="Stuffed")

        assert updated.content_type == "Item"
        assert updated.description == "Stuffed"
        assert updated.to_json_dict()["type"] == "Item"

    def test_id_and_created_at_ignored(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Fixed")

        updated = store.update_campaign(campaign.id, id="other", createdAt="2001-01-01T00:00:00Z")

        assert updated.id == campaign.id
        assert updated.created_at == campaign.created_at

    def test_unknown_id_is_noop(self, store: StoreEngine) -> None:
        store.add_campaign(name="Untouched")
        before = store.campaigns

        assert store.update_campaign("missing", name="X") is None
        assert store.campaigns == before

    def test_invalid_patch_leaves_record(self, store: StoreEngine) -> None:
        hero = store.add_character(name="Vex")

        with pytest.raises(RecordValidationError):
            store.update_character(hero.id, level=30)

        assert store.get(CollectionKind.CHARACTERS, hero.id) == hero

    def test_stats_change_recomputes_derived(self, store: StoreEngine) -> None:
        """Test hit points and armor class follow new stats."""
        hero = store.add_character(name="Vex")

        updated = store.update_character(hero.id, stats={"Constitution": 16, "Dexterity": 18})

        assert updated.hit_points == 13
        assert updated.armor_class == 14

    def test_manual_override_kept_until_stats_change(self, store: StoreEngine) -> None:
        hero = store.add_character(name="Vex")

        overridden = store.update_character(hero.id, hitPoints=25)
        renamed = store.update_character(hero.id, name="Vex'ahlia")

        assert overridden.hit_points == 25
        assert renamed.hit_points == 25

    def test_zero_hit_points_rederived(self, store: StoreEngine) -> None:
        hero = store.add_character(stats={"Constitution": 14}, hitPoints=40)

        updated = store.update_character(hero.id, hitPoints=0)

        assert updated.hit_points == 12

    def test_level_change_updates_proficiency(self, store: StoreEngine) -> None:
        hero = store.add_character(name="Vex")

        updated = store.update_character(hero.id, level=9)

        assert updated.proficiency_bonus == 4

    def test_current_selection_sees_update(self, store: StoreEngine) -> None:
        hero = store.add_character(name="Vex")
        store.set_current(CollectionKind.CHARACTERS, hero)

        store.update_character(hero.id, name="Vax")

        assert store.current_character.name == "Vax"


class TestDelete:
    """Tests for deleting records."""

    def test_delete_removes(self, store: StoreEngine) -> None:
        keep = store.add_content_item(name="Keep")
        drop = store.add_content_item(name="Drop")

        assert store.delete_content_item(drop.id) is True
        assert store.content_items == [keep]

    def test_delete_idempotent(self, store: StoreEngine) -> None:
        item = store.add_content_item(name="Once")

        assert store.delete_content_item(item.id) is True
        assert store.delete_content_item(item.id) is False
        assert store.content_items == []

    def test_delete_note(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Notes")
        note = store.add_note(title="Scratch", campaignId=campaign.id)

        assert store.delete_note(note.id) is True
        assert store.notes == []
        assert store.campaigns == [campaign]

    def test_delete_clears_current(self, store: StoreEngine) -> None:
        hero = store.add_character(name="Pike")
        store.set_current(CollectionKind.CHARACTERS, hero)

        store.delete_character(hero.id)

        assert store.current_character is None

    def test_delete_other_keeps_current(self, store: StoreEngine) -> None:
        hero = store.add_character(name="Pike")
        other = store.add_character(name="Grog")
        store.set_current(CollectionKind.CHARACTERS, hero)

        store.delete_character(other.id)

        assert store.current_character == hero

    def test_campaign_delete_keeps_notes(self, store: StoreEngine) -> None:
        """Test deleting a campaign leaves its notes by default."""
        campaign = store.add_campaign(name="Gone")
        note = store.add_note(title="Left behind", campaignId=campaign.id)

        store.delete_campaign(campaign.id)

        assert store.notes == [note]

    def test_campaign_delete_cascade(self, store: StoreEngine) -> None:
        doomed = store.add_campaign(name="Gone")
        other = store.add_campaign(name="Stays")
        store.add_note(title="Lost", campaignId=doomed.id)
        kept = store.add_note(title="Kept", campaignId=other.id)

        store.delete_campaign(doomed.id, cascade=True)

        assert store.notes == [kept]

    def test_campaign_delete_cascade_setting(self, memory_backend: MemoryBackend) -> None:
        store = StoreEngine(memory_backend, settings=StoreSettings(cascade_campaign_delete=True))
        campaign = store.add_campaign(name="Gone")
        store.add_note(title="Lost", campaignId=campaign.id)

        store.delete_campaign(campaign.id)

        assert store.notes == []


class TestCurrentSelection:
    """Tests for current character and campaign pointers."""

    def test_initially_empty(self, store: StoreEngine) -> None:
        assert store.current_character is None
        assert store.current_campaign is None

    def test_set_and_clear(self, store: StoreEngine) -> None:
        campaign = store.add_campaign(name="Selected")

        store.set_current(CollectionKind.CAMPAIGNS, campaign)
        assert store.current_campaign == campaign

        store.set_current(CollectionKind.CAMPAIGNS, None)
        assert store.current_campaign is None

    def test_notes_have_no_selection(self, store: StoreEngine) -> None:
        with pytest.raises(ValidationError):
            store.set_current(CollectionKind.NOTES, None)

    def test_unknown_id_rejected(self, store: StoreEngine) -> None:
        """Test a dangling id can neither be selected nor own a note."""
        with pytest.raises(ValidationError):
            store.set_current(CollectionKind.CAMPAIGNS, "ghost")

        assert store.current_campaign_id is None
        with pytest.raises(ReferentialIntegrityError):
            store.add_note(title="Orphan")

    @pytest.mark.asyncio
    async def test_stale_selection_cleared_on_initialize(self, memory_backend: MemoryBackend) -> None:
        store = StoreEngine(memory_backend, settings=StoreSettings())
        store.set_current(CollectionKind.CAMPAIGNS, store.add_campaign(name="Unsaved"))
        await store.flush()
        memory_backend.data.clear()

        await store.initialize()

        assert store.current_campaign_id is None

    def test_selection_not_persisted(self, store: StoreEngine, memory_backend: MemoryBackend) -> None:
        store.set_current(CollectionKind.CAMPAIGNS, store.add_campaign(name="Selected"))
        assert set(memory_backend.data) <= {"characters", "campaigns", "notes", "contentItems"}


class TestLifecycle:
    """Tests for initialize, flush and close."""

    @pytest.mark.asyncio
    async def test_mutation_written_through(self, store: StoreEngine, memory_backend: MemoryBackend) -> None:
        campaign = store.add_campaign(name="Persisted")
        await store.flush()

        stored = json.loads(memory_backend.data["campaigns"])
        assert stored[0]["id"] == campaign.id
        assert stored[0]["name"] == "Persisted"
        assert "createdAt" in stored[0]

    @pytest.mark.asyncio
    async def test_initialize_loads_collections(self, memory_backend: MemoryBackend) -> None:
        first = StoreEngine(memory_backend, settings=StoreSettings())
        await first.initialize()
        hero = first.add_character(name="Keyleth", race="Half-Elf", **{"class": "Druid"})
        await first.close()

        second = StoreEngine(memory_backend, settings=StoreSettings())
        assert second.loading is False
        await second.initialize()

        assert second.loading is False
        assert second.characters == [hero]

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_loads_empty(self) -> None:
        backend = MemoryBackend({"notes": "{not json", "campaigns": '{"a": 1}'})
        store = StoreEngine(backend, settings=StoreSettings())

        await store.initialize()

        assert store.notes == []
        assert store.campaigns == []

    @pytest.mark.asyncio
    async def test_invalid_records_skipped(self) -> None:
        """Test one bad record does not discard the rest of its collection."""
        rows = [
            {"id": "a", "name": "Good", "type": "Spell"},
            {"id": "b", "name": "Bad", "type": "Vehicle"},
            {"id": "a", "name": "Duplicate"},
        ]
        backend = MemoryBackend({"contentItems": json.dumps(rows)})
        store = StoreEngine(backend, settings=StoreSettings())

        await store.initialize()

        assert [item.name for item in store.content_items] == ["Good"]

    @pytest.mark.asyncio
    async def test_loading_true_while_pending(self) -> None:
        """Test the loading flag is raised until every collection is read."""

        class SlowBackend(MemoryBackend):
            def __init__(self) -> None:
                super().__init__()
                self.reading = asyncio.Event()
                self.release = asyncio.Event()

            async def get(self, key: str) -> str | None:
                self.reading.set()
                await self.release.wait()
                return await super().get(key)

        backend = SlowBackend()
        store = StoreEngine(backend, settings=StoreSettings())

        pending = asyncio.create_task(store.initialize())
        await backend.reading.wait()
        assert store.loading is True

        backend.release.set()
        await pending
        assert store.loading is False

    @pytest.mark.asyncio
    async def test_unreadable_rows_survive_write_through(self) -> None:
        """Test rows that fail validation stay in storage after other edits."""
        rows = [
            stored_character("a", name="Aria", hitPoints=8),
            stored_character("b", name="Ogre Draft", race="Ogre"),
        ]
        backend = MemoryBackend({"characters": json.dumps(rows)})
        store = StoreEngine(backend, settings=StoreSettings())
        await store.initialize()

        store.update_character("a", name="Aria II")
        await store.flush()

        stored = json.loads(backend.data["characters"])
        assert [row["name"] for row in stored] == ["Aria II", "Ogre Draft"]
        assert [hero.name for hero in store.characters] == ["Aria II"]
        assert store.unreadable(CollectionKind.CHARACTERS) == [rows[1]]

    @pytest.mark.asyncio
    async def test_blank_draft_row_loads(self) -> None:
        """Test a row saved before race, class and hit points were chosen."""
        row = stored_character("b", name="Draft", race="", hitPoints=0, **{"class": ""})
        backend = MemoryBackend({"characters": json.dumps([row])})
        store = StoreEngine(backend, settings=StoreSettings())

        await store.initialize()

        draft = store.get(CollectionKind.CHARACTERS, "b")
        assert draft.race is None
        assert draft.character_class is None
        assert draft.hit_points == 10
        assert store.unreadable(CollectionKind.CHARACTERS) == []

    @pytest.mark.asyncio
    async def test_discard_unreadable(self) -> None:
        rows = [{"id": "x", "name": "Bad", "type": "Vehicle"}]
        backend = MemoryBackend({"contentItems": json.dumps(rows)})
        store = StoreEngine(backend, settings=StoreSettings())
        await store.initialize()

        assert store.discard_unreadable(CollectionKind.CONTENT_ITEMS) == 1
        await store.flush()

        assert json.loads(backend.data["contentItems"]) == []
        assert store.discard_unreadable(CollectionKind.CONTENT_ITEMS) == 0

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_moved_aside(self) -> None:
        backend = MemoryBackend({"notes": "{not json"})
        store = StoreEngine(backend, settings=StoreSettings())

        await store.initialize()

        backups = [key for key in backend.data if key.startswith("notes.unreadable.")]
        assert len(backups) == 1
        assert backend.data[backups[0]] == "{not json"

    @pytest.mark.asyncio
    async def test_read_failure_holds_write_through(self) -> None:
        """Test a collection that could not be read is never overwritten."""

        class FlakyBackend(MemoryBackend):
            async def get(self, key: str) -> str | None:
                if key == "campaigns":
                    raise OSError("storage unavailable")
                return await super().get(key)

        backend = FlakyBackend({"campaigns": '[{"id": "c1", "name": "Stored"}]'})
        store = StoreEngine(backend, settings=StoreSettings())
        await store.initialize()

        store.add_campaign(name="Memory only")
        await store.flush()

        assert backend.data["campaigns"] == '[{"id": "c1", "name": "Stored"}]'
        assert [c.name for c in store.campaigns] == ["Memory only"]

    @pytest.mark.asyncio
    async def test_read_failure_loads_empty(self, memory_backend: MemoryBackend) -> None:
        class BrokenBackend(MemoryBackend):
            async def get(self, key: str) -> str | None:
                raise OSError("storage unavailable")

        store = StoreEngine(BrokenBackend(), settings=StoreSettings())

        await store.initialize()

        assert store.loading is False
        assert store.characters == []

    @pytest.mark.asyncio
    async def test_write_failure_keeps_memory(self) -> None:
        class ReadOnlyBackend(MemoryBackend):
            async def set(self, key: str, value: str) -> None:
                raise OSError("read-only")

        store = StoreEngine(ReadOnlyBackend(), settings=StoreSettings())
        campaign = store.add_campaign(name="Memory only")
        await store.flush()

        assert store.campaigns == [campaign]

    @pytest.mark.asyncio
    async def test_close_rejects_mutations(self, store: StoreEngine) -> None:
        await store.close()

        assert store.closed is True
        with pytest.raises(StoreClosedError):
            store.add_campaign(name="Late")

    @pytest.mark.asyncio
    async def test_async_context_manager(self, memory_backend: MemoryBackend) -> None:
        async with StoreEngine(memory_backend, settings=StoreSettings()) as store:
            store.add_campaign(name="Scoped")

        assert store.closed is True
        assert "campaigns" in memory_backend.data
