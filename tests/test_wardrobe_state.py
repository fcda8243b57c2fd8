"""Wardrobe state manager: mutations, persistence and queries."""

from __future__ import annotations

import asyncio
import itertools
from pathlib import Path
from typing import Dict, List

import pytest

from logic.navigation import NavigationController, Screen
from logic.wardrobe_state import (
    DELETE_ITEM_PROMPT,
    DELETE_LOCATION_PROMPT,
    UNKNOWN_LOCATION_NAME,
    WardrobeStateManager,
    auto_confirm,
)
from memory.collection_store import CLOTHES_KEY, LOCATIONS_KEY, JSONCollectionStore
from models.wardrobe import ClothingDraft, StorageLocation
from wardrobe_app.errors import PersistenceError, WardrobeValidationError


class RecordingConfirm:
    """Async confirmation double that remembers the prompts it saw."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.prompts: List[str] = []

    async def __call__(self, message: str) -> bool:
        self.prompts.append(message)
        return self.answer


class FlakyStore(JSONCollectionStore):
    """Store whose writes can be switched to fail."""

    fail_writes = False

    def save(self, key: str, records: List[Dict[str, object]]) -> None:
        if self.fail_writes:
            raise PersistenceError("quota exceeded")
        super().save(key, records)


def _draft(location_id: str, **overrides: object) -> ClothingDraft:
    fields = {
        "storage_location_id": location_id,
        "image_data_url": "data:image/png;base64,AAAA",
        "name": "Blue Shirt",
        "type": "Shirt",
        "color": "Blue",
        "season": "Summer",
        "custom_tags": ["casual"],
    }
    fields.update(overrides)
    return ClothingDraft(**fields)


def _assert_store_matches(manager: WardrobeStateManager) -> None:
    assert manager.store.load(LOCATIONS_KEY) == [loc.to_record() for loc in manager.locations]
    assert manager.store.load(CLOTHES_KEY) == [item.to_record() for item in manager.clothes]


@pytest.fixture()
def confirm() -> RecordingConfirm:
    return RecordingConfirm()


@pytest.fixture()
def manager(tmp_path: Path, confirm: RecordingConfirm) -> WardrobeStateManager:
    return WardrobeStateManager(
        store=JSONCollectionStore(tmp_path),
        confirm=confirm,
        navigation=NavigationController(),
    )


def test_add_location_appends_and_persists(manager: WardrobeStateManager) -> None:
    closet = manager.add_location("  Main Closet ")
    suitcase = manager.add_location("Suitcase")

    assert [loc.name for loc in manager.locations] == ["Main Closet", "Suitcase"]
    assert closet.id.startswith("loc-")
    assert closet.id != suitcase.id
    _assert_store_matches(manager)


def test_add_location_rejects_blank_name(manager: WardrobeStateManager) -> None:
    with pytest.raises(WardrobeValidationError):
        manager.add_location("   ")
    assert manager.locations == []


def test_rapid_creation_never_reuses_ids(manager: WardrobeStateManager) -> None:
    ids = {manager.add_location(f"Box {i}").id for i in range(50)}
    assert len(ids) == 50


def test_add_clothing_item_requires_existing_location(manager: WardrobeStateManager) -> None:
    with pytest.raises(WardrobeValidationError):
        manager.add_clothing_item(_draft("loc-missing"))


def test_add_clothing_item_filters_blank_tags(manager: WardrobeStateManager) -> None:
    closet = manager.add_location("Closet")
    item = manager.add_clothing_item(_draft(closet.id, custom_tags="work, , casual,work"))

    assert item.id.startswith("item-")
    assert item.custom_tags == ["work", "casual", "work"]
    _assert_store_matches(manager)


def test_delete_location_cascades_to_its_items(
    manager: WardrobeStateManager, confirm: RecordingConfirm
) -> None:
    a = manager.add_location("A")
    b = manager.add_location("B")
    manager.add_clothing_item(_draft(a.id, name="first"))
    manager.add_clothing_item(_draft(a.id, name="second"))
    keep = manager.add_clothing_item(_draft(b.id, name="third"))

    deleted = asyncio.run(manager.delete_location(a.id))

    assert deleted is True
    assert confirm.prompts == [DELETE_LOCATION_PROMPT]
    assert manager.locations == [b]
    assert manager.clothes == [keep]
    _assert_store_matches(manager)


def test_declined_confirmation_leaves_everything(manager: WardrobeStateManager) -> None:
    closet = manager.add_location("Closet")
    item = manager.add_clothing_item(_draft(closet.id))
    manager.confirm = auto_confirm(False)

    assert asyncio.run(manager.delete_location(closet.id)) is False
    assert asyncio.run(manager.delete_clothing_item(item.id)) is False
    assert manager.locations == [closet]
    assert manager.clothes == [item]


def test_delete_unknown_ids_skip_the_prompt(
    manager: WardrobeStateManager, confirm: RecordingConfirm
) -> None:
    assert asyncio.run(manager.delete_location("loc-nope")) is False
    assert asyncio.run(manager.delete_clothing_item("item-nope")) is False
    assert confirm.prompts == []


def test_delete_clothing_item_removes_only_that_item(
    manager: WardrobeStateManager, confirm: RecordingConfirm
) -> None:
    closet = manager.add_location("Closet")
    first = manager.add_clothing_item(_draft(closet.id, name="first"))
    second = manager.add_clothing_item(_draft(closet.id, name="second"))

    assert asyncio.run(manager.delete_clothing_item(first.id)) is True
    assert confirm.prompts == [DELETE_ITEM_PROMPT]
    assert manager.clothes == [second]
    _assert_store_matches(manager)


def test_delete_selected_location_resets_navigation(manager: WardrobeStateManager) -> None:
    closet = manager.add_location("Closet")
    other = manager.add_location("Other")
    manager.navigation.select_location(closet.id)

    asyncio.run(manager.delete_location(other.id))
    assert manager.navigation.selected_location_id == closet.id

    asyncio.run(manager.delete_location(closet.id))
    assert manager.navigation.selected_location_id is None
    assert manager.navigation.active_screen == Screen.HOME


def test_store_matches_memory_after_every_operation(manager: WardrobeStateManager) -> None:
    a = manager.add_location("A")
    _assert_store_matches(manager)
    b = manager.add_location("B")
    item = manager.add_clothing_item(_draft(a.id))
    _assert_store_matches(manager)
    manager.add_clothing_item(_draft(b.id))
    _assert_store_matches(manager)
    asyncio.run(manager.delete_clothing_item(item.id))
    _assert_store_matches(manager)
    asyncio.run(manager.delete_location(b.id))
    _assert_store_matches(manager)


def test_persistence_failure_is_reported_and_memory_kept(tmp_path: Path, confirm: RecordingConfirm) -> None:
    store = FlakyStore(tmp_path)
    manager = WardrobeStateManager(store=store, confirm=confirm)
    store.fail_writes = True

    with pytest.raises(PersistenceError):
        manager.add_location("Closet")
    assert [loc.name for loc in manager.locations] == ["Closet"]
    assert store.load(LOCATIONS_KEY) == []

    store.fail_writes = False
    manager.add_location("Suitcase")
    _assert_store_matches(manager)


def test_state_is_reloaded_from_store(tmp_path: Path, confirm: RecordingConfirm) -> None:
    first = WardrobeStateManager(store=JSONCollectionStore(tmp_path), confirm=confirm)
    closet = first.add_location("Closet")
    first.add_clothing_item(_draft(closet.id))

    second = WardrobeStateManager(store=JSONCollectionStore(tmp_path), confirm=confirm)

    assert second.locations == first.locations
    assert second.clothes == first.clothes


def test_malformed_records_are_skipped_on_load(tmp_path: Path, confirm: RecordingConfirm) -> None:
    store = JSONCollectionStore(tmp_path)
    store.save(LOCATIONS_KEY, [{"id": "loc-1", "name": "Closet"}, {"name": "no id"}])

    manager = WardrobeStateManager(store=store, confirm=confirm)

    assert manager.locations == [StorageLocation(id="loc-1", name="Closet")]


def test_custom_id_factory_is_used(tmp_path: Path, confirm: RecordingConfirm) -> None:
    counter = itertools.count(1)
    manager = WardrobeStateManager(
        store=JSONCollectionStore(tmp_path),
        confirm=confirm,
        id_factory=lambda prefix: f"{prefix}-{next(counter)}",
    )

    assert manager.add_location("Closet").id == "loc-1"
    assert manager.add_location("Drawer").id == "loc-2"


def test_query_by_location_preserves_order_and_is_pure(manager: WardrobeStateManager) -> None:
    a = manager.add_location("A")
    b = manager.add_location("B")
    first = manager.add_clothing_item(_draft(a.id, name="first"))
    manager.add_clothing_item(_draft(b.id, name="elsewhere"))
    third = manager.add_clothing_item(_draft(a.id, name="third"))

    assert manager.query_by_location(a.id) == [first, third]
    assert manager.query_by_location(a.id) == manager.query_by_location(a.id)
    assert len(manager.clothes) == 3


def test_search_matches_any_field_case_insensitively(manager: WardrobeStateManager) -> None:
    closet = manager.add_location("Closet")
    shirt = manager.add_clothing_item(_draft(closet.id))
    jeans = manager.add_clothing_item(
        _draft(closet.id, name="Denim", type="Jeans", color="Indigo", season="All", custom_tags=["Weekend"])
    )

    assert manager.search("shirt", "All Seasons") == [shirt]
    assert manager.search("shirt", "Winter") == []
    assert manager.search("BLUE") == [shirt]
    assert manager.search("weekend") == [jeans]
    assert manager.search("") == [shirt, jeans]
    assert manager.search("", "All") == [jeans]
    assert manager.search("i", "Summer") == manager.search("i", "Summer")


def test_location_name_falls_back_for_missing_location(manager: WardrobeStateManager) -> None:
    closet = manager.add_location("Closet")

    assert manager.location_name(closet.id) == "Closet"
    assert manager.location_name("loc-gone") == UNKNOWN_LOCATION_NAME


def test_clothes_in_selected_location(manager: WardrobeStateManager) -> None:
    closet = manager.add_location("Closet")
    item = manager.add_clothing_item(_draft(closet.id))

    assert manager.clothes_in_selected_location() == []
    manager.navigation.select_location(closet.id)
    assert manager.clothes_in_selected_location() == [item]
