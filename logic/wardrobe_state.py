"""In-memory wardrobe state kept in step with the collection store."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from logic.navigation import NavigationController
from logic.search import filter_items
from memory.collection_store import CLOTHES_KEY, LOCATIONS_KEY, CollectionStore
from models.taxonomy import ALL_SEASONS_FILTER
from models.wardrobe import (
    ITEM_ID_PREFIX,
    LOCATION_ID_PREFIX,
    ClothingDraft,
    ClothingItem,
    StorageLocation,
    new_id,
)
from wardrobe_app.errors import PersistenceError, WardrobeValidationError
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

ConfirmCallback = Callable[[str], Awaitable[bool]]
UNKNOWN_LOCATION_NAME = "Unknown Location"
DELETE_LOCATION_PROMPT = "Are you sure you want to delete this location and all items in it?"
DELETE_ITEM_PROMPT = "Are you sure you want to delete this item?"


def auto_confirm(answer: bool) -> ConfirmCallback:
    """Build a confirmation capability that always returns ``answer``."""

    async def _confirm(_: str) -> bool:
        return answer

    return _confirm


class WardrobeStateManager:
    """Owns the location and clothing collections.

    Mutations are applied to the in-memory lists first and then written back
    to the store. A failed write raises :class:`PersistenceError`; the in-memory
    change stays in place so the next successful write stores it.
    Deletions only happen after the injected confirmation returns ``True``.
    """

    def __init__(
        self,
        store: CollectionStore,
        confirm: ConfirmCallback,
        navigation: Optional[NavigationController] = None,
        id_factory: Callable[[str], str] = new_id,
    ) -> None:
        self.store = store
        self.confirm = confirm
        self.navigation = navigation
        self.id_factory = id_factory
        self.locations: List[StorageLocation] = self._load(LOCATIONS_KEY, StorageLocation.from_record)
        self.clothes: List[ClothingItem] = self._load(CLOTHES_KEY, ClothingItem.from_record)

    def _load(self, key: str, factory: Callable[[Dict[str, Any]], Any]) -> list:
        loaded = []
        for record in self.store.load(key):
            try:
                loaded.append(factory(record))
            except (KeyError, TypeError, ValueError):
                log_event(LOGGER, logging.WARNING, "wardrobe_record_skipped", collection=key)
        return loaded

    def _persist(self, *keys: str) -> None:
        collections = {
            LOCATIONS_KEY: lambda: [location.to_record() for location in self.locations],
            CLOTHES_KEY: lambda: [item.to_record() for item in self.clothes],
        }
        for key in keys:
            try:
                self.store.save(key, collections[key]())
            except PersistenceError:
                log_event(LOGGER, logging.ERROR, "wardrobe_persist_failed", collection=key, exc_info=True)
                raise

    def get_location(self, location_id: str) -> Optional[StorageLocation]:
        return next((location for location in self.locations if location.id == location_id), None)

    def location_name(self, location_id: str) -> str:
        location = self.get_location(location_id)
        return location.name if location else UNKNOWN_LOCATION_NAME

    def add_location(self, name: str) -> StorageLocation:
        if not name or not name.strip():
            raise WardrobeValidationError("Location name must not be empty.")
        location = StorageLocation(id=self.id_factory(LOCATION_ID_PREFIX), name=name)
        self.locations.append(location)
        log_event(LOGGER, logging.INFO, "location_added", location_id=location.id)
        self._persist(LOCATIONS_KEY)
        return location

    async def delete_location(self, location_id: str, confirm: Optional[ConfirmCallback] = None) -> bool:
        """Remove a location and every item stored in it after confirmation."""

        if self.get_location(location_id) is None:
            return False
        if not await (confirm or self.confirm)(DELETE_LOCATION_PROMPT):
            return False
        self.locations = [location for location in self.locations if location.id != location_id]
        removed = [item for item in self.clothes if item.storage_location_id == location_id]
        self.clothes = [item for item in self.clothes if item.storage_location_id != location_id]
        if self.navigation is not None:
            self.navigation.clear_selection(location_id)
        log_event(
            LOGGER,
            logging.INFO,
            "location_deleted",
            location_id=location_id,
            removed_items=len(removed),
        )
        self._persist(LOCATIONS_KEY, CLOTHES_KEY)
        return True

    def add_clothing_item(self, draft: ClothingDraft) -> ClothingItem:
        if self.get_location(draft.storage_location_id) is None:
            raise WardrobeValidationError("Choose an existing storage location for this item.")
        item = draft.with_id(self.id_factory(ITEM_ID_PREFIX))
        self.clothes.append(item)
        log_event(
            LOGGER,
            logging.INFO,
            "clothing_item_added",
            item_id=item.id,
            location_id=item.storage_location_id,
        )
        self._persist(CLOTHES_KEY)
        return item

    async def delete_clothing_item(self, item_id: str, confirm: Optional[ConfirmCallback] = None) -> bool:
        if not any(item.id == item_id for item in self.clothes):
            return False
        if not await (confirm or self.confirm)(DELETE_ITEM_PROMPT):
            return False
        self.clothes = [item for item in self.clothes if item.id != item_id]
        log_event(LOGGER, logging.INFO, "clothing_item_deleted", item_id=item_id)
        self._persist(CLOTHES_KEY)
        return True

    def query_by_location(self, location_id: str) -> List[ClothingItem]:
        return [item for item in self.clothes if item.storage_location_id == location_id]

    def search(self, term: str = "", season_filter: str = ALL_SEASONS_FILTER) -> List[ClothingItem]:
        return filter_items(self.clothes, term, season_filter)

    def clothes_in_selected_location(self) -> List[ClothingItem]:
        if self.navigation is None:
            return []
        location = self.navigation.selected_location(self.locations)
        return self.query_by_location(location.id) if location else []


__all__ = [
    "DELETE_ITEM_PROMPT",
    "DELETE_LOCATION_PROMPT",
    "UNKNOWN_LOCATION_NAME",
    "ConfirmCallback",
    "WardrobeStateManager",
    "auto_confirm",
]
