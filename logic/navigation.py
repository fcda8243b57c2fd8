"""Screen navigation state."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from models.wardrobe import StorageLocation


class Screen(str, Enum):
    HOME = "HOME"
    LOCATION = "LOCATION"
    SEARCH = "SEARCH"
    VIDEO = "VIDEO"


class NavigationController:
    """Tracks the active screen and the selected storage location.

    The selection is only an id. Reads go through :meth:`resolve` so a selection
    that no longer matches a live location sends the user back to HOME instead
    of rendering an empty location screen.
    """

    def __init__(self) -> None:
        self.active_screen = Screen.HOME
        self.selected_location_id: Optional[str] = None

    def show(self, screen: Screen | str) -> Screen:
        self.active_screen = Screen(screen)
        return self.active_screen

    def select_location(self, location_id: str) -> None:
        self.selected_location_id = location_id
        self.active_screen = Screen.LOCATION

    def clear_selection(self, location_id: str | None = None) -> None:
        """Drop the selection, optionally only when it points at ``location_id``."""

        if location_id is not None and self.selected_location_id != location_id:
            return
        self.selected_location_id = None
        if self.active_screen == Screen.LOCATION:
            self.active_screen = Screen.HOME

    def selected_location(self, locations: Iterable[StorageLocation]) -> Optional[StorageLocation]:
        if self.selected_location_id is None:
            return None
        for location in locations:
            if location.id == self.selected_location_id:
                return location
        return None

    def resolve(self, locations: Iterable[StorageLocation]) -> Screen:
        """Return the screen to render, falling back to HOME for a stale selection."""

        if self.active_screen == Screen.LOCATION and self.selected_location(locations) is None:
            self.clear_selection()
            return Screen.HOME
        return self.active_screen


__all__ = ["NavigationController", "Screen"]
