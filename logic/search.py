"""Free-text and season filtering over clothing items."""

from __future__ import annotations

from typing import Iterable, List, Optional

from models.taxonomy import ALL_SEASONS_FILTER, validate_season_filter
from models.wardrobe import ClothingItem


def matches_term(item: ClothingItem, term: str) -> bool:
    """Case-insensitive substring match on name, type, color or any tag."""

    needle = term.lower()
    fields = [item.name, item.type, item.color, *item.custom_tags]
    return any(needle in value.lower() for value in fields)


def matches_season(item: ClothingItem, season_filter: str) -> bool:
    return season_filter == ALL_SEASONS_FILTER or item.season == season_filter


def filter_items(
    items: Iterable[ClothingItem], term: str = "", season_filter: Optional[str] = ALL_SEASONS_FILTER
) -> List[ClothingItem]:
    """Return matching items in their original order."""

    season_key = validate_season_filter(season_filter)
    return [
        item for item in items if matches_term(item, term or "") and matches_season(item, season_key)
    ]


__all__ = ["filter_items", "matches_season", "matches_term"]
