"""Canonical season labels and normalisation helpers.

Seasons are the only constrained attribute on a clothing item; name, type and
color stay free text. The search screen offers one extra choice,
``ALL_SEASONS_FILTER``, which is a filter sentinel and never a stored value.
"""

from typing import Dict, List, Optional

SEASONS: List[str] = ["Spring", "Summer", "Autumn", "Winter", "All"]
DEFAULT_SEASON = "All"
ALL_SEASONS_FILTER = "All Seasons"
SEASON_FILTERS: List[str] = [ALL_SEASONS_FILTER, *SEASONS]

SEASON_ALIASES: Dict[str, str] = {
    "fall": "Autumn",
    "all seasons": "All",
    "all year": "All",
    "all-year": "All",
    "year-round": "All",
    "year round": "All",
    "any": "All",
}


def _normalize_key(value: str) -> str:
    return value.strip().lower()


def normalize_season(value: Optional[str]) -> Optional[str]:
    """Return the canonical season for ``value`` or ``None`` if unrecognised."""

    if not value:
        return None
    key = _normalize_key(str(value))
    for season in SEASONS:
        if season.lower() == key:
            return season
    return SEASON_ALIASES.get(key)


def validate_season(value: str) -> str:
    """Validate a stored season value, raising on anything outside the enum."""

    season = normalize_season(value)
    if season is None:
        raise ValueError(f"Unknown season: {value}")
    return season


def validate_season_filter(value: Optional[str]) -> str:
    """Accept the search sentinel or one of the seasons."""

    if not value or _normalize_key(value) == ALL_SEASONS_FILTER.lower():
        return ALL_SEASONS_FILTER
    return validate_season(value)


__all__ = [
    "ALL_SEASONS_FILTER",
    "DEFAULT_SEASON",
    "SEASONS",
    "SEASON_ALIASES",
    "SEASON_FILTERS",
    "normalize_season",
    "validate_season",
    "validate_season_filter",
]
