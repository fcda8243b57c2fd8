"""Storage location and clothing item data models."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List
from uuid import uuid4

from models.taxonomy import validate_season

LOCATION_ID_PREFIX = "loc"
ITEM_ID_PREFIX = "item"


def new_id(prefix: str) -> str:
    """Return a process-unique identifier such as ``loc-3f2a...``."""

    return f"{prefix}-{uuid4().hex}"


def parse_custom_tags(raw: str | Iterable[str] | None) -> List[str]:
    """Split comma separated tags, keeping order and dropping blanks.

    Duplicates are kept.
    """

    if raw is None:
        return []
    values = raw.split(",") if isinstance(raw, str) else list(raw)
    return [str(tag).strip() for tag in values if str(tag).strip()]


def image_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Embed an image as a self-contained ``data:`` URL."""

    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


@dataclass
class StorageLocation:
    """A named bucket, such as a closet or a suitcase."""

    id: str
    name: str

    def __post_init__(self) -> None:
        self.name = str(self.name).strip()
        if not self.name:
            raise ValueError("Storage location name must not be empty")

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "StorageLocation":
        return cls(id=str(record["id"]), name=str(record["name"]))


@dataclass
class ClothingItem:
    """A catalogued garment stored in one location."""

    id: str
    storage_location_id: str
    image_data_url: str
    name: str
    type: str
    color: str
    season: str
    custom_tags: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.season = validate_season(self.season)
        self.custom_tags = parse_custom_tags(self.custom_tags)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "storageLocationId": self.storage_location_id,
            "imageDataUrl": self.image_data_url,
            "name": self.name,
            "type": self.type,
            "color": self.color,
            "season": self.season,
            "customTags": list(self.custom_tags),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ClothingItem":
        return cls(
            id=str(record["id"]),
            storage_location_id=str(record["storageLocationId"]),
            image_data_url=str(record.get("imageDataUrl", "")),
            name=str(record.get("name", "")),
            type=str(record.get("type", "")),
            color=str(record.get("color", "")),
            season=str(record.get("season", "All")),
            custom_tags=list(record.get("customTags") or []),
        )


@dataclass
class ClothingDraft:
    """A confirmed analysis result that has not been given an id yet."""

    storage_location_id: str
    image_data_url: str
    name: str
    type: str
    color: str
    season: str
    custom_tags: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.season = validate_season(self.season)
        self.custom_tags = parse_custom_tags(self.custom_tags)

    def with_id(self, item_id: str) -> ClothingItem:
        return ClothingItem(
            id=item_id,
            storage_location_id=self.storage_location_id,
            image_data_url=self.image_data_url,
            name=self.name,
            type=self.type,
            color=self.color,
            season=self.season,
            custom_tags=list(self.custom_tags),
        )


__all__ = [
    "ClothingDraft",
    "ClothingItem",
    "ITEM_ID_PREFIX",
    "LOCATION_ID_PREFIX",
    "StorageLocation",
    "image_data_url",
    "new_id",
    "parse_custom_tags",
]
