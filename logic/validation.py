"""Pydantic schemas for service payloads and view requests."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Literal, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.taxonomy import DEFAULT_SEASON, normalize_season

LOGGER = logging.getLogger(__name__)

AspectRatio = Literal["16:9", "9:16"]


class ClothingAnalysis(BaseModel):
    """Attribute guess returned by the image analysis model."""

    name: str
    type: str
    color: str
    season: str = DEFAULT_SEASON

    @field_validator("season", mode="before")
    @classmethod
    def _coerce_season(cls, value: Any) -> str:
        season = normalize_season(str(value)) if value is not None else None
        if season is None:
            LOGGER.warning("Unexpected season from analysis", extra={"season": str(value)})
            return DEFAULT_SEASON
        return season


class LocationCreate(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class ClothingItemCreate(BaseModel):
    """Item confirmed by the user after reviewing the analysis."""

    storage_location_id: str = Field(min_length=1)
    image_data_url: str = Field(min_length=1)
    name: str
    type: str
    color: str
    season: str
    custom_tags: List[str] | str = []

    @field_validator("season")
    @classmethod
    def _validate_season(cls, value: str) -> str:
        season = normalize_season(value)
        if season is None:
            raise ValueError(f"unknown season {value}")
        return season


class AnalyzeImageRequest(BaseModel):
    image_base64: str = Field(min_length=1)
    mime_type: str = Field(min_length=1)


class ChatRequest(BaseModel):
    message: str


class VideoRequest(BaseModel):
    prompt: str = Field(min_length=1)
    aspect_ratio: AspectRatio = "16:9"


class CredentialRequest(BaseModel):
    api_key: str = Field(min_length=1)


class ValidationResult(BaseModel):
    """Wrapper returned to callers when validation fails."""

    status: Literal["needs_review"] = "needs_review"
    message: str
    details: List[Dict[str, Any]]


def review_payload(message: str, errors: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Build the review payload from raw error entries, without ctx or docs links."""

    details = [{key: value for key, value in error.items() if key not in ("ctx", "url")} for error in errors]
    return ValidationResult(message=message, details=details).model_dump()


def validation_failure(message: str, exc: ValidationError) -> Dict[str, Any]:
    """Translate Pydantic errors into a consistent review payload."""

    return review_payload(message, exc.errors(include_url=False, include_context=False))


__all__ = [
    "AnalyzeImageRequest",
    "AspectRatio",
    "ChatRequest",
    "ClothingAnalysis",
    "ClothingItemCreate",
    "CredentialRequest",
    "LocationCreate",
    "ValidationResult",
    "VideoRequest",
    "review_payload",
    "validation_failure",
]
