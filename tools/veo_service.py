"""Video generation service abstractions and the Veo REST implementation."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import requests
from pydantic import BaseModel, ValidationError

from tools.observability import instrument_call
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import VideoJobError

LOGGER = logging.getLogger(__name__)

ENTITY_NOT_FOUND_SIGNATURE = "Requested entity was not found"
VIDEO_RESOLUTION = "720p"


class _Video(BaseModel):
    uri: Optional[str] = None


class _GeneratedSample(BaseModel):
    video: Optional[_Video] = None


class _GenerateVideoResponse(BaseModel):
    generatedSamples: List[_GeneratedSample] = []


class _OperationResponse(BaseModel):
    generateVideoResponse: Optional[_GenerateVideoResponse] = None


class _OperationError(BaseModel):
    code: int = 0
    message: str = ""


class _Operation(BaseModel):
    name: str
    done: bool = False
    response: Optional[_OperationResponse] = None
    error: Optional[_OperationError] = None


@dataclass
class VideoJobStatus:
    """Snapshot of a generation job."""

    handle: str
    done: bool
    video_uri: Optional[str] = None
    error: Optional[str] = None


class VideoService(ABC):
    """Long-running video generation backend."""

    @abstractmethod
    async def create_job(self, prompt: str, aspect_ratio: str, api_key: str) -> VideoJobStatus:
        """Submit a generation request and return its first status."""

    @abstractmethod
    async def get_job(self, handle: str, api_key: str) -> VideoJobStatus:
        """Re-fetch the status of a submitted job."""

    @abstractmethod
    async def fetch_asset(self, video_uri: str, api_key: str) -> bytes:
        """Download a finished video."""


def _status_from_operation(operation: _Operation) -> VideoJobStatus:
    video_uri = None
    generated = operation.response.generateVideoResponse if operation.response else None
    if generated and generated.generatedSamples:
        first = generated.generatedSamples[0]
        video_uri = first.video.uri if first.video else None
    return VideoJobStatus(
        handle=operation.name,
        done=operation.done,
        video_uri=video_uri,
        error=operation.error.message if operation.error else None,
    )


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"Video service returned HTTP {response.status_code}."
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        message = error.get("message")
    elif isinstance(error, str):
        message = error
    else:
        message = None
    return str(message) if message else f"Video service returned HTTP {response.status_code}."


class VeoRestService(VideoService):
    """Veo over the Generative Language REST API.

    ``requests`` is blocking, so each call runs in a worker thread to keep the
    event loop free while a job is polled.
    """

    def __init__(self, config: WardrobeConfig, timeout_seconds: float = 30.0) -> None:
        self.base_url = config.video_api_base.rstrip("/")
        self.model = config.video_model
        self.timeout_seconds = timeout_seconds

    def _headers(self, api_key: str) -> dict:
        return {"x-goog-api-key": api_key, "Content-Type": "application/json"}

    def _request(self, method: str, url: str, api_key: str, **kwargs) -> requests.Response:
        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(api_key),
                timeout=self.timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as exc:
            LOGGER.error("Video service unreachable", exc_info=exc)
            raise VideoJobError("Could not reach the video service. Please try again.") from exc
        if not response.ok:
            message = _error_message(response)
            raise VideoJobError(message, credential_rejected=ENTITY_NOT_FOUND_SIGNATURE in message)
        return response

    def _parse_operation(self, response: requests.Response) -> VideoJobStatus:
        try:
            return _status_from_operation(_Operation.model_validate(response.json()))
        except (ValueError, ValidationError) as exc:
            LOGGER.error("Video operation payload failed schema validation", exc_info=exc)
            raise VideoJobError("Video service returned an unexpected response.") from exc

    def _create_job(self, prompt: str, aspect_ratio: str, api_key: str) -> VideoJobStatus:
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {"aspectRatio": aspect_ratio, "resolution": VIDEO_RESOLUTION, "sampleCount": 1},
        }
        url = f"{self.base_url}/models/{self.model}:predictLongRunning"
        return self._parse_operation(self._request("POST", url, api_key, json=body))

    def _get_job(self, handle: str, api_key: str) -> VideoJobStatus:
        return self._parse_operation(self._request("GET", f"{self.base_url}/{handle}", api_key))

    def _fetch_asset(self, video_uri: str, api_key: str) -> bytes:
        response = self._request("GET", video_uri, api_key, params={"key": api_key})
        if not response.content:
            raise VideoJobError("Failed to fetch video blob.")
        return response.content

    @instrument_call("veo", "create_job")
    async def create_job(self, prompt: str, aspect_ratio: str, api_key: str) -> VideoJobStatus:
        return await asyncio.to_thread(self._create_job, prompt, aspect_ratio, api_key)

    @instrument_call("veo", "get_job")
    async def get_job(self, handle: str, api_key: str) -> VideoJobStatus:
        return await asyncio.to_thread(self._get_job, handle, api_key)

    @instrument_call("veo", "fetch_asset")
    async def fetch_asset(self, video_uri: str, api_key: str) -> bytes:
        return await asyncio.to_thread(self._fetch_asset, video_uri, api_key)


__all__ = [
    "ENTITY_NOT_FOUND_SIGNATURE",
    "VeoRestService",
    "VideoJobStatus",
    "VideoService",
]
