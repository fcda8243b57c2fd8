"""Video generation jobs: submit, poll until done, download."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Literal, Optional

from tools.veo_service import ENTITY_NOT_FOUND_SIGNATURE, VideoJobStatus, VideoService
from wardrobe_app.config import DEFAULT_POLL_INTERVAL_SECONDS
from wardrobe_app.errors import VideoJobError, WardrobeValidationError
from wardrobe_app.logging_config import get_logger, log_event, operation_context

LOGGER = get_logger(__name__)

ASPECT_RATIOS = ("16:9", "9:16")
VIDEO_MIME_TYPE = "video/mp4"
NO_LINK_MESSAGE = "Video generation failed to return a link."
KEY_REJECTED_MESSAGE = "API Key not valid. Please select a valid key from a paid project."


class VideoJobState(str, Enum):
    NO_KEY = "no_key"
    READY = "ready"
    PENDING = "pending"
    RESOLVING = "resolving"
    COMPLETE = "complete"
    FAILED = "failed"


class CancellationToken:
    """Signalled by the owning view when it goes away."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class _JobCancelled(Exception):
    pass


@dataclass
class VideoJobResult:
    status: Literal["complete", "failed", "cancelled"]
    video: Optional[bytes] = None
    mime_type: Optional[str] = None
    video_uri: Optional[str] = None
    error: Optional[str] = None


class VideoJobClient:
    """Drives one video generation at a time.

    The poll loop waits a fixed interval between status checks and has no
    attempt limit; it ends when the job reports done or the cancellation token
    is signalled.
    """

    def __init__(
        self,
        service: VideoService,
        api_key: Optional[str] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.service = service
        self.poll_interval = poll_interval
        self._sleep = sleep
        self.api_key: Optional[str] = None
        self.state = VideoJobState.NO_KEY
        self.error: Optional[str] = None
        if api_key:
            self.select_credential(api_key)

    @property
    def has_credential(self) -> bool:
        return self.state != VideoJobState.NO_KEY

    @property
    def in_progress(self) -> bool:
        return self.state in (VideoJobState.PENDING, VideoJobState.RESOLVING)

    def select_credential(self, api_key: str) -> None:
        if not api_key or not api_key.strip():
            raise WardrobeValidationError("Select an API key to generate videos.")
        if self.in_progress:
            raise WardrobeValidationError("Wait for the current video to finish.")
        self.api_key = api_key.strip()
        self.state = VideoJobState.READY
        self.error = None

    async def generate(
        self,
        prompt: str,
        aspect_ratio: str = "16:9",
        cancel_token: Optional[CancellationToken] = None,
    ) -> VideoJobResult:
        """Generate a video for ``prompt`` and return the downloaded asset.

        Service failures come back as a ``failed`` result carrying a message
        for the user; they are not raised.
        """

        if not prompt or not prompt.strip():
            raise WardrobeValidationError("Describe the video you want to create.")
        if aspect_ratio not in ASPECT_RATIOS:
            raise WardrobeValidationError(f"Aspect ratio must be one of {', '.join(ASPECT_RATIOS)}.")
        if not self.has_credential or not self.api_key:
            raise WardrobeValidationError("Select an API key to generate videos.")
        if self.in_progress:
            raise WardrobeValidationError("Wait for the current video to finish.")

        token = cancel_token or CancellationToken()
        api_key = self.api_key
        self.error = None
        with operation_context("video:generate", aspect_ratio=aspect_ratio) as correlation_id:
            try:
                self.state = VideoJobState.PENDING
                status = await self.service.create_job(prompt.strip(), aspect_ratio, api_key)
                status = await self._wait_until_done(status, api_key, token)
                if token.cancelled:
                    raise _JobCancelled()

                self.state = VideoJobState.RESOLVING
                if status.error:
                    raise VideoJobError(
                        status.error, credential_rejected=ENTITY_NOT_FOUND_SIGNATURE in status.error
                    )
                if not status.video_uri:
                    raise VideoJobError(NO_LINK_MESSAGE)
                video = await self.service.fetch_asset(status.video_uri, api_key)
            except _JobCancelled:
                self.state = VideoJobState.READY
                log_event(LOGGER, logging.INFO, "video_job_cancelled", correlation_id=correlation_id)
                return VideoJobResult(status="cancelled")
            except asyncio.CancelledError:
                self.state = VideoJobState.READY
                raise
            except VideoJobError as exc:
                return self._fail(exc, correlation_id)
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "video_job_crashed",
                    correlation_id=correlation_id,
                    exc_info=True,
                )
                return self._fail(VideoJobError(), correlation_id)

            self.state = VideoJobState.COMPLETE
            log_event(
                LOGGER,
                logging.INFO,
                "video_job_completed",
                correlation_id=correlation_id,
                size_bytes=len(video),
            )
            return VideoJobResult(
                status="complete",
                video=video,
                mime_type=VIDEO_MIME_TYPE,
                video_uri=status.video_uri,
            )

    async def _wait_until_done(
        self, status: VideoJobStatus, api_key: str, token: CancellationToken
    ) -> VideoJobStatus:
        polls = 0
        while not status.done:
            await self._sleep(self.poll_interval)
            if token.cancelled:
                raise _JobCancelled()
            status = await self.service.get_job(status.handle, api_key)
            polls += 1
            log_event(LOGGER, logging.DEBUG, "video_job_polled", polls=polls, done=status.done)
        return status

    def _fail(self, exc: VideoJobError, correlation_id: str) -> VideoJobResult:
        message = exc.message
        if exc.credential_rejected or ENTITY_NOT_FOUND_SIGNATURE in message:
            message = KEY_REJECTED_MESSAGE
            self.api_key = None
            self.state = VideoJobState.NO_KEY
        else:
            self.state = VideoJobState.FAILED
        self.error = message
        log_event(
            LOGGER,
            logging.ERROR,
            "video_job_failed",
            correlation_id=correlation_id,
            credential_rejected=self.state == VideoJobState.NO_KEY,
        )
        return VideoJobResult(status="failed", error=message)


__all__ = [
    "ASPECT_RATIOS",
    "KEY_REJECTED_MESSAGE",
    "NO_LINK_MESSAGE",
    "CancellationToken",
    "VideoJobClient",
    "VideoJobResult",
    "VideoJobState",
]
