"""Video job client and Veo REST service."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest
import requests

from tools.veo_service import ENTITY_NOT_FOUND_SIGNATURE, VeoRestService, VideoJobStatus, VideoService
from tools.video_jobs import (
    KEY_REJECTED_MESSAGE,
    NO_LINK_MESSAGE,
    CancellationToken,
    VideoJobClient,
    VideoJobState,
)
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import VideoJobError, WardrobeValidationError


class FakeVideoService(VideoService):
    """Returns scripted statuses; ``polls`` holds what each get_job returns."""

    def __init__(
        self,
        polls: List[VideoJobStatus],
        initial: Optional[VideoJobStatus] = None,
        asset: bytes = b"mp4-bytes",
        create_error: Optional[Exception] = None,
    ) -> None:
        self.initial = initial or VideoJobStatus(handle="operations/1", done=False)
        self.polls = list(polls)
        self.asset = asset
        self.create_error = create_error
        self.created: List[Dict[str, str]] = []
        self.fetched: List[str] = []
        self.get_calls = 0

    async def create_job(self, prompt: str, aspect_ratio: str, api_key: str) -> VideoJobStatus:
        if self.create_error is not None:
            raise self.create_error
        self.created.append({"prompt": prompt, "aspect_ratio": aspect_ratio, "api_key": api_key})
        return self.initial

    async def get_job(self, handle: str, api_key: str) -> VideoJobStatus:
        self.get_calls += 1
        return self.polls.pop(0)

    async def fetch_asset(self, video_uri: str, api_key: str) -> bytes:
        self.fetched.append(video_uri)
        return self.asset


class CountingSleep:
    def __init__(self, on_sleep=None) -> None:
        self.waits: List[float] = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.waits))


def _pending() -> VideoJobStatus:
    return VideoJobStatus(handle="operations/1", done=False)


def _done(uri: Optional[str] = "https://example.test/video.mp4", error: Optional[str] = None) -> VideoJobStatus:
    return VideoJobStatus(handle="operations/1", done=True, video_uri=uri, error=error)


def _client(service: VideoService, sleep: CountingSleep, api_key: Optional[str] = "key-123") -> VideoJobClient:
    return VideoJobClient(service, api_key=api_key, poll_interval=10.0, sleep=sleep)


def test_client_without_key_starts_in_no_key_state() -> None:
    client = VideoJobClient(FakeVideoService([]))

    assert client.state == VideoJobState.NO_KEY
    with pytest.raises(WardrobeValidationError):
        asyncio.run(client.generate("a red dress on a runway"))


def test_select_credential_moves_to_ready() -> None:
    client = VideoJobClient(FakeVideoService([]))
    client.select_credential("key-123")

    assert client.state == VideoJobState.READY
    assert client.has_credential


def test_polls_until_done_with_one_wait_per_poll() -> None:
    service = FakeVideoService([_pending(), _done()])
    sleep = CountingSleep()
    client = _client(service, sleep)

    result = asyncio.run(client.generate("a red dress on a runway", "9:16"))

    assert result.status == "complete"
    assert result.video == b"mp4-bytes"
    assert result.mime_type == "video/mp4"
    assert result.video_uri == "https://example.test/video.mp4"
    assert sleep.waits == [10.0, 10.0]
    assert service.get_calls == 2
    assert service.created == [{"prompt": "a red dress on a runway", "aspect_ratio": "9:16", "api_key": "key-123"}]
    assert service.fetched == ["https://example.test/video.mp4"]
    assert client.state == VideoJobState.COMPLETE


def test_job_done_on_creation_skips_polling() -> None:
    service = FakeVideoService([], initial=_done())
    sleep = CountingSleep()

    result = asyncio.run(_client(service, sleep).generate("jacket"))

    assert result.status == "complete"
    assert sleep.waits == []


def test_missing_link_fails_with_message() -> None:
    service = FakeVideoService([_done(uri=None)])
    client = _client(service, CountingSleep())

    result = asyncio.run(client.generate("jacket"))

    assert result.status == "failed"
    assert result.error == NO_LINK_MESSAGE
    assert client.state == VideoJobState.FAILED
    assert client.error == NO_LINK_MESSAGE
    assert service.fetched == []


def test_operation_error_is_reported() -> None:
    client = _client(FakeVideoService([_done(uri=None, error="Quota exceeded")]), CountingSleep())

    result = asyncio.run(client.generate("jacket"))

    assert result.error == "Quota exceeded"
    assert client.state == VideoJobState.FAILED


def test_rejected_key_returns_to_key_selection() -> None:
    error = VideoJobError(f"{ENTITY_NOT_FOUND_SIGNATURE}.", credential_rejected=True)
    client = _client(FakeVideoService([], create_error=error), CountingSleep())

    result = asyncio.run(client.generate("jacket"))

    assert result.status == "failed"
    assert result.error == KEY_REJECTED_MESSAGE
    assert client.state == VideoJobState.NO_KEY
    assert client.api_key is None


def test_failed_client_can_retry() -> None:
    service = FakeVideoService([_done(uri=None), _done()])
    client = _client(service, CountingSleep())

    assert asyncio.run(client.generate("jacket")).status == "failed"
    assert asyncio.run(client.generate("jacket")).status == "complete"


def test_cancellation_stops_polling() -> None:
    token = CancellationToken()
    service = FakeVideoService([_pending(), _pending(), _done()])
    sleep = CountingSleep(on_sleep=lambda count: token.cancel() if count == 2 else None)
    client = _client(service, sleep)

    result = asyncio.run(client.generate("jacket", cancel_token=token))

    assert result.status == "cancelled"
    assert service.get_calls == 1
    assert service.fetched == []
    assert client.state == VideoJobState.READY



def test_unexpected_service_error_fails_and_allows_retry() -> None:
    service = FakeVideoService([], initial=_done(), create_error=RuntimeError("socket closed"))
    client = _client(service, CountingSleep())

    result = asyncio.run(client.generate("jacket"))

    assert result.status == "failed"
    assert result.error == VideoJobError.default_message
    assert client.state == VideoJobState.FAILED

    service.create_error = None
    assert asyncio.run(client.generate("jacket")).status == "complete"


def test_cancel_during_final_poll_skips_download() -> None:
    token = CancellationToken()

    class CancellingService(FakeVideoService):
        async def get_job(self, handle: str, api_key: str) -> VideoJobStatus:
            token.cancel()
            return await super().get_job(handle, api_key)

    service = CancellingService([_done()])
    client = _client(service, CountingSleep())

    result = asyncio.run(client.generate("jacket", cancel_token=token))

    assert result.status == "cancelled"
    assert service.fetched == []
    assert client.state == VideoJobState.READY


@pytest.mark.parametrize(
    "prompt, aspect_ratio",
    [("", "16:9"), ("   ", "16:9"), ("jacket", "4:3")],
)
def test_invalid_requests_are_rejected(prompt: str, aspect_ratio: str) -> None:
    service = FakeVideoService([])
    client = _client(service, CountingSleep())

    with pytest.raises(WardrobeValidationError):
        asyncio.run(client.generate(prompt, aspect_ratio))
    assert service.created == []
    assert client.state == VideoJobState.READY


class _Response:
    def __init__(self, status_code: int = 200, payload: Any = None, content: bytes = b"") -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = content

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _service() -> VeoRestService:
    return VeoRestService(WardrobeConfig(video_api_base="https://veo.test/v1beta/"))


def test_rest_create_job_posts_prompt(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Dict[str, Any]] = []

    def fake_request(method, url, **kwargs):
        calls.append({"method": method, "url": url, **kwargs})
        return _Response(payload={"name": "models/veo/operations/abc"})

    monkeypatch.setattr(requests, "request", fake_request)

    status = asyncio.run(_service().create_job("jacket", "16:9", "key-123"))

    assert status == VideoJobStatus(handle="models/veo/operations/abc", done=False)
    assert calls[0]["method"] == "POST"
    assert calls[0]["url"] == "https://veo.test/v1beta/models/veo-2.0-generate-001:predictLongRunning"
    assert calls[0]["headers"]["x-goog-api-key"] == "key-123"
    assert calls[0]["json"] == {
        "instances": [{"prompt": "jacket"}],
        "parameters": {"aspectRatio": "16:9", "resolution": "720p", "sampleCount": 1},
    }


def test_rest_get_job_reads_video_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {
        "name": "models/veo/operations/abc",
        "done": True,
        "response": {"generateVideoResponse": {"generatedSamples": [{"video": {"uri": "https://veo.test/file"}}]}},
    }
    monkeypatch.setattr(requests, "request", lambda method, url, **kwargs: _Response(payload=payload))

    status = asyncio.run(_service().get_job("models/veo/operations/abc", "key-123"))

    assert status.done
    assert status.video_uri == "https://veo.test/file"
    assert status.error is None


def test_rest_not_found_marks_credential_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"error": {"code": 404, "message": "Requested entity was not found."}}
    monkeypatch.setattr(requests, "request", lambda method, url, **kwargs: _Response(404, payload))

    with pytest.raises(VideoJobError) as excinfo:
        asyncio.run(_service().get_job("models/veo/operations/abc", "key-123"))

    assert excinfo.value.credential_rejected


def test_rest_connection_error_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(method, url, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "request", boom)

    with pytest.raises(VideoJobError) as excinfo:
        asyncio.run(_service().create_job("jacket", "16:9", "key-123"))

    assert not excinfo.value.credential_rejected


def test_rest_fetch_asset_appends_key_and_rejects_empty_body(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: List[Dict[str, Any]] = []

    def fake_request(method, url, **kwargs):
        seen.append(kwargs)
        return _Response(content=b"")

    monkeypatch.setattr(requests, "request", fake_request)

    with pytest.raises(VideoJobError, match="Failed to fetch video blob"):
        asyncio.run(_service().fetch_asset("https://veo.test/file", "key-123"))
    assert seen[0]["params"] == {"key": "key-123"}


def test_plain_string_error_body_becomes_failed_result(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        requests, "request", lambda method, url, **kwargs: _Response(500, {"error": "quota exhausted"})
    )
    client = VideoJobClient(_service(), api_key="key-123", sleep=CountingSleep())

    result = asyncio.run(client.generate("jacket"))

    assert result.status == "failed"
    assert result.error == "quota exhausted"
    assert client.state == VideoJobState.FAILED
    assert not client.in_progress
