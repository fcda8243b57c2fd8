"""FastAPI bridge exposing the wardrobe core to a local front end."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
from contextlib import aclosing
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import ValidationError

from logic.validation import (
    AnalyzeImageRequest,
    ChatRequest,
    ClothingItemCreate,
    CredentialRequest,
    LocationCreate,
    VideoRequest,
    review_payload,
    validation_failure,
)
from logic.wardrobe_state import auto_confirm
from models.taxonomy import ALL_SEASONS_FILTER, SEASON_FILTERS, validate_season_filter
from models.wardrobe import ClothingDraft
from tools.video_jobs import CancellationToken
from wardrobe_app.app import WardrobeApp
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import (
    AnalysisFailed,
    ChatBusyError,
    PersistenceError,
    WardrobeError,
    WardrobeValidationError,
)
from wardrobe_app.logging_config import configure_logging

_ERROR_STATUS = {
    WardrobeValidationError: 400,
    ChatBusyError: 409,
    AnalysisFailed: 502,
    PersistenceError: 500,
}
DISCONNECT_CHECK_SECONDS = 1.0


def _item_payload(wardrobe: WardrobeApp, item) -> dict:
    return {**item.to_record(), "locationName": wardrobe.wardrobe.location_name(item.storage_location_id)}


async def _cancel_on_disconnect(request: Request, token: CancellationToken) -> None:
    while not token.cancelled:
        if await request.is_disconnected():
            token.cancel()
            return
        await asyncio.sleep(DISCONNECT_CHECK_SECONDS)


def create_app(wardrobe: WardrobeApp | None = None) -> FastAPI:
    """Build the API around a wardrobe app instance.

    Deletions arrive with an explicit ``confirm`` flag set by the front end's
    confirmation dialog; without it nothing is removed.
    """

    configure_logging()
    core = wardrobe or WardrobeApp(confirm=auto_confirm(False), config=WardrobeConfig.from_env())
    app = FastAPI(title="Wardrobe Catalog", version="0.1.0")
    app.state.wardrobe = core

    @app.exception_handler(WardrobeError)
    async def _wardrobe_error(_: Request, exc: WardrobeError) -> JSONResponse:
        status = next((code for kind, code in _ERROR_STATUS.items() if isinstance(exc, kind)), 500)
        return JSONResponse(status_code=status, content={"detail": exc.message})

    @app.get("/healthz")
    async def healthcheck() -> dict:
        return {
            "status": "ok",
            "service": "wardrobe-catalog",
            "environment": core.config.environment or "local",
            "store_backend": core.config.store_backend,
        }

    @app.get("/locations")
    async def list_locations() -> list:
        return [location.to_record() for location in core.wardrobe.locations]

    @app.post("/locations", status_code=201)
    async def add_location(request: LocationCreate) -> dict:
        return core.wardrobe.add_location(request.name).to_record()

    @app.delete("/locations/{location_id}")
    async def delete_location(location_id: str, confirm: bool = False) -> dict:
        deleted = await core.wardrobe.delete_location(location_id, confirm=auto_confirm(confirm))
        return {"deleted": deleted}

    @app.get("/locations/{location_id}/items")
    async def location_items(location_id: str) -> list:
        if core.wardrobe.get_location(location_id) is None:
            raise HTTPException(status_code=404, detail="Unknown storage location")
        return [item.to_record() for item in core.wardrobe.query_by_location(location_id)]

    @app.post("/items", status_code=201)
    async def add_item(request: ClothingItemCreate) -> dict:
        draft = ClothingDraft(**request.model_dump())
        return core.wardrobe.add_clothing_item(draft).to_record()

    @app.delete("/items/{item_id}")
    async def delete_item(item_id: str, confirm: bool = False) -> dict:
        deleted = await core.wardrobe.delete_clothing_item(item_id, confirm=auto_confirm(confirm))
        return {"deleted": deleted}

    @app.get("/search")
    async def search(term: str = "", season: str = ALL_SEASONS_FILTER) -> dict:
        try:
            season_filter = validate_season_filter(season)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"season must be one of {SEASON_FILTERS}") from exc
        results = core.wardrobe.search(term, season_filter)
        return {"items": [_item_payload(core, item) for item in results]}

    @app.post("/analyze")
    async def analyze(request: AnalyzeImageRequest) -> dict:
        try:
            image_bytes = base64.b64decode(request.image_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(status_code=400, detail="image_base64 is not valid base64") from exc
        analysis = await core.analysis.analyze(image_bytes, request.mime_type)
        return analysis.model_dump()

    @app.get("/chat/messages")
    async def chat_messages() -> dict:
        return {
            "busy": core.chat.busy,
            "messages": [{"sender": m.sender, "text": m.text} for m in core.chat.messages],
        }

    @app.post("/chat")
    async def chat(request: ChatRequest) -> StreamingResponse:
        if not request.message.strip():
            raise HTTPException(status_code=400, detail="message must not be blank")
        replies = core.chat.stream_reply(request.message, core.wardrobe.locations, core.wardrobe.clothes)
        # Pull the first snapshot here so a busy manager fails before headers go out.
        try:
            first = await replies.__anext__()
        except StopAsyncIteration:
            first = None

        async def _lines() -> AsyncIterator[str]:
            async with aclosing(replies):
                if first is not None:
                    yield json.dumps({"text": first}) + "\n"
                async for text in replies:
                    yield json.dumps({"text": text}) + "\n"

        return StreamingResponse(_lines(), media_type="application/x-ndjson")

    @app.post("/chat/reset")
    async def chat_reset() -> dict:
        core.chat.reset()
        return {"status": "ok"}

    @app.get("/video")
    async def video_state() -> dict:
        return {"state": core.video.state.value, "error": core.video.error}

    @app.post("/video/credential")
    async def select_credential(request: CredentialRequest) -> dict:
        core.video.select_credential(request.api_key)
        return {"state": core.video.state.value}

    @app.post("/video")
    async def generate_video(request: VideoRequest, http_request: Request) -> Response:
        token = CancellationToken()
        watcher = asyncio.create_task(_cancel_on_disconnect(http_request, token))
        try:
            result = await core.video.generate(request.prompt, request.aspect_ratio, token)
        finally:
            token.cancel()
            watcher.cancel()
        if result.status == "complete" and result.video is not None:
            return Response(content=result.video, media_type=result.mime_type)
        if result.status == "cancelled":
            return JSONResponse(status_code=499, content={"detail": "Video generation cancelled"})
        return JSONResponse(
            status_code=502,
            content={"detail": result.error, "state": core.video.state.value},
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        payload = review_payload("Invalid request payload", exc.errors())
        return JSONResponse(status_code=422, content=jsonable_encoder(payload))

    @app.exception_handler(ValidationError)
    async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content=validation_failure("Invalid request payload", exc))

    return app


if __name__ == "__main__":
    import uvicorn

    settings = WardrobeConfig.from_env()
    uvicorn.run("server.api:create_app", factory=True, host=settings.host, port=settings.port, reload=False)
