"""Wardrobe app bootstrap."""

from __future__ import annotations

import logging
from typing import Optional

import google.generativeai as genai

from agents.wardrobe_assistant import ChatSessionManager
from logic.navigation import NavigationController
from logic.wardrobe_state import ConfirmCallback, WardrobeStateManager
from memory.collection_store import CollectionStore, build_collection_store
from models.wardrobe import ClothingDraft, ClothingItem, image_data_url, parse_custom_tags
from tools.gemini_chat import ChatSession, GeminiChatSession
from tools.image_analysis import ImageAnalysisClient
from tools.veo_service import VeoRestService, VideoService
from tools.video_jobs import VideoJobClient
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.logging_config import configure_logging, get_logger, log_event, operation_context

LOGGER = get_logger(__name__)


class WardrobeApp:
    """Wires the wardrobe state, navigation and the AI clients together.

    Collaborators can be injected, which keeps tests and alternative front ends
    off the network.
    """

    def __init__(
        self,
        confirm: ConfirmCallback,
        config: WardrobeConfig | None = None,
        store: Optional[CollectionStore] = None,
        chat_session: Optional[ChatSession] = None,
        analysis_client: Optional[ImageAnalysisClient] = None,
        video_service: Optional[VideoService] = None,
    ) -> None:
        self.config = config or WardrobeConfig.from_env()
        configure_logging()
        if self.config.api_key:
            genai.configure(api_key=self.config.api_key)

        self.store = store or build_collection_store(self.config.store_backend, self.config.store_path)
        self.navigation = NavigationController()
        self.wardrobe = WardrobeStateManager(
            store=self.store, confirm=confirm, navigation=self.navigation
        )
        self.chat = ChatSessionManager(chat_session or GeminiChatSession(self.config))
        self.analysis = analysis_client or ImageAnalysisClient(self.config)
        self.video = VideoJobClient(
            video_service or VeoRestService(self.config),
            api_key=self.config.video_credential,
            poll_interval=self.config.video_poll_interval,
        )
        log_event(
            LOGGER,
            logging.INFO,
            "app_started",
            store_backend=self.config.store_backend,
            locations=len(self.wardrobe.locations),
            clothes=len(self.wardrobe.clothes),
        )

    async def catalog_photo(
        self,
        location_id: str,
        image_bytes: bytes,
        mime_type: str,
        custom_tags: str = "",
        overrides: dict | None = None,
    ) -> ClothingItem:
        """Analyze a photo and store the confirmed item in ``location_id``.

        ``overrides`` carries the fields the user edited after reviewing the
        suggestion.
        """

        with operation_context("app:catalog_photo"):
            analysis = await self.analysis.analyze(image_bytes, mime_type)
            fields = {**analysis.model_dump(), **(overrides or {})}
            draft = ClothingDraft(
                storage_location_id=location_id,
                image_data_url=image_data_url(image_bytes, mime_type),
                name=fields["name"],
                type=fields["type"],
                color=fields["color"],
                season=fields["season"],
                custom_tags=parse_custom_tags(custom_tags),
            )
            return self.wardrobe.add_clothing_item(draft)

    async def ask_assistant(self, message: str) -> str | None:
        """Send one chat message with the current wardrobe and return the reply."""

        reply = await self.chat.send(message, self.wardrobe.locations, self.wardrobe.clothes)
        return reply.text if reply else None


__all__ = ["WardrobeApp"]
