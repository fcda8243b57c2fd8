"""Wardrobe assistant chat: message log and streamed reply assembly."""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import AsyncIterator, Iterable, List, Optional
from uuid import uuid4

from models.chat import BOT, USER, ChatMessage, ChatState
from models.wardrobe import ClothingItem, StorageLocation
from tools.gemini_chat import ChatSession
from wardrobe_app.errors import ChatBusyError
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

CHAT_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."


def serialize_wardrobe(
    locations: Iterable[StorageLocation], clothes: Iterable[ClothingItem]
) -> str:
    """Render the wardrobe snapshot the assistant reads with every request."""

    lines = ["LOCATIONS:"]
    lines.extend(f"- {location.name} (ID: {location.id})" for location in locations)
    lines.append("")
    lines.append("CLOTHING ITEMS:")
    lines.extend(
        f"- Name: {item.name}, Type: {item.type}, Color: {item.color}, "
        f"Season: {item.season}, Location ID: {item.storage_location_id}"
        for item in clothes
    )
    return "\n".join(lines) + "\n"


class ChatSessionManager:
    """Owns the message log and the conversation handle.

    Sending appends the user message and an empty bot placeholder as a pair,
    then grows the placeholder chunk by chunk. Only one send runs at a time.
    """

    def __init__(self, session: ChatSession) -> None:
        self.session = session
        self.messages: List[ChatMessage] = []
        self.state = ChatState.IDLE

    @property
    def busy(self) -> bool:
        """True while input should stay disabled."""

        return self.state != ChatState.IDLE

    def reset(self) -> None:
        """Start a fresh conversation and clear the log."""

        if self.busy:
            raise ChatBusyError()
        self.session.reset()
        self.messages = []

    async def stream_reply(
        self,
        text: str,
        locations: Iterable[StorageLocation],
        clothes: Iterable[ClothingItem],
    ) -> AsyncIterator[str]:
        """Send ``text`` and yield the bot message text after every update.

        Any failure raised by the session replaces the reply with
        ``CHAT_ERROR_MESSAGE``. Closing the iterator early stops reading the
        reply and frees the manager for the next send.
        """

        if not text or not text.strip():
            return
        if self.busy:
            raise ChatBusyError()

        self.state = ChatState.SENDING
        self.messages.append(ChatMessage(sender=USER, text=text))
        placeholder = ChatMessage(sender=BOT, text="")
        self.messages.append(placeholder)
        context = serialize_wardrobe(locations, clothes)
        # Passed explicitly: a context var set here would not survive the yields.
        correlation_id = uuid4().hex
        log_event(LOGGER, logging.INFO, "chat_send_started", correlation_id=correlation_id)
        chunk_count = 0
        try:
            try:
                async with aclosing(self.session.stream(text, context)) as stream:
                    async for chunk in stream:
                        self.state = ChatState.STREAMING
                        placeholder.text += chunk
                        chunk_count += 1
                        yield placeholder.text
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "chat_send_failed",
                    correlation_id=correlation_id,
                    chunks_received=chunk_count,
                    exc_info=True,
                )
                placeholder.text = CHAT_ERROR_MESSAGE
                self.state = ChatState.IDLE
                yield placeholder.text
                return
            log_event(
                LOGGER,
                logging.INFO,
                "chat_send_completed",
                correlation_id=correlation_id,
                chunks_received=chunk_count,
            )
        finally:
            self.state = ChatState.IDLE

    async def send(
        self,
        text: str,
        locations: Iterable[StorageLocation],
        clothes: Iterable[ClothingItem],
    ) -> Optional[ChatMessage]:
        """Send ``text`` and return the finished bot message."""

        if not text or not text.strip():
            return None
        async for _ in self.stream_reply(text, locations, clothes):
            pass
        return self.messages[-1]


__all__ = ["CHAT_ERROR_MESSAGE", "ChatSessionManager", "serialize_wardrobe"]
