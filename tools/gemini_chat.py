"""Conversational sessions backed by Gemini streaming chat."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import BlockedPromptException, StopCandidateException

from logic.safety import assistant_instruction, compose_chat_request
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import ChatTransportError
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

_CHAT_ERRORS = (
    google_exceptions.GoogleAPIError,
    BlockedPromptException,
    StopCandidateException,
)


class ChatSession(ABC):
    """A conversation handle that keeps multi-turn context between sends."""

    @abstractmethod
    def stream(self, message: str, context: str) -> AsyncIterator[str]:
        """Send ``message`` with a wardrobe snapshot and yield reply fragments.

        Raises :class:`ChatTransportError` when the call fails.
        """

    @abstractmethod
    def reset(self) -> None:
        """Forget the conversation; the next send starts a new one."""


class GeminiChatSession(ChatSession):
    """Lazily creates one Gemini chat and reuses it until reset.

    The system instruction embeds the wardrobe snapshot current at creation;
    every later request also carries the snapshot current at send time.
    """

    def __init__(
        self,
        config: WardrobeConfig,
        model_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.config = config
        self._model_factory = model_factory or self._default_model
        self._chat: Any | None = None

    def _default_model(self, system_instruction: str) -> Any:
        return genai.GenerativeModel(self.config.chat_model, system_instruction=system_instruction)

    @property
    def active(self) -> bool:
        return self._chat is not None

    def _ensure_chat(self, context: str) -> Any:
        if self._chat is None:
            model = self._model_factory(assistant_instruction(context))
            self._chat = model.start_chat()
            log_event(LOGGER, logging.INFO, "chat_session_created", model=self.config.chat_model)
        return self._chat

    def reset(self) -> None:
        if self._chat is not None:
            log_event(LOGGER, logging.INFO, "chat_session_reset")
        self._chat = None

    async def stream(self, message: str, context: str) -> AsyncIterator[str]:
        completed = False
        try:
            chat = self._ensure_chat(context)
            response = await chat.send_message_async(compose_chat_request(message, context), stream=True)
            async for chunk in response:
                text = chunk.text
                if text:
                    yield text
            completed = True
        except _CHAT_ERRORS as exc:
            log_event(LOGGER, logging.WARNING, "chat_service_error", error_type=type(exc).__name__)
            raise ChatTransportError() from exc
        except Exception as exc:
            log_event(LOGGER, logging.ERROR, "chat_stream_crashed", error_type=type(exc).__name__, exc_info=True)
            raise ChatTransportError() from exc
        finally:
            # A half-read stream leaves the Gemini chat history unusable.
            if not completed:
                self.reset()


__all__ = ["ChatSession", "GeminiChatSession"]
