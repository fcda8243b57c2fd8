"""Chat message log types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

USER = "user"
BOT = "bot"


class ChatState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


@dataclass
class ChatMessage:
    """One entry of the assistant conversation.

    Bot messages start empty and grow while their reply streams in.
    """

    sender: str
    text: str = ""

    def __post_init__(self) -> None:
        if self.sender not in (USER, BOT):
            raise ValueError(f"Unknown sender: {self.sender}")


__all__ = ["BOT", "USER", "ChatMessage", "ChatState"]
