"""Exception types raised across the wardrobe catalog."""

from __future__ import annotations


class WardrobeError(Exception):
    """Base error carrying a message that is safe to show to the user."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PersistenceError(WardrobeError):
    """Raised when the collection store cannot be read or written."""

    default_message = "Could not save your wardrobe. Your latest change is not stored yet."


class WardrobeValidationError(WardrobeError):
    """Raised when input that the view should have blocked reaches the core."""

    default_message = "Please fill in the required fields."


class AnalysisFailed(WardrobeError):
    default_message = "Failed to analyze image. Please try again."


class ChatTransportError(WardrobeError):
    """Raised by a chat session when the streaming call fails."""

    default_message = "Chat service unavailable."


class ChatBusyError(WardrobeError):
    default_message = "Please wait for the current reply to finish."


class VideoJobError(WardrobeError):
    """Raised when creating, polling or downloading a video job fails.

    ``credential_rejected`` marks the case where the service no longer accepts
    the selected key and the user has to pick a new one.
    """

    default_message = "An unknown error occurred during video generation."

    def __init__(self, message: str | None = None, credential_rejected: bool = False):
        self.credential_rejected = credential_rejected
        super().__init__(message)


__all__ = [
    "WardrobeError",
    "PersistenceError",
    "WardrobeValidationError",
    "AnalysisFailed",
    "ChatTransportError",
    "ChatBusyError",
    "VideoJobError",
]
