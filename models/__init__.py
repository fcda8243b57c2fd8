"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.chat import ChatMessage, ChatState
from models.wardrobe import ClothingDraft, ClothingItem, StorageLocation

__all__ = ["ChatMessage", "ChatState", "ClothingDraft", "ClothingItem", "StorageLocation"]
