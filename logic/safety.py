"""System prompts shared by the wardrobe assistant."""

from __future__ import annotations

from typing import List

GUARDRAIL_BULLETS: List[str] = [
    "Answer from the wardrobe snapshot you are given; say so when an item is not listed.",
    "Refer to storage locations by name, not by their internal ids.",
    "Be friendly and concise.",
    "For outfit combinations or fashion advice, take your time to think before answering.",
]


def assistant_instruction(context: str) -> str:
    """Compose the system prompt sent when a chat session is created."""

    boundary_text = "\n".join(f"- {bullet}" for bullet in GUARDRAIL_BULLETS)
    return (
        "You are a helpful wardrobe assistant chatbot. The user's current wardrobe "
        f"contains the following items and locations:\n\n{context}\n\n"
        "Follow these guidelines when answering the user's questions:\n"
        f"{boundary_text}"
    )


def compose_chat_request(message: str, context: str) -> str:
    """Attach the latest wardrobe snapshot to a user message."""

    return f"Current wardrobe:\n{context}\nUser message: {message}"


__all__ = ["GUARDRAIL_BULLETS", "assistant_instruction", "compose_chat_request"]
