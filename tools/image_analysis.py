"""Gemini-backed attribute extraction for clothing photos."""

from __future__ import annotations

import json
import logging
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import BlockedPromptException, StopCandidateException
from pydantic import ValidationError

from logic.validation import ClothingAnalysis
from models.taxonomy import SEASONS
from tools.observability import instrument_call
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import AnalysisFailed
from wardrobe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

ANALYSIS_PROMPT = (
    "Analyze this image of a clothing item. Identify its name, type, primary color, "
    "and the most suitable season. Return the response as a JSON object matching the "
    "provided schema. Be accurate."
)

CLOTHING_ANALYSIS_SCHEMA = genai.protos.Schema(
    type=genai.protos.Type.OBJECT,
    properties={
        "name": genai.protos.Schema(
            type=genai.protos.Type.STRING,
            description="A short, descriptive name for the clothing item (e.g., 'Blue Striped T-Shirt').",
        ),
        "type": genai.protos.Schema(
            type=genai.protos.Type.STRING,
            description="The type of clothing (e.g., 'T-Shirt', 'Jeans', 'Dress', 'Jacket').",
        ),
        "color": genai.protos.Schema(
            type=genai.protos.Type.STRING,
            description="The dominant color of the clothing item.",
        ),
        "season": genai.protos.Schema(
            type=genai.protos.Type.STRING,
            format_="enum",
            enum=SEASONS,
            description="The most suitable season for this item.",
        ),
    },
    required=["name", "type", "color", "season"],
)

_ANALYSIS_ERRORS = (
    google_exceptions.GoogleAPIError,
    BlockedPromptException,
    StopCandidateException,
    ValidationError,
    ValueError,
)


class ImageAnalysisClient:
    """Sends a photo to the analysis model and returns a structured guess."""

    def __init__(self, config: WardrobeConfig, model: Any | None = None) -> None:
        self.config = config
        self.model = model or genai.GenerativeModel(config.analysis_model)
        self.generation_config = genai.GenerationConfig(
            response_mime_type="application/json",
            response_schema=CLOTHING_ANALYSIS_SCHEMA,
        )

    @instrument_call("gemini", "analyze_image")
    async def _generate(self, image_bytes: bytes, mime_type: str) -> str:
        response = await self.model.generate_content_async(
            [{"mime_type": mime_type, "data": image_bytes}, ANALYSIS_PROMPT],
            generation_config=self.generation_config,
        )
        return response.text

    async def analyze(self, image_bytes: bytes, mime_type: str) -> ClothingAnalysis:
        """Return name, type, color and season for a clothing photo.

        Raises :class:`AnalysisFailed` for every failure: transport and
        credential errors, blocked responses and payloads that do not match
        the schema.
        """

        if not image_bytes:
            raise AnalysisFailed("Choose a photo to analyze.")
        try:
            raw_text = await self._generate(image_bytes, mime_type)
            payload = json.loads(raw_text.strip())
            return ClothingAnalysis.model_validate(payload)
        except _ANALYSIS_ERRORS as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "image_analysis_failed",
                mime_type=mime_type,
                error_type=type(exc).__name__,
            )
            raise AnalysisFailed() from exc
        except Exception as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "image_analysis_crashed",
                mime_type=mime_type,
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise AnalysisFailed() from exc


__all__ = ["ANALYSIS_PROMPT", "CLOTHING_ANALYSIS_SCHEMA", "ImageAnalysisClient"]
