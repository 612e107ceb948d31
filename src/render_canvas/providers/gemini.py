"""
Google Gemini Provider - Image editing via Gemini image models.

Sends the input image and instruction to :generateContent and returns the
first image part of the first candidate.

API Reference:
- https://ai.google.dev/gemini-api/docs/image-generation
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from render_canvas.core.images import ImageData
from render_canvas.providers.base import (
    ImageTransformer,
    TransformRequest,
    ProviderConfig,
    GenerationError,
    AuthenticationError,
    RateLimitError,
)


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"


class GeminiTransformer(ImageTransformer):
    """Google Gemini image editing provider."""

    id = "gemini"
    name = "Google Gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        if config.base_url:
            self.base_url = config.base_url
        self.model = config.model or DEFAULT_MODEL

    async def transform(self, request: TransformRequest) -> ImageData:
        """Edit an image using :generateContent."""
        if not self.is_configured:
            raise AuthenticationError("No Google API key configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = self.build_body(request)

        logger.info("Requesting edit from %s (strength %.2f)", self.model, request.strength)
        response = await self._post(url, body)
        return self.parse_response(response)

    def build_body(self, request: TransformRequest) -> dict[str, Any]:
        """Request body: inline image part, then the text instruction."""
        parts = [
            {
                "inlineData": {
                    "mimeType": request.image.mime_type,
                    "data": request.image.to_base64(),
                }
            },
            {"text": request.instruction},
        ]
        return {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": request.strength,
                "responseModalities": ["Image"],
            },
        }

    def parse_response(self, data: dict) -> ImageData:
        """Return the first inline image of the first candidate."""
        candidates = data.get("candidates", [])
        if candidates:
            content = candidates[0].get("content", {})
            for part in content.get("parts", []):
                if "inlineData" in part:
                    inline_data = part["inlineData"]
                    return ImageData.from_base64(
                        inline_data["data"],
                        inline_data.get("mimeType", "image/png"),
                    )
        raise GenerationError("No image generated in response")

    async def _post(self, url: str, body: dict) -> dict:
        """Make POST request with JSON body and API key in query string."""
        # Google API uses key in query string
        url_with_key = f"{url}?key={self.api_key}"

        async with aiohttp.ClientSession() as session:
            async with session.post(
                url_with_key,
                json=body,
                headers={"Content-Type": "application/json"},
            ) as resp:
                data = await resp.json(content_type=None)
                self._check_error(resp.status, data)
                return data

    def _check_error(self, status: int, data: dict) -> None:
        """Check for API errors."""
        if status == 401 or status == 403:
            raise AuthenticationError("Invalid Google API key")
        elif status == 429:
            error = RateLimitError("Google API rate limit exceeded")
            error.retry_after = 60
            raise error
        elif status >= 400:
            error_msg = data.get("error", {}).get("message", "Unknown error")
            raise GenerationError(f"Google API error: {error_msg}")
