"""
Image transform providers.

The canvas talks to a single ImageTransformer; Gemini is the built-in one.
"""

from render_canvas.providers.base import (
    AuthenticationError,
    GenerationError,
    ImageTransformer,
    ProviderConfig,
    ProviderError,
    RateLimitError,
    TransformRequest,
)
from render_canvas.providers.gemini import GeminiTransformer


__all__ = [
    "AuthenticationError",
    "GenerationError",
    "GeminiTransformer",
    "ImageTransformer",
    "ProviderConfig",
    "ProviderError",
    "RateLimitError",
    "TransformRequest",
]
