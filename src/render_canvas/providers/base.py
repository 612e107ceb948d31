"""
Provider Base - Abstract interface for the image-transform collaborator.

This module provides the contract every image editing backend follows:
- TransformRequest: image + instruction (+ optional mask) + strength
- ImageTransformer: Abstract base class for provider implementations
- ProviderError and subclasses: the failures a transform can raise
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from render_canvas.core.images import ImageData


@dataclass
class TransformRequest:
    """
    Request for an image edit.

    Attributes:
        image: Encoded input image (already composited with any mask)
        instruction: What to change, in plain language
        mask: Encoded mask, for backends that take it separately
        strength: How freely the model may reinterpret the image, in [0, 1]
    """
    image: ImageData
    instruction: str
    mask: ImageData | None = None
    strength: float = 0.5

    def __post_init__(self) -> None:
        self.strength = max(0.0, min(1.0, float(self.strength)))


@dataclass
class ProviderConfig:
    """Configuration for a provider."""
    api_key: str = ""
    base_url: str | None = None  # Override default URL
    model: str | None = None


class ProviderError(Exception):
    """Base exception for provider errors."""
    pass


class AuthenticationError(ProviderError):
    """API key invalid or missing."""
    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded."""
    retry_after: float | None = None


class GenerationError(ProviderError):
    """Error during generation."""
    pass


class ImageTransformer(ABC):
    """
    Abstract base class for image editing providers.

    A transform is a single opaque async call. It either returns the edited
    image or raises a ProviderError; it is never retried.
    """

    # Provider identification
    id: str = ""
    name: str = ""
    base_url: str = ""

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def api_key(self) -> str:
        return self.config.api_key

    @property
    def is_configured(self) -> bool:
        """Check if provider has necessary configuration."""
        return bool(self.config.api_key)

    @abstractmethod
    async def transform(self, request: TransformRequest) -> ImageData:
        """
        Edit an image according to a request.

        Raises:
            AuthenticationError: Invalid API key
            RateLimitError: Rate limit exceeded
            GenerationError: The edit failed or returned no image
        """
        ...
