"""
Tests for the Gemini provider's request and response handling.
"""

import asyncio

import pytest

from render_canvas.core.images import ImageData
from render_canvas.providers import (
    AuthenticationError,
    GeminiTransformer,
    GenerationError,
    ProviderConfig,
    RateLimitError,
    TransformRequest,
)


@pytest.fixture
def provider():
    return GeminiTransformer(ProviderConfig(api_key="key"))


@pytest.fixture
def request_():
    return TransformRequest(ImageData(b"abc", "image/jpeg"), "add snow", strength=0.3)


class TestGeminiTransformer:

    def test_defaults(self, provider):
        assert provider.model == "gemini-2.5-flash-image"
        assert provider.base_url == "https://generativelanguage.googleapis.com/v1beta"

    def test_overrides(self):
        provider = GeminiTransformer(
            ProviderConfig(api_key="k", base_url="http://proxy", model="m")
        )
        assert provider.base_url == "http://proxy"
        assert provider.model == "m"

    def test_build_body(self, provider, request_):
        body = provider.build_body(request_)

        image_part, text_part = body["contents"][0]["parts"]
        assert image_part["inlineData"] == {"mimeType": "image/jpeg", "data": "YWJj"}
        assert text_part == {"text": "add snow"}
        assert body["generationConfig"] == {
            "temperature": 0.3,
            "responseModalities": ["Image"],
        }

    def test_parse_first_image(self, provider):
        response = {"candidates": [{"content": {"parts": [
            {"text": "here you go"},
            {"inlineData": {"mimeType": "image/png", "data": "eHl6"}},
        ]}}]}

        image = provider.parse_response(response)

        assert image == ImageData(b"xyz", "image/png")

    def test_parse_without_image(self, provider):
        with pytest.raises(GenerationError, match="No image generated"):
            provider.parse_response({"candidates": [{"content": {"parts": [{"text": "no"}]}}]})
        with pytest.raises(GenerationError):
            provider.parse_response({})

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, provider, status):
        with pytest.raises(AuthenticationError):
            provider._check_error(status, {})

    def test_rate_limit(self, provider):
        with pytest.raises(RateLimitError) as excinfo:
            provider._check_error(429, {})
        assert excinfo.value.retry_after == 60

    def test_api_error_message(self, provider):
        with pytest.raises(GenerationError, match="Google API error: bad image"):
            provider._check_error(400, {"error": {"message": "bad image"}})

    def test_success_status(self, provider):
        provider._check_error(200, {})

    def test_unconfigured_raises_before_request(self, request_):
        provider = GeminiTransformer(ProviderConfig())
        assert not provider.is_configured
        with pytest.raises(AuthenticationError):
            asyncio.run(provider.transform(request_))
