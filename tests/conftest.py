"""Pytest configuration and fixtures for image-create-mcp tests."""

import base64
import pytest
from unittest.mock import MagicMock

# Sample base64-encoded 1x1 PNG image (valid PNG)
SAMPLE_PNG_BASE64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="

# Sample base64-encoded 1x1 JPEG image (valid JPEG)
SAMPLE_JPEG_BASE64 = "/9j/4AAQSkZJRgABAQEASABIAAD/2wBDAAEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQH/2wBDAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQH/wAARCAABAAEDAREAAhEBAxEB/8QAFQABAQAAAAAAAAAAAAAAAAAAAAv/xAAUEAEAAAAAAAAAAAAAAAAAAAAA/8QAFQEBAQAAAAAAAAAAAAAAAAAAAAX/xAAUEQEAAAAAAAAAAAAAAAAAAAAA/9oADAMBAAIRAxEAPwA/wA//2Q=="

SAMPLE_GIF_BYTES = b'GIF89a' + b'\x00' * 10
SAMPLE_WEBP_BYTES = b'RIFF\x00\x00\x00\x00WEBP' + b'\x00' * 10


@pytest.fixture
def sample_png_bytes():
    """Return valid PNG image bytes."""
    return base64.b64decode(SAMPLE_PNG_BASE64)


@pytest.fixture
def sample_jpeg_bytes():
    """Return valid JPEG image bytes."""
    return base64.b64decode(SAMPLE_JPEG_BASE64)


@pytest.fixture
def sample_png_base64():
    """Return base64-encoded PNG."""
    return SAMPLE_PNG_BASE64


@pytest.fixture
def sample_jpeg_base64():
    """Return base64-encoded JPEG."""
    return SAMPLE_JPEG_BASE64


@pytest.fixture
def mock_output_dir(tmp_path):
    """Create temporary output directory for tests."""
    output_dir = tmp_path / "generated-images"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@pytest.fixture
def provider_config():
    """A complete OpenAI alias."""
    from image_create_mcp.config import ProviderConfig

    return ProviderConfig(
        name="openai",
        api_key="sk-test-123",
        api_url="https://api.example.com/v1",
        model="dall-e-3",
    )


@pytest.fixture
def make_input():
    """Build a NormalizedInput with sensible defaults."""
    from image_create_mcp.models import ChatMessage, NormalizedInput, OutputOptions

    def _make(prompt="a cat", messages=None, params=None, model="test-model", output=None):
        if messages is None:
            messages = [ChatMessage(role="user", content=prompt)] if prompt else []
        return NormalizedInput(
            provider="test",
            model=model,
            prompt=prompt,
            messages=tuple(messages),
            params=params or {},
            output=output or OutputOptions(),
            request_id="req-test",
        )
    return _make


class FakeContent:
    """Stand-in for aiohttp's StreamReader."""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.chunks_read = 0

    async def iter_chunked(self, size):
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(self, status=200, body=b"", headers=None, chunks=None):
        self.status = status
        self.headers = headers or {}
        self._body = body
        self.content = FakeContent(chunks if chunks is not None else ([body] if body else []))

    async def text(self):
        return self._body.decode("utf-8") if isinstance(self._body, bytes) else self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


class FakeSession:
    """Stand-in for aiohttp.ClientSession."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def _respond(self, method, url, kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response

    def request(self, method, url, **kwargs):
        return self._respond(method, url, kwargs)

    def get(self, url, **kwargs):
        return self._respond("GET", url, kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


@pytest.fixture
def install_session(monkeypatch):
    """Route aiohttp.ClientSession in the transport module to a fake session."""
    from image_create_mcp import transport

    def _install(session):
        factory = MagicMock(return_value=session)
        monkeypatch.setattr(transport.aiohttp, "ClientSession", factory)
        return factory
    return _install
