"""
HTTP Transport
==============

Outbound calls to upstream image APIs and bounded downloads of remote images.

- send_request: one call per tool invocation, JSON-or-raw-text bodies
- download_image: HTTPS only, 50 MiB cap, 30s timeout
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import aiohttp

from .errors import DecodeError, RequestTimeoutError, UpstreamHTTPError

logger = logging.getLogger("image-create-mcp.transport")

DEFAULT_TIMEOUT_MS = 60000
DOWNLOAD_TIMEOUT_SECONDS = 30
MAX_IMAGE_SIZE = 50 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class HttpRequest:
    """An outbound HTTP call."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Any] = None


@dataclass(frozen=True)
class HttpResponse:
    """Upstream answer; body is parsed JSON or {"rawText": ...}."""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def raw_text(self) -> Optional[str]:
        if isinstance(self.body, dict) and set(self.body) == {"rawText"}:
            return self.body["rawText"]
        return None


def _parse_body(text: str, content_type: str) -> Any:
    if "application/json" in content_type and text:
        try:
            return json.loads(text)
        except ValueError:
            return {"rawText": text}
    return {"rawText": text}


def _scrub_url(url: str) -> str:
    """Drop the query string so keys passed as parameters never reach logs."""
    return url.split("?", 1)[0]


async def send_request(request: HttpRequest, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> HttpResponse:
    """Send a request and return the response whatever its status code."""
    timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
    logger.info(f"{request.method} {_scrub_url(request.url)} (timeout={timeout_ms}ms)")

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                request.method,
                request.url,
                headers=request.headers,
                json=request.body,
            ) as response:
                text = await response.text()
                headers = {k.lower(): v for k, v in response.headers.items()}
                content_type = headers.get("content-type", "")
                return HttpResponse(
                    status=response.status,
                    headers=headers,
                    body=_parse_body(text, content_type),
                )
    except asyncio.TimeoutError:
        raise RequestTimeoutError(f"Request timed out after {timeout_ms}ms")
    except aiohttp.ClientError as e:
        raise UpstreamHTTPError(f"Request failed: {e}")


async def download_image(url: str) -> bytes:
    """Download a remote image over HTTPS with a hard size ceiling."""
    if urlparse(url).scheme.lower() != "https":
        raise DecodeError("Only HTTPS image URLs are supported")

    timeout = aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT_SECONDS)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise UpstreamHTTPError(
                        f"Image download failed: HTTP {response.status}",
                        status=response.status,
                    )

                content_length = response.headers.get("Content-Length")
                if content_length and content_length.isdigit() and int(content_length) > MAX_IMAGE_SIZE:
                    raise DecodeError(f"Image exceeds size limit: {content_length} bytes")

                data = bytearray()
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    data.extend(chunk)
                    if len(data) > MAX_IMAGE_SIZE:
                        raise DecodeError(f"Image exceeds size limit: more than {MAX_IMAGE_SIZE} bytes")
    except asyncio.TimeoutError:
        raise RequestTimeoutError(f"Image download timed out after {DOWNLOAD_TIMEOUT_SECONDS}s")
    except aiohttp.ClientError as e:
        raise UpstreamHTTPError(f"Image download failed: {e}")

    if not data:
        raise DecodeError("Downloaded image is empty")

    logger.info(f"Downloaded {len(data)} bytes from {_scrub_url(url)}")
    return bytes(data)
