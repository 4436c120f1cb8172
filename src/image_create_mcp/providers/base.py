"""Base adapter interface and image payload types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import base64
import binascii
import json
import re

from ..config import ProviderConfig
from ..errors import (
    ConfigMissingError,
    DecodeError,
    InvalidInputError,
    NoImageDataError,
    UpstreamHTTPError,
)
from ..models import NormalizedInput
from ..transport import HttpRequest, HttpResponse

DIAGNOSTIC_LIMIT = 500

_B64_ALPHABET = re.compile(r"^[A-Za-z0-9+/_-]*$")
_KEY_PARAM = re.compile(r"key=[^&\s\"']+", re.IGNORECASE)


class ImageFormat(Enum):
    """Supported image formats."""
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    UNKNOWN = "unknown"

    @property
    def extension(self) -> str:
        """Get file extension for this format; unknown data is saved as PNG."""
        return {
            ImageFormat.JPEG: ".jpg",
            ImageFormat.PNG: ".png",
            ImageFormat.WEBP: ".webp",
            ImageFormat.GIF: ".gif",
            ImageFormat.UNKNOWN: ".png",
        }[self]

    @property
    def mime_type(self) -> str:
        """Get MIME type for this format."""
        return {
            ImageFormat.JPEG: "image/jpeg",
            ImageFormat.PNG: "image/png",
            ImageFormat.WEBP: "image/webp",
            ImageFormat.GIF: "image/gif",
            ImageFormat.UNKNOWN: "image/png",
        }[self]

    @classmethod
    def from_mime_type(cls, mime_type: Optional[str]) -> "ImageFormat":
        normalized = (mime_type or "").split(";", 1)[0].strip().lower()
        if normalized == "image/jpg":
            normalized = "image/jpeg"
        for fmt in cls:
            if fmt is not cls.UNKNOWN and fmt.mime_type == normalized:
                return fmt
        return cls.UNKNOWN


def detect_image_format(data: bytes) -> ImageFormat:
    """Detect image format from magic bytes."""
    if len(data) < 4:
        return ImageFormat.UNKNOWN

    # PNG: 89504E47
    if data[:4] == b'\x89PNG':
        return ImageFormat.PNG
    # JPEG: FFD8FF
    if data[:3] == b'\xff\xd8\xff':
        return ImageFormat.JPEG
    # WebP: RIFF container
    if data[:4] == b'RIFF':
        return ImageFormat.WEBP
    # GIF: GIF87a or GIF89a
    if data[:4] == b'GIF8':
        return ImageFormat.GIF

    return ImageFormat.UNKNOWN


def infer_mime_type(data: bytes) -> str:
    """MIME type from magic bytes, image/png when unrecognized."""
    return detect_image_format(data).mime_type


def resolve_mime_type(data: bytes, declared: Optional[str] = None) -> str:
    """Prefer the sniffed type, then a known declared type, then image/png."""
    detected = detect_image_format(data)
    if detected is not ImageFormat.UNKNOWN:
        return detected.mime_type
    return ImageFormat.from_mime_type(declared).mime_type


def decode_base64(text: str) -> bytes:
    """Decode base64 leniently: padding and the URL-safe alphabet are tolerated."""
    cleaned = re.sub(r"\s+", "", text or "").rstrip("=")
    if not _B64_ALPHABET.match(cleaned):
        raise DecodeError("Invalid base64 image data")
    cleaned = cleaned.replace("-", "+").replace("_", "/")
    # a lone trailing sextet carries no full byte
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        data = base64.b64decode(cleaned)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 image data: {e}")
    if not data:
        raise DecodeError("Base64 image data is empty")
    return data


def encode_base64(data: bytes) -> str:
    """Encode image bytes to base64."""
    return base64.b64encode(data).decode("utf-8")


def redact_secrets(text: str, secrets: Optional[List[str]] = None) -> str:
    """Mask key=... query parameters and any literal secret values."""
    text = _KEY_PARAM.sub("key=***", text)
    for secret in secrets or []:
        if secret:
            text = text.replace(secret, "***")
    return text


@dataclass(frozen=True)
class ImagePayload:
    """Decoded image bytes ready to be saved."""
    data: bytes
    mime_type: str
    source: str  # b64 | url | inline

    def __post_init__(self):
        if not self.data:
            raise DecodeError("Image payload is empty")


@dataclass(frozen=True)
class PendingImage:
    """A remote image that still has to be downloaded."""
    url: str
    source: str = "url"


ParsedImage = Union[ImagePayload, PendingImage]


def payload_from_base64(b64: str, source: str, declared_mime: Optional[str] = None) -> ImagePayload:
    data = decode_base64(b64)
    return ImagePayload(data=data, mime_type=resolve_mime_type(data, declared_mime), source=source)


def extract_error_message(body: Any) -> Optional[str]:
    """Pull a vendor's structured error message out of a response body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return str(errors[0]["message"])
    if body.get("message"):
        return str(body["message"])
    return None


def response_excerpt(body: Any, limit: int = DIAGNOSTIC_LIMIT) -> str:
    """Bounded, redacted text form of a response body for diagnostics."""
    if isinstance(body, str):
        text = body
    else:
        try:
            text = json.dumps(body, ensure_ascii=False)
        except (TypeError, ValueError):
            text = repr(body)
    text = redact_secrets(text)
    if len(text) > limit:
        return text[:limit] + f"... ({len(text) - limit} more chars)"
    return text


class ProviderAdapter(ABC):
    """Translates normalized input to one vendor's HTTP API and back."""

    name: str = "base"
    display_name: str = "Base Adapter"
    default_base_url: str = ""
    default_model: str = ""

    def validate(self, input: NormalizedInput, config: ProviderConfig) -> None:
        """Raise when the request cannot be served by this vendor."""
        if not config.api_key:
            raise ConfigMissingError(f"{self.display_name} API key is not configured")
        if not input.prompt and not input.messages:
            raise InvalidInputError(f"{self.display_name} requires a prompt or messages")

    @abstractmethod
    def build_request(self, input: NormalizedInput, config: ProviderConfig) -> HttpRequest:
        """Build the vendor-specific HTTP request."""
        pass

    @abstractmethod
    def parse_images(self, body: Any) -> List[ParsedImage]:
        """Extract images from a successful response body."""
        pass

    def parse_response(self, response: HttpResponse) -> List[ParsedImage]:
        """Check status, extract images and fail when there are none."""
        if response.status != 200:
            message = extract_error_message(response.body) or f"HTTP {response.status}"
            raise UpstreamHTTPError(
                f"{self.display_name} API error: {self.redact(message)}",
                status=response.status,
            )

        images = self.parse_images(response.body)
        if not images:
            raw_text = response.raw_text
            excerpt = response_excerpt(raw_text if raw_text is not None else response.body)
            raise NoImageDataError(
                f"{self.display_name} response contained no image data. Response: {excerpt}",
                details=excerpt,
            )
        return images

    def base_url(self, config: ProviderConfig) -> str:
        return (config.api_url or self.default_base_url).rstrip("/")

    def json_headers(self, config: ProviderConfig, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", **(extra or {})}
        headers.update(config.headers)
        return headers

    def redact(self, message: str) -> str:
        return message
