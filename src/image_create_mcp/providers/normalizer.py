"""
Response Normalizer
===================

Image extraction for chat-completions style responses.

Gateways return generated images in several shapes:
- message.images[]: [{"type": "image_url", "image_url": {"url": ...}}]
- string content with markdown: ![alt](data:image/png;base64,...) or ![alt](https://...)
- content arrays mixing text, image_url and inline_data parts
  (Gemini-style parts relayed through an OpenAI-compatible gateway)

All shapes are scanned and the results concatenated in scan order.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from .base import ParsedImage, PendingImage, payload_from_base64

DATA_URL_PATTERN = re.compile(r"^data:(image/[A-Za-z0-9.+-]+);base64,(.+)$", re.DOTALL)
MARKDOWN_DATA_URL_PATTERN = re.compile(r"!\[[^\]]*\]\((data:image/[^;)\s]+;base64,[^)]+)\)")
MARKDOWN_URL_PATTERN = re.compile(r"!\[[^\]]*\]\((https?://[^)\s]+)\)")


def parse_data_url(url: str) -> Optional[Tuple[str, str]]:
    """Split data:image/<subtype>;base64,<payload> into (mime type, payload)."""
    match = DATA_URL_PATTERN.match(url.strip())
    if not match:
        return None
    return match.group(1).lower(), match.group(2)


def image_from_url(url: str) -> Optional[ParsedImage]:
    """Decode a data-URL in place, defer anything else to download."""
    url = url.strip()
    if url.startswith("data:"):
        parsed = parse_data_url(url)
        if parsed is None:
            return None
        mime_type, b64 = parsed
        return payload_from_base64(b64, "b64", mime_type)
    return PendingImage(url=url)


def extract_markdown_images(text: str) -> List[ParsedImage]:
    """Images embedded with markdown syntax: data-URLs first, then remote URLs."""
    images: List[ParsedImage] = []
    for match in MARKDOWN_DATA_URL_PATTERN.finditer(text):
        image = image_from_url(match.group(1))
        if image is not None:
            images.append(image)
    for match in MARKDOWN_URL_PATTERN.finditer(text):
        images.append(PendingImage(url=match.group(1)))
    return images


def _url_of(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item
    if not isinstance(item, dict):
        return None
    image_url = item.get("image_url")
    if isinstance(image_url, dict):
        return image_url.get("url")
    if isinstance(image_url, str):
        return image_url
    return item.get("url")


def _inline_image(part: Dict[str, Any]) -> Optional[ParsedImage]:
    inline = part.get("inline_data") or part.get("inlineData")
    if not isinstance(inline, dict) or not inline.get("data"):
        return None
    mime_type = inline.get("mime_type") or inline.get("mimeType")
    return payload_from_base64(inline["data"], "inline", mime_type)


def extract_from_parts(parts: List[Any]) -> List[ParsedImage]:
    """Images from a structured content array."""
    images: List[ParsedImage] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        part_type = part.get("type")

        if part_type == "image_url":
            url = _url_of(part)
            image = image_from_url(url) if url else None
            if image is not None:
                images.append(image)
        elif part_type == "text" and isinstance(part.get("text"), str):
            images.extend(extract_markdown_images(part["text"]))
        else:
            image = _inline_image(part)
            if image is not None:
                images.append(image)
    return images


def extract_message_images(message: Dict[str, Any]) -> List[ParsedImage]:
    """All images carried by one assistant message."""
    images: List[ParsedImage] = []

    for item in message.get("images") or []:
        url = _url_of(item)
        image = image_from_url(url) if url else None
        if image is not None:
            images.append(image)

    content = message.get("content")
    if isinstance(content, str):
        images.extend(extract_markdown_images(content))
    elif isinstance(content, list):
        images.extend(extract_from_parts(content))

    return images


def extract_chat_images(body: Any) -> List[ParsedImage]:
    """Images from every choice of a chat-completions response."""
    if not isinstance(body, dict):
        return []

    images: List[ParsedImage] = []
    for choice in body.get("choices") or []:
        message = choice.get("message") if isinstance(choice, dict) else None
        if isinstance(message, dict):
            images.extend(extract_message_images(message))
    return images
