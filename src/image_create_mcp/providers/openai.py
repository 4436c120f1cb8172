"""
OpenAI Images Provider
======================

Dedicated image endpoint (DALL-E / gpt-image).

API: POST {base}/images/generations
Response: {"data": [{"b64_json": ...} | {"url": ...}]}
"""

from typing import Any, List

from ..config import ProviderConfig
from ..errors import InvalidInputError
from ..models import NormalizedInput
from ..transport import HttpRequest
from .base import (
    ParsedImage,
    PendingImage,
    ProviderAdapter,
    payload_from_base64,
)


class OpenAIAdapter(ProviderAdapter):
    """OpenAI-style /images/generations endpoint."""

    name = "openai"
    display_name = "OpenAI"
    default_base_url = "https://api.openai.com/v1"
    default_model = "dall-e-3"

    def validate(self, input: NormalizedInput, config: ProviderConfig) -> None:
        super().validate(input, config)
        # the images endpoint takes text only
        if not input.prompt:
            raise InvalidInputError("OpenAI image generation requires a text prompt")

    def build_request(self, input: NormalizedInput, config: ProviderConfig) -> HttpRequest:
        params = input.params
        body = {
            "model": input.model,
            "prompt": input.prompt,
            "n": params.get("n") or 1,
            "size": params.get("size") or "1024x1024",
            "quality": params.get("quality") or "standard",
            "response_format": params.get("response_format") or "b64_json",
        }
        for key in ("style", "background"):
            if params.get(key):
                body[key] = params[key]

        return HttpRequest(
            method="POST",
            url=f"{self.base_url(config)}/images/generations",
            headers=self.json_headers(config, {"Authorization": f"Bearer {config.api_key}"}),
            body=body,
        )

    def parse_images(self, body: Any) -> List[ParsedImage]:
        images: List[ParsedImage] = []
        data = body.get("data") if isinstance(body, dict) else None
        for item in data or []:
            if not isinstance(item, dict):
                continue
            if item.get("b64_json"):
                images.append(payload_from_base64(item["b64_json"], "b64"))
            elif item.get("url"):
                images.append(PendingImage(url=item["url"]))
        return images
