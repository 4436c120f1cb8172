"""
OpenRouter Provider
===================

Image-capable models behind OpenRouter's chat-completions API.

API: POST {base}/chat/completions with "modalities": ["image", "text"]
Images arrive in message.images[], markdown content or image_url parts.
"""

from typing import Any, Dict, List

from ..config import ProviderConfig
from ..models import NormalizedInput
from ..transport import HttpRequest
from .base import ParsedImage, ProviderAdapter
from .normalizer import extract_chat_images
from .openai_chat import chat_messages

REFERER = "https://github.com/image-create-mcp"
TITLE = "Image Create MCP"


class OpenRouterAdapter(ProviderAdapter):
    """OpenRouter chat completions with image output."""

    name = "openrouter"
    display_name = "OpenRouter"
    default_base_url = "https://openrouter.ai/api/v1"
    default_model = "google/gemini-2.5-flash-image-preview"

    def build_request(self, input: NormalizedInput, config: ProviderConfig) -> HttpRequest:
        params = input.params
        body: Dict[str, Any] = {
            "model": input.model,
            "messages": chat_messages(input),
            "modalities": params.get("modalities") or ["image", "text"],
            "max_tokens": params.get("max_tokens") or 4096,
        }
        for key in ("temperature", "top_p"):
            if params.get(key) is not None:
                body[key] = params[key]

        headers = self.json_headers(config, {
            "Authorization": f"Bearer {config.api_key}",
            "HTTP-Referer": REFERER,
            "X-Title": TITLE,
        })
        return HttpRequest(
            method="POST",
            url=f"{self.base_url(config)}/chat/completions",
            headers=headers,
            body=body,
        )

    def parse_images(self, body: Any) -> List[ParsedImage]:
        return extract_chat_images(body)
