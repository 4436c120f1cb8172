"""
OpenAI-compatible Chat Provider
===============================

Image models served through a generic /chat/completions gateway.
Images come back inside the assistant message (markdown or content parts)
and are recovered by the response normalizer.
"""

from typing import Any, Dict, List

from ..config import ProviderConfig
from ..models import NormalizedInput
from ..transport import HttpRequest
from .base import ParsedImage, ProviderAdapter
from .normalizer import extract_chat_images


def chat_messages(input: NormalizedInput) -> List[Dict[str, Any]]:
    """Messages array for chat-completions APIs, falling back to the prompt."""
    if input.messages:
        return [message.to_dict() for message in input.messages]
    return [{"role": "user", "content": input.prompt}]


class OpenAIChatAdapter(ProviderAdapter):
    """OpenAI-compatible chat-completions endpoint returning images."""

    name = "openai-chat"
    display_name = "OpenAI Chat"
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4o"

    def build_request(self, input: NormalizedInput, config: ProviderConfig) -> HttpRequest:
        body: Dict[str, Any] = {
            "model": input.model,
            "messages": chat_messages(input),
        }
        for key in ("modalities", "temperature", "top_p", "max_tokens"):
            if input.params.get(key) is not None:
                body[key] = input.params[key]

        return HttpRequest(
            method="POST",
            url=f"{self.base_url(config)}/chat/completions",
            headers=self.json_headers(config, {"Authorization": f"Bearer {config.api_key}"}),
            body=body,
        )

    def parse_images(self, body: Any) -> List[ParsedImage]:
        return extract_chat_images(body)
