"""
Gemini Provider
===============

Google Gemini native image generation.

API: POST {base}/models/{model}:generateContent?key={apiKey}
Response: candidates[].content.parts[].inlineData {mimeType, data}
"""

import mimetypes
from typing import Any, Dict, List, Optional

from ..config import ProviderConfig
from ..models import ContentPart, NormalizedInput
from ..transport import HttpRequest
from .base import (
    ParsedImage,
    ProviderAdapter,
    payload_from_base64,
    redact_secrets,
)
from .normalizer import parse_data_url


def _to_gemini_part(part: ContentPart) -> Optional[Dict[str, Any]]:
    part_type = part.get("type")
    if part_type == "text":
        return {"text": part.get("text", "")}

    if part_type == "inline_data":
        inline = part.get("inline_data") or {}
        return {"inlineData": {"mimeType": inline.get("mime_type", "image/png"), "data": inline.get("data", "")}}

    if part_type == "image_url":
        url = (part.get("image_url") or {}).get("url", "")
        parsed = parse_data_url(url)
        if parsed:
            mime_type, data = parsed
            return {"inlineData": {"mimeType": mime_type, "data": data}}
        if url:
            mime_type = mimetypes.guess_type(url.split("?", 1)[0])[0] or "image/png"
            return {"fileData": {"mimeType": mime_type, "fileUri": url}}

    return None


class GeminiAdapter(ProviderAdapter):
    """Gemini generateContent with TEXT and IMAGE response modalities."""

    name = "gemini"
    display_name = "Gemini"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    default_model = "gemini-2.0-flash-exp-image-generation"

    def build_request(self, input: NormalizedInput, config: ProviderConfig) -> HttpRequest:
        params = input.params
        model = input.model or self.default_model

        contents = []
        system_parts = []
        for message in input.messages:
            parts = [p for p in (_to_gemini_part(part) for part in message.parts) if p]
            if not parts:
                continue
            if message.role == "system":
                system_parts.extend(parts)
                continue
            contents.append({
                "role": "model" if message.role == "assistant" else "user",
                "parts": parts,
            })

        if not contents and input.prompt:
            contents.append({"role": "user", "parts": [{"text": input.prompt}]})

        generation_config: Dict[str, Any] = {"responseModalities": ["TEXT", "IMAGE"]}
        image_config = {key: params[key] for key in ("aspectRatio", "imageSize") if params.get(key)}
        if image_config:
            generation_config["imageConfig"] = image_config

        body: Dict[str, Any] = {"contents": contents, "generationConfig": generation_config}
        if system_parts:
            body["systemInstruction"] = {"parts": system_parts}

        return HttpRequest(
            method="POST",
            url=f"{self.base_url(config)}/models/{model}:generateContent?key={config.api_key}",
            headers=self.json_headers(config),
            body=body,
        )

    def parse_images(self, body: Any) -> List[ParsedImage]:
        images: List[ParsedImage] = []
        candidates = body.get("candidates") if isinstance(body, dict) else None
        for candidate in candidates if isinstance(candidates, list) else []:
            content = candidate.get("content") if isinstance(candidate, dict) else None
            parts = content.get("parts") if isinstance(content, dict) else None
            for part in parts if isinstance(parts, list) else []:
                if not isinstance(part, dict):
                    continue
                inline = part.get("inlineData") or part.get("inline_data")
                if not isinstance(inline, dict) or not inline.get("data"):
                    continue
                mime_type = inline.get("mimeType") or inline.get("mime_type")
                images.append(payload_from_base64(inline["data"], "inline", mime_type))
        return images

    def redact(self, message: str) -> str:
        """Never echo the API key carried in the query string."""
        return redact_secrets(message)
