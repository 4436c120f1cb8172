"""Provider adapters and the registry that selects them."""

from typing import Dict, List

from ..config import ProviderConfig
from ..errors import ConfigMissingError
from .base import (
    ProviderAdapter,
    ImageFormat,
    ImagePayload,
    PendingImage,
    ParsedImage,
    detect_image_format,
    infer_mime_type,
    decode_base64,
)
from .openai import OpenAIAdapter
from .openai_chat import OpenAIChatAdapter
from .gemini import GeminiAdapter
from .openrouter import OpenRouterAdapter

# Adapter used for aliases that neither set a type nor name an adapter
DEFAULT_ADAPTER = "openai-chat"

ADAPTERS: Dict[str, ProviderAdapter] = {}


def register_adapter(adapter: ProviderAdapter) -> None:
    ADAPTERS[adapter.name] = adapter


def get_adapter(name: str) -> ProviderAdapter:
    adapter = ADAPTERS.get(name)
    if adapter is None:
        raise ConfigMissingError(
            f"Unsupported provider type: {name}. Supported: {', '.join(supported_adapters())}"
        )
    return adapter


def supported_adapters() -> List[str]:
    return list(ADAPTERS)


def adapter_for(config: ProviderConfig) -> ProviderAdapter:
    """Pick the adapter for an alias: explicit type, alias name, then the default."""
    if config.type:
        return get_adapter(config.type)
    if config.name in ADAPTERS:
        return ADAPTERS[config.name]
    return get_adapter(DEFAULT_ADAPTER)


for _adapter in (OpenAIAdapter(), OpenAIChatAdapter(), GeminiAdapter(), OpenRouterAdapter()):
    register_adapter(_adapter)


__all__ = [
    "ProviderAdapter",
    "ImageFormat",
    "ImagePayload",
    "PendingImage",
    "ParsedImage",
    "detect_image_format",
    "infer_mime_type",
    "decode_base64",
    "OpenAIAdapter",
    "OpenAIChatAdapter",
    "GeminiAdapter",
    "OpenRouterAdapter",
    "ADAPTERS",
    "DEFAULT_ADAPTER",
    "register_adapter",
    "get_adapter",
    "supported_adapters",
    "adapter_for",
]
