"""Tool argument validation and normalization."""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .config import AppConfig, ProviderConfig
from .errors import InvalidInputError
from .models import (
    OVERWRITE_POLICIES,
    ROLES,
    ChatMessage,
    ContentPart,
    NormalizedInput,
    OutputOptions,
)
from .providers.base import ProviderAdapter, encode_base64
from .providers.normalizer import parse_data_url
from .storage import resolve_output_dir

logger = logging.getLogger("image-create-mcp.validation")

ALLOWED_IMAGE_EXTENSIONS = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}

PART_TYPES = ("text", "image_url", "inline_data")


def _enum(*values: Any) -> Callable[[Any], bool]:
    return lambda value: value in values


def _integer(low: int, high: Optional[int] = None) -> Callable[[Any], bool]:
    def check(value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        return value >= low and (high is None or value <= high)
    return check


def _number(low: float, high: float) -> Callable[[Any], bool]:
    def check(value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return low <= value <= high
    return check


def _modalities(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(v in ("image", "text") for v in value)


OPENAI_PARAMS = {
    "n": _integer(1, 10),
    "size": _enum("256x256", "512x512", "1024x1024", "1792x1024", "1024x1792",
                  "1536x1024", "1024x1536", "auto"),
    "quality": _enum("standard", "hd", "high", "medium", "low", "auto"),
    "style": _enum("vivid", "natural"),
    "response_format": _enum("url", "b64_json"),
    "background": _enum("transparent", "opaque", "auto"),
}

GEMINI_PARAMS = {
    "aspectRatio": _enum("1:1", "16:9", "4:3", "9:16", "3:2", "2:3", "4:5", "5:4", "21:9", "3:4"),
    "imageSize": _enum("1K", "2K", "4K"),
}

CHAT_PARAMS = {
    "modalities": _modalities,
    "temperature": _number(0, 2),
    "top_p": _number(0, 1),
    "max_tokens": _integer(1),
}

PROVIDER_PARAMS = {
    "openai": OPENAI_PARAMS,
    "gemini": GEMINI_PARAMS,
    "openrouter": CHAT_PARAMS,
    "openai-chat": CHAT_PARAMS,
}


def _validate_part(part: Any, where: str) -> ContentPart:
    if not isinstance(part, dict) or part.get("type") not in PART_TYPES:
        raise InvalidInputError(f"{where}: content parts must have type {', '.join(PART_TYPES)}")
    part_type = part["type"]
    if part_type == "text" and not isinstance(part.get("text"), str):
        raise InvalidInputError(f"{where}: text part requires 'text'")
    if part_type == "image_url":
        image_url = part.get("image_url")
        if not isinstance(image_url, dict) or not isinstance(image_url.get("url"), str) or not image_url["url"]:
            raise InvalidInputError(f"{where}: image_url part requires 'image_url.url'")
    if part_type == "inline_data":
        inline = part.get("inline_data")
        if not isinstance(inline, dict) or not inline.get("data"):
            raise InvalidInputError(f"{where}: inline_data part requires 'inline_data.data'")
    return dict(part)


def _validate_messages(messages: Any) -> List[ChatMessage]:
    if messages is None:
        return []
    if not isinstance(messages, list):
        raise InvalidInputError("messages must be an array")

    result = []
    for i, message in enumerate(messages):
        where = f"messages[{i}]"
        if not isinstance(message, dict):
            raise InvalidInputError(f"{where} must be an object")
        role = message.get("role")
        if role not in ROLES:
            raise InvalidInputError(f"{where}.role must be one of {', '.join(ROLES)}")
        content = message.get("content")
        if isinstance(content, str):
            result.append(ChatMessage(role=role, content=content))
        elif isinstance(content, list):
            parts = tuple(_validate_part(part, where) for part in content)
            result.append(ChatMessage(role=role, content=parts))
        else:
            raise InvalidInputError(f"{where}.content must be a string or an array of parts")
    return result


def validate_input(args: Any) -> Dict[str, Any]:
    """Check the shape of generate_image arguments."""
    if not isinstance(args, dict):
        raise InvalidInputError("Arguments must be an object")

    provider = args.get("provider")
    if not isinstance(provider, str) or not provider.strip():
        raise InvalidInputError("provider is required")

    for key in ("model", "prompt", "requestId"):
        if args.get(key) is not None and not isinstance(args[key], str):
            raise InvalidInputError(f"{key} must be a string")

    messages = _validate_messages(args.get("messages"))

    images = args.get("images") or []
    if not isinstance(images, list) or not all(isinstance(i, str) and i for i in images):
        raise InvalidInputError("images must be an array of file paths or data URLs")

    if not args.get("prompt") and not messages and not images:
        raise InvalidInputError("prompt, messages or images is required")

    output = args.get("output") or {}
    if not isinstance(output, dict):
        raise InvalidInputError("output must be an object")
    for key in ("dir", "filename"):
        if output.get(key) is not None and not isinstance(output[key], str):
            raise InvalidInputError(f"output.{key} must be a string")
    if output.get("overwrite") is not None and output["overwrite"] not in OVERWRITE_POLICIES:
        raise InvalidInputError(f"output.overwrite must be one of {', '.join(OVERWRITE_POLICIES)}")

    params = args.get("params") or {}
    if not isinstance(params, dict):
        raise InvalidInputError("params must be an object")

    return {
        "provider": provider.strip(),
        "model": args.get("model"),
        "prompt": args.get("prompt") or "",
        "messages": messages,
        "images": images,
        "params": params,
        "output": output,
        "request_id": args.get("requestId"),
    }


def validate_provider_params(adapter_name: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the parameters the adapter understands, rejecting invalid values."""
    rules = PROVIDER_PARAMS.get(adapter_name, {})
    validated = {}
    for key, value in params.items():
        check = rules.get(key)
        if check is None:
            logger.debug(f"Ignoring parameter '{key}' for {adapter_name}")
            continue
        if value is None:
            continue
        if not check(value):
            raise InvalidInputError(f"Invalid value for params.{key}: {value!r}")
        validated[key] = value
    return validated


def load_image_attachment(ref: str, cwd: Optional[str] = None) -> str:
    """Turn a local image path or data URL into a data URL."""
    if ref.startswith("data:"):
        if parse_data_url(ref) is None:
            raise InvalidInputError("Image data URL must look like data:image/<type>;base64,<data>")
        return ref

    path = Path(ref).expanduser()
    if not path.is_absolute():
        path = (Path(cwd) if cwd else Path.cwd()) / path

    mime_type = ALLOWED_IMAGE_EXTENSIONS.get(path.suffix.lower())
    if mime_type is None:
        raise InvalidInputError(
            f"Unsupported image file type '{path.suffix}'. "
            f"Allowed: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}"
        )
    if not path.is_file():
        raise InvalidInputError(f"Image file not found: {ref}")

    data = path.read_bytes()
    if not data:
        raise InvalidInputError(f"Image file is empty: {ref}")
    return f"data:{mime_type};base64,{encode_base64(data)}"


def extract_prompt(messages: List[ChatMessage]) -> str:
    """Text of the last user message."""
    user_messages = [m for m in messages if m.role == "user"]
    if not user_messages:
        raise InvalidInputError("messages must include at least one user message")
    return user_messages[-1].text


def _attach_images(messages: List[ChatMessage], prompt: str, urls: List[str]) -> List[ChatMessage]:
    image_parts = [{"type": "image_url", "image_url": {"url": url}} for url in urls]

    for i in range(len(messages) - 1, -1, -1):
        if messages[i].role == "user":
            merged = ChatMessage(role="user", content=tuple(messages[i].parts + image_parts))
            return messages[:i] + [merged] + messages[i + 1:]

    text_parts = [{"type": "text", "text": prompt}] if prompt else []
    return messages + [ChatMessage(role="user", content=tuple(text_parts + image_parts))]


def generate_filename(prefix: str) -> str:
    return f"{prefix}-{datetime.now().strftime('%Y-%m-%dT%H-%M-%S')}"


def generate_request_id() -> str:
    return f"req-{int(datetime.now().timestamp() * 1000)}-{uuid.uuid4().hex[:6]}"


def normalize_input(
    args: Dict[str, Any],
    app_config: AppConfig,
    provider_config: ProviderConfig,
    adapter: ProviderAdapter,
) -> NormalizedInput:
    """Merge validated arguments with alias and application defaults."""
    messages: List[ChatMessage] = list(args["messages"])
    prompt = args["prompt"]
    if not prompt and messages:
        prompt = extract_prompt(messages)
    if not messages and prompt:
        messages = [ChatMessage(role="user", content=prompt)]

    if args["images"]:
        urls = [load_image_attachment(ref) for ref in args["images"]]
        messages = _attach_images(messages, prompt, urls)

    output = args["output"]
    return NormalizedInput(
        provider=args["provider"],
        model=args.get("model") or provider_config.model or adapter.default_model,
        prompt=prompt,
        messages=tuple(messages),
        params=validate_provider_params(adapter.name, args["params"]),
        output=OutputOptions(
            dir=resolve_output_dir(output.get("dir") or app_config.output_dir),
            filename=output.get("filename") or generate_filename(app_config.filename_prefix),
            overwrite=output.get("overwrite") or app_config.overwrite,
        ),
        request_id=args.get("request_id") or generate_request_id(),
    )
