#!/usr/bin/env python3
"""
Image Create MCP Server
=======================

One tool, generate_image, translated to several image-generation APIs.

Flow per call:
    validate -> resolve provider alias -> normalize input
    -> adapter validate/build -> send -> parse
    -> download URL images -> save -> manifest

Providers are configured as aliases through PROVIDER_{NAME}_* environment
variables (see config.py). Failures are returned as {"error", "code"}
payloads and never raised past the tool boundary.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from mcp.server.models import InitializationOptions
from mcp.server import NotificationOptions, Server
import mcp.server.stdio
import mcp.types as types

from . import __version__
from .config import AppConfig, load_config_from_env
from .errors import ImageGenError
from .models import GenerationManifest
from .providers import adapter_for, supported_adapters
from .providers.base import ImagePayload, ParsedImage, PendingImage, infer_mime_type, redact_secrets
from .storage import save_images
from .transport import download_image, send_request
from .validation import normalize_input, validate_input


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("image-create-mcp")

# Create MCP server
server = Server("image-create-mcp")

CONFIG: AppConfig = AppConfig()


def init_config(environ: Optional[Dict[str, str]] = None) -> AppConfig:
    """Load provider aliases and output defaults."""
    global CONFIG
    CONFIG = load_config_from_env(environ)
    logger.info(f"Configured providers: {', '.join(CONFIG.available_providers()) or 'none'}")
    return CONFIG


# Initialize on module load
init_config()


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available image generation tools."""
    providers = CONFIG.available_providers()
    provider_schema: Dict[str, Any] = {
        "type": "string",
        "description": "Configured provider alias",
    }
    if providers:
        provider_schema["enum"] = providers

    return [
        types.Tool(
            name="generate_image",
            description=f"""Generate images with AI and save them to a directory.

Adapters: {", ".join(supported_adapters())}
Configured providers: {", ".join(providers) or "none"}

Returns the saved file paths with MIME type and size.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "provider": provider_schema,
                    "model": {
                        "type": "string",
                        "description": "Model name (defaults to the provider's configured model)"
                    },
                    "prompt": {
                        "type": "string",
                        "description": "Text description of the image to generate"
                    },
                    "messages": {
                        "type": "array",
                        "description": "Chat messages for conversational providers",
                        "items": {
                            "type": "object",
                            "properties": {
                                "role": {"type": "string", "enum": ["system", "user", "assistant"]},
                                "content": {
                                    "description": "Text, or an array of text / image_url / inline_data parts",
                                    "oneOf": [{"type": "string"}, {"type": "array", "items": {"type": "object"}}],
                                },
                            },
                            "required": ["role", "content"],
                        },
                    },
                    "images": {
                        "type": "array",
                        "description": "Reference images: local file paths or data URLs",
                        "items": {"type": "string"},
                    },
                    "params": {
                        "type": "object",
                        "description": "Provider specific parameters (n, size, quality, style, "
                                       "response_format, background, aspectRatio, imageSize, "
                                       "modalities, temperature, top_p, max_tokens)",
                    },
                    "output": {
                        "type": "object",
                        "properties": {
                            "dir": {"type": "string", "description": "Output directory"},
                            "filename": {"type": "string", "description": "File name without extension"},
                            "overwrite": {
                                "type": "string",
                                "enum": ["error", "overwrite", "suffix"],
                                "description": "What to do when the file exists (default: suffix)"
                            },
                        },
                    },
                },
                "required": ["provider"]
            }
        ),
    ]


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
    """Handle tool execution requests."""

    if name == "generate_image":
        return await generate_image(arguments or {})
    else:
        raise ValueError(f"Unknown tool: {name}")


async def resolve_image_payloads(images: Sequence[ParsedImage]) -> List[ImagePayload]:
    """Download pending images concurrently, keeping the original order."""

    async def resolve(image: ParsedImage) -> ImagePayload:
        if isinstance(image, PendingImage):
            data = await download_image(image.url)
            return ImagePayload(data=data, mime_type=infer_mime_type(data), source="url")
        return image

    tasks = [asyncio.ensure_future(resolve(image)) for image in images]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        # stop sibling downloads once one has failed
        for task in tasks:
            task.cancel()
        raise


def _error_response(message: str, code: str) -> List[types.TextContent]:
    return [types.TextContent(
        type="text",
        text=json.dumps({"error": message, "code": code}, indent=2),
    )]


async def run_generation(args: Dict[str, Any], config: AppConfig) -> GenerationManifest:
    """Execute one generate_image request; raises on any failure."""
    request = validate_input(args)
    provider_config = config.get_provider_config(request["provider"])
    adapter = adapter_for(provider_config)

    normalized = normalize_input(request, config, provider_config, adapter)
    logger.info(
        f"Generating image: '{normalized.prompt[:50]}' "
        f"(provider={normalized.provider}, adapter={adapter.name}, model={normalized.model}, "
        f"request={normalized.request_id})"
    )

    adapter.validate(normalized, provider_config)
    http_request = adapter.build_request(normalized, provider_config)
    response = await send_request(http_request, timeout_ms=provider_config.timeout_ms)
    parsed = adapter.parse_response(response)

    pending = sum(1 for image in parsed if isinstance(image, PendingImage))
    if pending:
        logger.info(f"Downloading {pending} remote image(s)")
    payloads = await resolve_image_payloads(parsed)

    saved = save_images(payloads, normalized.output)
    return GenerationManifest(provider=normalized.provider, model=normalized.model, images=saved)


async def generate_image(args: Dict) -> List[types.TextContent]:
    """Generate images and return the manifest, or an error payload."""
    provider_config = CONFIG.lookup(args.get("provider")) if isinstance(args.get("provider"), str) else None
    secrets = [provider_config.api_key] if provider_config else []

    try:
        manifest = await run_generation(args, CONFIG)
    except ImageGenError as e:
        message = redact_secrets(e.message, secrets)
        logger.warning(f"generate_image failed ({e.code}): {message}")
        return _error_response(message, e.code)
    except Exception as e:
        message = redact_secrets(str(e) or type(e).__name__, secrets)
        logger.error(f"generate_image failed: {message}", exc_info=True)
        return _error_response(message, "INTERNAL_ERROR")

    logger.info(f"Saved {len(manifest.images)} image(s) from {manifest.provider}")
    return [types.TextContent(type="text", text=json.dumps(manifest.to_dict(), indent=2))]


async def main():
    """Run the MCP server."""
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        logger.info("Image Create MCP Server starting...")
        logger.info(f"Output directory: {CONFIG.output_dir}")

        for name, provider in CONFIG.providers.items():
            logger.info(f"  {name}: type={provider.type or 'auto'}, model={provider.model}")

        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name="image-create-mcp",
                server_version=__version__,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
