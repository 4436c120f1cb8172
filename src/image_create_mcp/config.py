"""
Configuration
=============

Provider aliases and output defaults, read from the environment.

Each alias needs three variables:
    PROVIDER_{NAME}_API_KEY, PROVIDER_{NAME}_API_URL, PROVIDER_{NAME}_MODEL

Optional per alias:
    PROVIDER_{NAME}_TYPE        adapter id (openai, openai-chat, gemini, openrouter)
    PROVIDER_{NAME}_TIMEOUT_MS  request timeout
    PROVIDER_{NAME}_HEADERS     extra HTTP headers as a JSON object

Output defaults:
    IMAGE_GEN_OUTPUT_DIR, IMAGE_GEN_FILENAME_PREFIX, IMAGE_GEN_OVERWRITE
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .errors import ConfigMissingError
from .models import OVERWRITE_POLICIES

logger = logging.getLogger("image-create-mcp.config")

PROVIDER_ENV_PATTERN = re.compile(r"^PROVIDER_([A-Z0-9_]+?)_(API_KEY|API_URL|MODEL|TYPE|TIMEOUT_MS|HEADERS)$")
DEFAULT_TIMEOUT_MS = 60000


@dataclass(frozen=True)
class ProviderConfig:
    """Credentials and endpoint for one provider alias."""
    name: str
    api_key: str
    api_url: str = ""
    model: str = ""
    type: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    timeout_ms: int = DEFAULT_TIMEOUT_MS


@dataclass(frozen=True)
class AppConfig:
    """Read-only configuration shared by every request."""
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    output_dir: str = "."
    filename_prefix: str = "image"
    overwrite: str = "suffix"

    def lookup(self, alias: str) -> Optional[ProviderConfig]:
        return self.providers.get((alias or "").lower())

    def get_provider_config(self, alias: str) -> ProviderConfig:
        """Return the alias config or raise listing what is available."""
        config = self.lookup(alias)
        if config is None:
            available = self.available_providers()
            if not available:
                raise ConfigMissingError(
                    "No provider configured. Set PROVIDER_{NAME}_API_KEY, "
                    "PROVIDER_{NAME}_API_URL and PROVIDER_{NAME}_MODEL."
                )
            raise ConfigMissingError(
                f'Provider "{alias}" is not configured. Available: {", ".join(available)}'
            )
        return config

    def available_providers(self) -> List[str]:
        return sorted(self.providers)


def _parse_headers(raw: str) -> Optional[Dict[str, str]]:
    try:
        headers = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(headers, dict):
        return None
    return {str(k): str(v) for k, v in headers.items()}


def _build_provider(alias: str, data: Dict[str, str]) -> Optional[ProviderConfig]:
    missing = [key for key in ("API_KEY", "API_URL", "MODEL") if not data.get(key)]
    if missing:
        logger.warning(f"Skipping provider '{alias}': missing {', '.join(missing)}")
        return None

    timeout_ms = DEFAULT_TIMEOUT_MS
    if data.get("TIMEOUT_MS"):
        if not data["TIMEOUT_MS"].isdigit() or int(data["TIMEOUT_MS"]) <= 0:
            logger.warning(f"Skipping provider '{alias}': invalid TIMEOUT_MS")
            return None
        timeout_ms = int(data["TIMEOUT_MS"])

    headers: Dict[str, str] = {}
    if data.get("HEADERS"):
        parsed = _parse_headers(data["HEADERS"])
        if parsed is None:
            logger.warning(f"Skipping provider '{alias}': HEADERS must be a JSON object")
            return None
        headers = parsed

    return ProviderConfig(
        name=alias,
        api_key=data["API_KEY"],
        api_url=data["API_URL"],
        model=data["MODEL"],
        type=(data.get("TYPE") or "").lower() or None,
        headers=headers,
        timeout_ms=timeout_ms,
    )


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Assemble AppConfig from environment variables."""
    environ = os.environ if environ is None else environ

    provider_data: Dict[str, Dict[str, str]] = {}
    for key, value in environ.items():
        match = PROVIDER_ENV_PATTERN.match(key)
        if match and value:
            alias = match.group(1).lower()
            provider_data.setdefault(alias, {})[match.group(2)] = value

    providers = {}
    for alias, data in provider_data.items():
        config = _build_provider(alias, data)
        if config:
            providers[alias] = config

    overwrite = environ.get("IMAGE_GEN_OVERWRITE") or "suffix"
    if overwrite not in OVERWRITE_POLICIES:
        logger.warning(f"Invalid IMAGE_GEN_OVERWRITE '{overwrite}', using 'suffix'")
        overwrite = "suffix"

    return AppConfig(
        providers=providers,
        output_dir=environ.get("IMAGE_GEN_OUTPUT_DIR") or ".",
        filename_prefix=environ.get("IMAGE_GEN_FILENAME_PREFIX") or "image",
        overwrite=overwrite,
    )
