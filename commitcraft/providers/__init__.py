"""Provider adapters turning a staged diff into a commit draft."""

from __future__ import annotations

from typing import Optional

import httpx

from ..config import ProviderConfig
from ..exceptions import ConfigError
from .anthropic_provider import AnthropicProvider
from .base import Provider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider

PROVIDERS = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "anthropic": AnthropicProvider,
}

__all__ = [
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "PROVIDERS",
    "Provider",
    "create_provider",
]


def create_provider(
    name: str,
    config: ProviderConfig,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Provider:
    """Instantiate the adapter registered under ``name``.

    Raises:
        ConfigError: for an unknown provider name.
    """
    try:
        provider_cls = PROVIDERS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown provider '{name}'. Supported: {', '.join(PROVIDERS)}"
        ) from None
    return provider_cls(config, http_client=http_client)
