"""
Backend factory for creating the appropriate LLM backend from a BackendConfig.
"""

import logging
import os
from typing import Any, Dict

from dotenv import load_dotenv

from ..types import BackendConfig
from ..utils import MODEL_MAPPINGS, get_provider_from_model
from .base import LLMBackend
from .mock import MockBackend

load_dotenv()

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ["openai", "groq", "grok", "gemini", "mock"]

PROVIDER_ENV_KEYS = {
    "openai": "OPENAI_API_KEY",
    "groq": "GROQ_API_KEY",
    "grok": "XAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

# Accepted spellings for providers
PROVIDER_ALIASES = {
    "xai": "grok",
    "google": "gemini",
}


def resolve_provider(config: BackendConfig) -> str:
    """Return the provider for a config, inferring it from the model name when not given."""
    if config.provider:
        provider = config.provider.lower()
        provider = PROVIDER_ALIASES.get(provider, provider)
    else:
        provider = get_provider_from_model(config.model)

    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unknown provider: {config.provider}. Available providers: {SUPPORTED_PROVIDERS}"
        )
    return provider


def create_backend(config: BackendConfig) -> LLMBackend:
    """
    Create the appropriate backend for a configuration.

    Provider SDKs are imported on demand so that a missing optional SDK only
    affects the backends that need it.

    Args:
        config: Backend construction parameters

    Returns:
        LLMBackend: The constructed backend

    Raises:
        ValueError: Unknown provider/model or missing credentials
        ImportError: The provider SDK is not installed
    """
    provider = resolve_provider(config)
    logger.debug(f"Creating {provider} backend for model {config.model}")

    if provider in ("openai", "groq"):
        from .oai import OpenAIBackend
        return OpenAIBackend(config, provider=provider)

    elif provider == "grok":
        from .grok import GrokBackend
        return GrokBackend(config)

    elif provider == "gemini":
        from .gemini import GeminiBackend
        return GeminiBackend(config)

    return MockBackend(config)


def get_available_backends() -> Dict[str, Dict[str, Any]]:
    """
    Get information about available backends and their API key status.

    Returns:
        dict: Backend availability information
    """
    backends = {}
    for provider in SUPPORTED_PROVIDERS:
        env_key = PROVIDER_ENV_KEYS.get(provider)
        if env_key is None:
            available = True
        else:
            key = os.getenv(env_key)
            available = bool(key and not key.startswith("your-"))
        backends[provider] = {
            "available": available,
            "env_key": env_key,
            "models": list(MODEL_MAPPINGS.get(provider, [])),
        }
    return backends
