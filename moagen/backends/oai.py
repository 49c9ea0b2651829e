import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
load_dotenv()

from openai import AsyncOpenAI

from ..types import BackendConfig
from .base import LLMBackend

# OpenAI-compatible providers served through the same client
COMPATIBLE_PROVIDERS = {
    "openai": {"env_key": "OPENAI_API_KEY", "base_url": None},
    "groq": {"env_key": "GROQ_API_KEY", "base_url": "https://api.groq.com/openai/v1"},
}


def is_reasoning_model(model: str) -> bool:
    """o-series models don't support temperature/top_p and use max_completion_tokens."""
    return model.startswith("o")


class OpenAIBackend(LLMBackend):
    """Backend for OpenAI chat completions and OpenAI-compatible endpoints."""

    def __init__(self, config: BackendConfig, provider: str = "openai"):
        if provider not in COMPATIBLE_PROVIDERS:
            raise ValueError(f"Unsupported OpenAI-compatible provider: {provider}")
        settings = COMPATIBLE_PROVIDERS[provider]

        # Get the API key
        api_key_val = config.api_key or os.getenv(settings["env_key"])
        if not api_key_val:
            raise ValueError(f"{settings['env_key']} not found in environment variables")

        super().__init__(config, api_key=api_key_val)
        self.provider = provider
        self.model = config.model or "gpt-4o-mini"

        client_kwargs: Dict[str, Any] = {
            "api_key": api_key_val,
            "max_retries": config.max_retries,
        }
        base_url = config.base_url or settings["base_url"]
        if base_url:
            client_kwargs["base_url"] = base_url
        if config.request_timeout:
            client_kwargs["timeout"] = config.request_timeout
        self.client = AsyncOpenAI(**client_kwargs)

    def _build_params(self, prompt: str) -> Dict[str, Any]:
        model_name = self.model
        params: Dict[str, Any] = {
            "messages": self.build_messages(prompt),
        }

        # Only add temperature and top_p for models that support them
        if is_reasoning_model(model_name) and self.provider == "openai":
            for effort in ("low", "medium", "high"):
                if model_name.endswith(f"-{effort}"):
                    params["reasoning_effort"] = effort
                    model_name = model_name[: -len(effort) - 1]
                    break
            if self.config.max_tokens:
                params["max_completion_tokens"] = self.config.max_tokens
        else:
            if self.config.temperature is not None:
                params["temperature"] = self.config.temperature
            if self.config.top_p is not None:
                params["top_p"] = self.config.top_p
            if self.config.max_tokens:
                params["max_tokens"] = self.config.max_tokens

        params["model"] = model_name
        params.update(self.config.extra)
        return params

    async def generate(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(**self._build_params(prompt))
        if not response.choices:
            raise RuntimeError(f"{self.provider} returned no choices for model {self.model}")
        content: Optional[str] = response.choices[0].message.content
        return content or ""

    def get_provider_name(self) -> str:
        return "Groq" if self.provider == "groq" else "OpenAI"
