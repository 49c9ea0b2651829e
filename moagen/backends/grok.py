import os
from typing import Any, Dict

from dotenv import load_dotenv
from xai_sdk import AsyncClient
from xai_sdk.chat import system, user

from ..types import BackendConfig
from .base import LLMBackend

load_dotenv()


class GrokBackend(LLMBackend):
    """Backend for xAI Grok models through the xai_sdk async client."""

    def __init__(self, config: BackendConfig):
        api_key_val = config.api_key or os.getenv("XAI_API_KEY")
        if not api_key_val:
            raise ValueError("XAI_API_KEY not found in environment variables")

        super().__init__(config, api_key=api_key_val)
        self.model = config.model or "grok-3-mini"
        self.client = AsyncClient(api_key=api_key_val)

    def _chat_params(self) -> Dict[str, Any]:
        chat_params: Dict[str, Any] = {"model": self.model}

        # Add optional parameters only if they have values
        if self.config.temperature is not None:
            chat_params["temperature"] = self.config.temperature
        if self.config.top_p is not None:
            chat_params["top_p"] = self.config.top_p
        if self.config.max_tokens is not None:
            chat_params["max_tokens"] = self.config.max_tokens
        chat_params.update(self.config.extra)
        return chat_params

    async def generate(self, prompt: str) -> str:
        chat = self.client.chat.create(**self._chat_params())

        for message in self.build_messages(prompt):
            if message["role"] == "system":
                chat.append(system(message["content"]))
            else:
                chat.append(user(message["content"]))

        response = await chat.sample()
        return response.content or ""

    def get_provider_name(self) -> str:
        return "Grok"
