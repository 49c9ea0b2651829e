import os
from typing import Any, Dict

from google import genai
from google.genai import types
from dotenv import load_dotenv

from ..types import BackendConfig
from .base import LLMBackend

load_dotenv()


class GeminiBackend(LLMBackend):
    """Backend for Google Gemini models using the google-genai async client."""

    def __init__(self, config: BackendConfig):
        api_key_val = config.api_key or os.getenv("GEMINI_API_KEY")
        if not api_key_val:
            raise ValueError("GEMINI_API_KEY not found in environment variables")

        super().__init__(config, api_key=api_key_val)
        self.model = config.model or "gemini-2.5-flash"
        self.client = genai.Client(api_key=api_key_val)

    def _generation_config(self) -> types.GenerateContentConfig:
        generation_config: Dict[str, Any] = {}
        if self.config.temperature is not None:
            generation_config["temperature"] = self.config.temperature
        if self.config.top_p is not None:
            generation_config["top_p"] = self.config.top_p
        if self.config.max_tokens is not None:
            generation_config["max_output_tokens"] = self.config.max_tokens
        generation_config.update(self.config.extra)

        config = types.GenerateContentConfig(**generation_config)
        if self.config.system_prompt:
            config.system_instruction = types.Content(
                parts=[types.Part(text=self.config.system_prompt)]
            )
        return config

    async def generate(self, prompt: str) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
            config=self._generation_config(),
        )
        return response.text or ""

    def get_provider_name(self) -> str:
        return "Gemini"
