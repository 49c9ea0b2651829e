"""
Mock backend with simple, predictable rules.

Useful for offline runs and tests. Behaviour is controlled through
BackendConfig.extra:

    response  fixed text to return (takes precedence over template)
    template  format string with {prompt} and {model} placeholders
    latency   seconds to sleep before answering
    fail      error message; when set every call raises RuntimeError

Without options the backend echoes its prompt verbatim.
"""

import asyncio

from ..types import BackendConfig
from .base import LLMBackend


class MockBackend(LLMBackend):
    """Mock backend that follows simple, predictable rules."""

    def __init__(self, config: BackendConfig):
        super().__init__(config, api_key=config.api_key or "mock-api-key")
        self.model = config.model or "mock"
        self.response = config.extra.get("response")
        self.template = config.extra.get("template")
        self.latency = float(config.extra.get("latency", 0.0))
        self.fail = config.extra.get("fail")

    async def generate(self, prompt: str) -> str:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        if self.fail:
            raise RuntimeError(self.fail)
        if self.response is not None:
            return self.response
        if self.template is not None:
            return self.template.format(prompt=prompt, model=self.model)
        return prompt

    def get_provider_name(self) -> str:
        return "Mock"
