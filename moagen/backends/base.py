"""
Base backend interface for LLM providers.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..types import BackendConfig


class LLMBackend(ABC):
    """
    Abstract base class for LLM providers.

    A backend turns one prompt into one completion. Implementations must be
    safe to call concurrently and must return promptly when the calling task
    is cancelled.
    """

    def __init__(self, config: BackendConfig, api_key: Optional[str] = None):
        self.config = config
        self.model = config.model
        self.api_key = api_key

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generate a completion for the prompt.

        Args:
            prompt: Full prompt text

        Returns:
            The completion text

        Raises:
            Exception: Any provider failure. Retries, if any, happen inside the provider SDK.
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the name of this provider."""
        pass

    def build_messages(self, prompt: str) -> List[Dict[str, Any]]:
        """Chat-style message list with the optional system prompt."""
        messages = []
        if self.config.system_prompt:
            messages.append({"role": "system", "content": self.config.system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model!r})"
