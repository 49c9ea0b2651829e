"""
MoAGen Backends - LLM provider abstractions.

This module provides a unified interface for different LLM providers
(OpenAI and OpenAI-compatible endpoints, Grok, Gemini, Mock) so the
orchestrator only ever deals with LLMBackend.generate().
"""

from .base import LLMBackend
from .factory import create_backend, get_available_backends, resolve_provider, SUPPORTED_PROVIDERS
from .mock import MockBackend

__all__ = [
    "LLMBackend",
    "MockBackend",
    "create_backend",
    "get_available_backends",
    "resolve_provider",
    "SUPPORTED_PROVIDERS",
]
