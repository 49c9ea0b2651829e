"""
MoAGen System Types

This module contains the core type definitions and dataclasses
used throughout the MoAGen framework.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence

from .errors import ConfigurationError


@dataclass
class BackendConfig:
    """Construction parameters for a single backend (layer agent or aggregator)."""

    model: Optional[str] = None
    provider: Optional[str] = None  # "openai", "groq", "grok", "gemini", "mock"; inferred from model if None
    api_key: Optional[str] = None  # falls back to the provider's environment variable
    base_url: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    max_retries: int = 2  # retries performed by the provider SDK for one call
    request_timeout: Optional[float] = None  # HTTP timeout inside the provider SDK
    system_prompt: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)  # provider specific options

    def describe(self) -> str:
        """Short human readable label, never includes credentials."""
        provider = self.provider or "auto"
        return f"{provider}:{self.model or 'default'}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization (credentials redacted)."""
        data = asdict(self)
        if data.get("api_key"):
            data["api_key"] = "***"
        return data


@dataclass
class OrchestratorConfig:
    """Configuration for the Mixture-of-Agents orchestrator."""

    iterations: int = 1
    max_parallel: int = 0  # 0 = run every agent of a layer at once
    agent_timeout: float = 0.0  # seconds, 0 = no per-call deadline
    num_layers: Optional[int] = None  # declared shape, checked against the layer matrix
    models_per_layer: Optional[int] = None

    def validate(self) -> bool:
        """Validate the scalar settings."""
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int) or self.iterations < 1:
            raise ConfigurationError(f"iterations must be a positive integer, got {self.iterations!r}")
        if isinstance(self.max_parallel, bool) or not isinstance(self.max_parallel, int) or self.max_parallel < 0:
            raise ConfigurationError(f"max_parallel must be a non-negative integer, got {self.max_parallel!r}")
        if not isinstance(self.agent_timeout, (int, float)) or self.agent_timeout < 0:
            raise ConfigurationError(f"agent_timeout must be a non-negative number, got {self.agent_timeout!r}")
        for name in ("num_layers", "models_per_layer"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer when declared, got {value!r}")
        return True

    def validate_layers(self, layers: Sequence[Sequence[Any]]) -> bool:
        """
        Validate a layer matrix (backend configs or backends) against this config.

        Raises:
            ConfigurationError: If there are no layers, a layer is empty, or the
                matrix does not match the declared num_layers/models_per_layer.
        """
        self.validate()

        if not layers:
            raise ConfigurationError("invalid model configuration: at least one layer must be specified")

        for i, layer in enumerate(layers):
            if not layer:
                raise ConfigurationError(f"invalid model configuration: layer {i} has no models")

        if self.num_layers is not None and len(layers) != self.num_layers:
            raise ConfigurationError(
                f"declared {self.num_layers} layers but {len(layers)} were provided"
            )

        if self.models_per_layer is not None:
            for i, layer in enumerate(layers):
                if len(layer) != self.models_per_layer:
                    raise ConfigurationError(
                        f"declared {self.models_per_layer} models per layer but layer {i} "
                        f"has {len(layer)}"
                    )
        return True


@dataclass
class LoggingConfig:
    """Configuration for logging system."""

    level: str = "INFO"
    log_dir: Optional[str] = None  # when set, console output is also written to <log_dir>/<session_id>/console.log
    session_id: Optional[str] = None


@dataclass
class LogEntry:
    """Represents a single log entry in the MoAGen system."""

    timestamp: float
    event_type: str  # e.g. "generation_started", "layer_completed", "agent_failed"
    data: Dict[str, Any]
    iteration: Optional[int] = None
    layer_index: Optional[int] = None
    agent_index: Optional[int] = None
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class MoAConfig:
    """Complete MoAGen system configuration."""

    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    layers: List[List[BackendConfig]] = field(default_factory=list)
    aggregator: BackendConfig = field(default_factory=BackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    task: Optional[Dict[str, Any]] = None  # Task-specific configuration

    def validate(self) -> bool:
        """Validate the complete configuration."""
        self.orchestrator.validate_layers(self.layers)
        return True
