"""
MoAGen Error Types

Every failure raised by the orchestrator derives from MoAError so callers can
catch the whole family at once. Construction problems (ConfigurationError,
BackendConstructionError) only happen while building an orchestrator; the
remaining errors abort a single generate() call.
"""

from typing import Optional


class MoAError(Exception):
    """Base class for all MoAGen errors."""
    pass


class ConfigurationError(MoAError):
    """Exception raised for configuration-related errors."""
    pass


class BackendConstructionError(MoAError):
    """A layer agent or the aggregator backend could not be built."""

    def __init__(self, role: str, cause: BaseException):
        self.role = role
        self.cause = cause
        super().__init__(f"Failed to create backend for {role}: {cause}")


class AgentTimeoutError(MoAError, TimeoutError):
    """A single agent call exceeded the configured agent_timeout."""

    def __init__(self, agent_index: int, timeout: float):
        self.agent_index = agent_index
        self.timeout = timeout
        super().__init__(f"Agent {agent_index} timed out after {timeout} seconds")


class LayerError(MoAError):
    """
    At least one agent of a layer failed during generate().

    Holds the first failure found when scanning the layer in declaration
    order, together with its position in the pipeline.
    """

    def __init__(self, iteration: int, layer_index: int, agent_index: int, cause: BaseException):
        self.iteration = iteration
        self.layer_index = layer_index
        self.agent_index = agent_index
        self.cause = cause
        super().__init__(
            f"Error processing layer {layer_index} (iteration {iteration}): "
            f"agent {agent_index} failed: {cause!r}"
        )


class AggregationError(MoAError):
    """The aggregator backend failed to synthesise the final response."""

    def __init__(self, cause: BaseException, message: Optional[str] = None):
        self.cause = cause
        super().__init__(message or f"Aggregator failed: {cause!r}")
