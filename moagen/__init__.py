"""
MoAGen - Mixture-of-Agents Generation

Runs several LLM backends ("agents") arranged in layers and synthesises
their work into a single answer:

- Every layer runs its agents concurrently on the same input
- Layer outputs are combined and fed to the next layer
- The pipeline is repeated for a configured number of iterations
- An aggregator agent synthesises all iteration outputs

Supports OpenAI (and OpenAI-compatible endpoints such as Groq), Grok and
Gemini backends, plus a deterministic mock backend for offline runs.

Command-Line Usage:
    moagen "What is 2+2?" --layers gpt-4o-mini,grok-3-mini gemini-2.5-flash --aggregator gpt-4o
    moagen "Complex question" --config examples/moa.yaml

Programmatic Usage:
    from moagen import MoAOrchestrator, OrchestratorConfig, BackendConfig

    orchestrator = MoAOrchestrator(
        OrchestratorConfig(iterations=2, max_parallel=4, agent_timeout=60),
        [[BackendConfig(model="gpt-4o-mini"), BackendConfig(model="grok-3-mini")]],
        BackendConfig(model="gpt-4o"),
    )
    answer = await orchestrator.generate("Explain quantum entanglement")
"""

# Core system components
from .main import (
    MoASystem,
    run_moa_agents,
    run_moa_with_config,
    arun_moa_with_config,
)

# Configuration system
from .config import (
    load_config_from_yaml,
    create_config_from_models,
)

# Error types
from .errors import (
    MoAError,
    ConfigurationError,
    BackendConstructionError,
    LayerError,
    AgentTimeoutError,
    AggregationError,
)

# Configuration classes
from .types import (
    MoAConfig,
    OrchestratorConfig,
    BackendConfig,
    LoggingConfig,
)

# Advanced components (for custom usage)
from .orchestrator import MoAOrchestrator, MoALayer
from .backends import LLMBackend, MockBackend, create_backend
from .logging import MoALogManager, setup_logging
from .utils import combine_results, build_aggregation_prompt

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "MoASystem",
    "run_moa_agents",
    "run_moa_with_config",
    "arun_moa_with_config",

    # Configuration system
    "load_config_from_yaml",
    "create_config_from_models",

    # Errors
    "MoAError",
    "ConfigurationError",
    "BackendConstructionError",
    "LayerError",
    "AgentTimeoutError",
    "AggregationError",

    # Configuration classes
    "MoAConfig",
    "OrchestratorConfig",
    "BackendConfig",
    "LoggingConfig",

    # Advanced components
    "MoAOrchestrator",
    "MoALayer",
    "LLMBackend",
    "MockBackend",
    "create_backend",
    "MoALogManager",
    "setup_logging",
    "combine_results",
    "build_aggregation_prompt",
]
