"""
MoAGen (Mixture-of-Agents Generation) - Programmatic Interface

This module provides programmatic interfaces for running the MoAGen system.
For command-line usage, use: moagen (or python cli.py)

Programmatic usage examples:
    # Using YAML configuration
    from moagen import run_moa_with_config, load_config_from_yaml
    config = load_config_from_yaml("examples/moa.yaml")
    result = run_moa_with_config("Your question here", config)

    # Using simple model lists
    from moagen import run_moa_agents
    result = run_moa_agents("What is 2+2?", [["gpt-4o-mini", "grok-3-mini"]], aggregator="gpt-4o")

    # Using configuration objects
    from moagen import MoASystem, create_config_from_models
    config = create_config_from_models([["gpt-4o", "grok-3"]], aggregator="gpt-4o")
    system = MoASystem(config)
    result = system.run("Complex question here")
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from .backends import create_backend
from .config import create_config_from_models
from .logging import MoALogManager, setup_logging
from .orchestrator import BackendFactory, MoAOrchestrator
from .types import MoAConfig

logger = logging.getLogger(__name__)


def get_layer_models(config: MoAConfig) -> List[List[str]]:
    """Model labels per layer, for display."""
    return [[backend.describe() for backend in layer] for layer in config.layers]


async def arun_moa_with_config(question: str, config: MoAConfig,
                               backend_factory: BackendFactory = create_backend) -> Dict[str, Any]:
    """
    Run MoAGen with a complete configuration object (async variant).

    Args:
        question: The question to solve
        config: Complete MoAConfig object
        backend_factory: Callable used to build every backend

    Returns:
        Dict containing the answer and run details

    Raises:
        MoAError: Any configuration, construction or generation failure
    """
    # Validate configuration
    config.validate()

    log_manager = MoALogManager(
        log_dir=config.logging.log_dir,
        session_id=config.logging.session_id,
    )

    try:
        orchestrator = MoAOrchestrator(
            config.orchestrator,
            config.layers,
            config.aggregator,
            backend_factory=backend_factory,
            log_manager=log_manager,
        )

        logger.info(f"🚀 Starting MoAGen with {len(config.layers)} layers")
        logger.info(f"   Layers: {get_layer_models(config)}")
        logger.info(f"   Aggregator: {config.aggregator.describe()}")

        start_time = time.time()
        answer = await orchestrator.generate(question)
        session_duration = time.time() - start_time

        logger.info(f"✅ MoAGen completed in {session_duration:.1f}s")
        return {
            "answer": answer,
            "session_duration": session_duration,
            "summary": orchestrator.get_system_status(),
            "session": log_manager.get_session_summary(),
        }
    except Exception as e:
        logger.error(f"❌ MoAGen failed: {e}")
        raise
    finally:
        log_manager.cleanup()


def run_moa_with_config(question: str, config: MoAConfig,
                        backend_factory: BackendFactory = create_backend) -> Dict[str, Any]:
    """
    Run MoAGen with a complete configuration object.

    Blocking wrapper around arun_moa_with_config; must not be called from a running event loop.
    """
    return asyncio.run(arun_moa_with_config(question, config, backend_factory=backend_factory))


class MoASystem:
    """
    MoAGen system interface with configuration support.
    """

    def __init__(self, config: MoAConfig, backend_factory: BackendFactory = create_backend):
        """
        Initialize the MoAGen system.

        Args:
            config: MoAConfig object with complete configuration.
            backend_factory: Callable used to build every backend
        """
        self.config = config
        self.backend_factory = backend_factory
        setup_logging(config.logging)

    def run(self, question: str) -> Dict[str, Any]:
        """
        Run MoAGen on a question using the configured setup.

        Args:
            question: The question to solve

        Returns:
            Dict containing the answer and run details
        """
        return run_moa_with_config(question, self.config, backend_factory=self.backend_factory)

    async def arun(self, question: str) -> Dict[str, Any]:
        """Async variant of run() for callers that already own an event loop."""
        return await arun_moa_with_config(question, self.config, backend_factory=self.backend_factory)

    def update_config(self, **kwargs) -> None:
        """
        Update orchestrator parameters.

        Args:
            **kwargs: iterations, max_parallel and/or agent_timeout
        """
        for key in ("iterations", "max_parallel", "agent_timeout"):
            if key in kwargs:
                setattr(self.config.orchestrator, key, kwargs[key])

        # Validate updated configuration
        self.config.validate()


def run_moa_agents(question: str,
                   layers: Sequence[Sequence[str]],
                   aggregator: str,
                   iterations: int = 1,
                   max_parallel: int = 0,
                   agent_timeout: float = 0.0,
                   log_level: Optional[str] = None) -> Dict[str, Any]:
    """
    Simple function to run a Mixture of Agents on a question.

    Args:
        question: The question to solve
        layers: Model names per layer (e.g., [["gpt-4o", "grok-3"], ["gemini-2.5-flash"]])
        aggregator: Model name of the aggregator
        iterations: Number of independent passes through the layers
        max_parallel: Cap on concurrent agent calls per layer (0 = no cap)
        agent_timeout: Per-call timeout in seconds (0 = none)
        log_level: Optional logging level override

    Returns:
        Dict containing the answer and run details
    """
    logging_config: Dict[str, Any] = {}
    if log_level:
        logging_config["level"] = log_level

    config = create_config_from_models(
        layers=[list(layer) for layer in layers],
        aggregator=aggregator,
        orchestrator_config={
            "iterations": iterations,
            "max_parallel": max_parallel,
            "agent_timeout": agent_timeout,
        },
        logging_config=logging_config,
    )
    return MoASystem(config).run(question)
