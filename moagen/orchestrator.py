import asyncio
import logging
import time
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .backends import LLMBackend, create_backend
from .errors import AgentTimeoutError, AggregationError, BackendConstructionError, LayerError
from .logging import MoALogManager
from .types import BackendConfig, OrchestratorConfig
from .utils import build_aggregation_prompt, combine_results

# Set up logging
logger = logging.getLogger(__name__)

BackendFactory = Callable[[BackendConfig], LLMBackend]


@dataclass(frozen=True)
class MoALayer:
    """An ordered set of agents that all receive the same input."""

    backends: Tuple[LLMBackend, ...]

    def __len__(self) -> int:
        return len(self.backends)


class MoAOrchestrator:
    """
    Mixture-of-Agents orchestrator.

    Workflow of generate():
    1. For every iteration, the prompt flows through the layers in order.
       Inside a layer all agents run concurrently on the same input and
       their outputs are combined into the input of the next layer.
    2. The last layer's output is that iteration's output.
    3. All iteration outputs are combined and handed to the aggregator,
       whose answer is returned.

    Any agent or aggregator failure aborts the whole call. The orchestrator
    keeps no per-call state, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        layer_configs: Sequence[Sequence[BackendConfig]],
        aggregator_config: BackendConfig,
        backend_factory: BackendFactory = create_backend,
        log_manager: Optional[MoALogManager] = None,
    ):
        """
        Build every backend eagerly.

        Args:
            config: Orchestrator settings (iterations, max_parallel, agent_timeout, declared shape)
            layer_configs: Backend construction parameters, one list per layer
            aggregator_config: Backend construction parameters for the aggregator
            backend_factory: Callable turning a BackendConfig into a backend
            log_manager: Optional structured event log

        Raises:
            ConfigurationError: Empty layers or a shape mismatch with the declared config
            BackendConstructionError: The first backend that could not be built
        """
        config.validate_layers(layer_configs)

        layers = []
        for layer_index, layer_config in enumerate(layer_configs):
            backends = tuple(
                self._build_backend(backend_factory, backend_config, f"layer {layer_index} agent {agent_index}")
                for agent_index, backend_config in enumerate(layer_config)
            )
            layers.append(MoALayer(backends))

        aggregator = self._build_backend(backend_factory, aggregator_config, "aggregator")
        self._setup(config, layers, aggregator, log_manager)

    @classmethod
    def from_backends(
        cls,
        config: OrchestratorConfig,
        layers: Sequence[Sequence[LLMBackend]],
        aggregator: LLMBackend,
        log_manager: Optional[MoALogManager] = None,
    ) -> "MoAOrchestrator":
        """Create an orchestrator from already constructed backends."""
        config.validate_layers(layers)
        orchestrator = cls.__new__(cls)
        orchestrator._setup(config, [MoALayer(tuple(layer)) for layer in layers], aggregator, log_manager)
        return orchestrator

    def _setup(self, config: OrchestratorConfig, layers: List[MoALayer],
               aggregator: LLMBackend, log_manager: Optional[MoALogManager]):
        self.config = config
        self.layers: Tuple[MoALayer, ...] = tuple(layers)
        self.aggregator = aggregator
        self.log_manager = log_manager

        logger.info(
            f"🧩 Mixture of Agents ready: {len(self.layers)} layers "
            f"{[len(layer) for layer in self.layers]}, {config.iterations} iterations"
        )

    @staticmethod
    def _build_backend(backend_factory: BackendFactory, backend_config: BackendConfig, role: str) -> LLMBackend:
        try:
            return backend_factory(backend_config)
        except Exception as e:
            logger.error(f"❌ Failed to create backend for {role} ({backend_config.describe()}): {e}")
            raise BackendConstructionError(role, e) from e

    async def generate(self, prompt: str) -> str:
        """
        Run the full Mixture-of-Agents pipeline on a prompt.

        Args:
            prompt: The original input text

        Returns:
            The aggregator's synthesised response

        Raises:
            LayerError: An agent failed or timed out
            AggregationError: The aggregator failed
            asyncio.CancelledError: The calling task was cancelled
        """
        start_time = time.monotonic()
        logger.info(f"🚀 Starting generation ({len(prompt)} chars)")
        if self.log_manager:
            self.log_manager.log_generation_started(len(prompt), self.config.iterations, len(self.layers))

        try:
            iteration_outputs: List[str] = []
            for iteration in range(self.config.iterations):
                logger.info(f"🔁 Iteration {iteration + 1}/{self.config.iterations}")
                layer_input = prompt
                for layer_index, layer in enumerate(self.layers):
                    layer_input = await self._process_layer(iteration, layer_index, layer, layer_input)
                iteration_outputs.append(layer_input)

            result = await self._aggregate(iteration_outputs)
        except (Exception, asyncio.CancelledError) as e:
            duration = time.monotonic() - start_time
            logger.error(f"❌ Generation failed after {duration:.2f}s: {e!r}")
            if self.log_manager:
                self.log_manager.log_generation_finished(False, duration, error=e)
            raise

        duration = time.monotonic() - start_time
        logger.info(f"✅ Generation completed in {duration:.2f}s")
        if self.log_manager:
            self.log_manager.log_generation_finished(True, duration)
        return result

    async def _process_layer(self, iteration: int, layer_index: int, layer: MoALayer, layer_input: str) -> str:
        """
        Fan the input out to every agent of the layer and combine the outputs.

        All calls are awaited even when some fail; the reported error is the
        first one in agent order, not the first to happen.
        """
        semaphore = asyncio.Semaphore(self.config.max_parallel) if self.config.max_parallel > 0 else None
        start_time = time.monotonic()

        results = await asyncio.gather(
            *(
                self._call_agent(agent_index, backend, layer_input, semaphore)
                for agent_index, backend in enumerate(layer.backends)
            ),
            return_exceptions=True,
        )

        first_error: Optional[Tuple[int, BaseException]] = None
        for agent_index, result in enumerate(results):
            if isinstance(result, BaseException):
                logger.warning(
                    f"⚠️ Agent {agent_index} of layer {layer_index} failed "
                    f"(iteration {iteration}): {result!r}"
                )
                if self.log_manager:
                    self.log_manager.log_agent_failure(iteration, layer_index, agent_index, result)
                if first_error is None:
                    first_error = (agent_index, result)

        if first_error is not None:
            agent_index, error = first_error
            raise LayerError(iteration, layer_index, agent_index, error) from error

        output = combine_results(results)
        duration = time.monotonic() - start_time
        logger.info(f"📦 Layer {layer_index} done: {len(layer)} agents in {duration:.2f}s")
        if self.log_manager:
            self.log_manager.log_layer_completed(iteration, layer_index, len(layer), len(output), duration)
        return output

    async def _call_agent(self, agent_index: int, backend: LLMBackend, prompt: str,
                          semaphore: Optional[asyncio.Semaphore]) -> str:
        """Run one agent, holding an admission slot and enforcing agent_timeout."""
        async with semaphore if semaphore is not None else nullcontext():
            if self.config.agent_timeout > 0:
                return await self._call_with_deadline(agent_index, backend, prompt)
            return await backend.generate(prompt)

    async def _call_with_deadline(self, agent_index: int, backend: LLMBackend, prompt: str) -> str:
        """
        Await the backend call for at most agent_timeout seconds.

        Only an expired deadline becomes AgentTimeoutError; a TimeoutError the
        backend raises itself is returned to the caller unchanged.
        """
        task = asyncio.ensure_future(backend.generate(prompt))
        try:
            done, _ = await asyncio.wait({task}, timeout=self.config.agent_timeout)
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.wait({task})
            raise

        if task not in done:
            task.cancel()
            await asyncio.wait({task})
            raise AgentTimeoutError(agent_index, self.config.agent_timeout)
        return task.result()

    async def _aggregate(self, outputs: List[str]) -> str:
        """Ask the aggregator to synthesise all iteration outputs."""
        aggregation_prompt = build_aggregation_prompt(outputs)
        start_time = time.monotonic()
        logger.info(f"🎯 Aggregating {len(outputs)} iteration outputs")

        try:
            result = await self.aggregator.generate(aggregation_prompt)
        except Exception as e:
            logger.error(f"❌ Aggregation failed: {e!r}")
            raise AggregationError(e) from e

        if self.log_manager:
            self.log_manager.log_aggregation(len(aggregation_prompt), len(result), time.monotonic() - start_time)
        return result

    def get_system_status(self) -> Dict[str, Any]:
        """Describe the pipeline shape and settings."""
        return {
            "iterations": self.config.iterations,
            "max_parallel": self.config.max_parallel,
            "agent_timeout": self.config.agent_timeout,
            "layers": [
                [f"{backend.get_provider_name()}:{backend.model}" for backend in layer.backends]
                for layer in self.layers
            ],
            "aggregator": f"{self.aggregator.get_provider_name()}:{self.aggregator.model}",
        }
