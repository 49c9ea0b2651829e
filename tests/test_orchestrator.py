import asyncio
import time

import pytest

from moagen.errors import (
    AgentTimeoutError,
    AggregationError,
    BackendConstructionError,
    ConfigurationError,
    LayerError,
)
from moagen.logging import MoALogManager
from moagen.orchestrator import MoAOrchestrator
from moagen.types import BackendConfig, OrchestratorConfig
from moagen.utils import AGGREGATION_PROMPT, combine_results

from conftest import StubBackend


def build(config, layers, aggregator, log_manager=None):
    return MoAOrchestrator.from_backends(config, layers, aggregator, log_manager=log_manager)


class TestConstruction:
    def test_empty_layer_list_is_rejected(self):
        with pytest.raises(ConfigurationError):
            MoAOrchestrator(OrchestratorConfig(), [], BackendConfig(model="mock"))

    def test_empty_layer_is_rejected(self):
        with pytest.raises(ConfigurationError):
            MoAOrchestrator(
                OrchestratorConfig(),
                [[BackendConfig(model="mock")], []],
                BackendConfig(model="mock"),
            )

    def test_from_backends_rejects_empty_layer(self, echo_aggregator):
        with pytest.raises(ConfigurationError):
            build(OrchestratorConfig(), [[StubBackend("a")], []], echo_aggregator)

    def test_declared_shape_mismatch_is_rejected(self):
        layers = [[BackendConfig(model="mock"), BackendConfig(model="mock")]]
        with pytest.raises(ConfigurationError, match="models per layer"):
            MoAOrchestrator(OrchestratorConfig(models_per_layer=3), layers, BackendConfig(model="mock"))
        with pytest.raises(ConfigurationError, match="layers"):
            MoAOrchestrator(OrchestratorConfig(num_layers=2), layers, BackendConfig(model="mock"))

    def test_declared_shape_match_is_accepted(self):
        layers = [[BackendConfig(model="mock")] * 2] * 3
        orchestrator = MoAOrchestrator(
            OrchestratorConfig(num_layers=3, models_per_layer=2), layers, BackendConfig(model="mock")
        )
        assert [len(layer) for layer in orchestrator.layers] == [2, 2, 2]

    def test_invalid_scalar_settings_are_rejected(self):
        layers = [[BackendConfig(model="mock")]]
        for bad in (OrchestratorConfig(iterations=0), OrchestratorConfig(max_parallel=-1),
                    OrchestratorConfig(agent_timeout=-1), OrchestratorConfig(num_layers="1"),
                    OrchestratorConfig(models_per_layer=1.0)):
            with pytest.raises(ConfigurationError):
                MoAOrchestrator(bad, layers, BackendConfig(model="mock"))

    def test_backend_failure_stops_construction(self):
        built = []

        def factory(config):
            if config.model == "broken":
                raise ValueError("missing credentials")
            built.append(config.model)
            return StubBackend(config.model)

        layers = [
            [BackendConfig(model="a"), BackendConfig(model="broken"), BackendConfig(model="c")],
            [BackendConfig(model="d")],
        ]
        with pytest.raises(BackendConstructionError) as exc_info:
            MoAOrchestrator(OrchestratorConfig(), layers, BackendConfig(model="agg"), backend_factory=factory)

        assert isinstance(exc_info.value.cause, ValueError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert exc_info.value.role == "layer 0 agent 1"
        assert built == ["a"]

    def test_aggregator_failure_is_a_construction_error(self):
        def factory(config):
            if config.model == "agg":
                raise ValueError("invalid provider")
            return StubBackend(config.model)

        with pytest.raises(BackendConstructionError) as exc_info:
            MoAOrchestrator(
                OrchestratorConfig(), [[BackendConfig(model="a")]], BackendConfig(model="agg"),
                backend_factory=factory,
            )
        assert exc_info.value.role == "aggregator"

    def test_unknown_model_is_wrapped_by_default_factory(self):
        with pytest.raises(BackendConstructionError):
            MoAOrchestrator(
                OrchestratorConfig(), [[BackendConfig(model="no-such-model")]], BackendConfig(model="mock")
            )

    def test_system_status(self, echo_aggregator):
        orchestrator = build(
            OrchestratorConfig(iterations=2, max_parallel=3),
            [[StubBackend("a"), StubBackend("b")]],
            echo_aggregator,
        )
        status = orchestrator.get_system_status()
        assert status["iterations"] == 2
        assert status["layers"] == [["Stub:a", "Stub:b"]]
        assert status["aggregator"] == "Stub:aggregator"


@pytest.mark.asyncio
class TestGenerate:
    async def test_single_layer_end_to_end(self, default_config, echo_aggregator):
        a = StubBackend("A", output="a")
        b = StubBackend("B", output="b")
        orchestrator = build(default_config, [[a, b]], echo_aggregator)

        result = await orchestrator.generate("X")

        assert a.prompts == ["X"]
        assert b.prompts == ["X"]
        layer_output = "a\n---\nb\n---\n"
        assert combine_results(["a", "b"]) == layer_output
        expected_prompt = AGGREGATION_PROMPT.format(responses="a\n---\nb\n---\n\n---\n")
        assert echo_aggregator.prompts == [expected_prompt]
        assert result == expected_prompt

    async def test_two_iterations_of_identity_layer(self, echo_aggregator):
        identity = StubBackend("identity")
        orchestrator = build(OrchestratorConfig(iterations=2), [[identity]], echo_aggregator)

        result = await orchestrator.generate("P")

        # Each iteration starts again from the original prompt
        assert identity.prompts == ["P", "P"]
        iteration_output = "P\n---\n"
        assert result == AGGREGATION_PROMPT.format(
            responses=iteration_output + "\n---\n" + iteration_output + "\n---\n"
        )

    async def test_layer_output_feeds_next_layer(self, default_config, echo_aggregator):
        first = StubBackend("first", output=lambda p: f"draft({p})")
        second = StubBackend("second", output=lambda p: f"refined({p})")
        orchestrator = build(default_config, [[first], [second]], echo_aggregator)

        await orchestrator.generate("q")

        assert second.prompts == ["draft(q)\n---\n"]
        assert echo_aggregator.prompts == [
            AGGREGATION_PROMPT.format(responses="refined(draft(q)\n---\n)\n---\n\n---\n")
        ]

    async def test_output_order_follows_declaration_not_completion(self, default_config, echo_aggregator):
        slow = StubBackend("slow", output="first", latency=0.15)
        medium = StubBackend("medium", output="second", latency=0.05)
        fast = StubBackend("fast", output="third")
        orchestrator = build(default_config, [[slow, medium, fast]], echo_aggregator)

        await orchestrator.generate("x")

        assert echo_aggregator.prompts[0] == AGGREGATION_PROMPT.format(
            responses="first\n---\nsecond\n---\nthird\n---\n\n---\n"
        )

    async def test_agents_in_a_layer_run_concurrently(self, default_config, echo_aggregator):
        agents = [StubBackend(f"agent{i}", output=str(i), latency=0.2) for i in range(5)]
        orchestrator = build(default_config, [agents], echo_aggregator)

        start = time.monotonic()
        await orchestrator.generate("x")

        assert time.monotonic() - start < 0.8

    async def test_max_parallel_caps_in_flight_calls(self, tracker, echo_aggregator):
        agents = [StubBackend(f"agent{i}", output=str(i), latency=0.05, tracker=tracker) for i in range(6)]
        orchestrator = build(OrchestratorConfig(max_parallel=2), [agents], echo_aggregator)

        await orchestrator.generate("x")

        assert tracker.high_water_mark == 2
        assert all(agent.completed == 1 for agent in agents)

    async def test_zero_max_parallel_runs_everything_at_once(self, tracker, echo_aggregator):
        agents = [StubBackend(f"agent{i}", output=str(i), latency=0.05, tracker=tracker) for i in range(6)]
        orchestrator = build(OrchestratorConfig(max_parallel=0), [agents], echo_aggregator)

        await orchestrator.generate("x")

        assert tracker.high_water_mark == 6

    async def test_failing_agent_aborts_without_aggregation(self, default_config, echo_aggregator):
        ok = StubBackend("ok", output="fine")
        broken = StubBackend("broken", error=RuntimeError("boom"))
        orchestrator = build(default_config, [[ok, broken]], echo_aggregator)

        with pytest.raises(LayerError) as exc_info:
            await orchestrator.generate("x")

        error = exc_info.value
        assert (error.iteration, error.layer_index, error.agent_index) == (0, 0, 1)
        assert isinstance(error.cause, RuntimeError)
        assert error.__cause__ is error.cause
        assert echo_aggregator.calls == 0

    async def test_first_positional_error_wins(self, default_config, echo_aggregator):
        late_failure = StubBackend("late", error=RuntimeError("late"), latency=0.1)
        early_failure = StubBackend("early", error=ValueError("early"))
        orchestrator = build(default_config, [[StubBackend("ok", output="ok"), late_failure, early_failure]],
                             echo_aggregator)

        with pytest.raises(LayerError) as exc_info:
            await orchestrator.generate("x")

        assert exc_info.value.agent_index == 1
        assert str(exc_info.value.cause) == "late"

    async def test_siblings_finish_when_one_fails(self, default_config, echo_aggregator):
        broken = StubBackend("broken", error=RuntimeError("boom"))
        slow = StubBackend("slow", output="done", latency=0.1)
        orchestrator = build(default_config, [[broken, slow]], echo_aggregator)

        with pytest.raises(LayerError):
            await orchestrator.generate("x")

        assert slow.completed == 1
        assert slow.cancelled == 0

    async def test_failure_in_later_layer_and_iteration_is_located(self, echo_aggregator):
        calls = {"count": 0}

        def flaky(prompt):
            calls["count"] += 1
            if calls["count"] == 2:
                raise RuntimeError("second call fails")
            return "ok"

        first = StubBackend("first", output="draft")
        second = StubBackend("second", output=flaky)
        orchestrator = build(OrchestratorConfig(iterations=3), [[first], [second]], echo_aggregator)

        with pytest.raises(LayerError) as exc_info:
            await orchestrator.generate("x")

        assert (exc_info.value.iteration, exc_info.value.layer_index, exc_info.value.agent_index) == (1, 1, 0)
        # Third iteration never starts
        assert first.calls == 2
        assert echo_aggregator.calls == 0

    async def test_agent_timeout_fails_the_layer(self, echo_aggregator):
        fast = StubBackend("fast", output="fast")
        stuck = StubBackend("stuck", output="never", latency=5)
        orchestrator = build(OrchestratorConfig(agent_timeout=0.1), [[fast, stuck]], echo_aggregator)

        start = time.monotonic()
        with pytest.raises(LayerError) as exc_info:
            await orchestrator.generate("x")

        assert time.monotonic() - start < 2
        assert isinstance(exc_info.value.cause, AgentTimeoutError)
        assert isinstance(exc_info.value.cause, TimeoutError)
        assert exc_info.value.agent_index == 1
        # The timed out call is cancelled, not left running
        assert stuck.cancelled == 1
        assert echo_aggregator.calls == 0

    async def test_backend_timeout_error_is_not_an_agent_timeout(self, echo_aggregator):
        log_manager = MoALogManager()
        socket_timeout = StubBackend("socket", error=TimeoutError("socket read timed out"))
        orchestrator = build(OrchestratorConfig(agent_timeout=30), [[StubBackend("ok", output="ok"), socket_timeout]],
                             echo_aggregator, log_manager=log_manager)

        start = time.monotonic()
        with pytest.raises(LayerError) as exc_info:
            await orchestrator.generate("x")

        assert time.monotonic() - start < 2
        cause = exc_info.value.cause
        assert not isinstance(cause, AgentTimeoutError)
        assert cause is socket_timeout.error
        assert str(cause) == "socket read timed out"
        assert exc_info.value.agent_index == 1

    async def test_backend_error_passes_through_deadline_unchanged(self, echo_aggregator):
        broken = StubBackend("broken", error=ValueError("bad request"))
        orchestrator = build(OrchestratorConfig(agent_timeout=5), [[broken]], echo_aggregator)

        with pytest.raises(LayerError) as exc_info:
            await orchestrator.generate("x")

        assert exc_info.value.cause is broken.error

    async def test_task_cancel_reaches_call_under_deadline(self, echo_aggregator):
        agent = StubBackend("slow", latency=10)
        orchestrator = build(OrchestratorConfig(agent_timeout=30), [[agent]], echo_aggregator)

        task = asyncio.create_task(orchestrator.generate("x"))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert agent.cancelled == 1

    async def test_agent_timeout_does_not_affect_fast_agents(self, echo_aggregator):
        agents = [StubBackend(f"agent{i}", output=str(i), latency=0.01) for i in range(3)]
        orchestrator = build(OrchestratorConfig(agent_timeout=1), [agents], echo_aggregator)

        result = await orchestrator.generate("x")

        assert result == AGGREGATION_PROMPT.format(responses="0\n---\n1\n---\n2\n---\n\n---\n")

    async def test_admission_slots_are_released_after_failures(self, echo_aggregator):
        stuck = StubBackend("stuck", latency=5)
        broken = StubBackend("broken", error=RuntimeError("boom"))
        ok = StubBackend("ok", output="ok")
        orchestrator = build(OrchestratorConfig(max_parallel=1, agent_timeout=0.05), [[stuck, broken, ok]],
                             echo_aggregator)

        with pytest.raises(LayerError):
            await orchestrator.generate("x")

        # Every call was admitted even though the slot holders failed
        assert ok.completed == 1
        assert broken.calls == 1

    async def test_aggregator_failure_is_wrapped(self, default_config):
        aggregator = StubBackend("aggregator", error=RuntimeError("rate limited"))
        orchestrator = build(default_config, [[StubBackend("a", output="a")]], aggregator)

        with pytest.raises(AggregationError) as exc_info:
            await orchestrator.generate("x")

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert aggregator.calls == 1

    async def test_generation_is_deterministic(self, echo_aggregator):
        agents = [StubBackend("a", output=lambda p: p.upper(), latency=0.02),
                  StubBackend("b", output=lambda p: p[::-1])]
        orchestrator = build(OrchestratorConfig(iterations=2), [agents, [StubBackend("c")]], echo_aggregator)

        first = await orchestrator.generate("same input")
        second = await orchestrator.generate("same input")

        assert first == second

    async def test_caller_cancellation_stops_agents_promptly(self, default_config, echo_aggregator):
        agents = [StubBackend(f"agent{i}", latency=10) for i in range(3)]
        orchestrator = build(default_config, [agents], echo_aggregator)

        start = time.monotonic()
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(orchestrator.generate("x"), timeout=0.1)

        assert time.monotonic() - start < 2
        assert all(agent.cancelled == 1 for agent in agents)
        assert echo_aggregator.calls == 0

    async def test_task_cancel_propagates(self, default_config, echo_aggregator):
        agents = [StubBackend(f"agent{i}", latency=10) for i in range(2)]
        orchestrator = build(OrchestratorConfig(max_parallel=1, agent_timeout=30), [agents], echo_aggregator)

        task = asyncio.create_task(orchestrator.generate("x"))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert agents[0].cancelled == 1

    async def test_concurrent_callers_share_one_orchestrator(self, echo_aggregator):
        agent = StubBackend("agent", output=lambda p: f"<{p}>", latency=0.05)
        orchestrator = build(OrchestratorConfig(max_parallel=1), [[agent]], echo_aggregator)

        results = await asyncio.gather(*(orchestrator.generate(f"q{i}") for i in range(4)))

        for i, result in enumerate(results):
            assert result == AGGREGATION_PROMPT.format(responses=f"<q{i}>\n---\n\n---\n")

    async def test_events_are_reported_to_log_manager(self, echo_aggregator):
        log_manager = MoALogManager()
        agents = [StubBackend("a", output="a"), StubBackend("b", output="b")]
        orchestrator = build(OrchestratorConfig(iterations=2), [agents, [StubBackend("c")]], echo_aggregator,
                             log_manager=log_manager)

        await orchestrator.generate("x")

        counters = log_manager.get_session_summary()["event_counters"]
        assert counters["generations_started"] == 1
        assert counters["generations_completed"] == 1
        assert counters["layers_completed"] == 4
        assert counters["aggregations"] == 1

    async def test_failures_are_reported_to_log_manager(self, echo_aggregator):
        log_manager = MoALogManager()
        agents = [StubBackend("slow", latency=5), StubBackend("broken", error=RuntimeError("boom"))]
        orchestrator = build(OrchestratorConfig(agent_timeout=0.05), [agents], echo_aggregator,
                             log_manager=log_manager)

        with pytest.raises(LayerError):
            await orchestrator.generate("x")

        counters = log_manager.get_session_summary()["event_counters"]
        assert counters["agent_failures"] == 2
        assert counters["agent_timeouts"] == 1
        assert counters["generations_failed"] == 1
        failed = log_manager.get_events("agent_failed")
        assert [entry.agent_index for entry in failed] == [0, 1]
