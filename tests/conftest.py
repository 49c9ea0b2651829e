import asyncio
from typing import Callable, List, Optional, Union

import pytest

from moagen.backends import LLMBackend
from moagen.types import BackendConfig, OrchestratorConfig


class ConcurrencyTracker:
    """Records how many stub calls are in flight at once."""

    def __init__(self):
        self.current = 0
        self.high_water_mark = 0

    def enter(self):
        self.current += 1
        self.high_water_mark = max(self.high_water_mark, self.current)

    def exit(self):
        self.current -= 1


class StubBackend(LLMBackend):
    """Deterministic test double with optional latency, failure and call tracking."""

    def __init__(self, name: str,
                 output: Union[str, Callable[[str], str], None] = None,
                 latency: float = 0.0,
                 error: Optional[BaseException] = None,
                 tracker: Optional[ConcurrencyTracker] = None):
        super().__init__(BackendConfig(provider="mock", model=name))
        self.output = output
        self.latency = latency
        self.error = error
        self.tracker = tracker
        self.prompts: List[str] = []
        self.completed = 0
        self.cancelled = 0

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.tracker:
            self.tracker.enter()
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            if self.error is not None:
                raise self.error
            self.completed += 1
            if self.output is None:
                return prompt
            if callable(self.output):
                return self.output(prompt)
            return self.output
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            if self.tracker:
                self.tracker.exit()

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def get_provider_name(self) -> str:
        return "Stub"


@pytest.fixture
def tracker():
    return ConcurrencyTracker()


@pytest.fixture
def echo_aggregator():
    return StubBackend("aggregator")


@pytest.fixture
def default_config():
    return OrchestratorConfig(iterations=1, max_parallel=0, agent_timeout=0)
