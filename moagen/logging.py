"""
MoAGen Logging System

This module configures Python logging for the MoAGen package and provides
MoALogManager, a structured event recorder the orchestrator reports to while
it runs. Events only carry metadata (positions, sizes, durations); prompts and
intermediate responses are never recorded.

When a log directory is configured, console output is mirrored to:

    <log_dir>/
    └── <session_id>/
        └── console.log     # Python logging output
"""

import logging
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .types import LogEntry, LoggingConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure the 'moagen' logger with a console handler.

    Calling it again replaces the level but never stacks a second console handler.
    """
    config = config or LoggingConfig()
    level = getattr(logging, str(config.level).upper(), logging.INFO)
    moa_logger = logging.getLogger("moagen")
    moa_logger.setLevel(level)

    console_handler = next((h for h in moa_logger.handlers if getattr(h, "_moagen_console", False)), None)
    if console_handler is None:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler._moagen_console = True
        moa_logger.addHandler(console_handler)
    # A session file handler may lower the logger level; the console keeps this one
    console_handler.setLevel(level)

    # Prevent duplicate console logs
    moa_logger.propagate = False
    return moa_logger


class MoALogManager:
    """
    Structured event log for Mixture-of-Agents runs.

    Records:
    - Generation start/finish and failures
    - Layer completions with per-layer durations
    - Agent failures and timeouts
    - Aggregation results

    Safe to share between concurrent generate() calls.
    """

    def __init__(self, log_dir: Optional[str] = None, session_id: Optional[str] = None):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory for console.log; None keeps everything in memory
            session_id: Unique identifier for this session
        """
        self.session_id = session_id or self._generate_session_id()
        self.session_dir: Optional[Path] = Path(log_dir) / self.session_id if log_dir else None
        self.console_log_file: Optional[Path] = None
        self._file_handler: Optional[logging.Handler] = None
        self._previous_level = logging.NOTSET

        # In-memory log storage for real-time access
        self.log_entries: List[LogEntry] = []

        self.event_counters = {
            "generations_started": 0,
            "generations_completed": 0,
            "generations_failed": 0,
            "layers_completed": 0,
            "agent_failures": 0,
            "agent_timeouts": 0,
            "aggregations": 0,
        }

        # Thread lock for concurrent access
        self._lock = threading.Lock()

        self._setup_file_logging()

        self.log_event("session_started", data={
            "session_id": self.session_id,
            "session_dir": str(self.session_dir) if self.session_dir else None,
        })

    def _generate_session_id(self) -> str:
        """Generate a unique session ID."""
        return datetime.now().strftime("%Y%m%d_%H%M%S_%f")

    def _setup_file_logging(self):
        """Mirror the moagen logger into <session_dir>/console.log."""
        if self.session_dir is None:
            return

        try:
            self.session_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logging.getLogger(__name__).warning(
                f"Failed to create session directory {self.session_dir}, skipping file logging: {e}"
            )
            self.session_dir = None
            return

        self.console_log_file = self.session_dir / "console.log"
        handler = logging.FileHandler(self.console_log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.setLevel(logging.DEBUG)

        # Set logger level to capture everything in the file
        moa_logger = logging.getLogger("moagen")
        self._previous_level = moa_logger.level
        moa_logger.setLevel(logging.DEBUG)
        moa_logger.addHandler(handler)
        self._file_handler = handler

    def log_event(self, event_type: str, iteration: Optional[int] = None,
                  layer_index: Optional[int] = None, agent_index: Optional[int] = None,
                  data: Optional[Dict[str, Any]] = None):
        """
        Log a general system event.

        Args:
            event_type: Type of event (e.g., "session_started", "layer_completed")
            iteration: Iteration index if the event belongs to one
            layer_index: Layer index if the event belongs to one
            agent_index: Agent position inside the layer if agent-specific
            data: Additional event data
        """
        with self._lock:
            entry = LogEntry(
                timestamp=time.time(),
                event_type=event_type,
                data=data or {},
                iteration=iteration,
                layer_index=layer_index,
                agent_index=agent_index,
                session_id=self.session_id,
            )
            self.log_entries.append(entry)

    def _count(self, counter: str):
        with self._lock:
            self.event_counters[counter] += 1

    def log_generation_started(self, prompt_length: int, iterations: int, num_layers: int):
        self._count("generations_started")
        self.log_event("generation_started", data={
            "prompt_length": prompt_length,
            "iterations": iterations,
            "num_layers": num_layers,
        })

    def log_layer_completed(self, iteration: int, layer_index: int, num_agents: int,
                            output_length: int, duration: float):
        self._count("layers_completed")
        self.log_event("layer_completed", iteration=iteration, layer_index=layer_index, data={
            "num_agents": num_agents,
            "output_length": output_length,
            "duration": duration,
        })

    def log_agent_failure(self, iteration: int, layer_index: int, agent_index: int,
                          error: BaseException):
        """Record a failed agent call; timeouts are counted separately."""
        if isinstance(error, TimeoutError):
            self._count("agent_timeouts")
        self._count("agent_failures")
        self.log_event("agent_failed", iteration=iteration, layer_index=layer_index,
                       agent_index=agent_index, data={
                           "error_type": type(error).__name__,
                           "error": str(error),
                       })

    def log_aggregation(self, input_length: int, output_length: int, duration: float):
        self._count("aggregations")
        self.log_event("aggregation_completed", data={
            "input_length": input_length,
            "output_length": output_length,
            "duration": duration,
        })

    def log_generation_finished(self, success: bool, duration: float, error: Optional[BaseException] = None):
        self._count("generations_completed" if success else "generations_failed")
        data: Dict[str, Any] = {"success": success, "duration": duration}
        if error is not None:
            data["error_type"] = type(error).__name__
            data["error"] = str(error)
        self.log_event("generation_finished", data=data)

    def get_events(self, event_type: Optional[str] = None) -> List[LogEntry]:
        """Get a copy of the recorded events, optionally filtered by type."""
        with self._lock:
            if event_type is None:
                return list(self.log_entries)
            return [entry for entry in self.log_entries if entry.event_type == event_type]

    def get_session_summary(self) -> Dict[str, Any]:
        """Get comprehensive session summary."""
        with self._lock:
            event_counts: Dict[str, int] = {}
            for entry in self.log_entries:
                event_counts[entry.event_type] = event_counts.get(entry.event_type, 0) + 1

            return {
                "session_id": self.session_id,
                "total_events": len(self.log_entries),
                "event_counts": event_counts,
                "event_counters": self.event_counters.copy(),
                "session_duration": self._calculate_session_duration(),
                "console_log": str(self.console_log_file) if self.console_log_file else None,
            }

    def _calculate_session_duration(self) -> float:
        """Calculate total session duration."""
        if not self.log_entries:
            return 0.0

        start_time = min(entry.timestamp for entry in self.log_entries)
        end_time = max(entry.timestamp for entry in self.log_entries)
        return end_time - start_time

    def cleanup(self):
        """Clean up and finalize the logging session."""
        self.log_event("session_ended", data={"total_events_logged": len(self.log_entries)})

        if self._file_handler is not None:
            moa_logger = logging.getLogger("moagen")
            moa_logger.removeHandler(self._file_handler)
            moa_logger.setLevel(self._previous_level)
            self._file_handler.close()
            self._file_handler = None
