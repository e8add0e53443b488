"""Observability contracts for the stage sequencer.

Responsibilities:
- Define the structured logger and metrics sink the sequencer emits to.
- Provide no-op defaults so the engine runs without telemetry wired in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Protocol

PipelineLogLevel = Literal["debug", "info", "warn", "error"]


@dataclass(frozen=True, slots=True)
class PipelineLogEvent:
    """One structured log record emitted by the sequencer.

    Attributes:
        level: Severity.
        message: Dotted event name such as `stage.tts.success`.
        run_id: Correlation id shared by every event of one run.
        stage: Stage name when the event is stage-scoped.
        detail: Additional structured payload.
    """

    level: PipelineLogLevel
    message: str
    run_id: str | None = None
    stage: str | None = None
    detail: dict[str, Any] = field(default_factory=dict)


class PipelineLogger(Protocol):
    """Structured log sink."""

    def log(self, event: PipelineLogEvent) -> None:
        """Record one event."""


class PipelineMetrics(Protocol):
    """Metrics sink for timings and counters."""

    def timing(
        self, metric: str, duration_ms: float, tags: Mapping[str, str] | None = None
    ) -> None:
        """Record a duration in milliseconds."""

    def increment(
        self, metric: str, value: int = 1, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter."""


class NoopLogger:
    """Logger that discards every event."""

    def log(self, event: PipelineLogEvent) -> None:
        _ = event


class NoopMetrics:
    """Metrics sink that discards every measurement."""

    def timing(
        self, metric: str, duration_ms: float, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = (metric, duration_ms, tags)

    def increment(
        self, metric: str, value: int = 1, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = (metric, value, tags)


NOOP_LOGGER = NoopLogger()
NOOP_METRICS = NoopMetrics()
