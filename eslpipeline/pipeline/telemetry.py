"""Stage telemetry for pipeline operations.

Responsibilities:
- Emit stage start/success/skipped events to progress callbacks.
- Mirror every event to the structured logger and metrics sink with durations.
- Wrap whole operations so failures are logged and metered, then re-raised.
"""

from __future__ import annotations

from collections.abc import Callable
import time
from typing import Any, TypeVar
import uuid

from ..models.datatypes import (
    AssignmentProgressCallbacks,
    AssignmentProgressEvent,
    AssignmentStage,
    StageStatus,
)
from ..telemetry.observability import (
    PipelineLogEvent,
    PipelineLogger,
    PipelineLogLevel,
    PipelineMetrics,
)

_CommandResult = TypeVar("_CommandResult")

STAGE_DURATION_METRIC = "esl.pipeline.stage.duration_ms"
STAGE_SUCCESS_METRIC = "esl.pipeline.stage.success"
STAGE_SKIPPED_METRIC = "esl.pipeline.stage.skipped"


def _elapsed_ms(started: float, clock: Callable[[], float]) -> int:
    """Return whole milliseconds elapsed since `started`."""

    return max(0, round((clock() - started) * 1000))


class StageTelemetry:
    """Track stage timings for one operation and fan events out to all sinks."""

    def __init__(
        self,
        command: str,
        *,
        logger: PipelineLogger,
        metrics: PipelineMetrics,
        callbacks: AssignmentProgressCallbacks | None = None,
        run_id: str | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize sinks and a correlation id for one operation."""

        self.command = command
        self.run_id = run_id or uuid.uuid4().hex
        self._logger = logger
        self._metrics = metrics
        self._callbacks = callbacks
        self._clock = clock
        self._stage_started: dict[AssignmentStage, float] = {}

    def start(self, stage: AssignmentStage) -> None:
        """Record a stage start."""

        self._stage_started[stage] = self._clock()
        self._emit(stage, StageStatus.START, {})

    def succeed(self, stage: AssignmentStage, **detail: Any) -> None:
        """Record a stage success with its elapsed duration."""

        started = self._stage_started.pop(stage, self._clock())
        duration_ms = _elapsed_ms(started, self._clock)
        tags = {"stage": stage.value, "command": self.command}
        self._metrics.timing(STAGE_DURATION_METRIC, duration_ms, tags)
        self._metrics.increment(STAGE_SUCCESS_METRIC, 1, tags)
        self._emit(stage, StageStatus.SUCCESS, {**detail, "durationMs": duration_ms})

    def skip(self, stage: AssignmentStage, reason: str) -> None:
        """Record a skipped stage and the reason it was skipped."""

        started = self._stage_started.pop(stage, None)
        duration_ms = _elapsed_ms(started, self._clock) if started is not None else 0
        self._metrics.increment(
            STAGE_SKIPPED_METRIC, 1, {"stage": stage.value, "command": self.command}
        )
        self._emit(stage, StageStatus.SKIPPED, {"reason": reason, "durationMs": duration_ms})

    def run_command(self, action: Callable[[], _CommandResult]) -> _CommandResult:
        """Run a whole operation, metering its duration and reporting failures."""

        started = self._clock()
        self._log("info", f"pipeline.{self.command}.start", None, {})
        try:
            result = action()
        except Exception as exc:
            duration_ms = _elapsed_ms(started, self._clock)
            self._log(
                "error",
                f"pipeline.{self.command}.failure",
                None,
                {
                    "durationMs": duration_ms,
                    "error": str(exc),
                    "errorType": type(exc).__name__,
                },
            )
            self._metrics.timing(
                f"esl.pipeline.{self.command}.duration_ms", duration_ms, {"result": "failure"}
            )
            self._metrics.increment(
                f"esl.pipeline.{self.command}.failure", 1, {"error": type(exc).__name__}
            )
            raise
        duration_ms = _elapsed_ms(started, self._clock)
        self._log("info", f"pipeline.{self.command}.success", None, {"durationMs": duration_ms})
        self._metrics.timing(
            f"esl.pipeline.{self.command}.duration_ms", duration_ms, {"result": "success"}
        )
        return result

    def _emit(self, stage: AssignmentStage, status: StageStatus, detail: dict[str, Any]) -> None:
        """Deliver one stage event to the callback and the logger."""

        if self._callbacks is not None and self._callbacks.on_stage is not None:
            self._callbacks.on_stage(
                AssignmentProgressEvent(stage=stage, status=status, detail=detail)
            )
        self._log("info", f"stage.{stage.value}.{status.value}", stage.value, detail)

    def _log(
        self,
        level: PipelineLogLevel,
        message: str,
        stage: str | None,
        detail: dict[str, Any],
    ) -> None:
        """Send one structured event to the logger."""

        self._logger.log(
            PipelineLogEvent(
                level=level,
                message=message,
                run_id=self.run_id,
                stage=stage,
                detail=dict(detail),
            )
        )
