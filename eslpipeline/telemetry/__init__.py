"""Telemetry contracts and adapters.

This package defines the logger/metrics interfaces the stage sequencer emits to,
their no-op defaults, and a loguru-backed logger.
"""

from .logger import LoguruPipelineLogger, format_event
from .observability import (
    NOOP_LOGGER,
    NOOP_METRICS,
    NoopLogger,
    NoopMetrics,
    PipelineLogEvent,
    PipelineLogger,
    PipelineMetrics,
)

__all__ = [
    "LoguruPipelineLogger",
    "NOOP_LOGGER",
    "NOOP_METRICS",
    "NoopLogger",
    "NoopMetrics",
    "PipelineLogEvent",
    "PipelineLogger",
    "PipelineMetrics",
    "format_event",
]
