"""Loguru-backed pipeline logger.

Responsibilities:
- Render structured pipeline events as concise, deterministic single lines.
- Route lines through `loguru` to a caller-chosen sink.
"""

from __future__ import annotations

import sys
from typing import TextIO
import uuid

from loguru import logger as _loguru_logger

from .observability import PipelineLogEvent

_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
}


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
        if context[key] is not None and not isinstance(context[key], (dict, list, tuple))
    ]
    if not tokens:
        return ""
    return " " + " ".join(tokens)


def format_event(event: PipelineLogEvent) -> str:
    """Render one event as a `[pipeline] key=value` line."""

    stage = event.stage or "pipeline"
    run_id = _sanitize_context_value(event.run_id or "none")
    return (
        f"[pipeline] level={event.level} run={run_id} stage={stage} "
        f"event={event.message}{_format_context(event.detail)}"
    )


class LoguruPipelineLogger:
    """Emit pipeline events through a dedicated loguru sink."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Bind a loguru handler to the sink and keep its id for `close`."""

        self._sink = sink or sys.stderr
        # A handler only receives events bound with this instance's token.
        self._token = uuid.uuid4().hex
        token = self._token
        self._handler_id = _loguru_logger.add(
            self._sink,
            format="{message}",
            level=level,
            colorize=False,
            filter=lambda record: record["extra"].get("esl_pipeline") == token,
        )
        self._logger = _loguru_logger.bind(esl_pipeline=token)

    def log(self, event: PipelineLogEvent) -> None:
        """Emit one structured runtime log line."""

        self._logger.log(_LEVELS.get(event.level, "INFO"), format_event(event))

    def close(self) -> None:
        """Detach the loguru handler owned by this logger."""

        _loguru_logger.remove(self._handler_id)
