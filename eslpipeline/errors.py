"""Domain exceptions for assignment pipeline orchestration and diagnostics."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for errors raised by the assignment pipeline."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        """Initialize an error with an optional actionable hint."""

        super().__init__(message)
        self.hint = hint


class ConfigurationError(PipelineError):
    """Raised when a required resource, setting, or collaborator cannot be located."""


class PreconditionError(PipelineError):
    """Raised when a skip flag is used without the state it depends on."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped precondition error."""

        super().__init__(message, hint=hint)
        self.stage = stage


class ManifestError(PipelineError):
    """Raised when a manifest is missing or cannot be interpreted."""


class InfrastructureError(PipelineError):
    """Raised when a host-level dependency needed by a stage is unavailable."""


class SynthesisDependencyError(InfrastructureError):
    """Raised by synthesizers when an external binary such as ffmpeg is missing."""


class RemoteConfigError(PipelineError):
    """Raised when a remote configuration resource cannot be fetched."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialize remote failure metadata."""

        super().__init__(message)
        self.status_code = status_code


def describe_error(command: str, exc: BaseException) -> dict[str, object]:
    """Build the payload a JSON-emitting caller records for a failed command."""

    return {
        "command": command,
        "error": {
            "message": str(exc),
            "name": type(exc).__name__,
        },
    }
