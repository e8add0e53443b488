"""Core datatypes exchanged between the facade, the stage sequencer, and callers.

Responsibilities:
- Model the closed set of pipeline stages and stage statuses.
- Represent stage progress events delivered to caller callbacks.
- Carry invocation flags and run results with explicit typing.

Key types:
- `AssignmentStage`, `StageStatus`, `AssignmentProgressEvent`.
- `NewAssignmentFlags`, `RerunFlags`.
- `AssignmentResult`, `RerunResult`, `AssignmentStatus`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from .manifest import AssignmentManifest, AudioRecord

TtsMode = Literal["auto", "dialogue", "monologue"]
UploadBackend = Literal["s3"]

RERUN_STEP_NAMES = ("tts", "upload", "add-audio")
DEFAULT_RERUN_STEPS = ("upload", "add-audio")


class AssignmentStage(str, Enum):
    """Named unit of pipeline work, in execution order."""

    VALIDATE = "validate"
    IMPORT = "import"
    COLORIZE = "colorize"
    TTS = "tts"
    UPLOAD = "upload"
    ADD_AUDIO = "add-audio"
    MANIFEST = "manifest"


class StageStatus(str, Enum):
    """Observable status of one stage transition."""

    START = "start"
    SUCCESS = "success"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class AssignmentProgressEvent:
    """One stage transition reported to progress callbacks."""

    stage: AssignmentStage
    status: StageStatus
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class AssignmentProgressCallbacks:
    """Optional caller hooks invoked as stages progress."""

    on_stage: Callable[[AssignmentProgressEvent], None] | None = None


@dataclass(slots=True)
class NewAssignmentFlags:
    """Invocation flags for a full pipeline run over one document.

    Attributes:
        md: Path to the source markdown document.
        preset: Formatting preset to apply after import.
        with_tts: Whether to synthesize study-text audio.
        upload: Upload backend for synthesized audio (only `s3`).
        dry_run: Simulate side-effecting stages without collaborator calls.
        force: Force re-synthesis and replace previously attached audio.
        skip_import: Reuse the previously imported page.
        skip_tts: Reuse the previously synthesized audio file.
        skip_upload: Reuse the previously uploaded audio URL.
        redo_tts: Force re-synthesis even when cached audio exists.
        prefix: Object key prefix for uploads.
        public_read: Upload with a public-read ACL.
        presign: Presigned URL lifetime in seconds.
    """

    md: str
    student: str | None = None
    preset: str | None = None
    presets_path: str | None = None
    accent_preference: str | None = None
    voice_id: str | None = None
    with_tts: bool = False
    tts_mode: TtsMode | None = None
    dialogue_language: str | None = None
    dialogue_stability: float | None = None
    dialogue_seed: int | None = None
    upload: UploadBackend | None = None
    presign: int | None = None
    public_read: bool = False
    prefix: str | None = None
    dry_run: bool = False
    force: bool = False
    skip_import: bool = False
    skip_tts: bool = False
    skip_upload: bool = False
    redo_tts: bool = False
    voices: str | None = None
    out: str | None = None
    db_id: str | None = None
    db: str | None = None
    data_source_id: str | None = None
    data_source: str | None = None


@dataclass(slots=True)
class RerunFlags:
    """Invocation flags for re-executing a subset of audio stages."""

    md: str
    steps: tuple[str, ...] = DEFAULT_RERUN_STEPS
    voices: str | None = None
    out: str | None = None
    force: bool = False
    dry_run: bool = False
    upload: UploadBackend | None = None
    prefix: str | None = None
    public_read: bool = False
    presign: int | None = None
    accent_preference: str | None = None
    voice_id: str | None = None
    tts_mode: TtsMode | None = None
    dialogue_language: str | None = None
    dialogue_stability: float | None = None
    dialogue_seed: int | None = None

    def __post_init__(self) -> None:
        """Normalize the step selection and reject unknown step names."""

        selected = tuple(self.steps) if self.steps else DEFAULT_RERUN_STEPS
        unknown = sorted(set(selected).difference(RERUN_STEP_NAMES))
        if unknown:
            raise ValueError(
                f"Unsupported rerun step(s): {', '.join(unknown)}. "
                f"Choose from: {', '.join(RERUN_STEP_NAMES)}."
            )
        self.steps = selected


@dataclass(frozen=True, slots=True)
class AssignmentResult:
    """Outputs of one `new_assignment` run."""

    steps: list[str]
    page_id: str | None = None
    page_url: str | None = None
    audio: AudioRecord | None = None
    colorized: bool = False
    manifest_path: str | None = None


@dataclass(frozen=True, slots=True)
class RerunResult:
    """Outputs of one `rerun_assignment` run."""

    steps: list[str]
    manifest_path: str
    audio: AudioRecord | None = None
    page_id: str | None = None
    page_url: str | None = None


@dataclass(frozen=True, slots=True)
class AssignmentStatus:
    """Freshness report for one document's manifest."""

    manifest_path: str
    manifest: AssignmentManifest | None
    md_hash_matches: bool
    audio_file_exists: bool
