"""Contracts for the external services the stage sequencer drives.

Responsibilities:
- Define narrow protocols for import, colorize, synthesis, upload, and attach.
- Define the request/result records exchanged across those boundaries.
- Bundle concrete collaborators for injection into the sequencer.

Notes:
- Concrete implementations live outside this package; tests use in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from .errors import ConfigurationError
from .models.manifest import VoiceSelection

_Collaborator = TypeVar("_Collaborator")


@dataclass(frozen=True, slots=True)
class ImportRequest:
    """Inputs for publishing one document."""

    md_path: str
    db_id: str | None = None
    db_name: str | None = None
    data_source_id: str | None = None
    data_source_name: str | None = None
    student: str | None = None
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Identifiers of the published page."""

    page_id: str | None
    url: str | None = None
    student_linked: bool | None = None


@dataclass(frozen=True, slots=True)
class HeadingCounts:
    """Number of blocks recolored per block kind."""

    h2: int = 0
    h3: int = 0
    toggles: int = 0

    def as_step(self) -> str:
        """Render as the `h2/h3/toggles` fragment used in step summaries."""

        return f"{self.h2}/{self.h3}/{self.toggles}"

    def as_detail(self) -> dict[str, int]:
        """Render as an event detail payload."""

        return {"h2": self.h2, "h3": self.h3, "toggles": self.toggles}


@dataclass(frozen=True, slots=True)
class ColorizeResult:
    """Outcome of applying a heading preset."""

    applied: bool
    counts: HeadingCounts = field(default_factory=HeadingCounts)


@dataclass(frozen=True, slots=True)
class SynthesisOptions:
    """Inputs for study-text audio synthesis."""

    voice_map_path: str | None
    out_path: str
    preview: bool = False
    force: bool = False
    default_accent: str | None = None
    voice_id: str | None = None
    tts_mode: str | None = None
    dialogue_language: str | None = None
    dialogue_stability: float | None = None
    dialogue_seed: int | None = None


@dataclass(frozen=True, slots=True)
class SynthesisResult:
    """Synthesized audio file and its provenance."""

    path: str
    hash: str
    voices: tuple[VoiceSelection, ...] = field(default_factory=tuple)
    duration_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class UploadOptions:
    """Inputs for uploading one audio file."""

    backend: str = "s3"
    public: bool = False
    presign_expires_in: int | None = None
    prefix: str | None = None


@dataclass(frozen=True, slots=True)
class UploadResult:
    """Location of an uploaded object."""

    url: str
    key: str | None = None


@dataclass(frozen=True, slots=True)
class AttachResult:
    """Outcome of attaching audio to a published page."""

    replaced: bool = False
    appended: bool = False


class DocumentValidator(Protocol):
    """Check a document's structure before anything is published."""

    def validate(self, md_path: str) -> None:
        """Raise when the document is structurally invalid."""


class Importer(Protocol):
    """Publish a document into the content service."""

    def run_import(self, request: ImportRequest) -> ImportResult:
        """Publish the document and return the created page identifiers."""


class Colorizer(Protocol):
    """Apply a named formatting preset to a published page."""

    def apply_heading_preset(self, page_id: str, preset: str, presets_path: str) -> ColorizeResult:
        """Recolor headings and toggles according to a preset."""


class Synthesizer(Protocol):
    """Build study-text audio for a document."""

    def build_study_text_mp3(self, md_path: str, options: SynthesisOptions) -> SynthesisResult:
        """Synthesize (or preview) the document's study-text audio."""


class Uploader(Protocol):
    """Upload a local file to object storage."""

    def upload_file(self, path: str, options: UploadOptions) -> UploadResult:
        """Upload the file and return a retrievable URL."""


class AudioAttacher(Protocol):
    """Attach an audio URL under the study-text section of a page."""

    def add_or_replace_audio(self, page_id: str, url: str, replace: bool = False) -> AttachResult:
        """Add the audio block, replacing an existing one when requested."""


@dataclass(frozen=True, slots=True)
class Collaborators:
    """External services available to one pipeline instance."""

    validator: DocumentValidator | None = None
    importer: Importer | None = None
    colorizer: Colorizer | None = None
    synthesizer: Synthesizer | None = None
    uploader: Uploader | None = None
    audio_attacher: AudioAttacher | None = None


def require_collaborator(
    collaborator: _Collaborator | None, name: str, stage: str
) -> _Collaborator:
    """Return a configured collaborator or fail naming the missing one.

    Raises:
        ConfigurationError: If the collaborator was not supplied.
    """

    if collaborator is None:
        raise ConfigurationError(
            f"No {name} configured; the `{stage}` stage cannot run.",
            hint=f"Pass a {name} in `Collaborators` when creating the pipeline.",
        )
    return collaborator
