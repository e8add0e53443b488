"""Shared pytest fixtures for the ESL pipeline test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import pytest

from eslpipeline.collaborators import (
    AttachResult,
    ColorizeResult,
    Collaborators,
    HeadingCounts,
    ImportRequest,
    ImportResult,
    SynthesisOptions,
    SynthesisResult,
    UploadOptions,
    UploadResult,
)
from eslpipeline.models.manifest import VoiceSelection
from eslpipeline.pipeline.dependencies import OrchestratorDependencies
from eslpipeline.storage.filesystem import FilesystemManifestStore
from eslpipeline.telemetry.observability import PipelineLogEvent

SAMPLE_MARKDOWN = """---
title: Ordering food
student: Anna
level: B1
---

## Warm-up

Talk about your favourite restaurant.

:::study-text
Anna: Could I see the menu, please?
Waiter: Of course, here you are.
:::
"""

ENV_KEYS = (
    "ESL_PIPELINE_CONFIG_DIR",
    "ESL_PIPELINE_MANIFEST_STORE",
    "ESL_PIPELINE_MANIFEST_BUCKET",
    "ESL_PIPELINE_MANIFEST_PREFIX",
    "ESL_PIPELINE_MANIFEST_ROOT",
    "ESL_PIPELINE_CONFIG_PROVIDER",
    "ESL_PIPELINE_CONFIG_ENDPOINT",
    "ESL_PIPELINE_CONFIG_TOKEN",
    "AWS_REGION",
    "S3_BUCKET",
    "S3_PREFIX",
)


@dataclass
class CallLog:
    """Ordered record of collaborator calls made during a test."""

    calls: list[tuple[str, object]] = field(default_factory=list)

    def record(self, name: str, payload: object) -> None:
        """Append one call."""

        self.calls.append((name, payload))

    def names(self) -> list[str]:
        """Return the called collaborator names in order."""

        return [name for name, _ in self.calls]


class FakeValidator:
    """Validator that records every document it checks."""

    def __init__(self, log: CallLog) -> None:
        self.log = log

    def validate(self, md_path: str) -> None:
        self.log.record("validate", md_path)


class FakeImporter:
    """Importer returning a fixed page."""

    def __init__(self, log: CallLog, page_id: str = "page-123") -> None:
        self.log = log
        self.page_id = page_id

    def run_import(self, request: ImportRequest) -> ImportResult:
        self.log.record("import", request)
        return ImportResult(
            page_id=self.page_id,
            url=f"https://notion.so/{self.page_id}",
            student_linked=request.student is not None,
        )


class FakeColorizer:
    """Colorizer reporting fixed recolor counts."""

    def __init__(self, log: CallLog) -> None:
        self.log = log

    def apply_heading_preset(self, page_id: str, preset: str, presets_path: str) -> ColorizeResult:
        self.log.record("colorize", (page_id, preset, presets_path))
        return ColorizeResult(applied=True, counts=HeadingCounts(h2=1, h3=1, toggles=0))


class FakeSynthesizer:
    """Synthesizer that writes a small audio file unless told otherwise."""

    def __init__(self, log: CallLog, audio_path: Path) -> None:
        self.log = log
        self.audio_path = audio_path
        self.write_file = True
        self.error: Exception | None = None

    def build_study_text_mp3(self, md_path: str, options: SynthesisOptions) -> SynthesisResult:
        self.log.record("tts", options)
        if self.error is not None:
            raise self.error
        if self.write_file and not options.preview:
            self.audio_path.write_bytes(b"ID3fake-audio")
        return SynthesisResult(
            path=str(self.audio_path),
            hash="abc123",
            voices=(
                VoiceSelection(speaker="Anna", voice_id="voice_default", source="default"),
            ),
        )


class FakeUploader:
    """Uploader returning a URL derived from the prefix and file name."""

    def __init__(self, log: CallLog) -> None:
        self.log = log

    def upload_file(self, path: str, options: UploadOptions) -> UploadResult:
        self.log.record("upload", (path, options))
        key = f"{options.prefix or 'audio'}/{Path(path).name}"
        return UploadResult(url=f"https://s3.amazonaws.com/{key}", key=key)


class FakeAudioAttacher:
    """Attacher recording page/url pairs."""

    def __init__(self, log: CallLog) -> None:
        self.log = log

    def add_or_replace_audio(self, page_id: str, url: str, replace: bool = False) -> AttachResult:
        self.log.record("add-audio", (page_id, url, replace))
        return AttachResult(replaced=replace, appended=not replace)


class RecordingLogger:
    """Logger keeping every event for assertions."""

    def __init__(self) -> None:
        self.events: list[PipelineLogEvent] = []

    def log(self, event: PipelineLogEvent) -> None:
        self.events.append(event)

    def messages(self) -> list[str]:
        """Return logged event names in order."""

        return [event.message for event in self.events]


class RecordingMetrics:
    """Metrics sink keeping every timing and counter."""

    def __init__(self) -> None:
        self.timings: list[tuple[str, float, dict[str, str]]] = []
        self.increments: list[tuple[str, int, dict[str, str]]] = []

    def timing(
        self, metric: str, duration_ms: float, tags: Mapping[str, str] | None = None
    ) -> None:
        self.timings.append((metric, duration_ms, dict(tags or {})))

    def increment(self, metric: str, value: int = 1, tags: Mapping[str, str] | None = None) -> None:
        self.increments.append((metric, value, dict(tags or {})))


@pytest.fixture(autouse=True)
def _isolated_pipeline_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove pipeline environment variables so host settings never leak into tests."""

    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def lesson_md(tmp_path: Path) -> Path:
    """Write a sample lesson document and return its path."""

    path = tmp_path / "lesson.md"
    path.write_text(SAMPLE_MARKDOWN, encoding="utf-8")
    return path


@pytest.fixture
def call_log() -> CallLog:
    """Provide an empty collaborator call log."""

    return CallLog()


@pytest.fixture
def collaborators(call_log: CallLog, tmp_path: Path) -> Collaborators:
    """Provide in-memory collaborators sharing one call log."""

    return Collaborators(
        validator=FakeValidator(call_log),
        importer=FakeImporter(call_log),
        colorizer=FakeColorizer(call_log),
        synthesizer=FakeSynthesizer(call_log, tmp_path / "lesson.mp3"),
        uploader=FakeUploader(call_log),
        audio_attacher=FakeAudioAttacher(call_log),
    )


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Provide a logger that records events."""

    return RecordingLogger()


@pytest.fixture
def recording_metrics() -> RecordingMetrics:
    """Provide a metrics sink that records measurements."""

    return RecordingMetrics()


@pytest.fixture
def dependencies(
    collaborators: Collaborators,
    recording_logger: RecordingLogger,
    recording_metrics: RecordingMetrics,
) -> OrchestratorDependencies:
    """Provide a filesystem-backed dependency bundle with recording telemetry."""

    return OrchestratorDependencies(
        manifest_store=FilesystemManifestStore(),
        collaborators=collaborators,
        logger=recording_logger,
        metrics=recording_metrics,
        run_id="run-test",
        env={},
    )
