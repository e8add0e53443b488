"""Stage sequencing for a full assignment run.

Responsibilities:
- Execute validate, import, colorize, tts, upload, add-audio, and manifest in order.
- Apply per-stage skip policies seeded from the previous manifest.
- Keep dry-run free of colorize/upload/attach collaborator calls.
- Persist the manifest as the final stage, only after every prior stage finished.

Key types:
- `new_assignment`: public entry point.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TypeVar

from ..collaborators import HeadingCounts, ImportRequest, require_collaborator
from ..config import PRESETS_FILE_NAME
from ..errors import PreconditionError
from ..models.datatypes import (
    AssignmentProgressCallbacks,
    AssignmentResult,
    AssignmentStage,
    NewAssignmentFlags,
)
from ..models.manifest import AssignmentManifest, AudioRecord, hash_study_text, utc_timestamp
from .dependencies import OrchestratorDependencies
from .stages import (
    preview_upload_url,
    resolve_voice_map_path,
    summarize_voice_selections,
    synthesis_options_for,
    synthesize,
    upload_audio,
)
from .telemetry import StageTelemetry

_Value = TypeVar("_Value")

DEFAULT_PRESETS_PATH = f"configs/{PRESETS_FILE_NAME}"


def _first_set(*values: _Value | None) -> _Value | None:
    """Return the first value that is not `None`."""

    for value in values:
        if value is not None:
            return value
    return None


class _AssignmentRun:
    """Mutable state of one `new_assignment` invocation."""

    def __init__(
        self,
        flags: NewAssignmentFlags,
        dependencies: OrchestratorDependencies,
        telemetry: StageTelemetry,
    ) -> None:
        self.flags = flags
        self.deps = dependencies
        self.telemetry = telemetry
        self.steps: list[str] = []
        self.previous: AssignmentManifest | None = None
        self.page_id: str | None = None
        self.page_url: str | None = None
        self.audio: AudioRecord | None = None
        self.colorized = False

    def execute(self) -> AssignmentResult:
        """Run every stage in order and return the run outputs."""

        md_text = Path(self.flags.md).read_text(encoding="utf-8")
        self.previous = self.deps.manifest_store.read_manifest(self.flags.md)
        if self.previous is not None:
            self.page_id = self.previous.page_id
            self.page_url = self.previous.page_url
            self.audio = self.previous.audio

        self._validate()
        self._import()
        self._colorize()
        self._tts()
        self._upload()
        self._add_audio()
        manifest_path = self._write_manifest(md_text)

        return AssignmentResult(
            steps=self.steps,
            page_id=self.page_id,
            page_url=self.page_url,
            audio=self.audio,
            colorized=self.colorized,
            manifest_path=manifest_path,
        )

    def _validate(self) -> None:
        stage = AssignmentStage.VALIDATE
        self.telemetry.start(stage)
        self.steps.append(stage.value)
        validator = self.deps.collaborators.validator
        if validator is not None:
            validator.validate(self.flags.md)
        self.telemetry.succeed(stage)

    def _import(self) -> None:
        stage = AssignmentStage.IMPORT
        flags = self.flags
        if flags.skip_import:
            if not self.page_id and not flags.dry_run:
                raise PreconditionError(
                    "Cannot skip import because no existing pageId was found. "
                    "Run a full pipeline first.",
                    stage=stage.value,
                    hint="Drop --skip-import for the first run of this document.",
                )
            self.telemetry.skip(stage, "skip-import flag set")
            self.steps.append(f"skip:{stage.value}")
            return

        self.telemetry.start(stage)
        self.steps.append(stage.value)
        importer = require_collaborator(self.deps.collaborators.importer, "Importer", stage.value)
        result = importer.run_import(
            ImportRequest(
                md_path=flags.md,
                db_id=flags.db_id or self._student_db_id(),
                db_name=flags.db,
                data_source_id=flags.data_source_id,
                data_source_name=flags.data_source,
                student=flags.student,
                dry_run=flags.dry_run,
            )
        )
        self.page_id = result.page_id
        self.page_url = result.url
        detail: dict[str, object] = {"pageUrl": result.url}
        if result.student_linked is not None:
            detail["studentLinked"] = result.student_linked
        self.telemetry.succeed(stage, **detail)

    def _student_db_id(self) -> str | None:
        """Resolve the target database from the student's profile, when configured."""

        provider = self.deps.config_provider
        student = self.flags.student
        if provider is None or not student or self.flags.db:
            return None
        wanted = student.casefold()
        for profile in provider.load_student_profiles():
            if profile.student.casefold() == wanted:
                return profile.db_id
        return None

    def _colorize(self) -> None:
        stage = AssignmentStage.COLORIZE
        preset = self.flags.preset
        if not preset:
            self.telemetry.skip(stage, "no preset selected")
            return

        if self.flags.dry_run:
            self.telemetry.start(stage)
            counts = HeadingCounts()
            self.steps.append(f"{stage.value}:{preset}:{counts.as_step()}")
            self.colorized = True
            self.telemetry.succeed(stage, preset=preset, dryRun=True, counts=counts.as_detail())
            return

        if not self.page_id:
            raise PreconditionError(
                "Cannot apply color preset because no pageId is available. Run import first.",
                stage=stage.value,
            )
        self.telemetry.start(stage)
        self.steps.append(stage.value)
        colorizer = require_collaborator(
            self.deps.collaborators.colorizer, "Colorizer", stage.value
        )
        result = colorizer.apply_heading_preset(
            self.page_id, preset, self.flags.presets_path or DEFAULT_PRESETS_PATH
        )
        self.steps.append(f"{stage.value}:{preset}:{result.counts.as_step()}")
        self.colorized = result.applied
        self.telemetry.succeed(stage, preset=preset, counts=result.counts.as_detail())

    def _tts(self) -> None:
        stage = AssignmentStage.TTS
        flags = self.flags
        if not flags.with_tts:
            self.telemetry.skip(stage, "tts disabled")
            self.audio = None
            return

        if flags.skip_tts:
            if (self.audio is None or not self.audio.path) and not flags.dry_run:
                raise PreconditionError(
                    "Cannot skip TTS because manifest has no audio.path. "
                    "Run TTS at least once first.",
                    stage=stage.value,
                )
            self.telemetry.skip(stage, "skip-tts flag set")
            self.steps.append(f"skip:{stage.value}")
            return

        self.telemetry.start(stage)
        self.steps.append(stage.value)
        voice_map_path = resolve_voice_map_path(self.deps.config_provider, flags.voices)
        result = synthesize(
            self.deps.collaborators.synthesizer,
            flags.md,
            synthesis_options_for(flags, voice_map_path, force=flags.force or flags.redo_tts),
        )
        self.audio = AudioRecord(path=result.path, hash=result.hash, voices=tuple(result.voices))
        self.telemetry.succeed(
            stage,
            path=result.path,
            preview=flags.dry_run,
            voices=[voice.to_payload() for voice in result.voices],
            voiceSummary=summarize_voice_selections(result.voices),
        )

    def _upload(self) -> None:
        stage = AssignmentStage.UPLOAD
        flags = self.flags
        audio = self.audio
        if flags.upload != "s3" or audio is None or not audio.path:
            reason = "no audio path available" if flags.upload == "s3" else "upload disabled"
            self.telemetry.skip(stage, reason)
            return

        if flags.skip_upload:
            if not audio.url and not flags.dry_run:
                raise PreconditionError(
                    "Cannot skip upload because manifest has no existing audio.url. "
                    "Upload once before skipping.",
                    stage=stage.value,
                )
            self.telemetry.skip(stage, "skip-upload flag set")
            self.steps.append(f"skip:{stage.value}")
            return

        self.telemetry.start(stage)
        self.steps.append(stage.value)
        if flags.dry_run:
            url = preview_upload_url(audio.path, flags.prefix, self.deps.env)
        else:
            url = upload_audio(
                self.deps.collaborators.uploader,
                audio.path,
                public=flags.public_read,
                presign=flags.presign,
                prefix=flags.prefix,
            )
        self.audio = replace(audio, url=url)
        self.telemetry.succeed(stage, url=url, dryRun=flags.dry_run)

    def _add_audio(self) -> None:
        stage = AssignmentStage.ADD_AUDIO
        audio_url = self.audio.url if self.audio is not None else None
        if not audio_url or not self.page_id:
            self.telemetry.skip(stage, "missing pageId" if audio_url else "no audio url available")
            return

        if self.flags.skip_upload:
            self.telemetry.skip(stage, "skip-upload flag set")
            return

        self.telemetry.start(stage)
        if self.flags.dry_run:
            self.telemetry.succeed(stage, dryRun=True)
            return
        attacher = require_collaborator(
            self.deps.collaborators.audio_attacher, "AudioAttacher", stage.value
        )
        attacher.add_or_replace_audio(self.page_id, audio_url, replace=self.flags.force)
        self.steps.append(stage.value)
        self.telemetry.succeed(stage, pageId=self.page_id, url=audio_url)

    def _write_manifest(self, md_text: str) -> str:
        stage = AssignmentStage.MANIFEST
        flags = self.flags
        previous = self.previous
        manifest = AssignmentManifest(
            md_hash=hash_study_text(md_text),
            timestamp=utc_timestamp(),
            page_id=self.page_id,
            page_url=self.page_url,
            audio=self.audio,
            preset=_first_set(flags.preset, previous.preset if previous else None),
            tts_mode=_first_set(flags.tts_mode, previous.tts_mode if previous else None),
            dialogue_language=_first_set(
                flags.dialogue_language, previous.dialogue_language if previous else None
            ),
            dialogue_stability=_first_set(
                flags.dialogue_stability, previous.dialogue_stability if previous else None
            ),
            dialogue_seed=_first_set(
                flags.dialogue_seed, previous.dialogue_seed if previous else None
            ),
        )
        self.telemetry.start(stage)
        manifest_path = self.deps.manifest_store.write_manifest(flags.md, manifest)
        self.steps.append(stage.value)
        self.telemetry.succeed(stage, manifestPath=manifest_path)
        return manifest_path


def new_assignment(
    flags: NewAssignmentFlags,
    callbacks: AssignmentProgressCallbacks | None = None,
    dependencies: OrchestratorDependencies | None = None,
) -> AssignmentResult:
    """Run the full stage sequence for one document.

    Args:
        flags: Stage-control flags for this run.
        callbacks: Optional progress hooks invoked for every stage transition.
        dependencies: Stores, collaborators, and telemetry; defaults to a
            filesystem manifest store with no-op telemetry.

    Returns:
        Steps executed plus the page, audio, and manifest outputs.

    Raises:
        PreconditionError: If a skip flag lacks the prior state it depends on.
        ConfigurationError: If a needed collaborator is missing or synthesis
            produced no audio file.
    """

    deps = dependencies or OrchestratorDependencies()
    telemetry = StageTelemetry(
        "new_assignment",
        logger=deps.logger,
        metrics=deps.metrics,
        callbacks=callbacks,
        run_id=deps.run_id,
    )
    return telemetry.run_command(_AssignmentRun(flags, deps, telemetry).execute)
