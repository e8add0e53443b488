"""Re-execution of audio stages against an existing manifest.

Responsibilities:
- Require a prior manifest before touching any collaborator.
- Rerun a selected subset of tts, upload, and add-audio, reusing recorded audio.
- Rewrite the manifest with merged outputs and a refreshed document hash.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from ..collaborators import require_collaborator
from ..errors import ManifestError, PreconditionError
from ..models.datatypes import AssignmentStage, RerunFlags, RerunResult
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

NOT_REQUESTED = "not requested"


def _rerun_tts(
    flags: RerunFlags,
    deps: OrchestratorDependencies,
    telemetry: StageTelemetry,
    audio: AudioRecord,
) -> AudioRecord:
    stage = AssignmentStage.TTS
    telemetry.start(stage)
    voice_map_path = resolve_voice_map_path(deps.config_provider, flags.voices)
    result = synthesize(
        deps.collaborators.synthesizer,
        flags.md,
        synthesis_options_for(flags, voice_map_path, force=flags.force),
    )
    telemetry.succeed(
        stage,
        path=result.path,
        preview=flags.dry_run,
        voiceSummary=summarize_voice_selections(result.voices),
    )
    return replace(audio, path=result.path, hash=result.hash, voices=tuple(result.voices))


def _rerun_upload(
    flags: RerunFlags,
    deps: OrchestratorDependencies,
    telemetry: StageTelemetry,
    audio: AudioRecord,
) -> AudioRecord:
    stage = AssignmentStage.UPLOAD
    if not audio.path:
        raise PreconditionError(
            "Cannot upload audio: no audio path found. "
            "Re-run TTS or provide a manifest with audio.path.",
            stage=stage.value,
        )
    if flags.upload != "s3":
        raise PreconditionError(
            "Only S3 uploads are supported in rerun mode. Pass --upload s3.",
            stage=stage.value,
        )
    telemetry.start(stage)
    if flags.dry_run:
        url = preview_upload_url(audio.path, flags.prefix, deps.env)
    else:
        url = upload_audio(
            deps.collaborators.uploader,
            audio.path,
            public=flags.public_read,
            presign=flags.presign,
            prefix=flags.prefix,
        )
    telemetry.succeed(stage, url=url, dryRun=flags.dry_run)
    return replace(audio, url=url)


def _rerun_add_audio(
    flags: RerunFlags,
    deps: OrchestratorDependencies,
    telemetry: StageTelemetry,
    manifest: AssignmentManifest,
    audio: AudioRecord,
) -> None:
    stage = AssignmentStage.ADD_AUDIO
    if not manifest.page_id:
        raise PreconditionError(
            "Cannot add audio: manifest does not have a pageId. Re-run the import step first.",
            stage=stage.value,
        )
    if not audio.url:
        raise PreconditionError(
            "Cannot add audio: no audio URL available. Rerun upload first.",
            stage=stage.value,
        )
    telemetry.start(stage)
    if not flags.dry_run:
        attacher = require_collaborator(
            deps.collaborators.audio_attacher, "AudioAttacher", stage.value
        )
        attacher.add_or_replace_audio(manifest.page_id, audio.url, replace=flags.force)
    telemetry.succeed(stage, pageId=manifest.page_id, url=audio.url, dryRun=flags.dry_run)


def _execute_rerun(
    flags: RerunFlags,
    deps: OrchestratorDependencies,
    telemetry: StageTelemetry,
) -> RerunResult:
    manifest = deps.manifest_store.read_manifest(flags.md)
    if manifest is None:
        raise ManifestError(
            f"No manifest found for {flags.md}. Run the pipeline first.",
            hint="Run new_assignment for this document before rerunning stages.",
        )

    md_text = Path(flags.md).read_text(encoding="utf-8")
    selected = set(flags.steps)
    executed: list[str] = []
    audio = manifest.audio or AudioRecord()

    if AssignmentStage.TTS.value in selected:
        audio = _rerun_tts(flags, deps, telemetry, audio)
        executed.append(AssignmentStage.TTS.value)
    else:
        telemetry.skip(AssignmentStage.TTS, NOT_REQUESTED)

    if AssignmentStage.UPLOAD.value in selected:
        audio = _rerun_upload(flags, deps, telemetry, audio)
        executed.append(AssignmentStage.UPLOAD.value)
    else:
        telemetry.skip(AssignmentStage.UPLOAD, NOT_REQUESTED)

    if AssignmentStage.ADD_AUDIO.value in selected:
        _rerun_add_audio(flags, deps, telemetry, manifest, audio)
        executed.append(AssignmentStage.ADD_AUDIO.value)
    else:
        telemetry.skip(AssignmentStage.ADD_AUDIO, NOT_REQUESTED)

    updated = manifest.merged(
        md_hash=hash_study_text(md_text),
        audio=audio,
        timestamp=utc_timestamp(),
        tts_mode=flags.tts_mode,
        dialogue_language=flags.dialogue_language,
        dialogue_stability=flags.dialogue_stability,
        dialogue_seed=flags.dialogue_seed,
    )
    telemetry.start(AssignmentStage.MANIFEST)
    manifest_path = deps.manifest_store.write_manifest(flags.md, updated)
    telemetry.succeed(AssignmentStage.MANIFEST, manifestPath=manifest_path)

    return RerunResult(
        steps=executed,
        manifest_path=manifest_path,
        audio=updated.audio,
        page_id=updated.page_id,
        page_url=updated.page_url,
    )


def rerun_assignment(
    flags: RerunFlags,
    dependencies: OrchestratorDependencies | None = None,
) -> RerunResult:
    """Re-execute selected audio stages for a previously processed document.

    Raises:
        ManifestError: If the document has no manifest yet; no collaborator is
            called in that case.
        PreconditionError: If a selected step lacks the audio path, URL, or
            page id it depends on.
    """

    deps = dependencies or OrchestratorDependencies()
    telemetry = StageTelemetry(
        "rerun_assignment",
        logger=deps.logger,
        metrics=deps.metrics,
        run_id=deps.run_id,
    )
    return telemetry.run_command(lambda: _execute_rerun(flags, deps, telemetry))
