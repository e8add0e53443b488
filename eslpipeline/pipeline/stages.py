"""Stage helpers shared by full runs and reruns.

Responsibilities:
- Summarize per-speaker voice selections for progress events.
- Derive upload keys and deterministic dry-run preview URLs.
- Run synthesis, rewrapping missing-binary failures with remediation guidance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

from ..collaborators import (
    SynthesisOptions,
    SynthesisResult,
    Synthesizer,
    UploadOptions,
    Uploader,
    require_collaborator,
)
from ..config import (
    DEFAULT_PREVIEW_BUCKET,
    DEFAULT_UPLOAD_PREFIX,
    VOICES_FILE_NAME,
    UploadDefaults,
)
from ..errors import ConfigurationError, SynthesisDependencyError
from ..models.datatypes import AssignmentStage, NewAssignmentFlags, RerunFlags
from ..models.manifest import VoiceSelection
from ..parsing import normalize_prefix
from ..providers.base import ConfigProvider

DEFAULT_VOICES_PATH = f"configs/{VOICES_FILE_NAME}"

_SOURCE_TAGS = {
    "profile": "profile",
    "voiceMap": "map",
    "default": "default",
    "fallback": "fallback",
    "reuse": "reuse",
}


def _voice_tags(voice: VoiceSelection) -> list[str]:
    """Collect display tags for one voice selection."""

    tags: list[str] = []
    if voice.gender:
        tags.append(voice.gender)
    if voice.source == "auto":
        tags.append(f"auto {round(voice.score)}" if voice.score is not None else "auto")
    elif voice.source in _SOURCE_TAGS:
        tags.append(_SOURCE_TAGS[voice.source])
    if voice.accent and len(tags) < 3:
        tags.append(voice.accent)
    return tags


def summarize_voice_selections(voices: Sequence[VoiceSelection]) -> str | None:
    """Render voice selections as `speaker→voice (tags)` joined by commas.

    Returns:
        Summary text, or `None` when no voices were selected.
    """

    if not voices:
        return None
    rendered: list[str] = []
    for voice in voices:
        name = voice.voice_name or voice.voice_id
        tags = _voice_tags(voice)
        suffix = f" ({', '.join(tags)})" if tags else ""
        rendered.append(f"{voice.speaker}→{name}{suffix}")
    return ", ".join(rendered)


def upload_key_for(audio_path: str, prefix: str | None) -> str:
    """Join a normalized prefix with the audio file's base name."""

    normalized = normalize_prefix(prefix)
    name = Path(audio_path).name
    return f"{normalized}/{name}" if normalized else name


def preview_upload_url(
    audio_path: str, prefix: str | None, env: Mapping[str, str] | None = None
) -> str:
    """Build the deterministic URL reported for a dry-run upload."""

    defaults = UploadDefaults.from_env(env)
    bucket = defaults.bucket or DEFAULT_PREVIEW_BUCKET
    effective_prefix = prefix if prefix is not None else (defaults.prefix or DEFAULT_UPLOAD_PREFIX)
    return f"https://{bucket}.s3.amazonaws.com/{upload_key_for(audio_path, effective_prefix)}"


def upload_audio(
    uploader: Uploader | None,
    audio_path: str,
    *,
    public: bool,
    presign: int | None,
    prefix: str | None,
) -> str:
    """Upload audio through the configured uploader and return its URL."""

    active = require_collaborator(uploader, "Uploader", AssignmentStage.UPLOAD.value)
    result = active.upload_file(
        audio_path,
        UploadOptions(backend="s3", public=public, presign_expires_in=presign, prefix=prefix),
    )
    return result.url


def resolve_voice_map_path(
    config_provider: ConfigProvider | None, voices_path: str | None
) -> str | None:
    """Return the local voice map path, materializing remote resources when needed."""

    if config_provider is None:
        return voices_path or DEFAULT_VOICES_PATH
    return config_provider.resolve_voices_path(voices_path) or voices_path


def synthesis_options_for(
    flags: NewAssignmentFlags | RerunFlags,
    voice_map_path: str | None,
    *,
    force: bool,
) -> SynthesisOptions:
    """Build synthesis options from run flags."""

    return SynthesisOptions(
        voice_map_path=voice_map_path,
        out_path=flags.out or str(Path(flags.md).parent),
        preview=flags.dry_run,
        force=force,
        default_accent=flags.accent_preference,
        voice_id=flags.voice_id,
        tts_mode=flags.tts_mode,
        dialogue_language=flags.dialogue_language,
        dialogue_stability=flags.dialogue_stability,
        dialogue_seed=flags.dialogue_seed,
    )


def synthesize(
    synthesizer: Synthesizer | None,
    md_path: str,
    options: SynthesisOptions,
) -> SynthesisResult:
    """Run study-text synthesis and verify the produced audio file.

    Raises:
        SynthesisDependencyError: If a host binary the synthesizer needs is
            missing; the original error is kept as the cause.
        ConfigurationError: If a non-preview run produced no audio file.
    """

    active = require_collaborator(synthesizer, "Synthesizer", AssignmentStage.TTS.value)
    try:
        result = active.build_study_text_mp3(md_path, options)
    except SynthesisDependencyError as exc:
        raise SynthesisDependencyError(
            f"Audio synthesis needs a missing system dependency: {exc}",
            hint="Install ffmpeg and make sure it is on PATH, then rerun with --with-tts.",
        ) from exc
    if not options.preview and result.path and not Path(result.path).is_file():
        raise ConfigurationError(
            f"No audio file produced at {result.path}. "
            "Check that :::study-text has lines and voices.yml has 'default' or 'auto: true'."
        )
    return result
