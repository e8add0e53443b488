"""Assignment manifest records and their JSON payload mapping.

Responsibilities:
- Represent the persisted per-document run record as immutable dataclasses.
- Serialize to camelCase JSON with unset optional fields omitted entirely.
- Parse stored payloads leniently, defaulting `schemaVersion` when absent.

Key types:
- `AssignmentManifest`: last successful run outputs for one document.
- `AudioRecord`: synthesized audio provenance (path, url, hash, voices).
- `VoiceSelection`: per-speaker voice assignment provenance.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from hashlib import sha256
from typing import Any, Mapping

from ..errors import ManifestError
from ..parsing import optional_payload_int, optional_payload_number, optional_payload_string

CURRENT_MANIFEST_SCHEMA_VERSION = 1


def hash_study_text(text: str) -> str:
    """Return the hex SHA-256 digest used to detect document drift."""

    return sha256(text.encode("utf-8")).hexdigest()


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is `None` so optional fields never serialize as null."""

    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True, slots=True)
class VoiceSelection:
    """Voice chosen for one dialogue speaker.

    Attributes:
        speaker: Speaker label from the study text.
        voice_id: Provider voice identifier.
        voice_name: Optional human-readable voice name.
        gender: Optional voice gender tag.
        accent: Optional voice accent tag.
        source: How the voice was chosen (`profile`, `voiceMap`, `auto`,
            `default`, `fallback`, or `reuse`).
        score: Optional auto-selection score.
    """

    speaker: str
    voice_id: str
    voice_name: str | None = None
    gender: str | None = None
    accent: str | None = None
    source: str | None = None
    score: float | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase mapping."""

        return _compact(
            {
                "speaker": self.speaker,
                "voiceId": self.voice_id,
                "voiceName": self.voice_name,
                "gender": self.gender,
                "accent": self.accent,
                "source": self.source,
                "score": self.score,
            }
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> VoiceSelection:
        """Parse one persisted voice entry."""

        return cls(
            speaker=optional_payload_string(payload, "speaker") or "",
            voice_id=optional_payload_string(payload, "voiceId") or "",
            voice_name=optional_payload_string(payload, "voiceName"),
            gender=optional_payload_string(payload, "gender"),
            accent=optional_payload_string(payload, "accent"),
            source=optional_payload_string(payload, "source"),
            score=optional_payload_number(payload, "score"),
        )


@dataclass(frozen=True, slots=True)
class AudioRecord:
    """Audio artifact recorded once a synthesis stage has run."""

    path: str | None = None
    url: str | None = None
    hash: str | None = None
    voices: tuple[VoiceSelection, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the persisted mapping, omitting unset fields."""

        payload = _compact({"path": self.path, "url": self.url, "hash": self.hash})
        if self.voices:
            payload["voices"] = [voice.to_payload() for voice in self.voices]
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> AudioRecord:
        """Parse the persisted audio sub-record."""

        raw_voices = payload.get("voices")
        voices: tuple[VoiceSelection, ...] = ()
        if isinstance(raw_voices, list):
            voices = tuple(
                VoiceSelection.from_payload(item) for item in raw_voices if isinstance(item, dict)
            )
        return cls(
            path=optional_payload_string(payload, "path"),
            url=optional_payload_string(payload, "url"),
            hash=optional_payload_string(payload, "hash"),
            voices=voices,
        )


@dataclass(frozen=True, slots=True)
class AssignmentManifest:
    """Persisted record of the last pipeline run for one source document.

    Attributes:
        md_hash: Content hash of the source document at the last run.
        timestamp: ISO time of the last write.
        page_id: Published page identifier, absent before the first import.
        page_url: Published page URL.
        audio: Audio sub-record, present once synthesis has run.
        preset: Formatting preset last applied.
        tts_mode: Synthesis mode (`auto`, `dialogue`, `monologue`).
        dialogue_language: Dialogue synthesis language code.
        dialogue_stability: Dialogue voice stability setting.
        dialogue_seed: Dialogue synthesis seed.
        schema_version: Manifest schema version.
    """

    md_hash: str
    timestamp: str
    page_id: str | None = None
    page_url: str | None = None
    audio: AudioRecord | None = None
    preset: str | None = None
    tts_mode: str | None = None
    dialogue_language: str | None = None
    dialogue_stability: float | None = None
    dialogue_seed: int | None = None
    schema_version: int = CURRENT_MANIFEST_SCHEMA_VERSION

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the persisted JSON object."""

        return _compact(
            {
                "schemaVersion": self.schema_version,
                "mdHash": self.md_hash,
                "pageId": self.page_id,
                "pageUrl": self.page_url,
                "audio": self.audio.to_payload() if self.audio is not None else None,
                "preset": self.preset,
                "ttsMode": self.tts_mode,
                "dialogueLanguage": self.dialogue_language,
                "dialogueStability": self.dialogue_stability,
                "dialogueSeed": self.dialogue_seed,
                "timestamp": self.timestamp,
            }
        )

    @classmethod
    def from_payload(cls, payload: object) -> AssignmentManifest:
        """Parse a stored JSON object, defaulting `schemaVersion` when absent.

        Raises:
            ManifestError: If the payload is not an object or lacks `mdHash`.
        """

        if not isinstance(payload, dict):
            raise ManifestError("Manifest root must be a JSON object.")
        md_hash = optional_payload_string(payload, "mdHash")
        if md_hash is None:
            raise ManifestError("Manifest is missing required `mdHash` field.")
        raw_audio = payload.get("audio")
        schema_version = optional_payload_int(payload, "schemaVersion")
        return cls(
            md_hash=md_hash,
            timestamp=optional_payload_string(payload, "timestamp") or "",
            page_id=optional_payload_string(payload, "pageId"),
            page_url=optional_payload_string(payload, "pageUrl"),
            audio=AudioRecord.from_payload(raw_audio) if isinstance(raw_audio, dict) else None,
            preset=optional_payload_string(payload, "preset"),
            tts_mode=optional_payload_string(payload, "ttsMode"),
            dialogue_language=optional_payload_string(payload, "dialogueLanguage"),
            dialogue_stability=optional_payload_number(payload, "dialogueStability"),
            dialogue_seed=optional_payload_int(payload, "dialogueSeed"),
            schema_version=(
                schema_version if schema_version is not None else CURRENT_MANIFEST_SCHEMA_VERSION
            ),
        )

    def merged(self, **changes: Any) -> AssignmentManifest:
        """Return a copy with every non-`None` change applied over this record."""

        return replace(self, **{key: value for key, value in changes.items() if value is not None})
