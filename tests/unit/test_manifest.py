"""Unit tests for manifest records and their JSON payload mapping."""

from __future__ import annotations

import pytest

from eslpipeline.errors import ManifestError
from eslpipeline.models.manifest import (
    CURRENT_MANIFEST_SCHEMA_VERSION,
    AssignmentManifest,
    AudioRecord,
    VoiceSelection,
    hash_study_text,
)


def test_hash_study_text_is_stable_sha256_hex() -> None:
    """Hashing should be deterministic and change with the document text."""

    first = hash_study_text("# Lesson\n")
    assert first == hash_study_text("# Lesson\n")
    assert len(first) == 64
    assert first != hash_study_text("# Lesson 2\n")


def test_to_payload_omits_unset_optional_fields() -> None:
    """Serialized manifests should never contain null values for unset fields."""

    manifest = AssignmentManifest(md_hash="h1", timestamp="2024-01-01T00:00:00.000Z")

    payload = manifest.to_payload()

    assert payload == {
        "schemaVersion": CURRENT_MANIFEST_SCHEMA_VERSION,
        "mdHash": "h1",
        "timestamp": "2024-01-01T00:00:00.000Z",
    }


def test_to_payload_uses_camel_case_for_set_fields() -> None:
    """Set fields, including audio voices and dialogue metadata, should serialize in camelCase."""

    manifest = AssignmentManifest(
        md_hash="h1",
        timestamp="t",
        page_id="page-1",
        page_url="https://notion.so/page-1",
        audio=AudioRecord(
            path="/tmp/lesson.mp3",
            url="https://bucket/lesson.mp3",
            hash="a1",
            voices=(VoiceSelection(speaker="Anna", voice_id="v1", voice_name="Rachel"),),
        ),
        preset="b1-default",
        tts_mode="dialogue",
        dialogue_language="es",
        dialogue_stability=0.65,
        dialogue_seed=321,
    )

    payload = manifest.to_payload()

    assert payload["pageId"] == "page-1"
    assert payload["audio"] == {
        "path": "/tmp/lesson.mp3",
        "url": "https://bucket/lesson.mp3",
        "hash": "a1",
        "voices": [{"speaker": "Anna", "voiceId": "v1", "voiceName": "Rachel"}],
    }
    assert payload["ttsMode"] == "dialogue"
    assert payload["dialogueLanguage"] == "es"
    assert payload["dialogueStability"] == 0.65
    assert payload["dialogueSeed"] == 321


def test_from_payload_defaults_missing_schema_version() -> None:
    """Older manifests without `schemaVersion` should read as the current version."""

    manifest = AssignmentManifest.from_payload({"mdHash": "h1", "pageId": "page-1"})

    assert manifest.schema_version == CURRENT_MANIFEST_SCHEMA_VERSION
    assert manifest.page_id == "page-1"
    assert manifest.audio is None
    assert manifest.timestamp == ""


def test_from_payload_ignores_mistyped_optional_fields() -> None:
    """Wrongly typed optional values should be dropped rather than coerced."""

    manifest = AssignmentManifest.from_payload(
        {"mdHash": "h1", "dialogueSeed": True, "dialogueStability": "high", "audio": "x"}
    )

    assert manifest.dialogue_seed is None
    assert manifest.dialogue_stability is None
    assert manifest.audio is None


@pytest.mark.parametrize("payload", [[], "text", {"pageId": "page-1"}, {"mdHash": 5}])
def test_from_payload_rejects_unusable_payloads(payload: object) -> None:
    """Payloads that are not objects or lack a string `mdHash` should raise `ManifestError`."""

    with pytest.raises(ManifestError):
        AssignmentManifest.from_payload(payload)


def test_merged_applies_only_set_changes() -> None:
    """Merging should keep previous values wherever the change is `None`."""

    manifest = AssignmentManifest(md_hash="h1", timestamp="t1", page_id="page-1", tts_mode="auto")

    merged = manifest.merged(md_hash="h2", timestamp="t2", page_id=None, tts_mode="dialogue")

    assert merged.md_hash == "h2"
    assert merged.timestamp == "t2"
    assert merged.page_id == "page-1"
    assert merged.tts_mode == "dialogue"
