"""Manifest freshness reporting."""

from __future__ import annotations

from pathlib import Path

from ..models.datatypes import AssignmentStatus
from ..models.manifest import hash_study_text
from .dependencies import OrchestratorDependencies


def _current_hash(md_path: str) -> str | None:
    try:
        return hash_study_text(Path(md_path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return None


def _file_exists(path: str) -> bool:
    try:
        return Path(path).is_file()
    except OSError:
        return False


def get_assignment_status(
    md_path: str, dependencies: OrchestratorDependencies | None = None
) -> AssignmentStatus:
    """Report whether a document's manifest still matches the document and its audio.

    `md_hash_matches` is true only when a manifest exists, the document is
    readable, and its live hash equals the stored one. `audio_file_exists`
    checks the recorded audio path and is false on any access error.
    """

    store = (dependencies or OrchestratorDependencies()).manifest_store
    manifest = store.read_manifest(md_path)
    current_hash = _current_hash(md_path)
    audio_path = manifest.audio.path if manifest is not None and manifest.audio else None
    return AssignmentStatus(
        manifest_path=store.manifest_path_for(md_path),
        manifest=manifest,
        md_hash_matches=(
            manifest is not None and current_hash is not None and manifest.md_hash == current_hash
        ),
        audio_file_exists=_file_exists(audio_path) if audio_path else False,
    )
