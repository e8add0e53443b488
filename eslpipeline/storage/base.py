"""Manifest store interface.

Responsibilities:
- Define the persistence contract the stage sequencer relies on.
- Share the manifest file-name convention between backends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import PurePath

from ..models.manifest import AssignmentManifest

MANIFEST_SUFFIX = ".manifest.json"


def manifest_file_name(md_path: str) -> str:
    """Return `<stem>.manifest.json` for a document path."""

    return f"{PurePath(md_path).stem}{MANIFEST_SUFFIX}"


class ManifestStore(ABC):
    """Persist one manifest record per source document."""

    @abstractmethod
    def manifest_path_for(self, md_path: str) -> str:
        """Return the storage key for a document; pure and deterministic."""

    @abstractmethod
    def write_manifest(self, md_path: str, manifest: AssignmentManifest) -> str:
        """Upsert the manifest for a document and return its storage key."""

    @abstractmethod
    def read_manifest(self, md_path: str) -> AssignmentManifest | None:
        """Return the stored manifest, or `None` when there is none to use."""
