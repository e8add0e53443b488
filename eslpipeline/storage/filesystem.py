"""Filesystem-backed manifest store.

Responsibilities:
- Place each manifest beside its document as `<stem>.manifest.json`.
- Create missing parent directories on write.
- Treat unreadable or corrupt manifests exactly like missing ones.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..errors import ManifestError
from ..models.manifest import AssignmentManifest
from .base import ManifestStore, manifest_file_name


class FilesystemManifestStore(ManifestStore):
    """Store manifests next to their source documents."""

    def manifest_path_for(self, md_path: str) -> str:
        """Return the sibling manifest path for a document."""

        return str(Path(md_path).parent / manifest_file_name(md_path))

    def write_manifest(self, md_path: str, manifest: AssignmentManifest) -> str:
        """Write pretty-printed manifest JSON and return its path."""

        path = Path(self.manifest_path_for(md_path))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(manifest.to_payload(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        return str(path)

    def read_manifest(self, md_path: str) -> AssignmentManifest | None:
        """Load the manifest, returning `None` when missing, unreadable, or corrupt."""

        path = Path(self.manifest_path_for(md_path))
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return AssignmentManifest.from_payload(payload)
        except (OSError, ValueError, ManifestError):
            return None
