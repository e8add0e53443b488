"""Filesystem-backed config provider.

Responsibilities:
- Read presets from a JSON file and student profiles from a directory of JSON files.
- Resolve the voice map as the first existing candidate path.
"""

from __future__ import annotations

import json
from pathlib import Path

from .base import (
    DEFAULT_STUDENT_NAME,
    ConfigProvider,
    PresetDefinition,
    StudentProfile,
    default_student_profile,
    parse_presets,
)

DEFAULT_PRESETS_PATH = "configs/presets.json"
DEFAULT_VOICES_PATH = "configs/voices.yml"
DEFAULT_STUDENTS_DIR = "configs/students"


class FilesystemConfigProvider(ConfigProvider):
    """Read pipeline configuration from local files."""

    def __init__(
        self,
        presets_path: str | None = None,
        voices_path: str | None = None,
        students_dir: str | None = None,
    ) -> None:
        """Initialize default locations used when callers pass no explicit path."""

        self.presets_path = presets_path or DEFAULT_PRESETS_PATH
        self.voices_path = voices_path or DEFAULT_VOICES_PATH
        self.students_dir = students_dir or DEFAULT_STUDENTS_DIR

    def load_presets(self, presets_path: str | None = None) -> dict[str, PresetDefinition]:
        """Load presets; a missing or malformed file yields an empty mapping."""

        target = Path(presets_path or self.presets_path)
        try:
            payload = json.loads(target.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return parse_presets(payload)

    def load_student_profiles(self, students_dir: str | None = None) -> list[StudentProfile]:
        """Load `*.json` profiles, skipping invalid files, with a `Default` fallback."""

        directory = Path(students_dir or self.students_dir)
        if not directory.is_dir():
            return [default_student_profile()]

        profiles: list[StudentProfile] = []
        for entry in sorted(directory.iterdir()):
            if not entry.is_file() or entry.suffix.lower() != ".json":
                continue
            try:
                payload = json.loads(entry.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                continue
            if not isinstance(payload, dict):
                continue
            profile = StudentProfile.from_payload(payload)
            if profile is not None:
                profiles.append(profile)

        if not any(profile.student == DEFAULT_STUDENT_NAME for profile in profiles):
            profiles.append(default_student_profile())
        return sorted(profiles, key=lambda profile: profile.student.casefold())

    def resolve_voices_path(
        self, voices_path: str | None = None, fallback: str | None = None
    ) -> str | None:
        """Return the first existing voice-map candidate."""

        for candidate in (voices_path, fallback, self.voices_path):
            if candidate and Path(candidate).exists():
                return candidate
        return None
