"""Config provider interface and configuration records.

Responsibilities:
- Define the contract for resolving presets, student profiles, and the voice map.
- Parse preset and student-profile payloads into typed records.

Key types:
- `ConfigProvider`: abstract provider selected once by the pipeline facade.
- `PresetDefinition`: heading/toggle colors for one formatting preset.
- `StudentProfile`: per-student publishing and voice settings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping

from ..parsing import normalize_optional_string, optional_payload_string

DEFAULT_STUDENT_NAME = "Default"
DEFAULT_COLOR_PRESET = "b1-default"


def _string_map(value: object) -> dict[str, str]:
    """Keep only string-to-string entries of a JSON object."""

    if not isinstance(value, dict):
        return {}
    return {
        str(key): item
        for key, item in value.items()
        if isinstance(key, str) and isinstance(item, str)
    }


@dataclass(frozen=True, slots=True)
class PresetDefinition:
    """Formatting colors applied by the colorizer for one preset."""

    h2: str | None = None
    h3: str | None = None
    toggle_map: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: object) -> PresetDefinition:
        """Parse one preset entry, ignoring unknown or mistyped fields."""

        if not isinstance(payload, dict):
            return cls()
        return cls(
            h2=optional_payload_string(payload, "h2"),
            h3=optional_payload_string(payload, "h3"),
            toggle_map=_string_map(payload.get("toggleMap")),
        )


def parse_presets(payload: object) -> dict[str, PresetDefinition]:
    """Parse a `presets.json` object into preset definitions keyed by name."""

    if not isinstance(payload, dict):
        return {}
    return {
        name: PresetDefinition.from_payload(definition)
        for name, definition in payload.items()
        if isinstance(name, str)
    }


@dataclass(frozen=True, slots=True)
class StudentProfile:
    """Per-student settings, optionally targeting a specific database."""

    student: str
    db_id: str | None = None
    page_parent_id: str | None = None
    color_preset: str | None = None
    voices: dict[str, str] = field(default_factory=dict)
    manifest_preset: str | None = None
    accent_preference: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> StudentProfile | None:
        """Parse a profile; returns `None` when the student name is missing or blank."""

        name = normalize_optional_string(optional_payload_string(payload, "student"))
        if name is None:
            return None
        return cls(
            student=name,
            db_id=optional_payload_string(payload, "dbId"),
            page_parent_id=optional_payload_string(payload, "pageParentId"),
            color_preset=optional_payload_string(payload, "colorPreset"),
            voices=_string_map(payload.get("voices")),
            manifest_preset=optional_payload_string(payload, "manifestPreset"),
            accent_preference=optional_payload_string(payload, "accentPreference"),
        )


def default_student_profile() -> StudentProfile:
    """Return the fallback profile used when no `Default` profile is configured."""

    return StudentProfile(student=DEFAULT_STUDENT_NAME, color_preset=DEFAULT_COLOR_PRESET)


class ConfigProvider(ABC):
    """Resolve environment-specific pipeline inputs."""

    @abstractmethod
    def load_presets(self, presets_path: str | None = None) -> dict[str, PresetDefinition]:
        """Return formatting presets keyed by name."""

    @abstractmethod
    def load_student_profiles(self, students_dir: str | None = None) -> list[StudentProfile]:
        """Return configured student profiles."""

    @abstractmethod
    def resolve_voices_path(
        self, voices_path: str | None = None, fallback: str | None = None
    ) -> str | None:
        """Return a local filesystem path to the voice map, or `None`."""
