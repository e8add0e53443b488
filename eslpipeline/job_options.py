"""Selectable job options derived from pipeline configuration.

Responsibilities:
- List configured presets, voice accents, and target databases for job submitters.
- Expose the fixed upload and synthesis mode choices.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .config import ResolvedConfigPaths
from .providers.base import ConfigProvider

UploadOption = Literal["auto", "s3", "none"]
JobModeOption = Literal["auto", "dialogue", "monologue"]

UPLOAD_OPTIONS: tuple[UploadOption, ...] = ("auto", "s3", "none")
JOB_MODES: tuple[JobModeOption, ...] = ("auto", "dialogue", "monologue")


@dataclass(frozen=True, slots=True)
class DatabaseOption:
    """Target database a job can publish into."""

    id: str
    name: str


@dataclass(frozen=True, slots=True)
class JobOptions:
    """Choices offered when submitting a job."""

    presets: list[str] = field(default_factory=list)
    voice_accents: list[str] = field(default_factory=list)
    notion_databases: list[DatabaseOption] = field(default_factory=list)
    upload_options: list[UploadOption] = field(default_factory=lambda: list(UPLOAD_OPTIONS))
    modes: list[JobModeOption] = field(default_factory=lambda: list(JOB_MODES))

    def to_payload(self) -> dict[str, object]:
        """Serialize to the camelCase mapping returned by job option endpoints."""

        return {
            "presets": list(self.presets),
            "voiceAccents": list(self.voice_accents),
            "notionDatabases": [{"id": db.id, "name": db.name} for db in self.notion_databases],
            "uploadOptions": list(self.upload_options),
            "modes": list(self.modes),
        }


def resolve_job_options(
    config_provider: ConfigProvider,
    config_paths: ResolvedConfigPaths | None = None,
) -> JobOptions:
    """Collect job options from the provider's presets and student profiles.

    Databases come from profiles that carry a `db_id`, labelled with the student
    name (or the id when the name is blank), de-duplicated by trimmed id and
    sorted by label.
    """

    presets = config_provider.load_presets(config_paths.presets_path if config_paths else None)
    profiles = config_provider.load_student_profiles(
        config_paths.students_dir if config_paths else None
    )

    databases: list[DatabaseOption] = []
    seen_ids: set[str] = set()
    accents: set[str] = set()
    for profile in profiles:
        if profile.accent_preference:
            accents.add(profile.accent_preference)
        db_id = (profile.db_id or "").strip()
        if not db_id or db_id in seen_ids:
            continue
        seen_ids.add(db_id)
        databases.append(DatabaseOption(id=db_id, name=profile.student.strip() or db_id))

    return JobOptions(
        presets=sorted(presets),
        voice_accents=sorted(accents),
        notion_databases=sorted(databases, key=lambda db: db.name.casefold()),
    )
