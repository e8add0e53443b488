"""Config provider backends (filesystem and remote HTTP)."""

from .base import (
    DEFAULT_STUDENT_NAME,
    ConfigProvider,
    PresetDefinition,
    StudentProfile,
    parse_presets,
)
from .filesystem import FilesystemConfigProvider
from .remote import RemoteConfigProvider

__all__ = [
    "ConfigProvider",
    "DEFAULT_STUDENT_NAME",
    "FilesystemConfigProvider",
    "PresetDefinition",
    "RemoteConfigProvider",
    "StudentProfile",
    "parse_presets",
]
