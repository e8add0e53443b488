"""Typed records shared across pipeline modules."""

from .datatypes import (
    AssignmentProgressCallbacks,
    AssignmentProgressEvent,
    AssignmentResult,
    AssignmentStage,
    AssignmentStatus,
    NewAssignmentFlags,
    RerunFlags,
    RerunResult,
    StageStatus,
)
from .manifest import (
    CURRENT_MANIFEST_SCHEMA_VERSION,
    AssignmentManifest,
    AudioRecord,
    VoiceSelection,
    hash_study_text,
)

__all__ = [
    "AssignmentManifest",
    "AssignmentProgressCallbacks",
    "AssignmentProgressEvent",
    "AssignmentResult",
    "AssignmentStage",
    "AssignmentStatus",
    "AudioRecord",
    "CURRENT_MANIFEST_SCHEMA_VERSION",
    "NewAssignmentFlags",
    "RerunFlags",
    "RerunResult",
    "StageStatus",
    "VoiceSelection",
    "hash_study_text",
]
