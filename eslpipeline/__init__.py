"""Top-level package for the ESL assignment pipeline.

This package sequences the stages that turn a markdown lesson into a published,
colorized page with attached study-text audio, and records each run in a
per-document manifest. The main entry point is `create_pipeline`.
"""

from .collaborators import Collaborators
from .config import load_env_files, resolve_config_paths
from .errors import (
    ConfigurationError,
    InfrastructureError,
    ManifestError,
    PipelineError,
    PreconditionError,
    RemoteConfigError,
    SynthesisDependencyError,
    describe_error,
)
from .facade import AssignmentPipeline, create_pipeline
from .job_options import resolve_job_options
from .models.datatypes import (
    AssignmentProgressCallbacks,
    AssignmentProgressEvent,
    AssignmentStage,
    NewAssignmentFlags,
    RerunFlags,
    StageStatus,
)
from .pipeline import (
    OrchestratorDependencies,
    get_assignment_status,
    new_assignment,
    rerun_assignment,
)

__all__ = [
    "AssignmentPipeline",
    "AssignmentProgressCallbacks",
    "AssignmentProgressEvent",
    "AssignmentStage",
    "Collaborators",
    "ConfigurationError",
    "InfrastructureError",
    "ManifestError",
    "NewAssignmentFlags",
    "OrchestratorDependencies",
    "PipelineError",
    "PreconditionError",
    "RemoteConfigError",
    "RerunFlags",
    "StageStatus",
    "SynthesisDependencyError",
    "__version__",
    "create_pipeline",
    "describe_error",
    "get_assignment_status",
    "load_env_files",
    "new_assignment",
    "rerun_assignment",
    "resolve_config_paths",
    "resolve_job_options",
]

__version__ = "0.1.0"
