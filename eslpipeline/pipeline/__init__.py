"""Stage sequencing package.

This package contains the full-run sequencer, audio-stage reruns, manifest
status reporting, and the stage telemetry they share.
"""

from .dependencies import OrchestratorDependencies
from .orchestrator import new_assignment
from .rerun import rerun_assignment
from .stages import summarize_voice_selections
from .status import get_assignment_status
from .telemetry import StageTelemetry

__all__ = [
    "OrchestratorDependencies",
    "StageTelemetry",
    "get_assignment_status",
    "new_assignment",
    "rerun_assignment",
    "summarize_voice_selections",
]
