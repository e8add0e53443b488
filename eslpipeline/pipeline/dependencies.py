"""Explicit dependency bundle injected into each pipeline operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from ..collaborators import Collaborators
from ..providers.base import ConfigProvider
from ..storage.base import ManifestStore
from ..storage.filesystem import FilesystemManifestStore
from ..telemetry.observability import NOOP_LOGGER, NOOP_METRICS, PipelineLogger, PipelineMetrics


@dataclass(frozen=True, slots=True)
class OrchestratorDependencies:
    """Stores, providers, collaborators, and telemetry for one operation.

    Attributes:
        manifest_store: Manifest persistence backend.
        config_provider: Optional config provider used to resolve the voice map
            and student database targets.
        collaborators: External services driven by the stages.
        logger: Structured log sink.
        metrics: Metrics sink.
        run_id: Correlation id; generated per run when unset.
        env: Environment mapping for upload defaults; `os.environ` when unset.
    """

    manifest_store: ManifestStore = field(default_factory=FilesystemManifestStore)
    config_provider: ConfigProvider | None = None
    collaborators: Collaborators = field(default_factory=Collaborators)
    logger: PipelineLogger = NOOP_LOGGER
    metrics: PipelineMetrics = NOOP_METRICS
    run_id: str | None = None
    env: Mapping[str, str] | None = None
