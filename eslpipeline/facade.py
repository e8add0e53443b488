"""Pipeline facade wiring stores, providers, and collaborators once.

Responsibilities:
- Resolve configuration paths and per-run defaults at construction time.
- Select manifest store and config provider backends exactly once.
- Expose bound `new_assignment`, `rerun_assignment`, and `get_assignment_status`.

Key types:
- `AssignmentPipeline`: configured pipeline instance.
- `create_pipeline`: factory applying backend selection precedence.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Mapping

from .collaborators import Collaborators
from .config import (
    ConfigProviderSettings,
    ManifestStoreSettings,
    ResolvedConfigPaths,
    resolve_config_paths,
)
from .errors import ConfigurationError
from .models.datatypes import (
    AssignmentProgressCallbacks,
    AssignmentResult,
    AssignmentStatus,
    NewAssignmentFlags,
    RerunFlags,
    RerunResult,
)
from .pipeline.dependencies import OrchestratorDependencies
from .pipeline.orchestrator import new_assignment
from .pipeline.rerun import rerun_assignment
from .pipeline.status import get_assignment_status
from .providers.base import ConfigProvider
from .providers.filesystem import FilesystemConfigProvider
from .providers.remote import RemoteConfigProvider
from .storage.base import ManifestStore
from .storage.filesystem import FilesystemManifestStore
from .telemetry.observability import NOOP_LOGGER, NOOP_METRICS, PipelineLogger, PipelineMetrics


@dataclass(frozen=True, slots=True)
class PipelineDefaults:
    """Values merged into flags when a caller leaves them unset."""

    presets_path: str | None
    voices_path: str | None
    out_dir: str | None = None


def _absolute(value: str | None, base: Path) -> str | None:
    if not value:
        return None
    path = Path(value).expanduser()
    return str(path if path.is_absolute() else (base / path).resolve())


def build_manifest_store(settings: ManifestStoreSettings) -> ManifestStore:
    """Construct the manifest store selected by settings."""

    if settings.backend == "s3" and settings.bucket:
        from .storage.s3 import S3ManifestStore

        return S3ManifestStore(
            bucket=settings.bucket,
            prefix=settings.prefix,
            region=settings.region,
            root_dir=settings.root_dir,
        )
    return FilesystemManifestStore()


def build_config_provider(
    settings: ConfigProviderSettings, config_paths: ResolvedConfigPaths | None
) -> ConfigProvider:
    """Construct the config provider selected by settings."""

    if settings.backend == "http" and settings.base_url:
        return RemoteConfigProvider(base_url=settings.base_url, token=settings.token)
    if config_paths is None:
        return FilesystemConfigProvider()
    return FilesystemConfigProvider(
        presets_path=config_paths.presets_path,
        voices_path=config_paths.voices_path,
        students_dir=config_paths.students_dir,
    )


class AssignmentPipeline:
    """Configured pipeline bound to one store, provider, and collaborator set."""

    def __init__(
        self,
        *,
        config_paths: ResolvedConfigPaths | None,
        defaults: PipelineDefaults,
        manifest_store: ManifestStore,
        config_provider: ConfigProvider,
        collaborators: Collaborators,
        logger: PipelineLogger = NOOP_LOGGER,
        metrics: PipelineMetrics = NOOP_METRICS,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.config_paths = config_paths
        self.defaults = defaults
        self.manifest_store = manifest_store
        self.config_provider = config_provider
        self.collaborators = collaborators
        self.logger = logger
        self.metrics = metrics
        self.env = env

    def dependencies(self, run_id: str | None = None) -> OrchestratorDependencies:
        """Build the dependency bundle handed to one operation."""

        return OrchestratorDependencies(
            manifest_store=self.manifest_store,
            config_provider=self.config_provider,
            collaborators=self.collaborators,
            logger=self.logger,
            metrics=self.metrics,
            run_id=run_id,
            env=self.env,
        )

    def new_assignment(
        self,
        flags: NewAssignmentFlags,
        callbacks: AssignmentProgressCallbacks | None = None,
        run_id: str | None = None,
    ) -> AssignmentResult:
        """Run the full pipeline with pipeline defaults merged into `flags`."""

        merged = replace(
            flags,
            presets_path=flags.presets_path or self.defaults.presets_path,
            voices=flags.voices or self.defaults.voices_path,
            out=flags.out or self.defaults.out_dir,
        )
        return new_assignment(merged, callbacks, self.dependencies(run_id))

    def rerun_assignment(self, flags: RerunFlags, run_id: str | None = None) -> RerunResult:
        """Rerun audio stages with pipeline defaults merged into `flags`."""

        merged = replace(
            flags,
            voices=flags.voices or self.defaults.voices_path,
            out=flags.out or self.defaults.out_dir,
        )
        return rerun_assignment(merged, self.dependencies(run_id))

    def get_assignment_status(self, md_path: str) -> AssignmentStatus:
        """Report manifest freshness for one document."""

        return get_assignment_status(md_path, self.dependencies())


def create_pipeline(
    *,
    cwd: str | None = None,
    config_dir: str | None = None,
    presets_path: str | None = None,
    voices_path: str | None = None,
    students_dir: str | None = None,
    default_out_dir: str | None = None,
    manifest_store: ManifestStore | None = None,
    config_provider: ConfigProvider | None = None,
    manifest_settings: ManifestStoreSettings | None = None,
    provider_settings: ConfigProviderSettings | None = None,
    collaborators: Collaborators | None = None,
    logger: PipelineLogger | None = None,
    metrics: PipelineMetrics | None = None,
    env: Mapping[str, str] | None = None,
) -> AssignmentPipeline:
    """Build a pipeline, selecting every backend once.

    Backend precedence: explicit object, then explicit settings, then
    environment variables, then the filesystem default.

    Raises:
        ConfigurationError: If local configuration cannot be located while the
            filesystem provider is in use, or backend env settings are invalid.
    """

    source = env if env is not None else os.environ
    base = Path(cwd).resolve() if cwd else Path.cwd()

    if config_provider is None and provider_settings is None:
        provider_settings = ConfigProviderSettings.from_env(source)
    if config_provider is not None:
        remote = isinstance(config_provider, RemoteConfigProvider)
    else:
        remote = provider_settings is not None and provider_settings.backend == "http"

    config_paths: ResolvedConfigPaths | None
    try:
        config_paths = resolve_config_paths(
            cwd=str(base),
            config_dir=config_dir,
            presets_path=presets_path,
            voices_path=voices_path,
            students_dir=students_dir,
            env=source,
        )
    except ConfigurationError:
        if not remote:
            raise
        config_paths = None

    # A remote provider serves the voice map itself; a local default would shadow it.
    local_voices = None if remote or config_paths is None else config_paths.voices_path
    defaults = PipelineDefaults(
        presets_path=_absolute(presets_path, base)
        or (config_paths.presets_path if config_paths else None),
        voices_path=_absolute(voices_path, base) or local_voices,
        out_dir=_absolute(default_out_dir, base),
    )

    if manifest_store is None:
        settings = manifest_settings or ManifestStoreSettings.from_env(source, cwd=str(base))
        manifest_store = build_manifest_store(settings)
    if config_provider is None:
        config_provider = build_config_provider(
            provider_settings or ConfigProviderSettings(), config_paths
        )

    return AssignmentPipeline(
        config_paths=config_paths,
        defaults=defaults,
        manifest_store=manifest_store,
        config_provider=config_provider,
        collaborators=collaborators or Collaborators(),
        logger=logger or NOOP_LOGGER,
        metrics=metrics or NOOP_METRICS,
        env=source,
    )
