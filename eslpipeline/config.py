"""Configuration resolution for the assignment pipeline.

Responsibilities:
- Locate presets, voice map, and student profiles with a fixed search order.
- Read backend-selection settings from environment variables.
- Load `.env` files into a mapping or the process environment.

Key types:
- `ResolvedConfigPaths`: located configuration resources.
- `ManifestStoreSettings`, `ConfigProviderSettings`, `UploadDefaults`:
  environment-derived backend settings.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Literal, Mapping

from dotenv import dotenv_values

from .errors import ConfigurationError
from .parsing import read_env_string

ENV_CONFIG_DIR = "ESL_PIPELINE_CONFIG_DIR"
ENV_MANIFEST_STORE = "ESL_PIPELINE_MANIFEST_STORE"
ENV_MANIFEST_BUCKET = "ESL_PIPELINE_MANIFEST_BUCKET"
ENV_MANIFEST_PREFIX = "ESL_PIPELINE_MANIFEST_PREFIX"
ENV_MANIFEST_ROOT = "ESL_PIPELINE_MANIFEST_ROOT"
ENV_CONFIG_PROVIDER = "ESL_PIPELINE_CONFIG_PROVIDER"
ENV_CONFIG_ENDPOINT = "ESL_PIPELINE_CONFIG_ENDPOINT"
ENV_CONFIG_TOKEN = "ESL_PIPELINE_CONFIG_TOKEN"
ENV_AWS_REGION = "AWS_REGION"
ENV_UPLOAD_BUCKET = "S3_BUCKET"
ENV_UPLOAD_PREFIX = "S3_PREFIX"

PRESETS_FILE_NAME = "presets.json"
VOICES_FILE_NAME = "voices.yml"
STUDENTS_DIR_NAME = "students"

DEFAULT_PREVIEW_BUCKET = "stub-bucket"
DEFAULT_UPLOAD_PREFIX = "audio/assignments"

_BUNDLED_CONFIG_DIR = Path(__file__).resolve().parent / "configs"
_REPO_CONFIG_DIR = Path(__file__).resolve().parents[1] / "configs"


@dataclass(frozen=True, slots=True)
class ResolvedConfigPaths:
    """Located configuration resources.

    Attributes:
        config_root: Directory holding the resolved presets file.
        presets_path: Path to `presets.json`.
        voices_path: Path to `voices.yml`.
        students_dir: Directory of student profile JSON files.
        wizard_defaults_path: Conventional location of saved interactive defaults.
    """

    config_root: str
    presets_path: str
    voices_path: str
    students_dir: str
    wizard_defaults_path: str


def _resolve_against(value: str | os.PathLike[str], base: Path) -> Path:
    """Resolve a possibly relative path against a base directory."""

    path = Path(value).expanduser()
    return path if path.is_absolute() else (base / path).resolve()


def candidate_config_dirs(
    cwd: str | None = None,
    config_dir: str | None = None,
    env: Mapping[str, str] | None = None,
) -> list[Path]:
    """Return config directories in search order, without duplicates.

    Order: explicit `config_dir`, `ESL_PIPELINE_CONFIG_DIR`, `<cwd>/configs`,
    configs bundled with the package, then the repository `configs` folder.
    """

    source = env if env is not None else os.environ
    base = Path(cwd).resolve() if cwd else Path.cwd()
    raw: list[str | Path | None] = [
        config_dir,
        read_env_string(source, ENV_CONFIG_DIR),
        base / "configs",
        _BUNDLED_CONFIG_DIR,
        _REPO_CONFIG_DIR,
    ]
    candidates: list[Path] = []
    for item in raw:
        if item is None:
            continue
        resolved = _resolve_against(item, base)
        if resolved not in candidates:
            candidates.append(resolved)
    return candidates


def _locate(
    resource: str,
    explicit: str | None,
    base: Path,
    config_dirs: list[Path],
) -> Path:
    """Return the first existing candidate for one resource or fail listing every path."""

    checked: list[Path] = []
    if explicit:
        explicit_path = _resolve_against(explicit, base)
        if explicit_path.exists():
            return explicit_path
        checked.append(explicit_path)
    for directory in config_dirs:
        candidate = directory / resource
        if candidate.exists():
            return candidate
        checked.append(candidate)
    raise ConfigurationError(
        f"Unable to locate {resource}. Checked: {', '.join(str(path) for path in checked)}",
        hint=f"Create `configs/{resource}` or set `{ENV_CONFIG_DIR}`.",
    )


def resolve_config_paths(
    cwd: str | None = None,
    config_dir: str | None = None,
    presets_path: str | None = None,
    voices_path: str | None = None,
    students_dir: str | None = None,
    env: Mapping[str, str] | None = None,
) -> ResolvedConfigPaths:
    """Locate presets, voices, and students with the documented fallback order.

    Raises:
        ConfigurationError: If any required resource exists in none of the
            candidate locations.
    """

    base = Path(cwd).resolve() if cwd else Path.cwd()
    config_dirs = candidate_config_dirs(cwd=str(base), config_dir=config_dir, env=env)
    presets = _locate(PRESETS_FILE_NAME, presets_path, base, config_dirs)
    voices = _locate(VOICES_FILE_NAME, voices_path, base, config_dirs)
    students = _locate(STUDENTS_DIR_NAME, students_dir, base, config_dirs)
    return ResolvedConfigPaths(
        config_root=str(presets.parent),
        presets_path=str(presets),
        voices_path=str(voices),
        students_dir=str(students),
        wizard_defaults_path=str(base / "configs" / "wizard.defaults.json"),
    )


@dataclass(frozen=True, slots=True)
class ManifestStoreSettings:
    """Manifest backend selection."""

    backend: Literal["filesystem", "s3"] = "filesystem"
    bucket: str | None = None
    prefix: str | None = None
    region: str | None = None
    root_dir: str | None = None

    @classmethod
    def from_env(
        cls, env: Mapping[str, str] | None = None, cwd: str | None = None
    ) -> ManifestStoreSettings:
        """Read manifest backend settings from environment variables.

        Raises:
            ConfigurationError: If the S3 backend is selected without a bucket.
        """

        source = env if env is not None else os.environ
        backend = (read_env_string(source, ENV_MANIFEST_STORE) or "filesystem").lower()
        if backend == "filesystem":
            return cls()
        if backend != "s3":
            raise ConfigurationError(
                f"{ENV_MANIFEST_STORE} must be `filesystem` or `s3`, got `{backend}`."
            )
        bucket = read_env_string(source, ENV_MANIFEST_BUCKET)
        if bucket is None:
            raise ConfigurationError(
                f'{ENV_MANIFEST_BUCKET} must be set when {ENV_MANIFEST_STORE} is "s3".'
            )
        return cls(
            backend="s3",
            bucket=bucket,
            prefix=read_env_string(source, ENV_MANIFEST_PREFIX),
            region=read_env_string(source, ENV_AWS_REGION),
            root_dir=read_env_string(source, ENV_MANIFEST_ROOT) or cwd or os.getcwd(),
        )


@dataclass(frozen=True, slots=True)
class ConfigProviderSettings:
    """Config provider backend selection."""

    backend: Literal["filesystem", "http"] = "filesystem"
    base_url: str | None = None
    token: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ConfigProviderSettings:
        """Read config provider settings from environment variables.

        Raises:
            ConfigurationError: If the HTTP backend is selected without an endpoint.
        """

        source = env if env is not None else os.environ
        backend = (read_env_string(source, ENV_CONFIG_PROVIDER) or "filesystem").lower()
        if backend == "filesystem":
            return cls()
        if backend not in {"http", "remote"}:
            raise ConfigurationError(
                f"{ENV_CONFIG_PROVIDER} must be `filesystem` or `http`, got `{backend}`."
            )
        base_url = read_env_string(source, ENV_CONFIG_ENDPOINT)
        if base_url is None:
            raise ConfigurationError(
                f'{ENV_CONFIG_ENDPOINT} must be set when {ENV_CONFIG_PROVIDER} is "{backend}".'
            )
        return cls(
            backend="http",
            base_url=base_url,
            token=read_env_string(source, ENV_CONFIG_TOKEN),
        )


@dataclass(frozen=True, slots=True)
class UploadDefaults:
    """Upload bucket/prefix/region defaults used when flags omit them."""

    bucket: str | None = None
    prefix: str | None = None
    region: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> UploadDefaults:
        """Read upload defaults from environment variables."""

        source = env if env is not None else os.environ
        return cls(
            bucket=read_env_string(source, ENV_UPLOAD_BUCKET),
            prefix=read_env_string(source, ENV_UPLOAD_PREFIX),
            region=read_env_string(source, ENV_AWS_REGION),
        )


def load_env_files(
    cwd: str | None = None,
    files: list[str] | None = None,
    override: bool = False,
    assign_to_process: bool = True,
) -> dict[str, str]:
    """Load `.env` style files and return every parsed value.

    Files are read in order; missing files are ignored. Values are copied into
    `os.environ` when `assign_to_process` is set, replacing existing variables
    only when `override` is set.
    """

    base = Path(cwd).resolve() if cwd else Path.cwd()
    targets = [_resolve_against(name, base) for name in (files or [".env"])]
    collected: dict[str, str] = {}
    for target in targets:
        if not target.is_file():
            continue
        for key, value in dotenv_values(target).items():
            if value is None:
                continue
            collected[key] = value
            if assign_to_process and (override or key not in os.environ):
                os.environ[key] = value
    return collected
