"""Integration tests for pipeline construction and backend selection."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import boto3
import pytest
import requests

from eslpipeline import create_pipeline
from eslpipeline.config import ManifestStoreSettings
from eslpipeline.errors import ConfigurationError
from eslpipeline.models.datatypes import NewAssignmentFlags, RerunFlags
from eslpipeline.providers.filesystem import FilesystemConfigProvider
from eslpipeline.providers.remote import RemoteConfigProvider
from eslpipeline.storage.filesystem import FilesystemManifestStore
from eslpipeline.storage.s3 import S3ManifestStore


def _write_configs(root: Path) -> Path:
    configs = root / "configs"
    (configs / "students").mkdir(parents=True)
    (configs / "presets.json").write_text(json.dumps({"b1-default": {}}), encoding="utf-8")
    (configs / "voices.yml").write_text("default: voice_default\n", encoding="utf-8")
    return configs


def test_create_pipeline_prefers_configs_under_cwd(tmp_path: Path) -> None:
    """A `configs` folder in the working directory should win over bundled configs."""

    configs = _write_configs(tmp_path)

    pipeline = create_pipeline(cwd=str(tmp_path), env={})

    assert pipeline.config_paths is not None
    assert pipeline.config_paths.presets_path == str((configs / "presets.json").resolve())
    assert pipeline.defaults.voices_path == str((configs / "voices.yml").resolve())
    assert isinstance(pipeline.manifest_store, FilesystemManifestStore)
    assert isinstance(pipeline.config_provider, FilesystemConfigProvider)


def test_explicit_missing_config_dir_falls_back_to_bundled(tmp_path: Path) -> None:
    """An empty explicit config dir should still resolve the packaged configuration."""

    pipeline = create_pipeline(cwd=str(tmp_path), config_dir=str(tmp_path / "nothing"), env={})

    assert pipeline.config_paths is not None
    assert Path(pipeline.config_paths.presets_path).name == "presets.json"
    assert Path(pipeline.config_paths.students_dir).is_dir()


def test_pipeline_merges_defaults_into_flags(
    tmp_path: Path, lesson_md: Path, collaborators, call_log
) -> None:
    """Unset flags should receive the configured presets path, voices path, and out dir."""

    configs = _write_configs(tmp_path)
    pipeline = create_pipeline(
        cwd=str(tmp_path),
        default_out_dir="build/audio",
        collaborators=collaborators,
        env={},
    )

    pipeline.new_assignment(
        NewAssignmentFlags(md=str(lesson_md), preset="b1-default", with_tts=True)
    )

    colorize = next(payload for name, payload in call_log.calls if name == "colorize")
    tts = next(payload for name, payload in call_log.calls if name == "tts")
    assert colorize[2] == str((configs / "presets.json").resolve())
    assert tts.voice_map_path == str((configs / "voices.yml").resolve())
    assert tts.out_path == str((tmp_path / "build" / "audio").resolve())


def test_pipeline_explicit_flags_win_over_defaults(
    tmp_path: Path, lesson_md: Path, collaborators, call_log
) -> None:
    """Caller-provided flag values should never be replaced by defaults."""

    _write_configs(tmp_path)
    pipeline = create_pipeline(cwd=str(tmp_path), collaborators=collaborators, env={})
    custom_voices = tmp_path / "custom.yml"
    custom_voices.write_text("auto: true\n", encoding="utf-8")

    pipeline.new_assignment(
        NewAssignmentFlags(
            md=str(lesson_md), with_tts=True, voices=str(custom_voices), out=str(tmp_path)
        )
    )
    result = pipeline.rerun_assignment(
        RerunFlags(md=str(lesson_md), steps=("tts",), voices=str(custom_voices))
    )

    tts_calls = [payload for name, payload in call_log.calls if name == "tts"]
    assert [options.voice_map_path for options in tts_calls] == [str(custom_voices)] * 2
    assert tts_calls[0].out_path == str(tmp_path)
    assert result.steps == ["tts"]
    assert pipeline.get_assignment_status(str(lesson_md)).md_hash_matches is True


def test_remote_provider_selected_from_env(
    tmp_path: Path, lesson_md: Path, collaborators, call_log, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The HTTP provider should be selected from env and serve the voice map."""

    fetched: list[str] = []

    def _fake_get(url: str, **kwargs: object) -> MagicMock:
        fetched.append(url)
        response = MagicMock()
        response.status_code = 200
        response.text = "default: remote_voice\n"
        return response

    monkeypatch.setattr(requests, "get", _fake_get)
    env = {
        "ESL_PIPELINE_CONFIG_PROVIDER": "http",
        "ESL_PIPELINE_CONFIG_ENDPOINT": "https://config.test/",
    }

    pipeline = create_pipeline(cwd=str(tmp_path), collaborators=collaborators, env=env)
    pipeline.new_assignment(NewAssignmentFlags(md=str(lesson_md), with_tts=True))

    assert isinstance(pipeline.config_provider, RemoteConfigProvider)
    assert pipeline.defaults.voices_path is None
    assert fetched == ["https://config.test/voices.yml"]
    tts = next(payload for name, payload in call_log.calls if name == "tts")
    assert tts.voice_map_path is not None
    assert Path(tts.voice_map_path).read_text(encoding="utf-8") == "default: remote_voice\n"
    Path(tts.voice_map_path).unlink()


def test_s3_manifest_store_selected_from_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """S3 manifest settings in env should select the S3 store."""

    monkeypatch.setattr(boto3, "client", lambda service, **kwargs: MagicMock())
    env = {
        "ESL_PIPELINE_MANIFEST_STORE": "s3",
        "ESL_PIPELINE_MANIFEST_BUCKET": "manifests",
    }

    pipeline = create_pipeline(cwd=str(tmp_path), env=env)

    assert isinstance(pipeline.manifest_store, S3ManifestStore)
    assert pipeline.manifest_store.bucket == "manifests"


def test_explicit_objects_take_precedence_over_env(tmp_path: Path) -> None:
    """Passed-in stores and settings should override environment selection."""

    store = FilesystemManifestStore()
    env = {
        "ESL_PIPELINE_MANIFEST_STORE": "s3",
        "ESL_PIPELINE_MANIFEST_BUCKET": "manifests",
    }

    explicit = create_pipeline(cwd=str(tmp_path), manifest_store=store, env=env)
    from_settings = create_pipeline(
        cwd=str(tmp_path), manifest_settings=ManifestStoreSettings(), env=env
    )

    assert explicit.manifest_store is store
    assert isinstance(from_settings.manifest_store, FilesystemManifestStore)


def test_invalid_backend_env_is_rejected(tmp_path: Path) -> None:
    """Unknown backend names in env should fail construction."""

    with pytest.raises(ConfigurationError, match="ESL_PIPELINE_MANIFEST_STORE"):
        create_pipeline(cwd=str(tmp_path), env={"ESL_PIPELINE_MANIFEST_STORE": "ftp"})
