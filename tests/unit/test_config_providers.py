"""Unit tests for filesystem and remote HTTP config providers."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from eslpipeline.errors import RemoteConfigError
from eslpipeline.providers.base import DEFAULT_STUDENT_NAME, StudentProfile
from eslpipeline.providers.filesystem import FilesystemConfigProvider
from eslpipeline.providers.remote import RemoteConfigProvider


def _response(*, payload: object = None, text: str = "", status: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    response.text = text
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


def test_filesystem_presets_parse_colors_and_toggle_map(tmp_path: Path) -> None:
    """Presets should parse into typed definitions keyed by name."""

    presets = tmp_path / "presets.json"
    presets.write_text(
        json.dumps({"b1-default": {"h2": "blue", "h3": "purple", "toggleMap": {"Vocab": "green"}}}),
        encoding="utf-8",
    )

    loaded = FilesystemConfigProvider(presets_path=str(presets)).load_presets()

    assert loaded["b1-default"].h2 == "blue"
    assert loaded["b1-default"].toggle_map == {"Vocab": "green"}


def test_filesystem_presets_missing_file_yields_empty_mapping(tmp_path: Path) -> None:
    """An unreadable presets file should produce no presets instead of failing."""

    provider = FilesystemConfigProvider(presets_path=str(tmp_path / "missing.json"))

    assert provider.load_presets() == {}


def test_filesystem_profiles_skip_invalid_and_add_default(tmp_path: Path) -> None:
    """Invalid or unnamed profiles should be skipped and a `Default` profile appended."""

    students = tmp_path / "students"
    students.mkdir()
    (students / "zoe.json").write_text(
        json.dumps({"student": "zoe", "dbId": "db-zoe", "accentPreference": "british"}),
        encoding="utf-8",
    )
    (students / "anna.json").write_text(json.dumps({"student": "Anna"}), encoding="utf-8")
    (students / "broken.json").write_text("{oops", encoding="utf-8")
    (students / "unnamed.json").write_text(json.dumps({"student": "  "}), encoding="utf-8")
    (students / "notes.txt").write_text("ignored", encoding="utf-8")

    profiles = FilesystemConfigProvider(students_dir=str(students)).load_student_profiles()

    assert [profile.student for profile in profiles] == ["Anna", DEFAULT_STUDENT_NAME, "zoe"]
    zoe = profiles[-1]
    assert zoe == StudentProfile(student="zoe", db_id="db-zoe", accent_preference="british")


def test_filesystem_profiles_missing_dir_returns_default_only(tmp_path: Path) -> None:
    """Without a students directory only the default profile should be returned."""

    profiles = FilesystemConfigProvider(
        students_dir=str(tmp_path / "none")
    ).load_student_profiles()

    assert [profile.student for profile in profiles] == [DEFAULT_STUDENT_NAME]
    assert profiles[0].color_preset == "b1-default"


def test_filesystem_voices_path_returns_first_existing_candidate(tmp_path: Path) -> None:
    """Voice map resolution should skip candidates that do not exist."""

    configured = tmp_path / "voices.yml"
    configured.write_text("auto: true\n", encoding="utf-8")
    provider = FilesystemConfigProvider(voices_path=str(configured))

    assert provider.resolve_voices_path(str(tmp_path / "missing.yml")) == str(configured)
    assert provider.resolve_voices_path() == str(configured)
    assert (
        FilesystemConfigProvider(voices_path=str(tmp_path / "none.yml")).resolve_voices_path()
        is None
    )


def test_remote_provider_fetches_resources_with_bearer_token(tmp_path: Path) -> None:
    """Remote resources should be fetched from the base URL with the bearer token."""

    session = MagicMock()
    session.get.side_effect = [
        _response(payload={"remote-default": {"h2": "#00ff00"}}),
        _response(payload=[{"student": "Remote Student", "dbId": "db-1"}, {"student": ""}, 4]),
        _response(text="voices:\n  narrator: remote-voice\n"),
    ]
    provider = RemoteConfigProvider("https://config.test/", token="secret", session=session)

    presets = provider.load_presets()
    students = provider.load_student_profiles()
    voices_path = provider.resolve_voices_path()

    assert presets["remote-default"].h2 == "#00ff00"
    assert [profile.student for profile in students] == ["Remote Student"]
    assert voices_path is not None
    assert Path(voices_path).name.startswith("voices-")
    assert Path(voices_path).suffix == ".yml"
    assert Path(voices_path).read_text(encoding="utf-8").startswith("voices:")
    urls = [call.args[0] for call in session.get.call_args_list]
    assert urls == [
        "https://config.test/presets.json",
        "https://config.test/students.json",
        "https://config.test/voices.yml",
    ]
    headers = session.get.call_args_list[0].kwargs["headers"]
    assert headers["Authorization"] == "Bearer secret"
    assert session.get.call_args_list[0].kwargs["timeout"] == 10.0
    Path(voices_path).unlink()


def test_remote_voices_are_downloaded_once() -> None:
    """The materialized voice map should be reused on later calls."""

    session = MagicMock()
    session.get.return_value = _response(text="default: v1\n")
    provider = RemoteConfigProvider("https://config.test/", session=session)

    first = provider.resolve_voices_path()
    second = provider.resolve_voices_path()

    assert first == second
    assert session.get.call_count == 1
    assert "Authorization" not in session.get.call_args.kwargs["headers"]
    assert first is not None
    Path(first).unlink()


def test_remote_voices_explicit_path_skips_download() -> None:
    """An explicit voices path should be returned without any HTTP request."""

    session = MagicMock()
    provider = RemoteConfigProvider("https://config.test/", session=session)

    assert provider.resolve_voices_path("/local/voices.yml") == "/local/voices.yml"
    session.get.assert_not_called()


def test_remote_non_success_status_raises_remote_config_error() -> None:
    """Non-2xx responses should surface as `RemoteConfigError` with the status code."""

    session = MagicMock()
    session.get.return_value = _response(status=503)
    provider = RemoteConfigProvider("https://config.test/", session=session)

    with pytest.raises(RemoteConfigError, match="HTTP 503") as excinfo:
        provider.load_presets()

    assert excinfo.value.status_code == 503


def test_remote_transport_failure_raises_remote_config_error() -> None:
    """Connection failures should also map to `RemoteConfigError`."""

    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")
    provider = RemoteConfigProvider("https://config.test/", session=session)

    with pytest.raises(RemoteConfigError, match="refused"):
        provider.load_student_profiles()


def test_remote_provider_requires_base_url() -> None:
    """Constructing a remote provider without a base URL should fail fast."""

    with pytest.raises(ValueError):
        RemoteConfigProvider("")
