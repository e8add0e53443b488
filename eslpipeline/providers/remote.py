"""HTTP-backed config provider.

Responsibilities:
- Fetch presets, student profiles, and the voice map from a config service.
- Authenticate with an optional bearer token.
- Materialize the voice map to a local temporary file, since synthesizers
  expect a filesystem path rather than a byte stream.
"""

from __future__ import annotations

import tempfile
import threading
import uuid
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

import requests

from ..errors import RemoteConfigError
from .base import ConfigProvider, PresetDefinition, StudentProfile, parse_presets

DEFAULT_REMOTE_PRESETS_PATH = "/presets.json"
DEFAULT_REMOTE_STUDENTS_PATH = "/students.json"
DEFAULT_REMOTE_VOICES_PATH = "/voices.yml"


class RemoteConfigProvider(ConfigProvider):
    """Read pipeline configuration from a remote HTTP service."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        presets_path: str = DEFAULT_REMOTE_PRESETS_PATH,
        students_path: str = DEFAULT_REMOTE_STUDENTS_PATH,
        voices_path: str = DEFAULT_REMOTE_VOICES_PATH,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize remote endpoints and HTTP settings."""

        if not base_url:
            raise ValueError("RemoteConfigProvider requires a base_url.")
        self.base_url = base_url
        self.token = token
        self.presets_path = presets_path
        self.students_path = students_path
        self.voices_path = voices_path
        self.timeout_seconds = timeout_seconds
        self._http = session if session is not None else requests
        self._voices_tmp_path: str | None = None
        self._voices_lock = threading.Lock()

    def load_presets(self, presets_path: str | None = None) -> dict[str, PresetDefinition]:
        """Fetch presets; the local `presets_path` argument is ignored."""

        _ = presets_path
        return parse_presets(self._get(self.presets_path, accept="application/json").json())

    def load_student_profiles(self, students_dir: str | None = None) -> list[StudentProfile]:
        """Fetch student profiles; a non-list body yields no profiles."""

        _ = students_dir
        payload = self._get(self.students_path, accept="application/json").json()
        if not isinstance(payload, list):
            return []
        profiles: list[StudentProfile] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            profile = StudentProfile.from_payload(item)
            if profile is not None:
                profiles.append(profile)
        return profiles

    def resolve_voices_path(
        self, voices_path: str | None = None, fallback: str | None = None
    ) -> str | None:
        """Return an explicit path, else download the voice map once and reuse it."""

        if voices_path:
            return voices_path
        if fallback:
            return fallback
        with self._voices_lock:
            if self._voices_tmp_path is not None:
                return self._voices_tmp_path
            body = self._get(self.voices_path, accept="text/plain").text
            target = Path(tempfile.gettempdir()) / f"voices-{uuid.uuid4().hex}.yml"
            target.write_text(body, encoding="utf-8")
            self._voices_tmp_path = str(target)
            return self._voices_tmp_path

    def resolve_url(self, path: str) -> str:
        """Resolve a resource path against the base URL."""

        return urljoin(self.base_url, path)

    def _headers(self, accept: str) -> dict[str, str]:
        """Build request headers with optional bearer authentication."""

        headers = {"Accept": accept}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, path: str, *, accept: str) -> Any:
        """GET one resource and map failures to `RemoteConfigError`."""

        url = self.resolve_url(path)
        try:
            response = self._http.get(
                url,
                headers=self._headers(accept),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise RemoteConfigError(
                f"Failed to fetch remote config `{url}` (HTTP {status_code}).",
                status_code=status_code,
            ) from exc
        except requests.RequestException as exc:
            raise RemoteConfigError(f"Failed to fetch remote config `{url}`: {exc}") from exc
        return response
