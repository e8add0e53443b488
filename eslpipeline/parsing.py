"""Shared parsing helpers for environment and manifest value normalization."""

from __future__ import annotations

from typing import Mapping


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def read_env_string(env: Mapping[str, str], key: str) -> str | None:
    """Read a non-blank environment value, returning `None` when unset or blank."""

    return normalize_optional_string(env.get(key))


def optional_payload_string(payload: Mapping[str, object], key: str) -> str | None:
    """Read an optional string field from a JSON payload without coercing other types."""

    value = payload.get(key)
    if isinstance(value, str):
        return value
    return None


def optional_payload_number(payload: Mapping[str, object], key: str) -> float | None:
    """Read an optional numeric field from a JSON payload, ignoring booleans."""

    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def optional_payload_int(payload: Mapping[str, object], key: str) -> int | None:
    """Read an optional integer field from a JSON payload, ignoring booleans."""

    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def normalize_prefix(prefix: str | None) -> str:
    """Strip one trailing slash and surrounding whitespace from a key prefix."""

    if prefix is None:
        return ""
    text = prefix.strip()
    if text.endswith("/"):
        text = text[:-1]
    return text
