"""Tests for config-file schema parsing and fail-fast validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from secret_store_client.config_file import load_client_config_file
from secret_store_client.exceptions import (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
)


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "client.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_client_config_file_parses_valid_toml(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
schema_version = 1

[client]
base_url = " https://secrets.example.com "
timeout_seconds = 10
max_retries = 0
cache_enabled = false
cache_max_entries = 500
cache_ttl_seconds = 45.5
allow_insecure_http = false
user_agent_suffix = "billing/1.0"
deadline_seconds = 20
""".strip(),
    )

    parsed = load_client_config_file(path)

    assert parsed.base_url == "https://secrets.example.com"
    assert parsed.timeout_seconds == 10.0
    assert parsed.max_retries == 0
    assert parsed.cache_enabled is False
    assert parsed.cache_max_entries == 500
    assert parsed.cache_ttl_seconds == 45.5
    assert parsed.allow_insecure_http is False
    assert parsed.user_agent_suffix == "billing/1.0"
    assert parsed.deadline_seconds == 20.0


def test_load_client_config_file_leaves_unset_keys_empty(tmp_path: Path) -> None:
    path = _write(tmp_path, "schema_version = 1\n[client]\nmax_retries = 2\n")

    parsed = load_client_config_file(path)

    assert parsed.max_retries == 2
    assert parsed.base_url is None
    assert parsed.cache_enabled is None


def test_load_client_config_file_fails_when_file_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileNotFoundError):
        load_client_config_file(tmp_path / "missing.toml")


def test_load_client_config_file_fails_for_invalid_toml(tmp_path: Path) -> None:
    path = _write(tmp_path, "schema_version = 1\n[client\nbase_url = 'x'")

    with pytest.raises(ConfigFileParseError):
        load_client_config_file(path)


def test_load_client_config_file_fails_when_client_section_missing(tmp_path: Path) -> None:
    path = _write(tmp_path, "schema_version = 1")

    with pytest.raises(ConfigFileValidationError) as exc_info:
        load_client_config_file(path)

    assert "client" in str(exc_info.value)


def test_load_client_config_file_fails_for_unsupported_schema_version(tmp_path: Path) -> None:
    path = _write(tmp_path, 'schema_version = 2\n[client]\nbase_url = "https://x.example"\n')

    with pytest.raises(ConfigFileValidationError) as exc_info:
        load_client_config_file(path)

    assert "schema_version" in str(exc_info.value)


@pytest.mark.parametrize(
    ("line", "field"),
    [
        ('unexpected = "value"', "unexpected"),
        ("max_retries = -1", "max_retries"),
        ("cache_max_entries = 0", "cache_max_entries"),
        ("timeout_seconds = 0", "timeout_seconds"),
        ('base_url = "   "', "base_url"),
        ('cache_enabled = "sometimes"', "cache_enabled"),
    ],
)
def test_load_client_config_file_rejects_invalid_values(
    tmp_path: Path, line: str, field: str
) -> None:
    path = _write(tmp_path, f"schema_version = 1\n[client]\n{line}\n")

    with pytest.raises(ConfigFileValidationError) as exc_info:
        load_client_config_file(path)

    assert field in str(exc_info.value)
