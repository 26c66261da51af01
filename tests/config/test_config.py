"""Tests for ClientConfig behaviour."""

import pytest

import secret_store_client.config as config_module
from secret_store_client.auth import ApiKey, BearerToken, LegacyKey
from secret_store_client.config import ClientConfig, credential_from_env
from secret_store_client.exceptions import ConfigurationError


def _patch_env(monkeypatch: pytest.MonkeyPatch, env: dict[str, str]) -> None:
    def fake_getenv(key: str, default: str = "") -> str:
        return env.get(key, default)

    def fake_load_dotenv(dotenv_path: str | None = None) -> bool:
        _ = dotenv_path
        return True

    monkeypatch.setattr(config_module.os, "getenv", fake_getenv)
    monkeypatch.setattr(config_module, "load_dotenv", fake_load_dotenv)


def test_with_overrides_preserves_fields() -> None:
    base = ClientConfig(
        base_url="https://secrets.example.com",
        timeout_seconds=12.0,
        max_retries=5,
        cache_enabled=True,
        cache_max_entries=50,
        cache_ttl_seconds=30.0,
        allow_insecure_http=False,
        user_agent_suffix="billing/1.0",
        deadline_seconds=20.0,
    )

    updated = base.with_overrides(max_retries=0, cache_enabled=False)

    assert updated.max_retries == 0
    assert updated.cache_enabled is False
    assert updated.base_url == base.base_url
    assert updated.timeout_seconds == base.timeout_seconds
    assert updated.cache_max_entries == base.cache_max_entries
    assert updated.cache_ttl_seconds == base.cache_ttl_seconds
    assert updated.user_agent_suffix == base.user_agent_suffix
    assert updated.deadline_seconds == base.deadline_seconds


def test_from_env_reads_client_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_env(
        monkeypatch,
        {
            "SECRET_STORE_URL": " https://secrets.example.com ",
            "SECRET_STORE_TIMEOUT_SECONDS": "7.5",
            "SECRET_STORE_MAX_RETRIES": "0",
            "SECRET_STORE_CACHE_ENABLED": "off",
            "SECRET_STORE_CACHE_MAX_ENTRIES": "25",
            "SECRET_STORE_CACHE_TTL_SECONDS": "60",
            "SECRET_STORE_USER_AGENT_SUFFIX": "billing/1.0",
            "SECRET_STORE_DEADLINE_SECONDS": "15",
        },
    )

    config = ClientConfig.from_env()

    assert config.base_url == "https://secrets.example.com"
    assert config.timeout_seconds == 7.5
    assert config.max_retries == 0
    assert config.cache_enabled is False
    assert config.cache_max_entries == 25
    assert config.cache_ttl_seconds == 60.0
    assert config.allow_insecure_http is False
    assert config.user_agent_suffix == "billing/1.0"
    assert config.deadline_seconds == 15.0


def test_from_env_uses_defaults_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_env(monkeypatch, {})

    config = ClientConfig.from_env()

    assert config == ClientConfig()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SECRET_STORE_MAX_RETRIES", "-1"),
        ("SECRET_STORE_MAX_RETRIES", "many"),
        ("SECRET_STORE_CACHE_MAX_ENTRIES", "0"),
        ("SECRET_STORE_TIMEOUT_SECONDS", "soon"),
        ("SECRET_STORE_CACHE_ENABLED", "maybe"),
    ],
)
def test_from_env_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    _patch_env(monkeypatch, {name: value})

    with pytest.raises(ValueError, match=name):
        ClientConfig.from_env()


def test_validated_strips_trailing_slash() -> None:
    config = ClientConfig(base_url="https://secrets.example.com/").validated()
    assert config.base_url == "https://secrets.example.com"


def test_validated_allows_http_only_when_opted_in() -> None:
    with pytest.raises(ConfigurationError, match="HTTP URLs are not allowed"):
        ClientConfig(base_url="http://localhost:8080").validated()

    config = ClientConfig(base_url="http://localhost:8080", allow_insecure_http=True).validated()
    assert config.base_url == "http://localhost:8080"


@pytest.mark.parametrize(
    "config",
    [
        ClientConfig(base_url=""),
        ClientConfig(base_url="ftp://secrets.example.com"),
        ClientConfig(base_url="secrets.example.com"),
        ClientConfig(base_url="https://"),
        ClientConfig(base_url="https://secrets.example.com", timeout_seconds=0),
        ClientConfig(base_url="https://secrets.example.com", max_retries=-1),
        ClientConfig(base_url="https://secrets.example.com", cache_max_entries=0),
        ClientConfig(base_url="https://secrets.example.com", deadline_seconds=0),
        ClientConfig(base_url="https://secrets.example.com", backoff_randomization=1.0),
    ],
)
def test_validated_rejects_invalid_config(config: ClientConfig) -> None:
    with pytest.raises(ConfigurationError):
        config.validated()


def test_credential_from_env_prefers_bearer_token(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_env(
        monkeypatch,
        {
            "SECRET_STORE_TOKEN": "tok",
            "SECRET_STORE_API_KEY": "key",
            "SECRET_STORE_LEGACY_KEY": "legacy",
        },
    )

    credential = credential_from_env()

    assert isinstance(credential, BearerToken)
    assert credential.header() == ("Authorization", "Bearer tok")


def test_credential_from_env_falls_back_to_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_env(monkeypatch, {"SECRET_STORE_API_KEY": "key", "SECRET_STORE_LEGACY_KEY": "legacy"})

    credential = credential_from_env()

    assert isinstance(credential, ApiKey)
    assert credential.header() == ("X-API-Key", "key")


def test_credential_from_env_falls_back_to_legacy_key(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_env(monkeypatch, {"SECRET_STORE_LEGACY_KEY": "legacy"})

    assert isinstance(credential_from_env(), LegacyKey)


def test_credential_from_env_requires_a_credential(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_env(monkeypatch, {})

    with pytest.raises(ConfigurationError, match="no credential found"):
        credential_from_env()
