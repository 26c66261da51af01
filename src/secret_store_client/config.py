"""Centralised, injectable configuration for the secret store client."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self
from urllib.parse import urlsplit

from dotenv import load_dotenv

from .auth import api_key, bearer, legacy_key
from .config_file import ClientConfigFile
from .exceptions import ConfigurationError
from .protocols import Credential


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class NonNegativeIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be zero or a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative integer.")


class NumberEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


class BooleanEnvVarError(ValueError):
    """Raised when an environment variable must be a supported boolean."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a boolean value (true/false, 1/0, yes/no, on/off).")


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client configuration.

    Load from environment with `ClientConfig.from_env()` or construct directly for testing.
    Call `validated()` before use; `build_client` does this for you.
    """

    base_url: str = ""
    timeout_seconds: float = 30.0
    max_retries: int = 3
    cache_enabled: bool = True
    cache_max_entries: int = 10_000
    cache_ttl_seconds: float = 300.0
    allow_insecure_http: bool = False
    user_agent_suffix: str | None = None
    deadline_seconds: float | None = None

    # Backoff tuning
    backoff_initial_seconds: float = 0.1
    backoff_multiplier: float = 2.0
    backoff_randomization: float = 0.3
    backoff_max_interval_seconds: float = 10.0
    backoff_max_elapsed_seconds: float = 60.0

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from `SECRET_STORE_*` environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            ClientConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)
        defaults = cls()

        return cls(
            base_url=os.getenv("SECRET_STORE_URL", "").strip(),
            timeout_seconds=_parse_optional_number(
                os.getenv("SECRET_STORE_TIMEOUT_SECONDS", ""),
                env_name="SECRET_STORE_TIMEOUT_SECONDS",
            )
            or defaults.timeout_seconds,
            max_retries=_or_default(
                _parse_optional_non_negative_int(
                    os.getenv("SECRET_STORE_MAX_RETRIES", ""),
                    env_name="SECRET_STORE_MAX_RETRIES",
                ),
                defaults.max_retries,
            ),
            cache_enabled=_or_default(
                _parse_optional_bool(
                    os.getenv("SECRET_STORE_CACHE_ENABLED", ""),
                    env_name="SECRET_STORE_CACHE_ENABLED",
                ),
                defaults.cache_enabled,
            ),
            cache_max_entries=_parse_optional_positive_int(
                os.getenv("SECRET_STORE_CACHE_MAX_ENTRIES", ""),
                env_name="SECRET_STORE_CACHE_MAX_ENTRIES",
            )
            or defaults.cache_max_entries,
            cache_ttl_seconds=_parse_optional_number(
                os.getenv("SECRET_STORE_CACHE_TTL_SECONDS", ""),
                env_name="SECRET_STORE_CACHE_TTL_SECONDS",
            )
            or defaults.cache_ttl_seconds,
            allow_insecure_http=_parse_optional_bool(
                os.getenv("SECRET_STORE_ALLOW_INSECURE_HTTP", ""),
                env_name="SECRET_STORE_ALLOW_INSECURE_HTTP",
            )
            or False,
            user_agent_suffix=os.getenv("SECRET_STORE_USER_AGENT_SUFFIX", "").strip() or None,
            deadline_seconds=_parse_optional_number(
                os.getenv("SECRET_STORE_DEADLINE_SECONDS", ""),
                env_name="SECRET_STORE_DEADLINE_SECONDS",
            ),
        )

    def with_overrides(
        self,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        cache_enabled: bool | None = None,
        cache_max_entries: int | None = None,
        cache_ttl_seconds: float | None = None,
        allow_insecure_http: bool | None = None,
        user_agent_suffix: str | None = None,
        deadline_seconds: float | None = None,
    ) -> Self:
        """Return a new config with the given values replaced. `None` keeps the current value."""
        return replace(
            self,
            base_url=self.base_url if base_url is None else base_url.strip(),
            timeout_seconds=self.timeout_seconds if timeout_seconds is None else timeout_seconds,
            max_retries=self.max_retries if max_retries is None else max_retries,
            cache_enabled=self.cache_enabled if cache_enabled is None else cache_enabled,
            cache_max_entries=self.cache_max_entries
            if cache_max_entries is None
            else cache_max_entries,
            cache_ttl_seconds=self.cache_ttl_seconds
            if cache_ttl_seconds is None
            else cache_ttl_seconds,
            allow_insecure_http=self.allow_insecure_http
            if allow_insecure_http is None
            else allow_insecure_http,
            user_agent_suffix=self.user_agent_suffix
            if user_agent_suffix is None
            else user_agent_suffix,
            deadline_seconds=self.deadline_seconds if deadline_seconds is None else deadline_seconds,
        )

    def with_file_overrides(self, file_config: ClientConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return self.with_overrides(
            base_url=file_config.base_url,
            timeout_seconds=file_config.timeout_seconds,
            max_retries=file_config.max_retries,
            cache_enabled=file_config.cache_enabled,
            cache_max_entries=file_config.cache_max_entries,
            cache_ttl_seconds=file_config.cache_ttl_seconds,
            allow_insecure_http=file_config.allow_insecure_http,
            user_agent_suffix=file_config.user_agent_suffix,
            deadline_seconds=file_config.deadline_seconds,
        )

    def validated(self) -> Self:
        """Return a copy with a normalised base URL.

        Raises:
            ConfigurationError: If the URL is missing, not http(s), plain http while
                insecure HTTP is disallowed, or a numeric setting is out of range.
        """
        url = self.base_url.strip().rstrip("/")
        if not url:
            raise ConfigurationError("base URL is required")
        scheme = urlsplit(url).scheme.lower()
        if scheme not in {"http", "https"}:
            raise ConfigurationError("Base URL must start with http:// or https://")
        if scheme == "http" and not self.allow_insecure_http:
            raise ConfigurationError(
                "HTTP URLs are not allowed by default; set allow_insecure_http to enable (dangerous!)"
            )
        if not urlsplit(url).netloc:
            raise ConfigurationError(f"Base URL has no host: {url!r}")
        _require(self.timeout_seconds > 0, "timeout_seconds must be positive")
        _require(self.max_retries >= 0, "max_retries must be non-negative")
        _require(self.cache_max_entries >= 1, "cache_max_entries must be at least 1")
        _require(self.cache_ttl_seconds > 0, "cache_ttl_seconds must be positive")
        _require(
            self.deadline_seconds is None or self.deadline_seconds > 0,
            "deadline_seconds must be positive",
        )
        _require(self.backoff_initial_seconds > 0, "backoff_initial_seconds must be positive")
        _require(self.backoff_multiplier >= 1.0, "backoff_multiplier must be at least 1")
        _require(
            0.0 <= self.backoff_randomization < 1.0, "backoff_randomization must be in [0, 1)"
        )
        _require(
            self.backoff_max_interval_seconds >= self.backoff_initial_seconds,
            "backoff_max_interval_seconds must not be below backoff_initial_seconds",
        )
        _require(
            self.backoff_max_elapsed_seconds > 0, "backoff_max_elapsed_seconds must be positive"
        )
        return replace(self, base_url=url)


def credential_from_env(dotenv_path: str | None = None) -> Credential:
    """Build a credential from the environment.

    `SECRET_STORE_TOKEN` wins over `SECRET_STORE_API_KEY`, which wins over
    `SECRET_STORE_LEGACY_KEY`.

    Raises:
        ConfigurationError: If none of the variables is set.
    """
    load_dotenv(dotenv_path)
    token = os.getenv("SECRET_STORE_TOKEN", "").strip()
    if token:
        return bearer(token)
    key = os.getenv("SECRET_STORE_API_KEY", "").strip()
    if key:
        return api_key(key)
    legacy = os.getenv("SECRET_STORE_LEGACY_KEY", "").strip()
    if legacy:
        return legacy_key(legacy)
    raise ConfigurationError(
        "no credential found; set SECRET_STORE_TOKEN, SECRET_STORE_API_KEY or SECRET_STORE_LEGACY_KEY"
    )


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


def _or_default[T](value: T | None, default: T) -> T:
    return default if value is None else value


def _parse_optional_positive_int(value: str, *, env_name: str) -> int | None:
    """Parse an optional positive integer from an environment variable."""
    text = value.strip()
    if not text:
        return None
    try:
        parsed = int(text)
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_non_negative_int(value: str, *, env_name: str) -> int | None:
    text = value.strip()
    if not text:
        return None
    try:
        parsed = int(text)
    except ValueError as exc:
        raise NonNegativeIntegerEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_number(value: str, *, env_name: str) -> float | None:
    text = value.strip()
    if not text:
        return None
    try:
        parsed = float(text)
    except ValueError as exc:
        raise NumberEnvVarError(env_name) from exc
    if parsed <= 0:
        raise NumberEnvVarError(env_name)
    return parsed


def _parse_optional_bool(value: str, *, env_name: str) -> bool | None:
    """Parse an optional boolean from an environment variable."""
    text = value.strip().lower()
    if not text:
        return None
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    raise BooleanEnvVarError(env_name)
