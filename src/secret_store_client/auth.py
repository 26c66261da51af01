"""Credentials for the secret store API.

Exactly one credential is active per client. Three static forms are supported,
plus a dynamic form backed by a `TokenProvider` that can be refreshed after a
401 response:

- `BearerToken`: `Authorization: Bearer <token>`
- `ApiKey`: `X-API-Key: <key>`
- `LegacyKey`: `XJP-KEY: <key>`
- `ProviderCredential`: `Authorization: Bearer <provider token>`, refreshable

Usage example:
    from secret_store_client.auth import RefreshingTokenProvider, bearer, token_provider

    credential = bearer("my-access-token")

    provider = RefreshingTokenProvider(fetch=oauth_client.fetch_access_token)
    credential = token_provider(provider)

Credential values are held as pydantic `SecretStr` and never appear in reprs.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import override

from pydantic import SecretStr

from .protocols import Credential, TokenProvider

AUTHORIZATION_HEADER = "Authorization"
API_KEY_HEADER = "X-API-Key"
LEGACY_KEY_HEADER = "XJP-KEY"


def _as_secret(value: SecretStr | str) -> SecretStr:
    return value if isinstance(value, SecretStr) else SecretStr(value)


@dataclass(frozen=True, repr=False)
class _StaticCredential(Credential):
    secret: SecretStr

    def __post_init__(self) -> None:
        object.__setattr__(self, "secret", _as_secret(self.secret))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(****)"

    @override
    def supports_refresh(self) -> bool:
        return False

    @override
    def refresh(self) -> None:
        return None


class BearerToken(_StaticCredential):
    """Static OAuth2/JWT bearer token."""

    @override
    def header(self) -> tuple[str, str]:
        return AUTHORIZATION_HEADER, f"Bearer {self.secret.get_secret_value()}"


class ApiKey(_StaticCredential):
    """Static service-account API key."""

    @override
    def header(self) -> tuple[str, str]:
        return API_KEY_HEADER, self.secret.get_secret_value()


class LegacyKey(_StaticCredential):
    """Static key for the legacy authentication scheme."""

    @override
    def header(self) -> tuple[str, str]:
        return LEGACY_KEY_HEADER, self.secret.get_secret_value()


@dataclass(frozen=True, repr=False)
class ProviderCredential(Credential):
    """Dynamic bearer credential backed by a refreshable token provider."""

    provider: TokenProvider

    def __repr__(self) -> str:
        return "ProviderCredential(****)"

    @override
    def header(self) -> tuple[str, str]:
        return AUTHORIZATION_HEADER, f"Bearer {self.provider.get_token()}"

    @override
    def supports_refresh(self) -> bool:
        return True

    @override
    def refresh(self) -> None:
        self.provider.refresh_token()


def bearer(token: SecretStr | str) -> BearerToken:
    return BearerToken(_as_secret(token))


def api_key(key: SecretStr | str) -> ApiKey:
    return ApiKey(_as_secret(key))


def legacy_key(key: SecretStr | str) -> LegacyKey:
    return LegacyKey(_as_secret(key))


def token_provider(provider: TokenProvider) -> ProviderCredential:
    return ProviderCredential(provider)


@dataclass(repr=False)
class StaticTokenProvider(TokenProvider):
    """Provider that always returns the same token. Refresh is a no-op."""

    token: SecretStr

    def __post_init__(self) -> None:
        self.token = _as_secret(self.token)

    @override
    def get_token(self) -> str:
        return self.token.get_secret_value()

    @override
    def refresh_token(self) -> None:
        return None


@dataclass(repr=False)
class RefreshingTokenProvider(TokenProvider):
    """Provider that caches a token fetched from a callable and re-fetches on refresh.

    Concurrent refreshes may race. Each one fetches a token and swaps it in under
    the lock, so readers always see a complete token from some fetch.
    """

    fetch: Callable[[], str]
    _token: SecretStr | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    @override
    def get_token(self) -> str:
        with self._lock:
            token = self._token
        if token is None:
            self.refresh_token()
            with self._lock:
                token = self._token
        if token is None:
            raise RuntimeError("Token provider produced no token")
        return token.get_secret_value()

    @override
    def refresh_token(self) -> None:
        fresh = SecretStr(self.fetch())
        with self._lock:
            self._token = fresh
