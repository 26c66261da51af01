"""Composition root for wiring client dependencies."""

from __future__ import annotations

import time
from collections.abc import Callable

from . import __version__
from .client import SecretStoreClient
from .config import ClientConfig
from .endpoints import Endpoints
from .exceptions import ConfigurationError
from .infrastructure.cache import SecretCache
from .infrastructure.executor import RequestExecutor
from .infrastructure.http import RequestsTransport, build_session
from .infrastructure.resilience import ExponentialBackoff
from .protocols import Credential, HttpTransport, MetricsSink, RetryPolicy

USER_AGENT_PRODUCT = "secret-store-client-python"


def user_agent(config: ClientConfig) -> str:
    base = f"{USER_AGENT_PRODUCT}/{__version__}"
    if config.user_agent_suffix:
        return f"{base} {config.user_agent_suffix}"
    return base


def build_retry_policy(config: ClientConfig) -> ExponentialBackoff:
    return ExponentialBackoff(
        max_retries=config.max_retries,
        initial_interval_seconds=config.backoff_initial_seconds,
        multiplier=config.backoff_multiplier,
        randomization_factor=config.backoff_randomization,
        max_interval_seconds=config.backoff_max_interval_seconds,
        max_elapsed_seconds=config.backoff_max_elapsed_seconds,
    )


def build_client(
    config: ClientConfig,
    credential: Credential | None,
    *,
    transport: HttpTransport | None = None,
    metrics: MetricsSink | None = None,
    retry_policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> SecretStoreClient:
    """Build a client from configuration.

    Args:
        config: Client configuration; validated here.
        credential: Active credential. Required.
        transport: Transport override, e.g. a test double. Defaults to a pooled
            requests session carrying the client User-Agent.
        metrics: Optional metrics sink. Defaults to discarding events.
        retry_policy: Retry policy override. Defaults to `ExponentialBackoff` from config.
        sleep: Backoff sleep function, replaceable for deterministic tests.
        clock: Monotonic clock used for elapsed-time and deadline checks.

    Raises:
        ConfigurationError: If the credential is missing or the config is invalid.
    """
    if credential is None:
        raise ConfigurationError(
            "a credential is required (bearer token, API key, legacy key or token provider)"
        )
    config = config.validated()
    if transport is None:
        transport = RequestsTransport(session=build_session(user_agent=user_agent(config)))
    cache = (
        SecretCache(
            max_entries=config.cache_max_entries, default_ttl_seconds=config.cache_ttl_seconds
        )
        if config.cache_enabled
        else None
    )
    executor = RequestExecutor(
        transport=transport,
        credential=credential,
        retry_policy=retry_policy or build_retry_policy(config),
        cache=cache,
        metrics=metrics,
        timeout_seconds=config.timeout_seconds,
        deadline_seconds=config.deadline_seconds,
        sleep=sleep,
        clock=clock,
    )
    return SecretStoreClient(
        executor=executor,
        endpoints=Endpoints(config.base_url),
        transport=transport,
        cache=cache,
    )
