"""Pytest fixtures shared across the suite.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket

import pytest

from secret_store_client.auth import bearer
from secret_store_client.client import SecretStoreClient
from secret_store_client.composition import build_client
from secret_store_client.config import ClientConfig
from tests.fakes import FakeClock, FakeTransport, RecordingMetrics
from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> None:
    """Block all network access in tests.

    This fixture runs automatically for all tests and prevents any real
    network connections. Tests that need HTTP should use FakeTransport
    or MagicMock.
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)


# =============================================================================
# Client wiring
# =============================================================================

BASE_URL = "https://secrets.example.com"


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(base_url=BASE_URL, max_retries=3)


@pytest.fixture
def client(
    config: ClientConfig,
    transport: FakeTransport,
    metrics: RecordingMetrics,
    clock: FakeClock,
) -> SecretStoreClient:
    """Client wired to a scripted transport with a static bearer token and no real sleeps."""
    return build_client(
        config,
        bearer("test-token"),
        transport=transport,
        metrics=metrics,
        sleep=clock.sleep,
        clock=clock.monotonic,
    )
