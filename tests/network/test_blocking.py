"""Test that network access is properly blocked in tests."""

import socket

import pytest

from secret_store_client.infrastructure.http import HttpRequest, RequestsTransport, build_session
from tests.support.errors import NetworkIsolationError


class TestNetworkBlocking:
    """Verify that the network blocking fixture works."""

    def test_socket_connect_is_blocked(self) -> None:
        """Attempting to connect a socket should raise NetworkIsolationError."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            with pytest.raises(NetworkIsolationError) as exc_info:
                sock.connect(("127.0.0.1", 80))
            assert "Tests must not make network connections" in str(exc_info.value)
        finally:
            sock.close()

    def test_requests_would_fail_without_mock(self) -> None:
        """Using requests directly hits the socket block."""
        import requests

        with pytest.raises(NetworkIsolationError) as exc_info:
            requests.get("http://127.0.0.1:9/api/v2/livez", timeout=1)
        assert "Tests must not make network connections" in str(exc_info.value)

    def test_real_transport_cannot_reach_network(self) -> None:
        """The production transport is blocked too, so tests must use FakeTransport."""
        transport = RequestsTransport(session=build_session(user_agent="test"))
        try:
            with pytest.raises(NetworkIsolationError):
                transport.send(
                    HttpRequest("GET", "http://127.0.0.1:9/api/v2/livez"), timeout_seconds=1.0
                )
        finally:
            transport.close()
