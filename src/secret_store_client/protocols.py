"""Protocol definitions for dependency injection.

These protocols define the seams the client depends on, so the transport, the
credential source and the metrics backend can be swapped for test doubles.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .infrastructure.http import HttpRequest, HttpResponse


@runtime_checkable
class HttpTransport(Protocol):
    """Abstract transport that sends one HTTP request and returns the raw response."""

    def send(self, request: HttpRequest, *, timeout_seconds: float) -> HttpResponse:
        """Send a request.

        Args:
            request: Fully built request including headers and body.
            timeout_seconds: Transport timeout for this physical send.

        Returns:
            The response, whatever its status code.

        Raises:
            NetworkError: On connection failures.
            RequestTimeoutError: When the transport timeout elapses.
            DeserializationError: When the response body cannot be decoded.
            ConfigurationError: When the request URL is unusable.
        """
        ...

    def close(self) -> None:
        """Release pooled connections."""
        ...


@runtime_checkable
class TokenProvider(Protocol):
    """Source of refreshable bearer tokens."""

    def get_token(self) -> str:
        """Return the current token. Should be cheap, typically a cached value."""
        ...

    def refresh_token(self) -> None:
        """Fetch a new token and swap it in. Called after a 401 response."""
        ...


@runtime_checkable
class Credential(Protocol):
    """Authentication material attached to every request."""

    def header(self) -> tuple[str, str]:
        """Return the header name and value."""
        ...

    def supports_refresh(self) -> bool:
        """Whether `refresh` can produce a different header value."""
        ...

    def refresh(self) -> None:
        """Refresh the credential. A no-op for static credentials."""
        ...


@runtime_checkable
class RetryPolicy(Protocol):
    """Abstract retry policy for transient failures."""

    max_retries: int

    def compute_backoff(self, attempt: int, retry_after: float | None = None) -> float:
        """Return a delay for the next retry attempt."""
        ...

    def allows_retry(self, retries_done: int, elapsed_seconds: float) -> bool:
        """Whether another retry may be scheduled."""
        ...


@runtime_checkable
class MetricsSink(Protocol):
    """Receiver for client telemetry events."""

    def record_request(
        self, method: str, path: str, status: int, duration_seconds: float
    ) -> None:
        """Record one completed physical request."""
        ...

    def record_retry(self, attempt: int, reason: str) -> None:
        """Record a scheduled retry."""
        ...

    def record_error(self, kind: str) -> None:
        """Record a logical call that surfaced an error."""
        ...

    def record_cache_hit(self, namespace: str) -> None:
        """Record a cache hit."""
        ...

    def record_cache_miss(self, namespace: str) -> None:
        """Record a cache miss."""
        ...
