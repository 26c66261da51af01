"""HTTP transport and wire helpers.

Usage example:
    from secret_store_client.infrastructure.http import HttpRequest, RequestsTransport, build_session

    transport = RequestsTransport(session=build_session(user_agent="secret-store-client-python/1.0"))
    response = transport.send(
        HttpRequest("GET", "https://secrets.example.com/api/v2/livez"),
        timeout_seconds=5.0,
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import override

import requests
from pydantic import JsonValue
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from ..exceptions import (
    ApiError,
    ConfigurationError,
    DeserializationError,
    NetworkError,
    RequestTimeoutError,
)
from ..io_validation import IncomingDataError, parse_error_body, validate_json_as
from ..observability import get_logger
from ..protocols import HttpTransport

logger = get_logger("secret_store_client.http")

REQUEST_ID_HEADER = "X-Request-ID"


def _empty_headers() -> dict[str, str]:
    return {}


@dataclass(frozen=True)
class HttpRequest:
    """One fully built physical request."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=_empty_headers)
    json_body: JsonValue = None


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and raw body of a received response."""

    status_code: int
    headers: CaseInsensitiveDict[str] = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""

    @classmethod
    def build(
        cls, status_code: int, headers: Mapping[str, str] | None = None, body: bytes | str = b""
    ) -> HttpResponse:
        raw = body.encode("utf-8") if isinstance(body, str) else body
        return cls(status_code, CaseInsensitiveDict(dict(headers or {})), raw)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DeserializationError(f"response body is not UTF-8: {exc}") from exc

    def header(self, name: str) -> str | None:
        return self.headers.get(name)

    @property
    def request_id(self) -> str | None:
        return self.header(REQUEST_ID_HEADER)


def build_session(*, user_agent: str, pool_maxsize: int = 10) -> requests.Session:
    """Create a session with the client User-Agent and a shared connection pool."""
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    adapter = HTTPAdapter(pool_connections=pool_maxsize, pool_maxsize=pool_maxsize)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RequestsTransport(HttpTransport):
    """Requests-backed transport that maps library errors onto the client taxonomy.

    Retries are the executor's job; the session does none of its own.
    """

    def __init__(self, *, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()

    @override
    def send(self, request: HttpRequest, *, timeout_seconds: float) -> HttpResponse:
        try:
            response = self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                json=request.json_body,
                timeout=timeout_seconds,
            )
            body = response.content
        except requests.Timeout as exc:
            raise RequestTimeoutError(f"timeout: {exc}") from exc
        except (
            requests.exceptions.InvalidURL,
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
        ) as exc:
            raise ConfigurationError(f"invalid URL {request.url!r}: {exc}") from exc
        except requests.exceptions.ContentDecodingError as exc:
            raise DeserializationError(str(exc)) from exc
        except requests.ConnectionError as exc:
            raise NetworkError(f"connection failed: {exc}") from exc
        except requests.RequestException as exc:
            raise NetworkError(f"request failed: {exc}") from exc
        return HttpResponse(response.status_code, CaseInsensitiveDict(response.headers), body)

    @override
    def close(self) -> None:
        self._session.close()


def parse_retry_after(headers: Mapping[str, str] | None) -> float | None:
    """Parse Retry-After header into seconds, if available."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        dt = parsedate_to_datetime(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        delta = (dt - datetime.now(UTC)).total_seconds()
        return max(0.0, delta)
    except (AttributeError, OverflowError, TypeError, ValueError):
        return None


def parse_error_response(response: HttpResponse) -> ApiError:
    """Build an `ApiError` from a failure response.

    Falls back to category `unknown` when the body is not the structured error
    shape. The status always comes from the response line.
    """
    body = parse_error_body(response.body)
    status = response.status_code
    if body is None:
        return ApiError(status, "unknown", f"HTTP error {status}", response.request_id)
    return ApiError(status, body["error"], body["message"], response.request_id)


def decode_json_as[SchemaT](schema: type[SchemaT], response: HttpResponse) -> SchemaT:
    """Validate a JSON response body, raising `DeserializationError` on mismatch."""
    try:
        return validate_json_as(schema, response.body)
    except IncomingDataError as exc:
        cause = exc.__cause__
        logger.debug("Response body rejected for %s: %s", schema, cause)
        raise DeserializationError(f"{exc} {cause}" if cause else str(exc)) from exc
