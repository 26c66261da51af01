"""Custom exceptions for the secret store client.

Every error raised by the client derives from `SecretStoreError`, so callers can
branch on `kind`, `status_code` and `request_id` without string matching.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import BatchOperateResult


class ErrorCategory(StrEnum):
    """Error categories reported by the secret store service."""

    AUTHORIZATION = "auth"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    INTERNAL = "internal"
    SERVICE_UNAVAILABLE = "service"
    CRYPTO = "crypto"
    CONFIGURATION = "config"
    OTHER = "other"

    @classmethod
    def from_category(cls, category: str) -> ErrorCategory:
        """Map a server category tag onto a known category."""
        try:
            return cls(category)
        except ValueError:
            return cls.OTHER


_RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


class SecretStoreError(Exception):
    """Base exception for all secret store client errors."""

    kind: ErrorCategory = ErrorCategory.OTHER
    status_code: int | None = None
    request_id: str | None = None

    @property
    def is_retryable(self) -> bool:
        return False


class ApiError(SecretStoreError):
    """Structured failure response returned by the secret store service."""

    def __init__(
        self,
        status: int,
        category: str,
        message: str,
        request_id: str | None = None,
    ) -> None:
        self.status_code = status
        self.category = category
        self.kind = ErrorCategory.from_category(category)
        self.message = message
        self.request_id = request_id
        super().__init__(f"http {status}: {category} - {message} (req={request_id})")

    @property
    def is_retryable(self) -> bool:
        return self.status_code in _RETRYABLE_CLIENT_STATUSES or 500 <= self.status_code < 600

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403


class NotModifiedError(ApiError):
    """Raised when a conditional request reports that content has not changed."""

    def __init__(self, message: str, request_id: str | None = None) -> None:
        super().__init__(304, "not_modified", message, request_id)


class TransportError(SecretStoreError):
    """Raised for failures at the network layer rather than from the service."""


class NetworkError(TransportError):
    """Raised when a connection cannot be established or is dropped."""

    @property
    def is_retryable(self) -> bool:
        return True


class RequestTimeoutError(TransportError):
    """Raised when a request or a whole logical call runs out of time."""

    kind = ErrorCategory.TIMEOUT

    def __init__(self, message: str = "timeout", *, deadline_exceeded: bool = False) -> None:
        self.deadline_exceeded = deadline_exceeded
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return not self.deadline_exceeded


class DeserializationError(TransportError):
    """Raised when a response body cannot be decoded into the expected shape.

    Retrying will not fix malformed data, so this is never retried.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(f"deserialize: {detail}")


class ConfigurationError(SecretStoreError):
    """Raised for invalid client setup. Never retried."""

    kind = ErrorCategory.CONFIGURATION

    def __init__(self, message: str) -> None:
        super().__init__(f"config: {message}")


class CredentialError(ConfigurationError):
    """Raised when the credential cannot produce a header or fails to refresh."""


class ConsistencyError(SecretStoreError):
    """Raised when the client detects a protocol contract violation."""


class BatchTransactionError(ConsistencyError):
    """Raised when a transactional batch reports any failed operation."""

    def __init__(self, result: BatchOperateResult) -> None:
        self.result = result
        failed = ", ".join(item.key for item in result.results.failed)
        super().__init__(
            f"Transactional batch in namespace {result.namespace!r} failed "
            f"({len(result.results.failed)} of {result.results.total} operations): {failed}"
        )


class ConfigFileNotFoundError(FileNotFoundError):
    """Raised when a client config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(ValueError):
    """Raised when a client config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Could not parse config file {path}: {detail}")


class ConfigFileValidationError(ValueError):
    """Raised when a client config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid config file {path}: {detail}")
