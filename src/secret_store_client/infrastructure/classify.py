"""Classification of raw HTTP outcomes for the request executor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..exceptions import ConsistencyError, SecretStoreError
from .http import HttpResponse, parse_error_response, parse_retry_after


class Outcome(Enum):
    SUCCESS = "success"
    NOT_MODIFIED = "not_modified"
    AUTH_EXPIRED = "auth_expired"
    RETRYABLE = "retryable"
    PERMANENT = "permanent"


@dataclass(frozen=True)
class Classification:
    """Outcome of one attempt, with the error to surface or retry on."""

    outcome: Outcome
    error: SecretStoreError | None = None
    retry_after: float | None = None


def classify_response(
    response: HttpResponse,
    *,
    cache_resolvable: bool,
    conditional: bool,
    can_refresh: bool,
    refresh_attempted: bool,
    retries_remaining: bool,
) -> Classification:
    """Map a received response onto exactly one outcome.

    Args:
        response: The response of the latest attempt.
        cache_resolvable: The call reads through the cache, so a 304 can be
            answered from a cached entry.
        conditional: The caller supplied its own validator and handles a 304 itself.
        can_refresh: The active credential supports refresh.
        refresh_attempted: A refresh already happened during this logical call.
        retries_remaining: The retry policy allows another attempt.
    """
    status = response.status_code
    if response.is_success:
        return Classification(Outcome.SUCCESS)

    if status == 304:
        if cache_resolvable:
            return Classification(Outcome.NOT_MODIFIED)
        if conditional:
            return Classification(Outcome.SUCCESS)
        error = ConsistencyError("received 304 Not Modified but the cache was bypassed or disabled")
        error.status_code = 304
        error.request_id = response.request_id
        return Classification(Outcome.PERMANENT, error)

    api_error = parse_error_response(response)
    if status == 401 and can_refresh and not refresh_attempted:
        return Classification(Outcome.AUTH_EXPIRED, api_error)
    if api_error.is_retryable and retries_remaining:
        return Classification(
            Outcome.RETRYABLE, api_error, retry_after=parse_retry_after(response.headers)
        )
    return Classification(Outcome.PERMANENT, api_error)


def classify_transport_error(error: SecretStoreError, *, retries_remaining: bool) -> Classification:
    """Connection failures and timeouts retry; decode and config errors never do."""
    if error.is_retryable and retries_remaining:
        return Classification(Outcome.RETRYABLE, error)
    return Classification(Outcome.PERMANENT, error)
