"""Concrete infrastructure implementations and shared helpers."""

from .cache import CacheEntry, CacheStatistics, ResourceKey, SecretCache
from .classify import Classification, Outcome, classify_response, classify_transport_error
from .executor import RequestAttempt, RequestExecutor, RequestSpec
from .http import HttpRequest, HttpResponse, RequestsTransport, build_session, parse_retry_after
from .resilience import ExponentialBackoff

__all__ = [
    "CacheEntry",
    "CacheStatistics",
    "Classification",
    "ExponentialBackoff",
    "HttpRequest",
    "HttpResponse",
    "Outcome",
    "RequestAttempt",
    "RequestExecutor",
    "RequestSpec",
    "RequestsTransport",
    "ResourceKey",
    "SecretCache",
    "build_session",
    "classify_response",
    "classify_transport_error",
    "parse_retry_after",
]
