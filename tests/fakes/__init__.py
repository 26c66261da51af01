"""Exports for test fakes."""

from .auth import FakeTokenProvider
from .clock import FakeClock
from .metrics import RecordingMetrics
from .transport import (
    FakeTransport,
    error_response,
    json_response,
    secret_payload,
    text_response,
)

__all__ = [
    "FakeClock",
    "FakeTokenProvider",
    "FakeTransport",
    "RecordingMetrics",
    "error_response",
    "json_response",
    "secret_payload",
    "text_response",
]
