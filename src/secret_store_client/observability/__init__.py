"""Logging and metrics hooks for the secret store client."""

from .logging import get_logger
from .metrics import InMemoryMetrics, NullMetricsSink

__all__ = ["InMemoryMetrics", "NullMetricsSink", "get_logger"]
