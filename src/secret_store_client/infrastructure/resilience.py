"""Retry spacing for transient failures.

Usage example:
    from secret_store_client.infrastructure.resilience import ExponentialBackoff

    policy = ExponentialBackoff(max_retries=3)
    delay = policy.compute_backoff(attempt=0)
    if policy.allows_retry(retries_done=1, elapsed_seconds=2.5):
        ...
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import override

from ..protocols import RetryPolicy as RetryPolicyProtocol


@dataclass
class ExponentialBackoff(RetryPolicyProtocol):
    """Randomised exponential backoff bounded by a retry count and an elapsed budget.

    The wait before retry `attempt` (zero-based) is
    `min(max_interval, initial * multiplier**attempt)` scaled by a random factor in
    `[1 - randomization, 1 + randomization]`. A server `Retry-After` raises the
    wait to at least that many seconds. With `max_retries == 0` the elapsed budget
    is zero, so no retry is ever scheduled.
    """

    max_retries: int = 3
    initial_interval_seconds: float = 0.1
    multiplier: float = 2.0
    randomization_factor: float = 0.3
    max_interval_seconds: float = 10.0
    max_elapsed_seconds: float = 60.0
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if not 0.0 <= self.randomization_factor < 1.0:
            raise ValueError("randomization_factor must be in [0, 1)")

    @property
    def elapsed_budget_seconds(self) -> float:
        return 0.0 if self.max_retries == 0 else self.max_elapsed_seconds

    @override
    def compute_backoff(self, attempt: int, retry_after: float | None = None) -> float:
        """Compute backoff delay with optional Retry-After floor."""
        base = min(
            self.max_interval_seconds, self.initial_interval_seconds * (self.multiplier**attempt)
        )
        if self.randomization_factor > 0:
            low = 1.0 - self.randomization_factor
            high = 1.0 + self.randomization_factor
            base *= self.rng.uniform(low, high)
        if retry_after is not None:
            base = max(base, float(retry_after))
        return float(base)

    @override
    def allows_retry(self, retries_done: int, elapsed_seconds: float) -> bool:
        if retries_done >= self.max_retries:
            return False
        return elapsed_seconds < self.elapsed_budget_seconds
