"""Request executor: cache check, attempt loop, classification and cache update.

One logical call runs as a plain loop:

    CACHE_CHECK -> ATTEMPT -> SUCCESS | NOT_MODIFIED | AUTH_REFRESH | BACKOFF_WAIT | FAIL

`AUTH_REFRESH` happens at most once per call and does not consume the retry
budget. `BACKOFF_WAIT` loops back to `ATTEMPT` while the retry policy allows it
and the caller's deadline has time left. Every physical send gets a fresh
correlation id.

Usage example:
    from secret_store_client.infrastructure.executor import RequestExecutor, RequestSpec

    executor = RequestExecutor(transport=transport, credential=credential, retry_policy=policy)
    response = executor.execute(RequestSpec("GET", endpoints.namespaces()))
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from pydantic import JsonValue

from ..endpoints import Route
from ..exceptions import (
    ConfigurationError,
    ConsistencyError,
    CredentialError,
    RequestTimeoutError,
    SecretStoreError,
)
from ..models import Secret
from ..observability import NullMetricsSink, get_logger
from ..protocols import Credential, HttpTransport, MetricsSink, RetryPolicy
from .cache import ResourceKey, SecretCache
from .classify import Classification, Outcome, classify_response, classify_transport_error
from .http import REQUEST_ID_HEADER, HttpRequest, HttpResponse

logger = get_logger("secret_store_client.executor")

TRACE_ID_HEADER = "X-Trace-ID"
SPAN_ID_HEADER = "X-Span-ID"
IDEMPOTENCY_HEADER = "X-Idempotency-Key"


def _empty_headers() -> dict[str, str]:
    return {}


@dataclass(frozen=True)
class RequestSpec:
    """Descriptor of one logical operation handed to the executor.

    `conditional` marks a request whose caller supplied its own validator and
    handles a 304 itself. `retry=False` disables transient-failure retries.
    """

    method: str
    route: Route
    json_body: JsonValue = None
    headers: Mapping[str, str] = field(default_factory=_empty_headers)
    idempotency_key: str | None = None
    conditional: bool = False
    retry: bool = True
    deadline_seconds: float | None = None


@dataclass
class RequestAttempt:
    """Mutable state of one logical call. Discarded once the call ends."""

    started_at: float
    retry_count: int = 0
    refreshed: bool = False
    last_outcome: Outcome | None = None

    def elapsed(self, now: float) -> float:
        return now - self.started_at


class RequestExecutor:
    """Runs logical calls against the transport under retry, refresh and cache rules."""

    def __init__(
        self,
        *,
        transport: HttpTransport,
        credential: Credential,
        retry_policy: RetryPolicy,
        cache: SecretCache | None = None,
        metrics: MetricsSink | None = None,
        timeout_seconds: float = 30.0,
        deadline_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.credential = credential
        self.retry_policy = retry_policy
        self.cache = cache
        self.metrics = metrics or NullMetricsSink()
        self.timeout_seconds = timeout_seconds
        self.deadline_seconds = deadline_seconds
        self._sleep = sleep
        self._clock = clock

    def execute(self, spec: RequestSpec) -> HttpResponse:
        """Run an uncached call and return the successful response.

        Raises:
            SecretStoreError: The permanent failure that ended the call.
        """
        _, response = self._run(spec, cache_resolvable=False)
        return response

    def execute_cached(
        self,
        spec: RequestSpec,
        key: ResourceKey,
        decode: Callable[[HttpResponse], Secret],
        *,
        use_cache: bool = True,
    ) -> Secret:
        """Run a cache-eligible read.

        A live entry is returned without dispatch. Otherwise the request is sent,
        a 304 is answered from the cache, and a fresh secret is stored. With
        `use_cache=False` the cache is neither read nor written.
        """
        cache = self.cache if use_cache else None
        if cache is not None:
            entry = cache.get(key)
            if entry is not None:
                self.metrics.record_cache_hit(key.namespace)
                return entry.value
            self.metrics.record_cache_miss(key.namespace)

        outcome, response = self._run(spec, cache_resolvable=cache is not None)
        if outcome is Outcome.NOT_MODIFIED:
            entry = cache.peek(key) if cache is not None else None
            if entry is None:
                error = ConsistencyError(f"received 304 Not Modified for {key} with no cached entry")
                error.status_code = 304
                error.request_id = response.request_id
                raise self._fail(error)
            return entry.value

        try:
            secret = decode(response)
        except SecretStoreError as exc:
            self._record_error(exc)
            raise
        if cache is not None:
            cache.put(key, secret)
        return secret

    def _run(self, spec: RequestSpec, *, cache_resolvable: bool) -> tuple[Outcome, HttpResponse]:
        attempt = RequestAttempt(started_at=self._clock())
        deadline = spec.deadline_seconds if spec.deadline_seconds is not None else self.deadline_seconds

        while True:
            timeout = self._attempt_timeout(attempt, deadline)
            request = self._build_request(spec)
            retries_remaining = spec.retry and self.retry_policy.allows_retry(
                attempt.retry_count, attempt.elapsed(self._clock())
            )

            sent_at = self._clock()
            try:
                response = self.transport.send(request, timeout_seconds=timeout)
            except SecretStoreError as exc:
                error = exc
                if isinstance(exc, RequestTimeoutError) and self._deadline_passed(attempt, deadline):
                    error = RequestTimeoutError(
                        f"deadline of {deadline}s exceeded", deadline_exceeded=True
                    )
                    error.__cause__ = exc
                classification = classify_transport_error(error, retries_remaining=retries_remaining)
            else:
                self.metrics.record_request(
                    spec.method, spec.route.template, response.status_code, self._clock() - sent_at
                )
                classification = classify_response(
                    response,
                    cache_resolvable=cache_resolvable,
                    conditional=spec.conditional,
                    can_refresh=self.credential.supports_refresh(),
                    refresh_attempted=attempt.refreshed,
                    retries_remaining=retries_remaining,
                )
            attempt.last_outcome = classification.outcome

            match classification.outcome:
                case Outcome.SUCCESS | Outcome.NOT_MODIFIED:
                    return classification.outcome, response
                case Outcome.AUTH_EXPIRED:
                    self._refresh_credential(request)
                    attempt.refreshed = True
                case Outcome.RETRYABLE:
                    self._backoff(spec, attempt, classification, deadline)
                case Outcome.PERMANENT:
                    raise self._fail(_error_of(classification))

    def _build_request(self, spec: RequestSpec) -> HttpRequest:
        request_id = f"sdk-{uuid.uuid4()}"
        headers = {
            REQUEST_ID_HEADER: request_id,
            TRACE_ID_HEADER: request_id,
            SPAN_ID_HEADER: str(uuid.uuid4()),
        }
        headers.update(spec.headers)
        try:
            name, value = self.credential.header()
        except ConfigurationError as exc:
            self._record_error(exc)
            raise
        except Exception as exc:
            raise self._fail(CredentialError(f"credential could not produce a header: {exc}")) from exc
        headers[name] = value
        if spec.idempotency_key is not None:
            headers[IDEMPOTENCY_HEADER] = spec.idempotency_key
        return HttpRequest(spec.method, spec.route.url, headers, spec.json_body)

    def _refresh_credential(self, request: HttpRequest) -> None:
        logger.warning(
            "Credential rejected (req=%s); refreshing once", request.headers[REQUEST_ID_HEADER]
        )
        try:
            self.credential.refresh()
        except ConfigurationError as exc:
            self._record_error(exc)
            raise
        except Exception as exc:
            raise self._fail(CredentialError(f"credential refresh failed: {exc}")) from exc

    def _backoff(
        self,
        spec: RequestSpec,
        attempt: RequestAttempt,
        classification: Classification,
        deadline: float | None,
    ) -> None:
        error = _error_of(classification)
        delay = self.retry_policy.compute_backoff(attempt.retry_count, classification.retry_after)
        elapsed = attempt.elapsed(self._clock())
        if not self.retry_policy.allows_retry(attempt.retry_count, elapsed + delay):
            raise self._fail(error)
        if deadline is not None:
            delay = min(delay, max(0.0, deadline - elapsed))
        reason = str(error.status_code) if error.status_code is not None else type(error).__name__
        self.metrics.record_retry(attempt.retry_count + 1, reason)
        logger.debug(
            "Retrying %s %s in %.3fs (attempt %d, reason %s)",
            spec.method,
            spec.route.template,
            delay,
            attempt.retry_count + 1,
            reason,
        )
        self._sleep(delay)
        attempt.retry_count += 1

    def _attempt_timeout(self, attempt: RequestAttempt, deadline: float | None) -> float:
        if deadline is None:
            return self.timeout_seconds
        remaining = deadline - attempt.elapsed(self._clock())
        if remaining <= 0:
            raise self._fail(
                RequestTimeoutError(
                    f"deadline of {deadline}s exceeded after {attempt.retry_count} retries",
                    deadline_exceeded=True,
                )
            )
        return min(self.timeout_seconds, remaining)

    def _deadline_passed(self, attempt: RequestAttempt, deadline: float | None) -> bool:
        return deadline is not None and attempt.elapsed(self._clock()) >= deadline

    def _record_error(self, error: SecretStoreError) -> None:
        self.metrics.record_error(str(error.kind))

    def _fail(self, error: SecretStoreError) -> SecretStoreError:
        self._record_error(error)
        return error


def _error_of(classification: Classification) -> SecretStoreError:
    if classification.error is None:
        raise RuntimeError(f"{classification.outcome} classification carries no error")
    return classification.error
