"""Public client for the secret store API.

Each method builds one `RequestSpec`, hands it to the `RequestExecutor`, and maps
the response into a typed model. Mutations invalidate the affected cache entries
before the request is dispatched.

Usage example:
    from secret_store_client.auth import bearer
    from secret_store_client.composition import build_client
    from secret_store_client.config import ClientConfig
    from secret_store_client.models import GetOptions

    config = ClientConfig(base_url="https://secrets.example.com")
    with build_client(config, bearer("token")) as client:
        client.put_secret("prod", "db-password", "s3cr3t")
        secret = client.get_secret("prod", "db-password", GetOptions(use_cache=False))
        print(secret.value.get_secret_value())
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import partial
from types import TracebackType
from typing import Self

from pydantic import BaseModel, JsonValue, SecretStr

from .endpoints import Endpoints
from .exceptions import BatchTransactionError, NotModifiedError
from .infrastructure.cache import CacheStatistics, ResourceKey, SecretCache
from .infrastructure.executor import RequestExecutor, RequestSpec
from .infrastructure.http import HttpResponse, decode_json_as
from .io_validation import SecretBodyInput
from .models import (
    ApiKeyInfo,
    AuditQuery,
    AuditResult,
    BatchGetJsonResult,
    BatchGetResult,
    BatchKeys,
    BatchOperateResult,
    BatchOperation,
    CreateApiKeyRequest,
    DeleteNamespaceResult,
    DeleteResult,
    Discovery,
    EnvExport,
    EnvJsonExport,
    ExportFormat,
    ExportOptions,
    GetOptions,
    HealthStatus,
    InitNamespaceResult,
    ListApiKeysResult,
    ListNamespacesResult,
    ListOptions,
    ListSecretsResult,
    NamespaceInfo,
    NamespaceTemplate,
    PutOptions,
    PutResult,
    RevokeApiKeyResult,
    RollbackResult,
    Secret,
    VersionList,
)
from .observability import get_logger
from .protocols import HttpTransport

logger = get_logger("secret_store_client.client")

METRICS_TOKEN_HEADER = "X-Metrics-Token"


class SecretStoreClient:
    """Thread-safe client; share one instance across threads.

    Build it with `composition.build_client`, which wires the transport, the
    credential, the retry policy and the cache from a `ClientConfig`.
    """

    def __init__(
        self,
        *,
        executor: RequestExecutor,
        endpoints: Endpoints,
        transport: HttpTransport,
        cache: SecretCache | None = None,
    ) -> None:
        self._executor = executor
        self._endpoints = endpoints
        self._transport = transport
        self._cache = cache

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    def get_secret(self, namespace: str, key: str, options: GetOptions | None = None) -> Secret:
        """Read a secret, serving it from the cache when a live entry exists.

        Raises:
            ApiError: For service failures, e.g. `is_not_found` for a missing key.
            ConsistencyError: When the service answers 304 and no cached copy exists.
        """
        options = options or GetOptions()
        headers: dict[str, str] = {}
        if options.if_none_match is not None:
            headers["If-None-Match"] = options.if_none_match
        if options.if_modified_since is not None:
            headers["If-Modified-Since"] = options.if_modified_since
        spec = RequestSpec(
            "GET",
            self._endpoints.secret(namespace, key),
            headers=headers,
            deadline_seconds=options.deadline_seconds,
        )
        return self._executor.execute_cached(
            spec,
            ResourceKey(namespace, key),
            partial(_decode_secret, namespace, key),
            use_cache=options.use_cache,
        )

    def put_secret(
        self,
        namespace: str,
        key: str,
        value: SecretStr | str,
        options: PutOptions | None = None,
    ) -> PutResult:
        """Create or update a secret."""
        options = options or PutOptions()
        self._invalidate_resource(namespace, key)
        raw = value.get_secret_value() if isinstance(value, SecretStr) else value
        body: dict[str, JsonValue] = {"value": raw}
        if options.ttl_seconds is not None:
            body["ttl_seconds"] = options.ttl_seconds
        if options.metadata is not None:
            body["metadata"] = options.metadata
        spec = RequestSpec(
            "PUT",
            self._endpoints.secret(namespace, key),
            json_body=body,
            idempotency_key=options.idempotency_key,
            deadline_seconds=options.deadline_seconds,
        )
        return self._json(spec, PutResult)

    def delete_secret(self, namespace: str, key: str) -> DeleteResult:
        """Delete a secret. `deleted` is True only for a 204 response."""
        self._invalidate_resource(namespace, key)
        response = self._executor.execute(
            RequestSpec("DELETE", self._endpoints.secret(namespace, key))
        )
        return DeleteResult(deleted=response.status_code == 204, request_id=response.request_id)

    def list_secrets(self, namespace: str, options: ListOptions | None = None) -> ListSecretsResult:
        options = options or ListOptions()
        route = self._endpoints.secrets(namespace, prefix=options.prefix, limit=options.limit)
        return self._json(RequestSpec("GET", route), ListSecretsResult)

    def batch_get(
        self,
        namespace: str,
        keys: BatchKeys,
        format: ExportFormat = ExportFormat.JSON,
    ) -> BatchGetResult:
        """Read several secrets at once. Non-JSON formats come back as raw text."""
        route = self._endpoints.batch(
            namespace, keys=keys.keys, wildcard=keys.wildcard, format=format.value
        )
        response = self._executor.execute(RequestSpec("GET", route))
        if format.is_structured:
            return _with_request_id(decode_json_as(BatchGetJsonResult, response), response)
        return response.text

    def batch_operate(
        self,
        namespace: str,
        operations: Sequence[BatchOperation],
        *,
        transactional: bool = False,
        idempotency_key: str | None = None,
    ) -> BatchOperateResult:
        """Apply several puts and deletes in one request.

        Non-transactional batches return a per-item summary, partial failures
        included. A transactional batch reporting any failed item raises.

        Raises:
            BatchTransactionError: Transactional batch with at least one failure.
        """
        for operation in operations:
            self._invalidate_resource(namespace, operation.key)
        body: dict[str, JsonValue] = {
            "operations": [operation.to_payload() for operation in operations],
            "transactional": transactional,
        }
        spec = RequestSpec(
            "POST",
            self._endpoints.batch(namespace),
            json_body=body,
            idempotency_key=idempotency_key,
        )
        result = self._json(spec, BatchOperateResult).model_copy(
            update={"transactional": transactional}
        )
        if transactional and result.results.failed:
            error = BatchTransactionError(result)
            error.request_id = result.request_id
            self._executor.metrics.record_error(str(error.kind))
            raise error
        return result

    def export_env(self, namespace: str, options: ExportOptions | None = None) -> EnvExport:
        """Export a namespace as environment variables.

        Raises:
            NotModifiedError: When `if_none_match` still matches the export.
        """
        options = options or ExportOptions()
        headers: dict[str, str] = {}
        if options.if_none_match is not None:
            headers["If-None-Match"] = options.if_none_match
        spec = RequestSpec(
            "GET",
            self._endpoints.env(namespace, format=options.format.value),
            headers=headers,
            conditional=options.if_none_match is not None,
        )
        response = self._executor.execute(spec)
        if response.status_code == 304:
            error = NotModifiedError("Environment export not modified", response.request_id)
            self._executor.metrics.record_error(str(error.kind))
            raise error
        if not options.format.is_structured:
            return response.text
        export = _with_request_id(decode_json_as(EnvJsonExport, response), response)
        if export.etag is None and response.header("ETag") is not None:
            export = export.model_copy(update={"etag": response.header("ETag")})
        return export

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def list_versions(self, namespace: str, key: str) -> VersionList:
        return self._json(RequestSpec("GET", self._endpoints.versions(namespace, key)), VersionList)

    def get_version(self, namespace: str, key: str, version: int, *, use_cache: bool = True) -> Secret:
        """Read one historical version. Cached separately from the current value."""
        spec = RequestSpec("GET", self._endpoints.version(namespace, key, version))
        return self._executor.execute_cached(
            spec,
            ResourceKey(namespace, key, version),
            partial(_decode_secret, namespace, key),
            use_cache=use_cache,
        )

    def rollback(self, namespace: str, key: str, version: int) -> RollbackResult:
        self._invalidate_resource(namespace, key)
        spec = RequestSpec("POST", self._endpoints.rollback(namespace, key, version), json_body={})
        return self._json(spec, RollbackResult)

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def list_namespaces(self) -> ListNamespacesResult:
        return self._json(RequestSpec("GET", self._endpoints.namespaces()), ListNamespacesResult)

    def get_namespace(self, namespace: str) -> NamespaceInfo:
        return self._json(RequestSpec("GET", self._endpoints.namespace(namespace)), NamespaceInfo)

    def init_namespace(
        self,
        namespace: str,
        template: NamespaceTemplate,
        *,
        idempotency_key: str | None = None,
    ) -> InitNamespaceResult:
        """Seed a namespace from a template. Cached entries of the namespace are dropped."""
        self._invalidate_namespace(namespace)
        spec = RequestSpec(
            "POST",
            self._endpoints.namespace_init(namespace),
            json_body=template.to_payload(),
            idempotency_key=idempotency_key,
        )
        return self._json(spec, InitNamespaceResult)

    def delete_namespace(
        self, namespace: str, *, idempotency_key: str | None = None
    ) -> DeleteNamespaceResult:
        """Delete a namespace and all of its secrets.

        Only this namespace's cache entries are dropped; statistics are kept.
        """
        self._invalidate_namespace(namespace)
        spec = RequestSpec(
            "DELETE", self._endpoints.namespace(namespace), idempotency_key=idempotency_key
        )
        response = self._executor.execute(spec)
        if not response.body:
            return DeleteNamespaceResult(namespace=namespace, request_id=response.request_id)
        return _with_request_id(decode_json_as(DeleteNamespaceResult, response), response)

    # ------------------------------------------------------------------
    # Audit, API keys, discovery and health
    # ------------------------------------------------------------------

    def audit(self, query: AuditQuery | None = None) -> AuditResult:
        query = query or AuditQuery()
        return self._json(RequestSpec("GET", self._endpoints.audit(query.to_params())), AuditResult)

    def list_api_keys(self) -> ListApiKeysResult:
        return self._json(RequestSpec("GET", self._endpoints.api_keys()), ListApiKeysResult)

    def create_api_key(
        self, request: CreateApiKeyRequest, *, idempotency_key: str | None = None
    ) -> ApiKeyInfo:
        """Create an API key. The returned `key` is only ever shown once."""
        spec = RequestSpec(
            "POST",
            self._endpoints.api_keys(),
            json_body=request.to_payload(),
            idempotency_key=idempotency_key,
        )
        return self._json(spec, ApiKeyInfo)

    def get_api_key(self, key_id: str) -> ApiKeyInfo:
        return self._json(RequestSpec("GET", self._endpoints.api_key(key_id)), ApiKeyInfo)

    def revoke_api_key(self, key_id: str) -> RevokeApiKeyResult:
        return self._json(RequestSpec("DELETE", self._endpoints.api_key(key_id)), RevokeApiKeyResult)

    def discovery(self) -> Discovery:
        return self._json(RequestSpec("GET", self._endpoints.discovery()), Discovery)

    def livez(self) -> None:
        """Liveness probe. Raises on any failure; never retried."""
        self._executor.execute(RequestSpec("GET", self._endpoints.livez(), retry=False))

    def readyz(self) -> HealthStatus:
        """Readiness probe. Never retried."""
        return self._json(RequestSpec("GET", self._endpoints.readyz(), retry=False), HealthStatus)

    def metrics(self, metrics_token: str | None = None) -> str:
        """Fetch the service metrics exposition as text. Never retried."""
        headers = {METRICS_TOKEN_HEADER: metrics_token} if metrics_token is not None else {}
        spec = RequestSpec("GET", self._endpoints.metrics(), headers=headers, retry=False)
        return self._executor.execute(spec).text

    # ------------------------------------------------------------------
    # Cache administration
    # ------------------------------------------------------------------

    def cache_stats(self) -> CacheStatistics:
        """Snapshot of cache counters. All zero when caching is disabled."""
        if self._cache is None:
            return CacheStatistics()
        return self._cache.statistics()

    def clear_cache(self) -> None:
        """Drop every cached entry and reset the statistics."""
        if self._cache is not None:
            self._cache.invalidate_all()

    def invalidate_cache(self, namespace: str, key: str) -> None:
        self._invalidate_resource(namespace, key)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------

    def _json[ModelT: BaseModel](self, spec: RequestSpec, schema: type[ModelT]) -> ModelT:
        response = self._executor.execute(spec)
        return _with_request_id(decode_json_as(schema, response), response)

    def _invalidate_resource(self, namespace: str, key: str) -> None:
        if self._cache is None:
            return
        removed = self._cache.invalidate_resource(namespace, key)
        if removed:
            logger.debug("Invalidated %d cache entries for %s/%s", removed, namespace, key)

    def _invalidate_namespace(self, namespace: str) -> None:
        if self._cache is None:
            return
        removed = self._cache.invalidate_namespace(namespace)
        if removed:
            logger.debug("Invalidated %d cache entries in namespace %s", removed, namespace)


def _decode_secret(namespace: str, key: str, response: HttpResponse) -> Secret:
    body = decode_json_as(SecretBodyInput, response)
    return Secret(
        namespace=namespace,
        key=key,
        value=SecretStr(body["value"]),
        version=body["version"],
        expires_at=body.get("expires_at"),
        metadata=body.get("metadata"),
        updated_at=body["updated_at"],
        etag=response.header("ETag"),
        last_modified=response.header("Last-Modified"),
        request_id=response.request_id,
    )


def _with_request_id[ModelT: BaseModel](model: ModelT, response: HttpResponse) -> ModelT:
    if "request_id" not in type(model).model_fields:
        return model
    if getattr(model, "request_id") is not None or response.request_id is None:
        return model
    return model.model_copy(update={"request_id": response.request_id})
