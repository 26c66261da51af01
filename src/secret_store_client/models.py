"""Request options and typed response models for the secret store API.

Options are frozen dataclasses built by callers. Responses are frozen pydantic
models validated straight from the JSON body. Unknown fields are ignored, so
newer servers stay compatible.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, JsonValue, SecretStr

# ---------------------------------------------------------------------------
# Request options
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GetOptions:
    """Options for reading a secret.

    `use_cache=False` bypasses the cache for this call: it always dispatches and
    the response is not stored.
    """

    use_cache: bool = True
    if_none_match: str | None = None
    if_modified_since: str | None = None
    deadline_seconds: float | None = None


@dataclass(frozen=True)
class PutOptions:
    """Options for creating or updating a secret."""

    ttl_seconds: int | None = None
    metadata: JsonValue = None
    idempotency_key: str | None = None
    deadline_seconds: float | None = None


@dataclass(frozen=True)
class ListOptions:
    """Filters for listing secrets."""

    prefix: str | None = None
    limit: int | None = None


class ExportFormat(StrEnum):
    """Payload formats for batch reads and environment export."""

    JSON = "json"
    DOTENV = "dotenv"
    SHELL = "shell"
    DOCKER_COMPOSE = "docker-compose"

    @property
    def is_structured(self) -> bool:
        return self is ExportFormat.JSON


@dataclass(frozen=True)
class BatchKeys:
    """Selection of keys for a batch read: explicit keys or every key."""

    keys: tuple[str, ...] = ()
    wildcard: bool = False

    @classmethod
    def of(cls, *keys: str) -> Self:
        return cls(keys=tuple(keys))

    @classmethod
    def all(cls) -> Self:
        return cls(wildcard=True)


@dataclass(frozen=True)
class BatchOperation:
    """One put or delete inside a batch."""

    action: Literal["put", "delete"]
    key: str
    value: str | None = None
    ttl_seconds: int | None = None
    metadata: JsonValue = None

    @classmethod
    def put(cls, key: str, value: str) -> Self:
        return cls(action="put", key=key, value=value)

    @classmethod
    def delete(cls, key: str) -> Self:
        return cls(action="delete", key=key)

    def with_ttl(self, ttl_seconds: int) -> Self:
        return replace(self, ttl_seconds=ttl_seconds)

    def with_metadata(self, metadata: JsonValue) -> Self:
        return replace(self, metadata=metadata)

    def to_payload(self) -> dict[str, JsonValue]:
        payload: dict[str, JsonValue] = {"action": self.action, "key": self.key}
        if self.value is not None:
            payload["value"] = self.value
        if self.ttl_seconds is not None:
            payload["ttl_seconds"] = self.ttl_seconds
        if self.metadata is not None:
            payload["metadata"] = self.metadata
        return payload


@dataclass(frozen=True)
class ExportOptions:
    """Options for exporting a namespace as environment variables."""

    format: ExportFormat = ExportFormat.JSON
    if_none_match: str | None = None


def _empty_params() -> dict[str, JsonValue]:
    return {}


@dataclass(frozen=True)
class NamespaceTemplate:
    """Template used to seed a new namespace."""

    template: str
    params: dict[str, JsonValue] = field(default_factory=_empty_params)

    def to_payload(self) -> dict[str, JsonValue]:
        return {**self.params, "template": self.template}


@dataclass(frozen=True)
class AuditQuery:
    """Filters for the audit log. Times are ISO 8601 strings."""

    namespace: str | None = None
    actor: str | None = None
    action: str | None = None
    from_time: str | None = None
    to_time: str | None = None
    success: bool | None = None
    limit: int | None = None
    offset: int | None = None

    def to_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        for name, value in (
            ("namespace", self.namespace),
            ("actor", self.actor),
            ("action", self.action),
            ("from", self.from_time),
            ("to", self.to_time),
        ):
            if value is not None:
                params.append((name, value))
        if self.success is not None:
            params.append(("success", "true" if self.success else "false"))
        if self.limit is not None:
            params.append(("limit", str(self.limit)))
        if self.offset is not None:
            params.append(("offset", str(self.offset)))
        return params


def _empty_strings() -> tuple[str, ...]:
    return ()


@dataclass(frozen=True)
class CreateApiKeyRequest:
    """Parameters for a new API key."""

    name: str
    expires_at: str | None = None
    namespaces: tuple[str, ...] = field(default_factory=_empty_strings)
    permissions: tuple[str, ...] = field(default_factory=_empty_strings)
    metadata: JsonValue = None

    def to_payload(self) -> dict[str, JsonValue]:
        payload: dict[str, JsonValue] = {
            "name": self.name,
            "namespaces": list(self.namespaces),
            "permissions": list(self.permissions),
        }
        if self.expires_at is not None:
            payload["expires_at"] = self.expires_at
        if self.metadata is not None:
            payload["metadata"] = self.metadata
        return payload


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class _ResponseModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Secret(_ResponseModel):
    """A secret value with its metadata.

    The value is a `SecretStr`; call `value.get_secret_value()` to read it.
    `etag` and `last_modified` come from response headers and can be fed back as
    conditional request validators. Values served from the cache carry no
    `request_id`.
    """

    namespace: str
    key: str
    value: SecretStr
    version: int
    expires_at: datetime | None = None
    metadata: JsonValue = None
    updated_at: datetime
    etag: str | None = None
    last_modified: str | None = None
    request_id: str | None = None


class SecretKeyInfo(_ResponseModel):
    key: str
    version: int = Field(alias="ver")
    updated_at: str
    kid: str | None = None


class PutResult(_ResponseModel):
    message: str
    namespace: str
    key: str
    created_at: str
    request_id: str | None = None


@dataclass(frozen=True)
class DeleteResult:
    deleted: bool
    request_id: str | None = None


class ListSecretsResult(_ResponseModel):
    namespace: str
    secrets: list[SecretKeyInfo]
    total: int
    limit: int
    has_more: bool
    request_id: str | None = None


class BatchGetJsonResult(_ResponseModel):
    namespace: str
    secrets: dict[str, str]
    missing: list[str] = Field(default_factory=list)
    total: int
    request_id: str | None = None


type BatchGetResult = BatchGetJsonResult | str


class BatchOperationOutcome(_ResponseModel):
    key: str
    action: str
    success: bool
    error: str | None = None


class BatchResultSummary(_ResponseModel):
    succeeded: list[BatchOperationOutcome]
    failed: list[BatchOperationOutcome]
    total: int


class BatchOperateResult(_ResponseModel):
    """Per-item summary of a batch. Transactional batches never return partial failures."""

    namespace: str
    results: BatchResultSummary
    success_rate: float
    transactional: bool = False
    request_id: str | None = None

    @property
    def all_succeeded(self) -> bool:
        return not self.results.failed


class EnvJsonExport(_ResponseModel):
    namespace: str
    environment: dict[str, str]
    etag: str | None = None
    total: int
    request_id: str | None = None


type EnvExport = EnvJsonExport | str


class NamespaceListItem(_ResponseModel):
    name: str
    created_at: str
    updated_at: str
    secret_count: int


class ListNamespacesResult(_ResponseModel):
    namespaces: list[NamespaceListItem]
    total: int
    request_id: str | None = None


class NamespaceInfo(_ResponseModel):
    name: str
    created_at: str
    updated_at: str
    secret_count: int
    total_size: int
    metadata: JsonValue = None
    request_id: str | None = None


class InitNamespaceResult(_ResponseModel):
    message: str
    namespace: str
    secrets_created: int
    request_id: str | None = None


class DeleteNamespaceResult(_ResponseModel):
    namespace: str
    secrets_deleted: int = 0
    message: str | None = None
    request_id: str | None = None


class VersionInfo(_ResponseModel):
    version: int
    created_at: str
    created_by: str
    comment: str | None = None
    is_current: bool


class VersionList(_ResponseModel):
    namespace: str
    key: str
    versions: list[VersionInfo]
    total: int
    request_id: str | None = None


class RollbackResult(_ResponseModel):
    message: str
    namespace: str
    key: str
    from_version: int
    to_version: int
    request_id: str | None = None


class AuditEntry(_ResponseModel):
    id: int
    timestamp: str
    actor: str | None = None
    action: str
    namespace: str | None = None
    key_name: str | None = None
    success: bool
    ip_address: str | None = None
    user_agent: str | None = None
    error: str | None = None


class AuditResult(_ResponseModel):
    entries: list[AuditEntry] = Field(alias="logs")
    total: int
    limit: int
    offset: int
    has_more: bool
    request_id: str | None = None


class ApiKeyInfo(_ResponseModel):
    """API key metadata. `key` is only present in the creation response."""

    id: str
    name: str
    key: SecretStr | None = None
    prefix: str | None = None
    namespaces: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    active: bool = True
    created_at: str | None = None
    expires_at: str | None = None
    last_used_at: str | None = None
    metadata: JsonValue = None
    request_id: str | None = None


class ListApiKeysResult(_ResponseModel):
    keys: list[ApiKeyInfo]
    total: int
    request_id: str | None = None


class RevokeApiKeyResult(_ResponseModel):
    key_id: str
    revoked: bool = True
    message: str | None = None
    request_id: str | None = None


class BuildInfo(_ResponseModel):
    commit: str
    timestamp: str


class EndpointInfo(_ResponseModel):
    base_url: str
    health_url: str
    metrics_url: str


class Discovery(_ResponseModel):
    service: str
    version: str
    api_version: str
    features: list[str]
    build: BuildInfo
    endpoints: EndpointInfo


class HealthCheck(_ResponseModel):
    status: str
    duration_ms: int | None = None
    message: str | None = None


class HealthStatus(_ResponseModel):
    status: str
    checks: dict[str, HealthCheck] = Field(default_factory=dict)
    request_id: str | None = None
