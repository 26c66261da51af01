"""Tests for request options and response models."""

import pytest
from pydantic import ValidationError

from secret_store_client.models import (
    ApiKeyInfo,
    AuditQuery,
    BatchKeys,
    BatchOperation,
    CreateApiKeyRequest,
    ExportFormat,
    ListSecretsResult,
    NamespaceTemplate,
    Secret,
)


def test_batch_keys_constructors() -> None:
    assert BatchKeys.of("a", "b") == BatchKeys(keys=("a", "b"), wildcard=False)
    assert BatchKeys.all().wildcard is True


def test_batch_operation_payloads() -> None:
    assert BatchOperation.delete("k").to_payload() == {"action": "delete", "key": "k"}
    put = BatchOperation.put("k", "v").with_ttl(30).with_metadata({"a": 1})
    assert put.to_payload() == {
        "action": "put",
        "key": "k",
        "value": "v",
        "ttl_seconds": 30,
        "metadata": {"a": 1},
    }


def test_export_format_structured_flag() -> None:
    assert ExportFormat.JSON.is_structured
    assert not ExportFormat.DOCKER_COMPOSE.is_structured
    assert ExportFormat("docker-compose") is ExportFormat.DOCKER_COMPOSE


def test_namespace_template_payload_keeps_template_name() -> None:
    template = NamespaceTemplate("redis", {"template": "ignored", "port": 6379})
    assert template.to_payload() == {"template": "redis", "port": 6379}


def test_audit_query_params_skip_unset_values() -> None:
    assert AuditQuery().to_params() == []
    query = AuditQuery(actor="alice", from_time="2024-01-01T00:00:00Z", success=False)
    assert query.to_params() == [
        ("actor", "alice"),
        ("from", "2024-01-01T00:00:00Z"),
        ("success", "false"),
    ]


def test_create_api_key_payload() -> None:
    request = CreateApiKeyRequest(
        name="ci", expires_at="2025-01-01T00:00:00Z", namespaces=("prod",), permissions=("read",)
    )
    assert request.to_payload() == {
        "name": "ci",
        "namespaces": ["prod"],
        "permissions": ["read"],
        "expires_at": "2025-01-01T00:00:00Z",
    }


def test_list_secrets_result_reads_version_alias() -> None:
    result = ListSecretsResult.model_validate(
        {
            "namespace": "prod",
            "secrets": [{"key": "a", "ver": 4, "updated_at": "2024-01-01T00:00:00Z"}],
            "total": 1,
            "limit": 100,
            "has_more": False,
            "future_field": "ignored",
        }
    )
    assert result.secrets[0].version == 4


def test_response_models_are_frozen() -> None:
    info = ApiKeyInfo.model_validate({"id": "k1", "name": "ci"})
    with pytest.raises(ValidationError):
        info.name = "other"  # type: ignore[misc]


def test_secret_value_is_masked() -> None:
    secret = Secret.model_validate(
        {
            "namespace": "prod",
            "key": "db",
            "value": "s3cr3t",
            "version": 1,
            "updated_at": "2024-01-01T00:00:00Z",
        }
    )
    assert "s3cr3t" not in str(secret)
    assert secret.value.get_secret_value() == "s3cr3t"
