"""Tests for URL construction."""

import pytest

from secret_store_client.endpoints import API_PREFIX, Endpoints, encode_segment

ENDPOINTS = Endpoints("https://secrets.example.com/")
API = "https://secrets.example.com/api/v2"


@pytest.mark.parametrize(
    ("segment", "expected"),
    [
        ("db-password", "db-password"),
        ("app/db", "app%2Fdb"),
        ("my key", "my%20key"),
        ("a?b#c", "a%3Fb%23c"),
        ("100%", "100%25"),
    ],
)
def test_encode_segment(segment: str, expected: str) -> None:
    assert encode_segment(segment) == expected


def test_secret_route_encodes_segments_and_keeps_template() -> None:
    route = ENDPOINTS.secret("prod ns", "app/db")

    assert route.url == f"{API}/secrets/prod%20ns/app%2Fdb"
    assert route.template == "/api/v2/secrets/{namespace}/{key}"


def test_template_does_not_vary_with_keys() -> None:
    assert ENDPOINTS.secret("a", "b").template == ENDPOINTS.secret("c", "d/e").template


def test_secrets_listing_query() -> None:
    assert ENDPOINTS.secrets("prod").url == f"{API}/secrets/prod"
    assert ENDPOINTS.secrets("prod", prefix="db", limit=5).url == (
        f"{API}/secrets/prod?prefix=db&limit=5"
    )


def test_batch_query_prefers_wildcard() -> None:
    route = ENDPOINTS.batch("prod", keys=("a", "b"), wildcard=True, format="json")
    assert route.url == f"{API}/secrets/prod/batch?wildcard=true&format=json"


def test_version_routes() -> None:
    assert ENDPOINTS.versions("prod", "k").url == f"{API}/secrets/prod/k/versions"
    assert ENDPOINTS.version("prod", "k", 3).url == f"{API}/secrets/prod/k/versions/3"
    assert ENDPOINTS.rollback("prod", "k", 2).url == f"{API}/secrets/prod/k/rollback/2"
    assert ENDPOINTS.version("prod", "k", 3).template == (
        "/api/v2/secrets/{namespace}/{key}/versions/{version}"
    )


def test_namespace_and_admin_routes() -> None:
    assert ENDPOINTS.namespaces().url == f"{API}/namespaces"
    assert ENDPOINTS.namespace("prod").url == f"{API}/namespaces/prod"
    assert ENDPOINTS.namespace_init("prod").url == f"{API}/namespaces/prod/init"
    assert ENDPOINTS.env("prod", format="shell").url == f"{API}/env/prod?format=shell"
    assert ENDPOINTS.api_keys().url == f"{API}/api-keys"
    assert ENDPOINTS.api_key("k/1").url == f"{API}/api-keys/k%2F1"
    assert ENDPOINTS.audit([("actor", "alice")]).url == f"{API}/audit?actor=alice"


def test_discovery_and_health_routes_are_prefixed() -> None:
    assert ENDPOINTS.discovery().url == API
    assert ENDPOINTS.livez().url == f"{API}/livez"
    assert ENDPOINTS.readyz().url == f"{API}/readyz"
    assert ENDPOINTS.metrics().url == f"{API}/metrics"
    assert ENDPOINTS.metrics().template == f"{API_PREFIX}/metrics"
