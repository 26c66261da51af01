"""URL construction for the secret store API.

Every path segment is percent-encoded, including `/` and spaces, so keys such as
`app/db password` address a single resource.

Usage example:
    from secret_store_client.endpoints import Endpoints

    endpoints = Endpoints("https://secrets.example.com")
    route = endpoints.secret("prod", "db/password")
    print(route.url)       # https://secrets.example.com/api/v2/secrets/prod/db%2Fpassword
    print(route.template)  # /api/v2/secrets/{namespace}/{key}
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import quote, urlencode

API_PREFIX = "/api/v2"


def encode_segment(segment: str) -> str:
    return quote(segment, safe="")


@dataclass(frozen=True)
class Route:
    """A concrete URL plus the low-cardinality template used as a metrics label."""

    url: str
    template: str


@dataclass(frozen=True)
class Endpoints:
    base_url: str

    def _route(
        self,
        template: str,
        segments: Sequence[str],
        query: Sequence[tuple[str, str]] | None = None,
    ) -> Route:
        path = template
        for segment in segments:
            start = path.index("{")
            end = path.index("}", start)
            path = path[:start] + encode_segment(segment) + path[end + 1 :]
        url = f"{self.base_url.rstrip('/')}{API_PREFIX}{path}"
        if query:
            url = f"{url}?{urlencode(list(query))}"
        return Route(url=url, template=f"{API_PREFIX}{template}")

    def secret(self, namespace: str, key: str) -> Route:
        return self._route("/secrets/{namespace}/{key}", (namespace, key))

    def secrets(self, namespace: str, *, prefix: str | None = None, limit: int | None = None) -> Route:
        query: list[tuple[str, str]] = []
        if prefix is not None:
            query.append(("prefix", prefix))
        if limit is not None:
            query.append(("limit", str(limit)))
        return self._route("/secrets/{namespace}", (namespace,), query)

    def batch(
        self,
        namespace: str,
        *,
        keys: Sequence[str] = (),
        wildcard: bool = False,
        format: str | None = None,
    ) -> Route:
        query: list[tuple[str, str]] = []
        if wildcard:
            query.append(("wildcard", "true"))
        elif keys:
            query.append(("keys", ",".join(keys)))
        if format is not None:
            query.append(("format", format))
        return self._route("/secrets/{namespace}/batch", (namespace,), query)

    def versions(self, namespace: str, key: str) -> Route:
        return self._route("/secrets/{namespace}/{key}/versions", (namespace, key))

    def version(self, namespace: str, key: str, version: int) -> Route:
        return self._route(
            "/secrets/{namespace}/{key}/versions/{version}", (namespace, key, str(version))
        )

    def rollback(self, namespace: str, key: str, version: int) -> Route:
        return self._route(
            "/secrets/{namespace}/{key}/rollback/{version}", (namespace, key, str(version))
        )

    def namespaces(self) -> Route:
        return self._route("/namespaces", ())

    def namespace(self, namespace: str) -> Route:
        return self._route("/namespaces/{namespace}", (namespace,))

    def namespace_init(self, namespace: str) -> Route:
        return self._route("/namespaces/{namespace}/init", (namespace,))

    def env(self, namespace: str, *, format: str | None = None) -> Route:
        query = [("format", format)] if format is not None else None
        return self._route("/env/{namespace}", (namespace,), query)

    def audit(self, query: Sequence[tuple[str, str]] = ()) -> Route:
        return self._route("/audit", (), query)

    def api_keys(self) -> Route:
        return self._route("/api-keys", ())

    def api_key(self, key_id: str) -> Route:
        return self._route("/api-keys/{key_id}", (key_id,))

    def discovery(self) -> Route:
        return self._route("", ())

    def livez(self) -> Route:
        return self._route("/livez", ())

    def readyz(self) -> Route:
        return self._route("/readyz", ())

    def metrics(self) -> Route:
        return self._route("/metrics", ())
