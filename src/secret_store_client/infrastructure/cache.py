"""In-process secret cache with LRU eviction and expiry accounting.

Usage example:
    from secret_store_client.infrastructure.cache import ResourceKey, SecretCache

    cache = SecretCache(max_entries=1000, default_ttl_seconds=300)
    cache.put(ResourceKey("prod", "db-password"), secret)
    entry = cache.get(ResourceKey("prod", "db-password"))
    print(cache.statistics().hit_rate)
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from ..models import Secret
from ..observability import get_logger

logger = get_logger("secret_store_client.cache")


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ResourceKey:
    """Logical identity of a cached secret. `version` is set for versioned reads."""

    namespace: str
    key: str
    version: int | None = None

    def __str__(self) -> str:
        base = f"{self.namespace}/{self.key}"
        return base if self.version is None else f"{base}@{self.version}"


@dataclass(frozen=True)
class CacheEntry:
    value: Secret
    version: int
    validator: str | None
    resource_expiry: datetime | None
    cache_expiry: datetime
    last_modified: str | None = None

    def is_expired(self, now: datetime) -> bool:
        if now >= self.cache_expiry:
            return True
        return self.resource_expiry is not None and now >= self.resource_expiry


@dataclass
class CacheStatistics:
    """Counters for cache activity. `hit_rate` is a fraction in [0, 1]."""

    hits: int = 0
    misses: int = 0
    insertions: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def snapshot(self) -> CacheStatistics:
        return replace(self)

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.insertions = 0
        self.evictions = 0
        self.expirations = 0


@dataclass
class SecretCache:
    """Bounded LRU cache of secrets keyed by `ResourceKey`.

    All operations take one lock, so entries and counters stay consistent when
    many threads share a client. Expired entries are removed lazily on read.
    """

    max_entries: int = 10_000
    default_ttl_seconds: float = 300.0
    now: Callable[[], datetime] = _utc_now
    _entries: OrderedDict[ResourceKey, CacheEntry] = field(
        default_factory=OrderedDict, init=False, repr=False
    )
    _stats: CacheStatistics = field(default_factory=CacheStatistics, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_entries < 1:
            raise ValueError("max_entries must be at least 1")

    def get(self, key: ResourceKey) -> CacheEntry | None:
        """Return the live entry for `key`, counting a hit, a miss or an expiration."""
        now = self.now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                logger.debug("Cache entry expired: %s", key)
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry

    def peek(self, key: ResourceKey) -> CacheEntry | None:
        """Return the live entry for `key` without touching counters or recency."""
        now = self.now()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    def put(self, key: ResourceKey, value: Secret, *, ttl_seconds: float | None = None) -> CacheEntry:
        """Insert or replace the entry for `key`.

        The cache lifetime is `ttl_seconds` (default TTL when omitted), doubled when
        the secret carries an ETag. The secret's own `expires_at` bounds the entry too.
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if value.etag is not None:
            ttl *= 2
        now = self.now()
        entry = CacheEntry(
            value=value,
            version=value.version,
            validator=value.etag,
            resource_expiry=value.expires_at,
            cache_expiry=now + timedelta(seconds=ttl),
            last_modified=value.last_modified,
        )
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                logger.debug("Cache entry evicted: %s", evicted)
            self._entries[key] = entry
            self._stats.insertions += 1
        return entry

    def invalidate(self, key: ResourceKey) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_resource(self, namespace: str, key: str) -> int:
        """Remove every cached version of one secret. Returns the number removed."""
        with self._lock:
            doomed = [k for k in self._entries if k.namespace == namespace and k.key == key]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def invalidate_namespace(self, namespace: str) -> int:
        """Remove every cached entry in one namespace. Statistics are kept."""
        with self._lock:
            doomed = [k for k in self._entries if k.namespace == namespace]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def invalidate_all(self) -> None:
        """Drop every entry and reset statistics in one step."""
        with self._lock:
            self._entries.clear()
            self._stats.reset()

    def statistics(self) -> CacheStatistics:
        with self._lock:
            return self._stats.snapshot()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
