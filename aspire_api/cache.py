"""
In-memory response caching for FastAPI read endpoints.

Three independent TTL tiers (short, medium, long) sit in front of public GET
routes. A route opts in through a route class returned by
``ResponseCache.wrap``; the class intercepts the finalized response so only
successful (200) JSON bodies are stored. Write handlers drop stale entries
with ``ResponseCache.invalidate`` using a small wildcard pattern language.

All cache operations are synchronous and never perform I/O, so they are safe
to call from request handlers running on the event loop without locking.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from cachetools import TLRUCache
from fastapi import APIRouter, Request, Response
from fastapi.routing import APIRoute

logger = logging.getLogger(__name__)

SHORT_TTL = 60
MEDIUM_TTL = 300
LONG_TTL = 1800
DEFAULT_MAX_ENTRIES = 512

CACHE_STATUS_HEADER = "X-Cache"
WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

RouteHandler = Callable[[Request], Awaitable[Response]]


class InvalidPatternError(ValueError):
    """Raised when an invalidation pattern is empty or not a string."""


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Framework-independent description of a request used to build cache keys.

    Attributes:
        method: Upper-case HTTP method
        path: Request path without the query string
        query: Raw query segments (`name=value`, as sent) in sorted order
        path_params: Route parameters resolved by the router
    """

    method: str
    path: str
    query: tuple[str, ...] = ()
    path_params: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_request(cls, request: Request) -> RequestDescriptor:
        return cls(
            method=request.method.upper(),
            path=request.url.path,
            query=tuple(sorted(part for part in request.url.query.split("&") if part)),
            path_params=dict(request.path_params),
        )


KeyFunction = Callable[[RequestDescriptor], str]


def default_key(descriptor: RequestDescriptor) -> str:
    """Build ``METHOD:/path`` plus the sorted raw query segments when present."""
    key = f"{descriptor.method}:{descriptor.path}"
    if descriptor.query:
        key = f"{key}?{'&'.join(descriptor.query)}"
    return key


def select_tier(ttl_seconds: int) -> str:
    """Map a TTL to its tier name: <=60 short, <=300 medium, otherwise long."""
    if ttl_seconds <= 0:
        raise ValueError(f"Cache TTL must be positive, got {ttl_seconds}")
    if ttl_seconds <= SHORT_TTL:
        return "short"
    if ttl_seconds <= MEDIUM_TTL:
        return "medium"
    return "long"


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """
    Compile a wildcard pattern into an unanchored regex.

    ``*`` matches any substring and every other character is literal. A key
    matches when the pattern is found anywhere in it.

    Raises:
        InvalidPatternError: If the pattern is empty or not a string
    """
    if not isinstance(pattern, str) or not pattern:
        raise InvalidPatternError(f"Invalid cache pattern: {pattern!r}")
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(regex, re.DOTALL)


@dataclass
class CacheEntry:
    """A stored response body together with the tier and lifetime it was stored with."""

    key: str
    value: bytes
    tier: str
    ttl_seconds: int
    stored_at: float
    media_type: str = "application/json"

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds


def _entry_expiry(_key: str, entry: CacheEntry, now: float) -> float:
    return now + entry.ttl_seconds


class CacheTier:
    """
    One TTL band of the response cache.

    Entries expire individually after the TTL they were stored with; reads
    never return an expired entry even when the periodic sweep has not run.
    """

    def __init__(
        self,
        name: str,
        ttl_seconds: int,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.sweep_interval = ttl_seconds * 2
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._timer = timer
        self._store: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=max_entries,
            ttu=_entry_expiry,
            timer=timer,
        )

    def get(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None:
            self.misses += 1
            return None
        self.hits += 1
        return entry

    def put(
        self,
        key: str,
        value: bytes,
        ttl_seconds: int,
        media_type: str = "application/json",
    ) -> None:
        self._store[key] = CacheEntry(
            key=key,
            value=value,
            tier=self.name,
            ttl_seconds=ttl_seconds,
            stored_at=self._timer(),
            media_type=media_type,
        )

    def keys(self) -> list[str]:
        self._store.expire()
        return list(self._store.keys())

    def discard(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> int:
        count = len(self.keys())
        self._store.clear()
        return count

    def sweep(self) -> int:
        """Purge expired entries and return how many were removed."""
        return len(self._store.expire())

    def stats(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "keys": len(self.keys()),
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
        }


class ResponseCache:
    """
    Tiered response cache shared by every router of one application.

    Created once by the application factory; ``start`` launches the
    background sweeps and ``close`` cancels them on shutdown.
    """

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tiers: dict[str, CacheTier] = {
            name: CacheTier(name, ttl, max_entries=max_entries, timer=timer)
            for name, ttl in (("short", SHORT_TTL), ("medium", MEDIUM_TTL), ("long", LONG_TTL))
        }
        self._sweep_tasks: list[asyncio.Task[None]] = []

    @property
    def tiers(self) -> dict[str, CacheTier]:
        return dict(self._tiers)

    def tier_for(self, ttl_seconds: int) -> CacheTier:
        return self._tiers[select_tier(ttl_seconds)]

    # ------------------------------------------------------------------
    # Key generation
    # ------------------------------------------------------------------

    def key_for(self, descriptor: RequestDescriptor, key_fn: KeyFunction | None = None) -> str:
        """Return the cache key, falling back to the default scheme if ``key_fn`` misbehaves."""
        if key_fn is None:
            return default_key(descriptor)
        try:
            key = key_fn(descriptor)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Cache key function failed for %s %s; using default key",
                descriptor.method,
                descriptor.path,
                exc_info=True,
            )
            return default_key(descriptor)
        if not isinstance(key, str) or not key:
            logger.warning("Cache key function returned %r; using default key", key)
            return default_key(descriptor)
        return key

    # ------------------------------------------------------------------
    # Route integration
    # ------------------------------------------------------------------

    def wrap(self, ttl_seconds: int, key_fn: KeyFunction | None = None) -> type[APIRoute]:
        """
        Build an APIRoute class that memoizes successful responses.

        The tier is selected here, once, so every request through the
        returned class shares it.
        """
        tier = self.tier_for(ttl_seconds)
        cache = self

        class CachedRoute(APIRoute):
            def get_route_handler(self) -> RouteHandler:
                return cache.memoize(super().get_route_handler(), tier, ttl_seconds, key_fn)

        return CachedRoute

    def cached_get(
        self,
        router: APIRouter,
        path: str,
        ttl_seconds: int,
        key_fn: KeyFunction | None = None,
        **route_kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering a cached GET endpoint on ``router``."""
        route_class = self.wrap(ttl_seconds, key_fn)

        def decorator(endpoint: Callable[..., Any]) -> Callable[..., Any]:
            router.add_api_route(
                path,
                endpoint,
                methods=["GET"],
                route_class_override=route_class,
                **route_kwargs,
            )
            return endpoint

        return decorator

    def memoize(
        self,
        handler: RouteHandler,
        tier: CacheTier,
        ttl_seconds: int,
        key_fn: KeyFunction | None = None,
    ) -> RouteHandler:
        async def cached_handler(request: Request) -> Response:
            # Credentialed traffic always sees live data and never fills the cache.
            if request.headers.get("authorization"):
                return await handler(request)

            key = self.key_for(RequestDescriptor.from_request(request), key_fn)
            entry = self._lookup(tier, key)
            if entry is not None:
                logger.debug("Cache HIT: %s", key)
                return Response(
                    content=entry.value,
                    media_type=entry.media_type,
                    headers={CACHE_STATUS_HEADER: "HIT"},
                )

            response = await handler(request)
            if response.status_code == 200:
                self._store(tier, key, response, ttl_seconds)
            response.headers[CACHE_STATUS_HEADER] = "MISS"
            return response

        return cached_handler

    def invalidate_on_write(self, *patterns: str) -> type[APIRoute]:
        """
        Build an APIRoute class that invalidates ``patterns`` after a successful write.

        Only POST, PUT, PATCH and DELETE responses with a 2xx status trigger it.
        """
        for pattern in patterns:
            compile_pattern(pattern)
        cache = self

        class InvalidatingRoute(APIRoute):
            def get_route_handler(self) -> RouteHandler:
                handler = super().get_route_handler()

                async def invalidating_handler(request: Request) -> Response:
                    response = await handler(request)
                    if request.method in WRITE_METHODS and 200 <= response.status_code < 300:
                        for pattern in patterns:
                            cache.invalidate(pattern)
                    return response

                return invalidating_handler

        return InvalidatingRoute

    def _lookup(self, tier: CacheTier, key: str) -> CacheEntry | None:
        try:
            return tier.get(key)
        except Exception:  # noqa: BLE001 - degrade to a miss
            logger.warning("Cache lookup failed for %s", key, exc_info=True)
            return None

    def _store(self, tier: CacheTier, key: str, response: Response, ttl_seconds: int) -> None:
        body = getattr(response, "body", None)
        if not isinstance(body, bytes):
            logger.warning("Response for %s has no buffered body; not cached", key)
            return
        try:
            tier.put(key, body, ttl_seconds, response.media_type or "application/json")
        except Exception:  # noqa: BLE001
            logger.warning("Cache store failed for %s", key, exc_info=True)
            return
        logger.debug("Cache SET: %s (%ss TTL, %s tier)", key, ttl_seconds, tier.name)

    # ------------------------------------------------------------------
    # Invalidation and introspection
    # ------------------------------------------------------------------

    def invalidate(self, pattern: str) -> int:
        """
        Remove every key matching ``pattern`` from all tiers.

        Returns:
            Number of distinct keys removed

        Raises:
            InvalidPatternError: If the pattern is empty or not a string
        """
        matcher = compile_pattern(pattern)
        all_keys: set[str] = set()
        for tier in self._tiers.values():
            all_keys.update(tier.keys())

        matched = [key for key in all_keys if matcher.search(key)]
        for key in matched:
            for tier in self._tiers.values():
                tier.discard(key)

        logger.info("Cleared %s cache entries matching: %s", len(matched), pattern)
        return len(matched)

    def flush(self) -> int:
        """Empty every tier and return how many entries were dropped."""
        count = sum(tier.clear() for tier in self._tiers.values())
        logger.info("Cleared all %s cache entries", count)
        return count

    def sweep(self) -> int:
        return sum(tier.sweep() for tier in self._tiers.values())

    def stats(self) -> dict[str, dict[str, int]]:
        return {name: tier.stats() for name, tier in self._tiers.items()}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return bool(self._sweep_tasks)

    def start(self) -> None:
        """Launch one sweep task per tier on the running event loop."""
        if self._sweep_tasks:
            return
        self._sweep_tasks = [
            asyncio.create_task(self._sweep_forever(tier), name=f"cache-sweep-{tier.name}")
            for tier in self._tiers.values()
        ]

    async def close(self) -> None:
        tasks, self._sweep_tasks = self._sweep_tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _sweep_forever(self, tier: CacheTier) -> None:
        while True:
            await asyncio.sleep(tier.sweep_interval)
            try:
                purged = tier.sweep()
            except Exception:  # noqa: BLE001
                logger.warning("Cache sweep failed for %s tier", tier.name, exc_info=True)
                continue
            if purged:
                logger.info("Swept %s expired entries from %s tier", purged, tier.name)


__all__ = [
    "CacheEntry",
    "CacheTier",
    "InvalidPatternError",
    "RequestDescriptor",
    "ResponseCache",
    "compile_pattern",
    "default_key",
    "select_tier",
]
