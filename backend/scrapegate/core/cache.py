"""In-process response cache and single-flight coalescing.

The cache maps the exact target URL string to the assembled response dict.
How entries leave the cache is decided by an injected EvictionPolicy, so the
same store serves the unbounded process-lifetime mode and the bounded modes.

SingleFlight makes concurrent requests for the same key share one execution:
the first caller runs the work, later callers await its result.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from scrapegate.config import settings
from scrapegate.core.exceptions import ScrapeGateError
from scrapegate.core.metrics import cache_lookups_total

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry:
    value: dict
    stored_at: float


# ---------------------------------------------------------------------------
# Eviction policies
# ---------------------------------------------------------------------------


class EvictionPolicy:
    """Decides when cache entries expire and how many to drop on overflow."""

    def is_expired(self, entry: CacheEntry, now: float) -> bool:
        return False

    def overflow(self, size: int) -> int:
        """Number of least-recently-used entries to drop at this size."""
        return 0


class NoEviction(EvictionPolicy):
    """Entries live for the whole process."""


class MaxEntriesPolicy(EvictionPolicy):
    """Keep at most ``max_entries``, dropping the least recently used."""

    def __init__(self, max_entries: int):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries

    def overflow(self, size: int) -> int:
        return max(0, size - self.max_entries)


class TTLPolicy(EvictionPolicy):
    """Expire entries ``ttl_seconds`` after they were stored."""

    def __init__(self, ttl_seconds: float):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds

    def is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self.ttl_seconds


class CombinedPolicy(EvictionPolicy):
    def __init__(self, *policies: EvictionPolicy):
        self.policies = policies

    def is_expired(self, entry: CacheEntry, now: float) -> bool:
        return any(p.is_expired(entry, now) for p in self.policies)

    def overflow(self, size: int) -> int:
        return max((p.overflow(size) for p in self.policies), default=0)


def build_policy(max_entries: int = 0, ttl_seconds: float = 0) -> EvictionPolicy:
    """Build a policy from config values where 0 disables a bound."""
    policies: list[EvictionPolicy] = []
    if max_entries > 0:
        policies.append(MaxEntriesPolicy(max_entries))
    if ttl_seconds > 0:
        policies.append(TTLPolicy(ttl_seconds))
    if not policies:
        return NoEviction()
    if len(policies) == 1:
        return policies[0]
    return CombinedPolicy(*policies)


# ---------------------------------------------------------------------------
# Response cache
# ---------------------------------------------------------------------------


class ResponseCache:
    def __init__(
        self,
        policy: EvictionPolicy | None = None,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.policy = policy or NoEviction()
        self.enabled = enabled
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def get(self, url: str) -> dict | None:
        """Return a copy of the cached response for ``url``, or None."""
        if not self.enabled:
            return None

        entry = self._entries.get(url)
        if entry is None:
            cache_lookups_total.labels(result="miss").inc()
            return None

        if self.policy.is_expired(entry, self._clock()):
            del self._entries[url]
            cache_lookups_total.labels(result="expired").inc()
            logger.debug(f"Cache entry expired for {url}")
            return None

        self._entries.move_to_end(url)
        cache_lookups_total.labels(result="hit").inc()
        return dict(entry.value)

    def put(self, url: str, response: dict) -> None:
        if not self.enabled:
            return

        self._entries[url] = CacheEntry(value=dict(response), stored_at=self._clock())
        self._entries.move_to_end(url)

        for _ in range(self.policy.overflow(len(self._entries))):
            evicted, _entry = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry for {evicted}")

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# ---------------------------------------------------------------------------
# Single-flight
# ---------------------------------------------------------------------------


class SingleFlight:
    """Coalesce concurrent calls that share a key into one execution."""

    def __init__(self):
        self._inflight: dict[str, asyncio.Future] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._inflight

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        existing = self._inflight.get(key)
        if existing is not None:
            logger.debug(f"Joining in-flight scrape for {key}")
            # Shielded so a cancelled waiter does not cancel the shared run
            return await asyncio.shield(existing)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            # Joiners still have live callers; hand them an error, not the cancellation
            future.set_exception(ScrapeGateError("Shared scrape was cancelled"))
            future.exception()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unjoined failure is not reported by asyncio
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._inflight.pop(key, None)


def create_response_cache() -> ResponseCache:
    """Build the process-wide cache from settings."""
    return ResponseCache(
        policy=build_policy(settings.CACHE_MAX_ENTRIES, settings.CACHE_TTL_SECONDS),
        enabled=settings.CACHE_ENABLED,
    )
