"""
Stale-while-revalidate cache for list and detail reads.

Keys are tuples whose first element names the resource ("jobs/published",
"job-owner", ...). A cached value is served immediately; once it is older than
the dedupe interval a background refetch replaces it. Mutations invalidate by
resource prefix so the next read goes to the backend.

Entries are bounded: past max_entries the least recently read one is dropped.
"""
import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[Hashable, ...]


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float


class RevalidatingCache:
    def __init__(
        self,
        dedupe_interval: float = 2.0,
        max_workers: int = 4,
        enabled: bool = True,
        max_entries: int = 512,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.dedupe_interval = dedupe_interval
        self.enabled = enabled
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._inflight: Dict[CacheKey, Future] = {}
        self._loading: Dict[CacheKey, int] = {}
        # Only kept for keys that are cached or have a fetch pending
        self._generation: Dict[CacheKey, int] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cache-revalidate")

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def peek(self, key: CacheKey) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
        return entry.data if entry else None

    def get(self, key: CacheKey, fetcher: Callable[[], Any]) -> Any:
        if not self.enabled:
            return fetcher()

        with self._lock:
            entry = self._entries.get(key)
            generation = self._generation.get(key, 0)
            if entry is None:
                self._loading[key] = self._loading.get(key, 0) + 1
            else:
                self._entries.move_to_end(key)
                if self._clock() - entry.fetched_at >= self.dedupe_interval and key not in self._inflight:
                    self._inflight[key] = self._executor.submit(self._run_revalidation, key, fetcher, generation)

        if entry is not None:
            return entry.data

        logger.debug(f"Cache miss {key[0]}")
        try:
            data = fetcher()
        except Exception:
            with self._lock:
                self._finish_loading(key)
            raise
        with self._lock:
            self._put(key, data, generation)
            self._finish_loading(key)
        return data

    # The helpers below expect the lock to be held.

    def _put(self, key: CacheKey, data: Any, generation: int) -> None:
        # A mutation or invalidation since the fetch started wins
        if self._generation.get(key, 0) != generation:
            return
        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())
        self._entries.move_to_end(key)
        self._evict()

    def _evict(self) -> None:
        while len(self._entries) > self.max_entries:
            key, _ = self._entries.popitem(last=False)
            self._prune(key)
            logger.debug(f"Evicted {key[0]}")

    def _finish_loading(self, key: CacheKey) -> None:
        self._loading[key] -= 1
        if not self._loading[key]:
            del self._loading[key]
        self._prune(key)

    def _prune(self, key: CacheKey) -> None:
        if key not in self._entries and key not in self._inflight and key not in self._loading:
            self._generation.pop(key, None)

    def _bump(self, key: CacheKey) -> None:
        self._generation[key] = self._generation.get(key, 0) + 1

    def _run_revalidation(self, key: CacheKey, fetcher: Callable[[], Any], generation: int) -> None:
        try:
            data = fetcher()
        except Exception as e:
            logger.warning(f"Background revalidation of {key[0]} failed; keeping stale data: {e}")
            with self._lock:
                self._inflight.pop(key, None)
                self._prune(key)
            return
        with self._lock:
            self._inflight.pop(key, None)
            self._put(key, data, generation)
            self._prune(key)
        logger.debug(f"Revalidated {key[0]}")

    def mutate(self, key: CacheKey, data: Any = None) -> None:
        """Replace an entry with known-good data, or drop it when data is None."""
        with self._lock:
            self._bump(key)
            if data is None:
                self._entries.pop(key, None)
                self._prune(key)
            else:
                self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())
                self._entries.move_to_end(key)
                self._evict()

    def invalidate(self, prefix: str) -> int:
        with self._lock:
            keys = {k for k in self._entries if str(k[0]).startswith(prefix)}
            pending = {k for k in list(self._inflight) + list(self._loading) if str(k[0]).startswith(prefix)}
            for key in keys | pending:
                self._bump(key)
                self._entries.pop(key, None)
                self._prune(key)
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries for '{prefix}'")
        return len(keys)

    def wait(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            pending = list(self._inflight.values())
        if pending:
            wait(pending, timeout=timeout)

    def clear(self) -> None:
        with self._lock:
            pending = set(self._inflight) | set(self._loading)
            for key in pending:
                self._bump(key)
            self._entries.clear()
            self._generation = {k: v for k, v in self._generation.items() if k in pending}

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
