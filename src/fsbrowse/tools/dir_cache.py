"""
TTL cache for single-level directory listings.

Listings are keyed by the exact path string they were requested with. A live
record is served without touching the filesystem; a miss or an expired record
delegates to the lister, stores the fresh listing and sweeps every expired
record. Failed listings are never cached.

Every normalised path has a generation counter that invalidation bumps. A
read stores its listing only if the generation it started under is still
current, so a mutation racing a read cannot leave the old listing cached.

The lock only guards dictionary access and is never held across a directory
read, so one cache can be shared by every caller in the process.
"""

import os
import time
import threading
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from ..models.entries import DirectoryListing
from .lister import DirectoryLister


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30.0


@dataclass
class CacheRecord:
    data: DirectoryListing
    created_at: float


class DirectoryCache:
    """
    Process-wide cache of directory listings with TTL-based expiry.

    Args:
        lister: Lister used on a miss
        ttl_seconds: Age at which a record stops being served
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, lister: Optional[DirectoryLister] = None,
                 ttl_seconds: float = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl_seconds}")
        self.lister = lister or DirectoryLister()
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: Dict[str, CacheRecord] = {}
        # Bumped on every invalidation of a normalised path
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def _is_live(self, record: CacheRecord, now: float) -> bool:
        return now - record.created_at < self.ttl_seconds

    def get(self, path: str) -> Optional[DirectoryListing]:
        """
        Return a copy of the cached listing if present and not expired.

        Args:
            path: Exact path string the listing was stored under
        """
        with self._lock:
            record = self._records.get(path)
            if record is None or not self._is_live(record, self._clock()):
                return None
            return record.data.model_copy()

    def put(self, path: str, listing: DirectoryListing) -> None:
        """Store a listing and sweep expired records."""
        self._store(path, listing, None)

    def _store(self, path: str, listing: DirectoryListing, generation: Optional[int]) -> bool:
        with self._lock:
            if generation is not None and self._generations.get(os.path.normpath(path), 0) != generation:
                stored = False
                evicted = 0
            else:
                now = self._clock()
                self._records[path] = CacheRecord(data=listing.model_copy(), created_at=now)
                stored = True
                evicted = self._evict_expired_locked(now)
        if not stored:
            logger.debug(f"Discarding listing of {path} invalidated while it was read")
        if evicted:
            logger.debug(f"Evicted {evicted} expired listing(s)")
        return stored

    async def get_or_compute(self, path: str,
                             compute: Callable[[str], Awaitable[DirectoryListing]]) -> DirectoryListing:
        """
        Serve a live listing or compute, store and return a fresh one.

        Exceptions from ``compute`` propagate and nothing is stored. A listing
        whose path was invalidated while ``compute`` ran is returned to this
        caller but not stored.
        """
        cached = self.get(path)
        if cached is not None:
            logger.debug(f"Cache hit: {path}")
            return cached

        logger.debug(f"Cache miss: {path}")
        with self._lock:
            generation = self._generations.setdefault(os.path.normpath(path), 0)
        listing = await compute(path)
        self._store(path, listing, generation)
        return listing.model_copy()

    async def get_or_list(self, path: str) -> DirectoryListing:
        """
        Get a directory listing, reading the filesystem only on a miss.

        Raises:
            PathNotFound, PathNotADirectory, ReadFailure: From the lister
        """
        return await self.get_or_compute(path, self.lister.list_once)

    def invalidate(self, path: str, recursive: bool = False) -> int:
        """
        Drop every record stored for a path.

        Keys are compared after normalisation so ``/a/b`` and ``/a/b/`` both go.
        Reads of the path that are still running will not be stored.

        Args:
            path: Directory whose listing is stale
            recursive: Also drop listings of every directory below ``path``

        Returns:
            Number of records removed
        """
        target = os.path.normpath(path)
        prefix = target.rstrip(os.sep) + os.sep

        def affected(key: str) -> bool:
            normalised = os.path.normpath(key)
            return normalised == target or (recursive and normalised.startswith(prefix))

        with self._lock:
            stale = [key for key in self._records if affected(key)]
            for key in stale:
                del self._records[key]
            bumped = {target} | {key for key in self._generations if affected(key)}
            for key in bumped:
                self._generations[key] = self._generations.get(key, 0) + 1
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached listing(s) under {path}")
        return len(stale)

    def invalidate_parent(self, path: str) -> int:
        """Drop the cached listing of the directory containing ``path``."""
        parent = os.path.dirname(os.path.normpath(path))
        if not parent:
            return 0
        return self.invalidate(parent)

    def evict_expired(self) -> int:
        """Remove all expired records; returns how many were removed."""
        with self._lock:
            return self._evict_expired_locked(self._clock())

    def _evict_expired_locked(self, now: float) -> int:
        expired = [key for key, record in self._records.items() if not self._is_live(record, now)]
        for key in expired:
            del self._records[key]
        return len(expired)

    def clear(self) -> None:
        """Remove every record; reads still running will not be stored."""
        with self._lock:
            self._records.clear()
            for key in self._generations:
                self._generations[key] += 1

    def size(self) -> int:
        """Number of stored records, including ones not yet swept."""
        with self._lock:
            return len(self._records)
