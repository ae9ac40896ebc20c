"""Time-boxed caches for the recommendation service.

Key schema
----------
trending:videos                              list[str]  TTL 5 min  trending video ids
recommendations:{viewer|anonymous}:{cursor}  FeedPage   TTL 5 min  first feed page

The cache is advisory: every failure of the backing store is logged and
treated as a miss, since any entry can be recomputed.
"""

import logging
import time
from typing import Any, Callable

from pydantic import BaseModel

from ...models import FeedPage

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 100

TRENDING_KEY = "trending:videos"


class CacheEntry(BaseModel):
    data: Any
    expires_at: float


class TTLCache:
    """In-process key/value store with per-entry expiry and a size cap.

    Once more than ``max_entries`` keys are held the oldest inserted key is
    dropped.  Expired entries are evicted lazily when read.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() < entry.expires_at:
            return entry.data
        self._entries.pop(key, None)
        return None

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, expires_at=self._clock() + self.ttl_seconds)
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def clear(self) -> None:
        self._entries.clear()


def result_key(viewer_id: str | None, cursor: str | None) -> str:
    return f"recommendations:{viewer_id or 'anonymous'}:{cursor or 'first'}"


class ScoreCache:
    """Trending-id and first-page caches used by the recommendation service.

    Both backends default to a :class:`TTLCache`; anything with the same
    ``get``/``set`` methods can be supplied instead.
    """

    def __init__(self, trending=None, results=None):
        self.trending = trending if trending is not None else TTLCache()
        self.results = results if results is not None else TTLCache()

    def get_trending_ids(self) -> list[str] | None:
        return self._get(self.trending, TRENDING_KEY)

    def set_trending_ids(self, video_ids: list[str]) -> None:
        self._set(self.trending, TRENDING_KEY, list(video_ids))

    def get_first_page(self, viewer_id: str | None) -> FeedPage | None:
        return self._get(self.results, result_key(viewer_id, None))

    def set_first_page(self, viewer_id: str | None, page: FeedPage) -> None:
        self._set(self.results, result_key(viewer_id, None), page)

    def _get(self, backend, key: str):
        try:
            return backend.get(key)
        except Exception:
            logger.warning("Cache read failed for %s; recomputing", key, exc_info=True)
            return None

    def _set(self, backend, key: str, data) -> None:
        try:
            backend.set(key, data)
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)
