"""Trending scoring pass.

Scores recent videos by time-decayed engagement::

    engagement = (likes * 2 + comments * 1.5 + views * 0.1) / max(1, hours)

plus a recency bonus for videos under 48 hours old.

The candidate pool comes from a :class:`TrendingPool`.  The direct pool
queries the store every time; the cached pool reuses a short-lived list of
trending ids for anonymous first-page requests and falls back to the direct
query otherwise.  Both return eligible videos from the trending window in
most-viewed order.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from ...models import TrendingHashtag, VideoRecord
from ..store import MOST_VIEWED
from .base import ScoreMap, ScoringContext, ScoringPass, add_score
from .cache import ScoreCache

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

TRENDING_WINDOW = timedelta(days=7)
TRENDING_POOL_SIZE = 100

LIKE_WEIGHT = 2.0
COMMENT_WEIGHT = 1.5
VIEW_WEIGHT = 0.1

# (max age in hours, bonus); first match wins.
RECENCY_BONUSES = ((24, 50.0), (48, 25.0))

# Periods accepted by the trending videos endpoint.
TRENDING_PERIODS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def engagement_score(video: VideoRecord, now: datetime) -> float:
    hours = video.hours_since_creation(now)
    raw = (
        video.like_count * LIKE_WEIGHT
        + video.comment_count * COMMENT_WEIGHT
        + video.views * VIEW_WEIGHT
    )
    return raw / max(1.0, hours)


def recency_bonus(video: VideoRecord, now: datetime) -> float:
    hours = video.hours_since_creation(now)
    for max_hours, bonus in RECENCY_BONUSES:
        if hours < max_hours:
            return bonus
    return 0.0


# ---------------------------------------------------------------------------
# Candidate pools
# ---------------------------------------------------------------------------

class TrendingPool(ABC):
    """Source of trending candidates."""

    @abstractmethod
    async def fetch(self, store, context: ScoringContext) -> list[VideoRecord]:
        ...


class DirectTrendingPool(TrendingPool):
    """Query the store for the most viewed videos in the trending window."""

    async def fetch(self, store, context: ScoringContext) -> list[VideoRecord]:
        return await store.find_videos(
            created_after=context.now - TRENDING_WINDOW,
            exclude_ids=context.exclude_ids,
            sort=MOST_VIEWED,
            limit=TRENDING_POOL_SIZE,
        )


class CachedTrendingPool(TrendingPool):
    """Serve anonymous first-page requests from the cached trending ids.

    The cached list is what ``fallback`` returned the last time it ran, so
    both paths yield the same pool.  On a hit the ids are looked up again to
    pick up moderation changes and fresh counts.  Requests with a viewer or
    with exclusions, and requests made while the cached list is empty, go
    straight to ``fallback``.
    """

    def __init__(self, cache: ScoreCache, fallback: TrendingPool | None = None):
        self.cache = cache
        self.fallback = fallback or DirectTrendingPool()

    async def fetch(self, store, context: ScoringContext) -> list[VideoRecord]:
        if context.viewer_id is not None or context.exclude_ids:
            return await self.fallback.fetch(store, context)

        cached_ids = self.cache.get_trending_ids()
        if cached_ids is None:
            videos = await self.fallback.fetch(store, context)
            self.cache.set_trending_ids([v.id for v in videos])
            return videos
        if not cached_ids:
            return await self.fallback.fetch(store, context)

        rows = await store.find_videos(
            ids=cached_ids,
            created_after=context.now - TRENDING_WINDOW,
            limit=len(cached_ids),
        )
        by_id = {v.id: v for v in rows}
        return [by_id[vid] for vid in cached_ids if vid in by_id]


# ---------------------------------------------------------------------------
# Pass
# ---------------------------------------------------------------------------

class TrendingPass(ScoringPass):
    """Seed the score map with engagement-ranked recent videos."""

    def __init__(self, pool: TrendingPool | None = None):
        self.pool = pool or DirectTrendingPool()

    @property
    def name(self) -> str:
        return "trending"

    async def apply(self, store, scores: ScoreMap, context: ScoringContext) -> ScoreMap:
        videos = await self.pool.fetch(store, context)
        updated = dict(scores)
        for video in videos:
            bonus = recency_bonus(video, context.now)
            tag = "trending, recent" if bonus > 0 else "trending"
            add_score(updated, video.id, engagement_score(video, context.now) + bonus, tag)

        logger.debug("Trending pass scored %d candidates", len(videos))
        return updated


# ---------------------------------------------------------------------------
# Trending videos listing
# ---------------------------------------------------------------------------

def engagement_rate(video: VideoRecord) -> float:
    return (video.like_count + video.comment_count * 2) / max(video.views, 1)


async def fetch_trending_videos(
    store,
    period: str,
    limit: int,
    now: datetime,
) -> list[tuple[VideoRecord, float]]:
    """Return up to *limit* videos from *period* ranked by engagement rate.

    Over-fetches ``2 * limit`` of the most viewed videos and re-ranks them.
    """
    window = TRENDING_PERIODS[period]
    videos = await store.find_videos(
        created_after=now - window,
        sort=MOST_VIEWED,
        limit=limit * 2,
    )
    rated = [(v, engagement_rate(v)) for v in videos]
    rated.sort(key=lambda pair: pair[1], reverse=True)
    return rated[:limit]


async def fetch_trending_hashtags(
    store,
    period: str,
    limit: int,
    now: datetime,
) -> list[TrendingHashtag]:
    """Return up to *limit* hashtags ranked by recent use within *period*."""
    return await store.trending_hashtags(now - TRENDING_PERIODS[period], limit)
