"""Recommendation service: the single entry point of the feed ranking core."""

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from ...models import FeedPage
from .aggregator import build_ranking, default_passes
from .assembler import assemble_page
from .base import ScoringContext, ScoringPass
from .cache import ScoreCache
from .cursor import decode_cursor
from .trending import CachedTrendingPool, TrendingPass

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 15


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationService:
    """Ranks, paginates and caches the "for you" video feed.

    Each call builds its own score map; the only state shared between
    requests is ``cache``.  Store failures propagate to the caller.
    """

    def __init__(
        self,
        store,
        cache: ScoreCache | None = None,
        passes: Sequence[ScoringPass] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.cache = cache if cache is not None else ScoreCache()
        if passes is None:
            passes = default_passes(TrendingPass(CachedTrendingPool(self.cache)))
        self.passes = list(passes)
        self._clock = clock

    async def get_recommended_videos(
        self,
        viewer_id: str | None,
        cursor: str | None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> FeedPage:
        state = decode_cursor(cursor)
        # An undecodable cursor decodes to the empty state, i.e. the first page.
        first_page = not state.exclude_ids
        if first_page:
            cached = self.cache.get_first_page(viewer_id)
            if cached is not None:
                return cached.model_copy(deep=True)

        context = ScoringContext(
            viewer_id=viewer_id,
            exclude_ids=state.exclude_ids,
            now=self._clock(),
        )

        ranking = await build_ranking(self.store, context, self.passes)
        page = await assemble_page(self.store, ranking, context, limit)

        logger.info(
            "Ranked %d candidates, returning %d videos",
            len(ranking),
            len(page.videos),
            extra={"viewer_id": viewer_id or "anonymous", "has_more": page.has_more},
        )

        if first_page:
            self.cache.set_first_page(viewer_id, page.model_copy(deep=True))
        return page
