"""Turns a ranking into a page of hydrated videos plus the next cursor."""

import logging

from ...models import FeedPage
from .base import ScoringContext, VideoScore
from .cursor import CursorState, encode_cursor

logger = logging.getLogger(__name__)

# Ranked ids hydrated per page, as a multiple of the page size.
OVERFETCH_FACTOR = 2


async def assemble_page(
    store,
    ranking: list[VideoScore],
    context: ScoringContext,
    limit: int,
) -> FeedPage:
    """Hydrate the top of *ranking* into at most *limit* videos.

    The store returns rows in no particular order, so they are put back in
    ranking order here.  Ranked ids that fail to hydrate are added to the
    cursor's exclusions along with the page itself.
    """
    top = ranking[: limit * OVERFETCH_FACTOR]
    if not top:
        return FeedPage(videos=[], next_cursor=None, has_more=False)

    ids = [s.video_id for s in top]
    rows = await store.find_videos(ids=ids, limit=len(ids))
    by_id = {v.id: v for v in rows}

    videos = []
    dropped = []
    for video_id in ids:
        if len(videos) >= limit:
            break
        if video_id in by_id:
            videos.append(by_id[video_id])
        else:
            dropped.append(video_id)
    if dropped:
        logger.info("Dropped %d ranked videos that could not be hydrated", len(dropped))

    has_more = len(ranking) > limit
    next_cursor = None
    if has_more:
        scores = {s.video_id: s.score for s in top}
        state = CursorState(
            exclude_ids=[*context.exclude_ids, *dropped, *(v.id for v in videos)],
            last_score=scores[videos[-1].id] if videos else 0.0,
        )
        next_cursor = encode_cursor(state)

    return FeedPage(videos=videos, next_cursor=next_cursor, has_more=has_more)
