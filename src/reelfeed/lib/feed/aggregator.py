"""Runs the scoring passes and turns their output into a ranking.

The passes run as a fold in a fixed order: trending, following,
similar-content, new-creator.  Order matters because the similar-content
pass removes liked videos introduced by the earlier passes.  Fresh uploads
that no pass picked up are then added from a recency fallback pool so they
still get a chance to surface.
"""

import logging
from datetime import timedelta
from typing import Sequence

from ..store import NEWEST
from .base import ScoreMap, ScoringContext, ScoringPass, VideoScore
from .content import ContentAffinityPass
from .diversity import DiversityPass
from .social import SocialPass
from .trending import TrendingPass

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(hours=24)
RECENT_POOL_SIZE = 20
RECENT_BASE_SCORE = 30.0


def default_passes(trending: TrendingPass | None = None) -> list[ScoringPass]:
    return [trending or TrendingPass(), SocialPass(), ContentAffinityPass(), DiversityPass()]


async def score_candidates(
    store,
    context: ScoringContext,
    passes: Sequence[ScoringPass],
) -> ScoreMap:
    scores: ScoreMap = {}
    for scoring_pass in passes:
        if scoring_pass.requires_viewer and context.viewer_id is None:
            continue
        scores = await scoring_pass.apply(store, scores, context)
        logger.debug("After %s pass: %d candidates", scoring_pass.name, len(scores))
    return scores


async def add_recent_fallback(store, scores: ScoreMap, context: ScoringContext) -> ScoreMap:
    """Give unscored uploads from the last day a flat base score.

    Videos the viewer has liked are skipped so the fallback cannot bring
    back what the similar-content pass removed.
    """
    recent = await store.find_videos(
        created_after=context.now - RECENT_WINDOW,
        exclude_ids=context.exclude_ids,
        sort=NEWEST,
        limit=RECENT_POOL_SIZE,
    )
    new_ids = [v.id for v in recent if v.id not in scores]
    if not new_ids:
        return scores

    if context.viewer_id is not None:
        liked = await store.liked_among(context.viewer_id, new_ids)
        new_ids = [vid for vid in new_ids if vid not in liked]

    updated = dict(scores)
    for video_id in new_ids:
        updated[video_id] = VideoScore(video_id=video_id, score=RECENT_BASE_SCORE, reason="recent")
    return updated


def rank(scores: ScoreMap) -> list[VideoScore]:
    """Sort by score, highest first; ties keep insertion order."""
    return sorted(scores.values(), key=lambda s: s.score, reverse=True)


async def build_ranking(
    store,
    context: ScoringContext,
    passes: Sequence[ScoringPass],
) -> list[VideoScore]:
    """Score, top up with recent uploads and sort every candidate."""
    scores = await score_candidates(store, context, passes)
    scores = await add_recent_fallback(store, scores, context)
    return rank(scores)
