"""Social-graph scoring pass: boost videos from creators the viewer follows."""

import logging

from .base import ScoreMap, ScoringContext, ScoringPass, add_score

logger = logging.getLogger(__name__)

FOLLOWING_POOL_SIZE = 50
FOLLOWING_BOOST = 50.0


class SocialPass(ScoringPass):
    requires_viewer = True

    @property
    def name(self) -> str:
        return "following"

    async def apply(self, store, scores: ScoreMap, context: ScoringContext) -> ScoreMap:
        following = await store.following_ids(context.viewer_id)
        if not following:
            logger.debug("Viewer %s follows nobody", context.viewer_id)
            return scores

        videos = await store.find_videos(
            author_in=following,
            exclude_ids=context.exclude_ids,
            limit=FOLLOWING_POOL_SIZE,
        )
        updated = dict(scores)
        for video in videos:
            add_score(updated, video.id, FOLLOWING_BOOST, "following")
        return updated
