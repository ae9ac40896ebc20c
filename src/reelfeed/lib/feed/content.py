"""Content-affinity scoring pass.

Pipeline:
    viewer → recent likes → liked hashtags → videos sharing those hashtags

Each candidate earns a fixed amount per hashtag it shares with the viewer's
recent likes.  Afterwards every video the viewer has liked is removed from
the map; a like is a hard exclusion, not just a weak signal.
"""

import logging

from .base import ScoreMap, ScoringContext, ScoringPass, add_score

logger = logging.getLogger(__name__)

# How many recent likes to consider when building the hashtag set.
LIKED_VIDEOS_LIMIT = 50
SIMILAR_POOL_SIZE = 50
SHARED_HASHTAG_WEIGHT = 20.0


class ContentAffinityPass(ScoringPass):
    requires_viewer = True

    @property
    def name(self) -> str:
        return "similar-content"

    async def apply(self, store, scores: ScoreMap, context: ScoringContext) -> ScoreMap:
        viewer_id = context.viewer_id
        updated = dict(scores)

        likes = await store.recent_likes(viewer_id, LIKED_VIDEOS_LIMIT)
        liked_hashtags = {tag for like in likes for tag in like.hashtag_ids}

        if liked_hashtags:
            videos = await store.find_videos(
                hashtag_in=liked_hashtags,
                author_not=viewer_id,
                exclude_ids=context.exclude_ids,
                limit=SIMILAR_POOL_SIZE,
            )
            for video in videos:
                shared = len(video.hashtag_ids & liked_hashtags)
                add_score(updated, video.id, shared * SHARED_HASHTAG_WEIGHT, "similar-content")
        else:
            logger.info("No liked hashtags found for viewer %s", viewer_id)

        liked = {like.video_id for like in likes}
        liked |= await store.liked_among(viewer_id, [vid for vid in updated if vid not in liked])
        for video_id in liked:
            updated.pop(video_id, None)
        return updated
