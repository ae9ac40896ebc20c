"""Creator-diversity scoring pass: favour creators with few uploads."""

from .base import ScoreMap, ScoringContext, ScoringPass

# (max videos by the author, bonus); first match wins.
NEW_CREATOR_BONUSES = ((5, 30.0), (20, 15.0))


def new_creator_bonus(video_count: int) -> float:
    for max_videos, bonus in NEW_CREATOR_BONUSES:
        if video_count <= max_videos:
            return bonus
    return 0.0


class DiversityPass(ScoringPass):
    requires_viewer = True

    @property
    def name(self) -> str:
        return "new-creator"

    async def apply(self, store, scores: ScoreMap, context: ScoringContext) -> ScoreMap:
        if not scores:
            return scores

        counts = await store.author_video_counts(list(scores))
        updated = dict(scores)
        for video_id, current in scores.items():
            if video_id not in counts:
                continue
            bonus = new_creator_bonus(counts[video_id])
            if bonus > 0:
                updated[video_id] = current.boost(bonus, "new-creator")
        return updated
