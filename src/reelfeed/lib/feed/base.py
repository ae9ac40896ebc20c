"""Base abstraction for feed scoring passes.

A pass takes the score map built so far and returns a new one in which it
has added to, or removed, entries.  Passes never overwrite a score: every
contribution is added on top of what earlier passes produced, and the
``reason`` string records which passes touched the candidate.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class VideoScore(BaseModel):
    """Accumulated ranking score for one candidate video."""

    model_config = ConfigDict(frozen=True)

    video_id: str
    score: float = 0.0
    reason: str = Field("", description="Comma-joined tags of contributing passes")

    def boost(self, amount: float, tag: str | None) -> "VideoScore":
        reason = self.reason
        if tag:
            reason = f"{reason}, {tag}" if reason else tag
        return VideoScore(video_id=self.video_id, score=self.score + amount, reason=reason)


ScoreMap = dict[str, VideoScore]


class ScoringContext(BaseModel):
    """Per-request inputs shared by every pass."""

    viewer_id: str | None = Field(None, description="None for anonymous viewers")
    exclude_ids: list[str] = Field(default_factory=list)
    now: datetime


def add_score(scores: ScoreMap, video_id: str, amount: float, tag: str | None) -> None:
    """Add *amount* to the candidate's score, creating the entry if needed."""
    existing = scores.get(video_id) or VideoScore(video_id=video_id)
    scores[video_id] = existing.boost(amount, tag)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class ScoringPass(ABC):
    """A single step of the scoring pipeline.

    Subclasses implement `name` and `apply`.  Passes that only make sense
    for a signed-in viewer set ``requires_viewer``.
    """

    requires_viewer: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def apply(self, store, scores: ScoreMap, context: ScoringContext) -> ScoreMap:
        """Return a new score map built from *scores*.

        Parameters
        ----------
        store:
            A :class:`~reelfeed.lib.store.VideoStore` (or compatible fake).
        scores:
            The map produced by earlier passes.  It must not be mutated.
        context:
            Viewer, exclusions and the request timestamp.
        """
        ...
