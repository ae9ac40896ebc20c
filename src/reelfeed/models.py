from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

# Placeholder URL schemes written by the upload pipeline before transcoding
# finishes, or after it fails.
SENTINEL_URL_PREFIXES = ("processing://", "error://")


def assume_utc(value: datetime | None) -> datetime | None:
    """Treat timestamps stored without an offset as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class VideoAuthor(BaseModel):
    """The creator of a video, as embedded in the ``videos`` index."""

    id: str
    username: str | None = None
    avatar: str | None = None


class Hashtag(BaseModel):
    id: str
    name: str | None = None


class VideoRecord(BaseModel):
    """A video document with its author, engagement counts and hashtags."""

    id: str
    author: VideoAuthor
    title: str | None = None
    description: str | None = None
    video_url: str = Field(..., description="Playback URL or a processing/error sentinel")
    thumbnail_url: str | None = None
    duration: float | None = Field(None, description="Length in seconds")
    views: int = 0
    like_count: int = 0
    comment_count: int = 0
    hashtags: list[Hashtag] = Field(default_factory=list)
    is_removed: bool = False
    is_flagged: bool = False
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value):
        return assume_utc(value)

    @property
    def is_eligible(self) -> bool:
        """True when the video may be shown in a feed."""
        if self.is_removed or self.is_flagged:
            return False
        return not self.video_url.startswith(SENTINEL_URL_PREFIXES)

    @property
    def hashtag_ids(self) -> set[str]:
        return {h.id for h in self.hashtags}

    def hours_since_creation(self, now: datetime) -> float:
        return (now - self.created_at).total_seconds() / 3600


class LikeRecord(BaseModel):
    """A viewer's like joined to the liked video's hashtag ids."""

    video_id: str
    hashtag_ids: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value):
        return assume_utc(value)


class FeedPage(BaseModel):
    """One page of the ranked feed."""

    videos: list[VideoRecord] = Field(default_factory=list)
    next_cursor: str | None = Field(
        None, description="Opaque token for the next page, absent on the last page"
    )
    has_more: bool = False


class TrendingHashtag(BaseModel):
    """A hashtag ranked by how many recent videos use it."""

    id: str
    name: str | None = None
    video_count: int = Field(0, description="Eligible videos using the hashtag, all time")
    recent_videos: int = Field(0, description="Eligible videos using it within the period")
    unique_creators: int = Field(0, description="Distinct authors of those recent videos")
