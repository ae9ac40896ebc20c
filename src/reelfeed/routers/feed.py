"""Feed router – serves the ranked "for you" feed over HTTP.

GET /feed/for-you
    One page of recommended videos for the viewer named in ``X-Viewer-Id``
    (anonymous when absent), continued with the returned cursor.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..lib.feed import RecommendationService
from ..models import VideoRecord
from ..security import ViewerId, verify_api_key

router = APIRouter(tags=["feed"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)

MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 20
DEFAULT_PAGE_SIZE = 15


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class ApiModel(BaseModel):
    """Base for response bodies, serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedUser(ApiModel):
    id: str
    username: str | None = None
    avatar: str | None = None


class FeedMetrics(ApiModel):
    likes: int
    comments: int
    views: int


class FeedHashtag(ApiModel):
    id: str
    name: str | None = None


class FeedVideo(ApiModel):
    """A video as rendered in a feed response."""

    id: str
    title: str | None = None
    description: str | None = None
    video_url: str
    thumbnail_url: str | None = None
    duration: float | None = None
    views: int
    created_at: datetime
    user: FeedUser
    metrics: FeedMetrics
    hashtags: list[FeedHashtag] = Field(default_factory=list)

    @classmethod
    def from_record(cls, video: VideoRecord) -> "FeedVideo":
        return cls(
            id=video.id,
            title=video.title,
            description=video.description,
            video_url=video.video_url,
            thumbnail_url=video.thumbnail_url,
            duration=video.duration,
            views=video.views,
            created_at=video.created_at,
            user=FeedUser(**video.author.model_dump()),
            metrics=FeedMetrics(
                likes=video.like_count,
                comments=video.comment_count,
                views=video.views,
            ),
            hashtags=[FeedHashtag(id=h.id, name=h.name) for h in video.hashtags],
        )


class Pagination(ApiModel):
    cursor: str | None = None
    has_more: bool
    limit: int


class ForYouResponse(ApiModel):
    videos: list[FeedVideo]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

def get_recommender(request: Request) -> RecommendationService:
    return request.app.state.recommender


@router.get("/feed/for-you", response_model=ForYouResponse)
async def feed_for_you(
    viewer_id: ViewerId,
    recommender: RecommendationService = Depends(get_recommender),
    cursor: str | None = Query(None, description="Cursor from the previous page"),
    limit: int = Query(DEFAULT_PAGE_SIZE, description="Page size, clamped to 10-20"),
) -> ForYouResponse:
    """Return one page of the viewer's recommended videos."""
    limit = min(max(limit, MIN_PAGE_SIZE), MAX_PAGE_SIZE)

    try:
        page = await recommender.get_recommended_videos(viewer_id, cursor, limit)
    except Exception as exc:
        logger.exception(
            "Feed ranking failed",
            extra={"viewer_id": viewer_id or "anonymous", "has_cursor": cursor is not None},
        )
        raise HTTPException(status_code=502, detail="Feed unavailable") from exc

    return ForYouResponse(
        videos=[FeedVideo.from_record(v) for v in page.videos],
        pagination=Pagination(cursor=page.next_cursor, has_more=page.has_more, limit=limit),
    )
