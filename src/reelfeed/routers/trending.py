"""Trending router – recent videos and hashtags, independent of viewer.

GET /trending/videos?period=24h|7d|30d&limit=20
GET /trending/hashtags?period=24h|7d|30d&limit=20
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..lib.feed.service import utcnow
from ..lib.feed.trending import fetch_trending_hashtags, fetch_trending_videos
from ..lib.store import VideoStore
from ..security import verify_api_key
from .feed import ApiModel, FeedVideo

router = APIRouter(tags=["trending"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)

MAX_TRENDING_LIMIT = 50

Period = Literal["24h", "7d", "30d"]


class TrendingVideo(FeedVideo):
    engagement_rate: float


class TrendingVideosResponse(ApiModel):
    videos: list[TrendingVideo]
    period: str


class TrendingHashtagOut(ApiModel):
    id: str
    name: str | None = None
    video_count: int
    recent_videos: int
    unique_creators: int


class TrendingHashtagsResponse(ApiModel):
    hashtags: list[TrendingHashtagOut]
    period: str


@router.get("/trending/videos", response_model=TrendingVideosResponse)
async def trending_videos(
    request: Request,
    period: Period = Query("24h"),
    limit: int = Query(20, ge=1),
) -> TrendingVideosResponse:
    """Rank recent videos by ``(likes + comments * 2) / views``."""
    limit = min(limit, MAX_TRENDING_LIMIT)
    store = VideoStore(request.app.state.es)

    try:
        rated = await fetch_trending_videos(store, period, limit, utcnow())
    except Exception as exc:
        logger.exception("Trending query failed", extra={"period": period})
        raise HTTPException(status_code=502, detail="Trending videos unavailable") from exc

    videos = [
        TrendingVideo(**FeedVideo.from_record(video).model_dump(), engagement_rate=rate)
        for video, rate in rated
    ]
    return TrendingVideosResponse(videos=videos, period=period)


@router.get("/trending/hashtags", response_model=TrendingHashtagsResponse)
async def trending_hashtags(
    request: Request,
    period: Period = Query("24h"),
    limit: int = Query(20, ge=1),
) -> TrendingHashtagsResponse:
    """Rank hashtags by how many recent videos use them."""
    limit = min(limit, MAX_TRENDING_LIMIT)
    store = VideoStore(request.app.state.es)

    try:
        hashtags = await fetch_trending_hashtags(store, period, limit, utcnow())
    except Exception as exc:
        logger.exception("Trending hashtags query failed", extra={"period": period})
        raise HTTPException(status_code=502, detail="Trending hashtags unavailable") from exc

    return TrendingHashtagsResponse(
        hashtags=[TrendingHashtagOut(**h.model_dump()) for h in hashtags],
        period=period,
    )
