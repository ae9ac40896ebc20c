"""Feed ranking: scoring passes, aggregation, pagination and caching."""

from .base import ScoreMap, ScoringContext, ScoringPass, VideoScore
from .cache import ScoreCache, TTLCache
from .cursor import CursorState, decode_cursor, encode_cursor
from .service import RecommendationService

__all__ = [
    "CursorState",
    "RecommendationService",
    "ScoreCache",
    "ScoreMap",
    "ScoringContext",
    "ScoringPass",
    "TTLCache",
    "VideoScore",
    "decode_cursor",
    "encode_cursor",
]
