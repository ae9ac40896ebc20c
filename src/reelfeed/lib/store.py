"""Read-only access to the persisted videos, likes and follows.

Documents live in three Elasticsearch indices:

* ``videos`` – one document per video with denormalised ``author``,
  ``hashtags``, ``views``, ``like_count`` and ``comment_count``.
* ``likes``  – ``{user_id, video_id, created_at}``
* ``follows`` – ``{follower_id, following_id}``

Every video query applies the eligibility filter unless told otherwise, so
removed, flagged and still-processing (or failed) uploads never reach the
ranking code.  Any error raised by the client propagates to the caller.
"""

import logging
from datetime import datetime
from typing import Iterable, Sequence

from ..models import SENTINEL_URL_PREFIXES, LikeRecord, TrendingHashtag, VideoRecord
from .elasticsearch import agg_buckets, iter_sources, unwrap_es_response

logger = logging.getLogger(__name__)

VIDEOS_INDEX = "videos"
LIKES_INDEX = "likes"
FOLLOWS_INDEX = "follows"

# Sort orders accepted by ``VideoStore.find_videos``.
MOST_VIEWED = [{"views": "desc"}, {"created_at": "desc"}]
NEWEST = [{"created_at": "desc"}]

# Upper bound on followed accounts considered for one request.
MAX_FOLLOWING = 1000

ELIGIBILITY_MUST_NOT = [
    {"term": {"is_removed": True}},
    {"term": {"is_flagged": True}},
    *({"prefix": {"video_url": prefix}} for prefix in SENTINEL_URL_PREFIXES),
]


def build_video_query(
    *,
    ids: Sequence[str] | None = None,
    created_after: datetime | None = None,
    exclude_ids: Iterable[str] = (),
    author_in: Sequence[str] | None = None,
    hashtag_in: Iterable[str] | None = None,
    author_not: str | None = None,
    eligible_only: bool = True,
) -> dict:
    """Build the ``bool`` query behind every video lookup."""
    filters: list[dict] = []
    must_not: list[dict] = list(ELIGIBILITY_MUST_NOT) if eligible_only else []

    if ids is not None:
        filters.append({"terms": {"id": list(ids)}})
    if created_after is not None:
        filters.append({"range": {"created_at": {"gte": created_after.isoformat()}}})
    if author_in is not None:
        filters.append({"terms": {"author.id": list(author_in)}})
    if hashtag_in is not None:
        filters.append({"terms": {"hashtags.id": sorted(hashtag_in)}})

    excluded = list(exclude_ids)
    if excluded:
        must_not.append({"terms": {"id": excluded}})
    if author_not is not None:
        must_not.append({"term": {"author.id": author_not}})

    return {"bool": {"filter": filters, "must_not": must_not}}


class VideoStore:
    """Query surface over the ``videos``, ``likes`` and ``follows`` indices."""

    def __init__(self, es):
        self.es = es

    async def find_videos(
        self,
        *,
        limit: int,
        ids: Sequence[str] | None = None,
        created_after: datetime | None = None,
        exclude_ids: Iterable[str] = (),
        author_in: Sequence[str] | None = None,
        hashtag_in: Iterable[str] | None = None,
        author_not: str | None = None,
        sort: list[dict] | None = None,
    ) -> list[VideoRecord]:
        """Return eligible videos matching every supplied filter.

        Rows come back in ``sort`` order, or in index order when no sort is
        given; callers that need a specific order must re-sort.
        """
        if limit <= 0 or (ids is not None and not ids):
            return []

        query = build_video_query(
            ids=ids,
            created_after=created_after,
            exclude_ids=exclude_ids,
            author_in=author_in,
            hashtag_in=hashtag_in,
            author_not=author_not,
        )
        kwargs = {"sort": sort} if sort else {}
        resp = await self.es.search(index=VIDEOS_INDEX, query=query, size=limit, **kwargs)
        data = unwrap_es_response(resp)
        return [VideoRecord.model_validate(src) for src in iter_sources(data)]

    async def following_ids(self, user_id: str) -> list[str]:
        """Return the ids of accounts *user_id* follows."""
        resp = await self.es.search(
            index=FOLLOWS_INDEX,
            query={"bool": {"filter": [{"term": {"follower_id": user_id}}]}},
            size=MAX_FOLLOWING,
            _source=["following_id"],
        )
        data = unwrap_es_response(resp)
        return [src["following_id"] for src in iter_sources(data) if src.get("following_id")]

    async def follower_ids(self, user_id: str) -> list[str]:
        """Return the ids of accounts following *user_id*.

        The reverse of :meth:`following_ids`; the ranking passes only need
        the forward direction.
        """
        resp = await self.es.search(
            index=FOLLOWS_INDEX,
            query={"bool": {"filter": [{"term": {"following_id": user_id}}]}},
            size=MAX_FOLLOWING,
            _source=["follower_id"],
        )
        data = unwrap_es_response(resp)
        return [src["follower_id"] for src in iter_sources(data) if src.get("follower_id")]

    async def recent_likes(self, user_id: str, limit: int) -> list[LikeRecord]:
        """Return the user's most recent likes, newest first.

        Each like is joined to the liked video's hashtag ids.  The liked
        video is looked up regardless of its moderation state.
        """
        resp = await self.es.search(
            index=LIKES_INDEX,
            query={"bool": {"filter": [{"term": {"user_id": user_id}}]}},
            size=limit,
            sort=[{"created_at": "desc"}],
            _source=["video_id", "created_at"],
        )
        likes = [src for src in iter_sources(unwrap_es_response(resp)) if src.get("video_id")]
        if not likes:
            return []

        video_ids = [like["video_id"] for like in likes]
        resp = await self.es.search(
            index=VIDEOS_INDEX,
            query=build_video_query(ids=video_ids, eligible_only=False),
            size=len(video_ids),
            _source=["id", "hashtags"],
        )
        hashtags_by_video: dict[str, list[str]] = {}
        for src in iter_sources(unwrap_es_response(resp)):
            hashtags_by_video[src.get("id")] = [
                h["id"] for h in src.get("hashtags") or [] if h.get("id")
            ]

        return [
            LikeRecord(
                video_id=like["video_id"],
                hashtag_ids=hashtags_by_video.get(like["video_id"], []),
                created_at=like.get("created_at"),
            )
            for like in likes
        ]

    async def liked_among(self, user_id: str, video_ids: Sequence[str]) -> set[str]:
        """Return the subset of *video_ids* the user has liked."""
        if not video_ids:
            return set()
        resp = await self.es.search(
            index=LIKES_INDEX,
            query={
                "bool": {
                    "filter": [
                        {"term": {"user_id": user_id}},
                        {"terms": {"video_id": list(video_ids)}},
                    ]
                }
            },
            size=len(video_ids),
            _source=["video_id"],
        )
        data = unwrap_es_response(resp)
        return {src["video_id"] for src in iter_sources(data) if src.get("video_id")}

    async def has_liked(self, user_id: str, video_id: str) -> bool:
        """Single-pair form of :meth:`liked_among`.

        The ranking passes check likes in batches; this is kept for callers
        that only need one answer.
        """
        return video_id in await self.liked_among(user_id, [video_id])

    async def author_video_counts(self, video_ids: Sequence[str]) -> dict[str, int]:
        """Map each video id to the total number of videos its author has.

        Counts every video the author uploaded, whatever its moderation state.
        Videos that cannot be found are left out of the result.
        """
        if not video_ids:
            return {}

        resp = await self.es.search(
            index=VIDEOS_INDEX,
            query=build_video_query(ids=video_ids, eligible_only=False),
            size=len(video_ids),
            _source=["id", "author.id"],
        )
        author_by_video: dict[str, str] = {}
        for src in iter_sources(unwrap_es_response(resp)):
            author_id = (src.get("author") or {}).get("id")
            if src.get("id") and author_id:
                author_by_video[src["id"]] = author_id
        if not author_by_video:
            return {}

        authors = sorted(set(author_by_video.values()))
        resp = await self.es.search(
            index=VIDEOS_INDEX,
            query={"bool": {"filter": [{"terms": {"author.id": authors}}]}},
            size=0,
            aggs={"by_author": {"terms": {"field": "author.id", "size": len(authors)}}},
        )
        buckets = agg_buckets(unwrap_es_response(resp), "by_author")
        counts = {b["key"]: b["doc_count"] for b in buckets}
        return {vid: counts.get(author, 0) for vid, author in author_by_video.items()}

    async def trending_hashtags(self, created_after: datetime, limit: int) -> list[TrendingHashtag]:
        """Return the hashtags used by the most eligible videos since *created_after*.

        Each hashtag carries its recent video count, the number of distinct
        creators behind those videos and its all-time eligible video count.
        Ties on recent use go to the hashtag with more videos overall.
        """
        if limit <= 0:
            return []

        resp = await self.es.search(
            index=VIDEOS_INDEX,
            query=build_video_query(created_after=created_after),
            size=0,
            aggs={
                "by_hashtag": {
                    "terms": {"field": "hashtags.id", "size": limit},
                    "aggs": {
                        "unique_creators": {"cardinality": {"field": "author.id"}},
                        "sample": {"top_hits": {"size": 1, "_source": ["hashtags"]}},
                    },
                }
            },
        )
        buckets = agg_buckets(unwrap_es_response(resp), "by_hashtag")
        if not buckets:
            return []

        tag_ids = [b["key"] for b in buckets]
        resp = await self.es.search(
            index=VIDEOS_INDEX,
            query=build_video_query(hashtag_in=tag_ids),
            size=0,
            aggs={
                "by_hashtag": {
                    "terms": {"field": "hashtags.id", "size": len(tag_ids), "include": tag_ids}
                }
            },
        )
        totals = {
            b["key"]: b["doc_count"]
            for b in agg_buckets(unwrap_es_response(resp), "by_hashtag")
        }

        hashtags = [
            TrendingHashtag(
                id=b["key"],
                name=_hashtag_name(b),
                video_count=totals.get(b["key"], b["doc_count"]),
                recent_videos=b["doc_count"],
                unique_creators=b.get("unique_creators", {}).get("value", 0),
            )
            for b in buckets
        ]
        hashtags.sort(key=lambda h: (h.recent_videos, h.video_count), reverse=True)
        return hashtags


def _hashtag_name(bucket: dict) -> str | None:
    """Pick the bucket's hashtag name out of its sampled video."""
    for src in iter_sources(bucket.get("sample", {})):
        for tag in src.get("hashtags") or []:
            if tag.get("id") == bucket["key"]:
                return tag.get("name")
    return None
