"""Shared fixtures for feed ranking tests."""

from datetime import datetime, timedelta, timezone

import pytest

from ...models import Hashtag, LikeRecord, VideoAuthor, VideoRecord

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class FakeVideoStore:
    """In-memory stand-in for :class:`reelfeed.lib.store.VideoStore`.

    Applies the same filters as the Elasticsearch queries.  Lookups without
    a sort come back in reverse insertion order so callers that forget to
    re-sort get caught.
    """

    def __init__(self, videos=(), likes=(), follows=()):
        self.videos: list[VideoRecord] = list(videos)
        # (user_id, video_id, created_at)
        self.likes: list[tuple[str, str, datetime]] = list(likes)
        # (follower_id, following_id)
        self.follows: list[tuple[str, str]] = list(follows)
        self.calls: list[tuple[str, dict]] = []
        self.fail_on: str | None = None

    def _record(self, name: str, **kwargs):
        self.calls.append((name, kwargs))
        if self.fail_on == name:
            raise ConnectionError(f"store unavailable during {name}")

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    async def find_videos(
        self,
        *,
        limit,
        ids=None,
        created_after=None,
        exclude_ids=(),
        author_in=None,
        hashtag_in=None,
        author_not=None,
        sort=None,
    ):
        self._record(
            "find_videos",
            limit=limit,
            ids=ids,
            created_after=created_after,
            exclude_ids=list(exclude_ids),
            author_in=author_in,
            hashtag_in=hashtag_in,
            author_not=author_not,
            sort=sort,
        )
        if limit <= 0 or (ids is not None and not ids):
            return []

        excluded = set(exclude_ids)
        rows = [v for v in self.videos if v.is_eligible and v.id not in excluded]
        if ids is not None:
            wanted = set(ids)
            rows = [v for v in rows if v.id in wanted]
        if created_after is not None:
            rows = [v for v in rows if v.created_at >= created_after]
        if author_in is not None:
            rows = [v for v in rows if v.author.id in set(author_in)]
        if hashtag_in is not None:
            rows = [v for v in rows if v.hashtag_ids & set(hashtag_in)]
        if author_not is not None:
            rows = [v for v in rows if v.author.id != author_not]

        if sort:
            for order in reversed(sort):
                ((field, direction),) = order.items()
                rows.sort(key=lambda v: getattr(v, field), reverse=direction == "desc")
        else:
            rows.reverse()
        return rows[:limit]

    async def following_ids(self, user_id):
        self._record("following_ids", user_id=user_id)
        return [following for follower, following in self.follows if follower == user_id]

    async def follower_ids(self, user_id):
        self._record("follower_ids", user_id=user_id)
        return [follower for follower, following in self.follows if following == user_id]

    async def recent_likes(self, user_id, limit):
        self._record("recent_likes", user_id=user_id, limit=limit)
        by_id = {v.id: v for v in self.videos}
        mine = sorted(
            (like for like in self.likes if like[0] == user_id),
            key=lambda like: like[2],
            reverse=True,
        )[:limit]
        return [
            LikeRecord(
                video_id=video_id,
                hashtag_ids=sorted(by_id[video_id].hashtag_ids) if video_id in by_id else [],
                created_at=created_at,
            )
            for _, video_id, created_at in mine
        ]

    async def liked_among(self, user_id, video_ids):
        self._record("liked_among", user_id=user_id, video_ids=list(video_ids))
        wanted = set(video_ids)
        return {vid for uid, vid, _ in self.likes if uid == user_id and vid in wanted}

    async def has_liked(self, user_id, video_id):
        return video_id in await self.liked_among(user_id, [video_id])

    async def author_video_counts(self, video_ids):
        self._record("author_video_counts", video_ids=list(video_ids))
        per_author: dict[str, int] = {}
        for v in self.videos:
            per_author[v.author.id] = per_author.get(v.author.id, 0) + 1
        wanted = set(video_ids)
        return {v.id: per_author[v.author.id] for v in self.videos if v.id in wanted}


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_video():
    def _make(
        video_id,
        *,
        author="creator",
        hours_old=1.0,
        views=0,
        likes=0,
        comments=0,
        hashtags=(),
        removed=False,
        flagged=False,
        video_url=None,
    ):
        return VideoRecord(
            id=video_id,
            author=VideoAuthor(id=author, username=f"{author}_name"),
            title=f"video {video_id}",
            video_url=video_url or f"https://cdn.example.com/{video_id}.mp4",
            views=views,
            like_count=likes,
            comment_count=comments,
            hashtags=[Hashtag(id=tag, name=tag) for tag in hashtags],
            is_removed=removed,
            is_flagged=flagged,
            created_at=NOW - timedelta(hours=hours_old),
        )

    return _make


@pytest.fixture
def make_store():
    return FakeVideoStore


def liked_at(hours_ago: float) -> datetime:
    return NOW - timedelta(hours=hours_ago)


@pytest.fixture
def like_time():
    return liked_at
