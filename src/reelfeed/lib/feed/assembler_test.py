"""Tests for turning a ranking into a hydrated page."""

import pytest

from .assembler import assemble_page
from .base import ScoringContext, VideoScore
from .cursor import decode_cursor


@pytest.fixture
def context(now):
    return ScoringContext(viewer_id=None, exclude_ids=["seen"], now=now)


def ranking(*ids):
    # Strictly decreasing scores so rank order is the argument order.
    return [VideoScore(video_id=vid, score=100.0 - i, reason="trending") for i, vid in enumerate(ids)]


def ids(page):
    return [v.id for v in page.videos]


@pytest.mark.asyncio
async def test_rows_follow_rank_order(make_store, make_video, context):
    store = make_store([make_video(f"v{i}") for i in range(4)])
    page = await assemble_page(store, ranking("v2", "v0", "v3", "v1"), context, limit=3)

    assert ids(page) == ["v2", "v0", "v3"]


@pytest.mark.asyncio
async def test_hydrates_twice_the_page_in_one_query(make_store, make_video, context):
    store = make_store([make_video(f"v{i}") for i in range(6)])
    await assemble_page(store, ranking(*(f"v{i}" for i in range(6))), context, limit=2)

    (name, call), = store.calls
    assert name == "find_videos"
    assert call["ids"] == ["v0", "v1", "v2", "v3"]
    assert call["limit"] == 4


@pytest.mark.asyncio
async def test_missing_top_ranked_video_is_backfilled(make_store, make_video, context):
    store = make_store([make_video(f"v{i}") for i in range(4)])
    page = await assemble_page(store, ranking("gone", "v0", "v1", "v2", "v3"), context, limit=2)

    assert ids(page) == ["v0", "v1"]
    state = decode_cursor(page.next_cursor)
    assert state.exclude_ids == ["seen", "gone", "v0", "v1"]


@pytest.mark.asyncio
async def test_moderated_video_is_dropped_and_excluded(make_store, make_video, context):
    store = make_store([make_video("v0", flagged=True), make_video("v1"), make_video("v2")])
    page = await assemble_page(store, ranking("v0", "v1", "v2"), context, limit=1)

    assert ids(page) == ["v1"]
    assert decode_cursor(page.next_cursor).exclude_ids == ["seen", "v0", "v1"]


@pytest.mark.asyncio
async def test_last_score_is_from_last_video_on_page(make_store, make_video, context):
    store = make_store([make_video(f"v{i}") for i in range(3)])
    page = await assemble_page(store, ranking("v0", "gone", "v1", "v2"), context, limit=2)

    assert ids(page) == ["v0", "v1"]
    assert decode_cursor(page.next_cursor).last_score == pytest.approx(98.0)


@pytest.mark.asyncio
async def test_exactly_limit_ranked_is_last_page(make_store, make_video, context):
    store = make_store([make_video(f"v{i}") for i in range(2)])
    page = await assemble_page(store, ranking("v0", "v1"), context, limit=2)

    assert ids(page) == ["v0", "v1"]
    assert page.has_more is False
    assert page.next_cursor is None


@pytest.mark.asyncio
async def test_one_more_than_limit_has_more(make_store, make_video, context):
    store = make_store([make_video(f"v{i}") for i in range(3)])
    page = await assemble_page(store, ranking("v0", "v1", "v2"), context, limit=2)

    assert page.has_more is True
    assert decode_cursor(page.next_cursor).exclude_ids == ["seen", "v0", "v1"]


@pytest.mark.asyncio
async def test_empty_ranking_skips_the_store(make_store, context):
    store = make_store()
    page = await assemble_page(store, [], context, limit=10)

    assert page.videos == []
    assert page.has_more is False
    assert store.calls == []
