from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from captionbot.errors import CaptionNotFoundError, DuplicateCaptionError, InternalError
from captionbot.filters import FilterOptions, Operator
from captionbot.services.captions_store import CaptionsStore
from captionbot.services.moderation_queue import ModerationQueue


class TickingClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.mark.asyncio
async def test_submit_creates_pending_caption(queue, captions_store):
    caption = await queue.submit("when the build is green", 42)

    assert caption.approved is False
    assert caption.author_id == 42
    assert caption.created_at.tzinfo is not None

    stored = await captions_store.get(caption.id)
    assert stored == caption


@pytest.mark.asyncio
async def test_submit_same_text_twice_is_duplicate(queue, stats):
    await queue.submit("foo", 1)

    with pytest.raises(DuplicateCaptionError):
        await queue.submit("foo", 2)

    assert stats.captions_submitted == 1


@pytest.mark.asyncio
async def test_identifiers_are_unique(queue):
    a = await queue.submit("a", 1)
    b = await queue.submit("b", 1)
    assert a.id != b.id


@pytest.mark.asyncio
async def test_list_pending_skips_approved_and_honours_limit(captions_store):
    queue = ModerationQueue(captions_store, clock=TickingClock())
    first = await queue.submit("one", 1)
    second = await queue.submit("two", 1)
    third = await queue.submit("three", 1)
    await queue.approve(second.id)

    pending = await queue.list_pending(25)
    assert [c.id for c in pending] == [first.id, third.id]

    assert [c.id for c in await queue.list_pending(1)] == [first.id]
    assert [c.id for c in await queue.list_pending(1, offset=1)] == [third.id]


@pytest.mark.asyncio
async def test_list_pending_empty(queue):
    assert await queue.list_pending(25) == []


@pytest.mark.asyncio
async def test_select_with_inequality_filter(captions_store):
    queue = ModerationQueue(captions_store, clock=TickingClock())
    await queue.submit("one", 1)
    mine = await queue.submit("two", 7)

    rows = await queue.select(10, 0, FilterOptions().add("author_id", 1, Operator.NOT_EQ))
    assert [c.id for c in rows] == [mine.id]


@pytest.mark.asyncio
async def test_approve_is_idempotent(queue, captions_store):
    caption = await queue.submit("foo", 1)

    await queue.approve(caption.id)
    await queue.approve(caption.id)

    stored = await captions_store.get(caption.id)
    assert stored is not None and stored.approved is True


@pytest.mark.asyncio
async def test_reject_deletes_and_second_decision_is_not_found(queue, captions_store):
    caption = await queue.submit("foo", 1)

    await queue.reject(caption.id)
    assert await captions_store.get(caption.id) is None

    with pytest.raises(CaptionNotFoundError):
        await queue.approve(caption.id)
    with pytest.raises(CaptionNotFoundError):
        await queue.reject(caption.id)


@pytest.mark.asyncio
async def test_rejected_text_can_be_suggested_again(queue):
    caption = await queue.submit("foo", 1)
    await queue.reject(caption.id)

    again = await queue.submit("foo", 2)
    assert again.id != caption.id


@pytest.mark.asyncio
async def test_draw_approved_only_returns_approved(queue):
    await queue.submit("pending one", 1)
    await queue.submit("pending two", 1)
    approved = await queue.submit("approved", 1)
    await queue.approve(approved.id)

    for _ in range(10):
        drawn = await queue.draw_approved()
        assert drawn.id == approved.id
        assert drawn.approved is True


@pytest.mark.asyncio
async def test_draw_approved_without_approved_captions_is_not_found(queue):
    await queue.submit("pending", 1)

    with pytest.raises(CaptionNotFoundError):
        await queue.draw_approved()


@pytest.mark.asyncio
async def test_storage_failures_become_internal_errors(tmp_path):
    store = CaptionsStore(str(tmp_path / "missing-dir" / "captions.sqlite3"))
    queue = ModerationQueue(store)

    with pytest.raises(InternalError):
        await queue.submit("foo", 1)
    with pytest.raises(InternalError):
        await queue.list_pending(5)


def test_filter_rejects_unknown_columns():
    options = FilterOptions().add("approved; DROP TABLE captions", False)
    with pytest.raises(ValueError):
        options.to_sql({"approved"})


def test_filter_sql_converts_booleans():
    clause, params = FilterOptions().add("approved", False).add("author_id", 3, Operator.NOT_EQ).to_sql(
        {"approved", "author_id"}
    )
    assert clause == "WHERE approved = ? AND author_id != ?"
    assert params == (0, 3)
    assert FilterOptions().to_sql({"approved"}) == ("", ())
