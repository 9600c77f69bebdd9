"""Tests for review queue building."""

from datetime import datetime, timedelta

import pytest

from backend.config import settings
from backend.errors import PersistenceError
from backend.srs.queue import build_queue
from backend.srs.repository import SessionFilter
from backend.srs.sm2 import ReviewState
from fakes import InMemoryRepository, make_item

NOW = datetime(2026, 3, 1, 12, 0)


def due_state(days_ago: float) -> ReviewState:
    return ReviewState(ease_factor=2.5, interval=1, repetitions=1, next_review=NOW - timedelta(days=days_ago))


class TestBuildQueue:
    @pytest.mark.asyncio
    async def test_due_sorted_oldest_first(self) -> None:
        items = [make_item(i) for i in range(1, 4)]
        repo = InMemoryRepository(
            items,
            {1: due_state(1), 2: due_state(5), 3: due_state(3)},
        )
        queue = await build_queue(repo, SessionFilter(), now=NOW)
        assert [d.item.id for d in queue.due] == [2, 3, 1]
        assert queue.new == []

    @pytest.mark.asyncio
    async def test_unscheduled_reviews_come_last(self) -> None:
        items = [make_item(i) for i in range(1, 4)]
        repo = InMemoryRepository(items, {1: ReviewState(), 2: due_state(4), 3: due_state(1)})
        queue = await build_queue(repo, SessionFilter(), now=NOW)
        assert [d.item.id for d in queue.due] == [2, 3, 1]

    @pytest.mark.asyncio
    async def test_future_reviews_excluded(self) -> None:
        items = [make_item(1), make_item(2)]
        future = ReviewState(interval=6, repetitions=2, next_review=NOW + timedelta(days=2))
        repo = InMemoryRepository(items, {1: future, 2: due_state(1)})
        queue = await build_queue(repo, SessionFilter(), now=NOW)
        assert [d.item.id for d in queue.due] == [2]
        assert queue.new == []

    @pytest.mark.asyncio
    async def test_new_items_fill_remaining_slots(self) -> None:
        items = [make_item(i) for i in range(1, 6)]
        repo = InMemoryRepository(items, {3: due_state(1)})
        queue = await build_queue(repo, SessionFilter(size_limit=3), now=NOW)
        assert [d.item.id for d in queue.due] == [3]
        assert [item.id for item in queue.new] == [1, 2]
        assert queue.total == 3
        assert [item.id for item, _ in queue.ordered()] == [3, 1, 2]

    @pytest.mark.asyncio
    async def test_due_truncated_to_limit(self) -> None:
        items = [make_item(i) for i in range(1, 5)]
        repo = InMemoryRepository(items, {i: due_state(i) for i in range(1, 5)})
        queue = await build_queue(repo, SessionFilter(size_limit=2), now=NOW)
        assert [d.item.id for d in queue.due] == [4, 3]
        assert queue.new == []

    @pytest.mark.asyncio
    async def test_no_limit_takes_everything_due(self) -> None:
        count = settings.max_session_size + 10
        items = [make_item(i) for i in range(1, count + 4)]
        repo = InMemoryRepository(items, {i: due_state(i) for i in range(1, count + 1)})
        queue = await build_queue(repo, SessionFilter(), now=NOW)
        assert len(queue.due) == count
        assert [item.id for item in queue.new] == [count + 1, count + 2, count + 3]

    @pytest.mark.asyncio
    async def test_category_scope(self) -> None:
        items = [
            make_item(1, category_id=1),
            make_item(2, category_id=2),
            make_item(3),
            make_item(4, category_id=1),
        ]
        repo = InMemoryRepository(items, {4: due_state(1)})

        queue = await build_queue(repo, SessionFilter(category=1), now=NOW)
        assert [item.id for item, _ in queue.ordered()] == [4, 1]

        queue = await build_queue(repo, SessionFilter(category="uncategorized"), now=NOW)
        assert [item.id for item, _ in queue.ordered()] == [3]

    @pytest.mark.asyncio
    async def test_nothing_in_scope(self) -> None:
        repo = InMemoryRepository([make_item(1, category_id=1)])
        queue = await build_queue(repo, SessionFilter(category=9), now=NOW)
        assert queue.total == 0

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self) -> None:
        repo = InMemoryRepository([make_item(1)])
        repo.fail_reads = True
        with pytest.raises(PersistenceError):
            await build_queue(repo, SessionFilter(), now=NOW)
