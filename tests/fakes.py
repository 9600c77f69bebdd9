"""In-memory stand-ins for the storage layer used across tests."""

import asyncio
from dataclasses import replace
from datetime import datetime

from backend.errors import PersistenceError
from backend.srs.repository import DueReview, QuizOptions, SessionFilter, VocabularyItem
from backend.srs.sm2 import ReviewState


def make_item(
    item_id: int,
    polish: str | None = None,
    english: str | None = None,
    category_id: int | None = None,
    priority: int = 2,
) -> VocabularyItem:
    return VocabularyItem(
        id=item_id,
        polish=polish or f"slowo{item_id}",
        english=english or f"word{item_id}",
        category_id=category_id,
        priority=priority,
    )


class InMemoryRepository:
    """ReviewRepository over plain dicts, with switches to simulate failures."""

    def __init__(
        self,
        items: list[VocabularyItem] | None = None,
        reviews: dict[int, ReviewState] | None = None,
    ) -> None:
        self.items = list(items or [])
        self.reviews: dict[int, ReviewState] = dict(reviews or {})
        self.quiz_options: dict[int, QuizOptions] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[ReviewState] = []
        self.write_gate: asyncio.Event | None = None
        self._next_id = 1

    @staticmethod
    def _in_scope(item: VocabularyItem, session_filter: SessionFilter) -> bool:
        category = session_filter.category
        if category in (None, "all"):
            return True
        if category == "uncategorized":
            return item.category_id is None
        return item.category_id == category

    async def get_review_state(self, vocabulary_id: int) -> ReviewState | None:
        return self.reviews.get(vocabulary_id)

    async def list_due_review_states(
        self, session_filter: SessionFilter, now: datetime
    ) -> list[DueReview]:
        if self.fail_reads:
            raise PersistenceError("due query failed")
        return [
            DueReview(item=item, review=self.reviews[item.id])
            for item in self.items
            if item.id in self.reviews
            and self._in_scope(item, session_filter)
            and self.reviews[item.id].is_due(now)
        ]

    async def list_vocabulary(
        self,
        session_filter: SessionFilter,
        *,
        unreviewed_only: bool = False,
        limit: int | None = None,
    ) -> list[VocabularyItem]:
        if self.fail_reads:
            raise PersistenceError("vocabulary query failed")
        items = [
            item
            for item in self.items
            if self._in_scope(item, session_filter)
            and not (unreviewed_only and item.id in self.reviews)
        ]
        return items[:limit] if limit is not None else items

    async def upsert_review_state(self, vocabulary_id: int, state: ReviewState) -> ReviewState:
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes:
            raise PersistenceError("write failed")
        existing = self.reviews.get(vocabulary_id)
        review_id = existing.id if existing and existing.id else self._next_id
        if existing is None or existing.id is None:
            self._next_id += 1
        stored = replace(state, vocabulary_id=vocabulary_id, id=review_id)
        self.reviews[vocabulary_id] = stored
        self.writes.append(stored)
        return stored

    async def get_quiz_options(self, vocabulary_id: int) -> QuizOptions | None:
        return self.quiz_options.get(vocabulary_id)

    async def save_quiz_options(self, vocabulary_id: int, options: QuizOptions) -> QuizOptions:
        self.quiz_options[vocabulary_id] = options
        return options

    async def list_review_states(self) -> list[tuple[VocabularyItem, ReviewState | None]]:
        return [(item, self.reviews.get(item.id)) for item in self.items]
