"""Storage access for vocabulary, review states and quiz options.

The session controller only depends on the ``ReviewRepository`` protocol;
``SqlReviewRepository`` is the SQLAlchemy-backed implementation.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Protocol

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from backend.errors import PersistenceError, ValidationError
from backend.models.category import Category
from backend.models.quiz_option import QuizOption
from backend.models.review import Review
from backend.models.sentence import Sentence
from backend.models.vocabulary import Vocabulary
from backend.srs.sm2 import DEFAULT_PRIORITY, ReviewState, clamp_priority

logger = logging.getLogger(__name__)

CategoryScope = int | Literal["all", "uncategorized"] | None


@dataclass(frozen=True)
class VocabularyItem:
    """A learnable Polish/English pair."""

    id: int
    polish: str
    english: str
    category_id: int | None = None
    priority: int = DEFAULT_PRIORITY
    definition: str | None = None
    examples: tuple[str, ...] = ()


@dataclass(frozen=True)
class DueReview:
    """A due review state paired with its vocabulary item."""

    item: VocabularyItem
    review: ReviewState


@dataclass(frozen=True)
class QuizOptions:
    """The correct answer and three distractors for a multiple-choice card."""

    correct: str
    distractors: tuple[str, ...]


@dataclass(frozen=True)
class SessionFilter:
    """Which vocabulary a session draws from and how many cards it holds."""

    category: CategoryScope = "all"
    size_limit: int | None = None

    def validate(self) -> SessionFilter:
        """Return self if well-formed, otherwise raise ValidationError."""
        category = self.category
        if category is not None and category not in ("all", "uncategorized"):
            if isinstance(category, bool) or not isinstance(category, int) or category < 1:
                raise ValidationError(f"Invalid category filter: {category!r}")
        if self.size_limit is not None:
            if isinstance(self.size_limit, bool) or not isinstance(self.size_limit, int):
                raise ValidationError(f"Invalid size limit: {self.size_limit!r}")
            if self.size_limit < 1:
                raise ValidationError("Size limit must be at least 1")
        return self


@dataclass
class BackfillResult:
    """Outcome of creating missing review states for legacy vocabulary."""

    total_vocabulary: int = 0
    total_reviews: int = 0
    missing_reviews: int = 0
    created_reviews: int = 0
    errors: list[str] = field(default_factory=list)


class ReviewRepository(Protocol):
    """What the session controller needs from storage."""

    async def get_review_state(self, vocabulary_id: int) -> ReviewState | None: ...

    async def list_due_review_states(
        self, session_filter: SessionFilter, now: datetime
    ) -> list[DueReview]: ...

    async def list_vocabulary(
        self,
        session_filter: SessionFilter,
        *,
        unreviewed_only: bool = False,
        limit: int | None = None,
    ) -> list[VocabularyItem]: ...

    async def upsert_review_state(self, vocabulary_id: int, state: ReviewState) -> ReviewState: ...

    async def get_quiz_options(self, vocabulary_id: int) -> QuizOptions | None: ...

    async def save_quiz_options(self, vocabulary_id: int, options: QuizOptions) -> QuizOptions: ...


def to_item(vocab: Vocabulary) -> VocabularyItem:
    """Convert an ORM row into a VocabularyItem."""
    examples: tuple[str, ...] = ()
    if vocab.examples:
        try:
            examples = tuple(json.loads(vocab.examples))
        except (json.JSONDecodeError, TypeError):
            logger.warning("Ignoring malformed examples for vocabulary %d", vocab.id)
    return VocabularyItem(
        id=vocab.id,
        polish=vocab.polish,
        english=vocab.english,
        category_id=vocab.category_id,
        priority=clamp_priority(vocab.priority),
        definition=vocab.definition,
        examples=examples,
    )


def to_state(review: Review) -> ReviewState:
    """Convert an ORM row into a ReviewState."""
    return ReviewState(
        ease_factor=review.ease_factor,
        interval=review.interval,
        repetitions=review.repetitions,
        next_review=review.next_review,
        last_reviewed=review.last_reviewed,
        vocabulary_id=review.vocabulary_id,
        id=review.id,
    )


def _category_clause(session_filter: SessionFilter):
    category = session_filter.category
    if category is None or category == "all":
        return None
    if category == "uncategorized":
        return Vocabulary.category_id.is_(None)
    return Vocabulary.category_id == category


class SqlReviewRepository:
    """ReviewRepository backed by SQLAlchemy async sessions.

    Each call opens its own session. Database errors surface as
    PersistenceError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_review_state(self, vocabulary_id: int) -> ReviewState | None:
        try:
            async with self.session_factory() as db:
                review = (
                    await db.execute(select(Review).where(Review.vocabulary_id == vocabulary_id))
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load review for vocabulary {vocabulary_id}") from exc
        return to_state(review) if review else None

    async def list_due_review_states(
        self, session_filter: SessionFilter, now: datetime
    ) -> list[DueReview]:
        conditions = [or_(Review.next_review.is_(None), Review.next_review <= now)]
        category_clause = _category_clause(session_filter)
        if category_clause is not None:
            conditions.append(category_clause)

        stmt = (
            select(Review)
            .join(Review.vocabulary)
            .where(and_(*conditions))
            .order_by(Review.next_review.asc().nulls_last(), Review.id.asc())
            .options(selectinload(Review.vocabulary))
        )
        try:
            async with self.session_factory() as db:
                reviews = list((await db.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load due reviews") from exc
        return [DueReview(item=to_item(r.vocabulary), review=to_state(r)) for r in reviews]

    async def list_vocabulary(
        self,
        session_filter: SessionFilter,
        *,
        unreviewed_only: bool = False,
        limit: int | None = None,
    ) -> list[VocabularyItem]:
        stmt = select(Vocabulary).order_by(Vocabulary.id.asc())
        category_clause = _category_clause(session_filter)
        if category_clause is not None:
            stmt = stmt.where(category_clause)
        if unreviewed_only:
            stmt = stmt.where(~Vocabulary.review.has())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            async with self.session_factory() as db:
                rows = list((await db.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load vocabulary") from exc
        return [to_item(v) for v in rows]

    async def upsert_review_state(self, vocabulary_id: int, state: ReviewState) -> ReviewState:
        try:
            async with self.session_factory() as db:
                review = (
                    await db.execute(select(Review).where(Review.vocabulary_id == vocabulary_id))
                ).scalar_one_or_none()
                if review is None:
                    review = Review(vocabulary_id=vocabulary_id)
                    db.add(review)
                review.ease_factor = state.ease_factor
                review.interval = state.interval
                review.repetitions = state.repetitions
                review.next_review = state.next_review
                review.last_reviewed = state.last_reviewed
                await db.commit()
                await db.refresh(review)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save review for vocabulary {vocabulary_id}") from exc
        logger.debug(
            "Saved review for vocabulary %d: interval=%d ease=%.2f",
            vocabulary_id,
            review.interval,
            review.ease_factor,
        )
        return to_state(review)

    async def list_review_states(self) -> list[tuple[VocabularyItem, ReviewState | None]]:
        """Return every vocabulary item with its review state, if any."""
        stmt = (
            select(Vocabulary).order_by(Vocabulary.id.asc()).options(selectinload(Vocabulary.review))
        )
        try:
            async with self.session_factory() as db:
                rows = list((await db.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load review states") from exc
        return [(to_item(v), to_state(v.review) if v.review else None) for v in rows]

    async def get_quiz_options(self, vocabulary_id: int) -> QuizOptions | None:
        try:
            async with self.session_factory() as db:
                row = (
                    await db.execute(
                        select(QuizOption).where(QuizOption.vocabulary_id == vocabulary_id)
                    )
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load quiz options for {vocabulary_id}") from exc
        if row is None:
            return None
        return QuizOptions(
            correct=row.correct_answer,
            distractors=(row.distractor_1, row.distractor_2, row.distractor_3),
        )

    async def save_quiz_options(self, vocabulary_id: int, options: QuizOptions) -> QuizOptions:
        if len(options.distractors) != 3:
            raise ValidationError("Quiz options need exactly three distractors")
        try:
            async with self.session_factory() as db:
                row = (
                    await db.execute(
                        select(QuizOption).where(QuizOption.vocabulary_id == vocabulary_id)
                    )
                ).scalar_one_or_none()
                if row is None:
                    row = QuizOption(vocabulary_id=vocabulary_id)
                    db.add(row)
                row.correct_answer = options.correct
                row.distractor_1, row.distractor_2, row.distractor_3 = options.distractors
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save quiz options for {vocabulary_id}") from exc
        return options

    async def backfill_missing_reviews(self) -> BackfillResult:
        """Create a default review state for every item that lacks one."""
        result = BackfillResult()
        try:
            async with self.session_factory() as db:
                vocab = list((await db.execute(select(Vocabulary.id, Vocabulary.polish))).all())
                reviewed = set((await db.execute(select(Review.vocabulary_id))).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load vocabulary for backfill") from exc

        result.total_vocabulary = len(vocab)
        result.total_reviews = len(reviewed)
        missing = [(vid, polish) for vid, polish in vocab if vid not in reviewed]
        result.missing_reviews = len(missing)

        initial = ReviewState()
        for vocabulary_id, polish in missing:
            try:
                await self.upsert_review_state(vocabulary_id, initial)
            except PersistenceError as exc:
                message = f"Failed to create review for {polish!r}: {exc.message}"
                logger.error(message)
                result.errors.append(message)
            else:
                result.created_reviews += 1

        logger.info(
            "Backfill: %d vocabulary, %d missing reviews, %d created",
            result.total_vocabulary,
            result.missing_reviews,
            result.created_reviews,
        )
        return result

    async def add_vocabulary(
        self,
        polish: str,
        english: str,
        category_id: int | None = None,
        priority: int = DEFAULT_PRIORITY,
    ) -> VocabularyItem:
        polish, english = polish.strip(), english.strip()
        if not polish or not english:
            raise ValidationError("Both the Polish and English text are required")
        try:
            async with self.session_factory() as db:
                vocab = Vocabulary(
                    polish=polish,
                    english=english,
                    category_id=category_id,
                    priority=clamp_priority(priority),
                )
                db.add(vocab)
                await db.commit()
                await db.refresh(vocab)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to add vocabulary {polish!r}") from exc
        return to_item(vocab)

    async def find_vocabulary(self, polish: str) -> VocabularyItem | None:
        try:
            async with self.session_factory() as db:
                vocab = (
                    await db.execute(
                        select(Vocabulary).where(Vocabulary.polish == polish.strip()).limit(1)
                    )
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to look up {polish!r}") from exc
        return to_item(vocab) if vocab else None

    async def save_enrichment(
        self, vocabulary_id: int, definition: str, examples: Sequence[str]
    ) -> None:
        """Store a generated definition and example sentences on an item."""
        try:
            async with self.session_factory() as db:
                vocab = await db.get(Vocabulary, vocabulary_id)
                if vocab is None:
                    raise ValidationError(f"Unknown vocabulary id {vocabulary_id}")
                vocab.definition = definition
                vocab.examples = json.dumps(list(examples), ensure_ascii=False)
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save content for {vocabulary_id}") from exc

    async def add_sentences(
        self, vocabulary_id: int, sentences: Sequence[tuple[str, str]]
    ) -> int:
        """Store (english, polish) sentence pairs; returns how many were added."""
        try:
            async with self.session_factory() as db:
                db.add_all(
                    Sentence(
                        vocabulary_id=vocabulary_id,
                        sentence_english=english,
                        sentence_polish=polish,
                    )
                    for english, polish in sentences
                )
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save sentences for {vocabulary_id}") from exc
        return len(sentences)

    async def get_or_create_category(self, name: str) -> int:
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty")
        try:
            async with self.session_factory() as db:
                category = (
                    await db.execute(select(Category).where(Category.name == name))
                ).scalar_one_or_none()
                if category is None:
                    category = Category(name=name)
                    db.add(category)
                    await db.commit()
                    await db.refresh(category)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save category {name!r}") from exc
        return category.id

    async def list_categories(self) -> list[tuple[int, str]]:
        try:
            async with self.session_factory() as db:
                stmt = select(Category.id, Category.name).order_by(Category.name)
                rows = (await db.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load categories") from exc
        return [(row[0], row[1]) for row in rows]

