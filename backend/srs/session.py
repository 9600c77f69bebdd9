"""Review session state machine.

A session moves through ``idle -> (loading) -> empty | active -> complete``.
``SessionState`` is an immutable value: every controller method returns a
new state and never touches the one passed in, so a failed write leaves
the caller holding the state it had before the call. Where the state lives
between requests (memory, a cookie, a cache) is up to the caller.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from backend.config import utcnow
from backend.errors import SessionBusyError
from backend.srs.mastery import MasteryLevel, classify_mastery
from backend.srs.options import OptionProvider
from backend.srs.queue import build_queue
from backend.srs.repository import ReviewRepository, SessionFilter, VocabularyItem
from backend.srs.sm2 import SM2, Rating, ReviewState, parse_rating

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    IDLE = "idle"
    EMPTY = "empty"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionCard:
    """A vocabulary item presented during a session, with its review state."""

    item: VocabularyItem
    review: ReviewState | None = None
    options: tuple[str, ...] | None = None  # multiple-choice answers, shuffled

    @property
    def is_new(self) -> bool:
        return self.review is None

    @property
    def mastery(self) -> MasteryLevel:
        return classify_mastery(self.review)


@dataclass(frozen=True)
class SessionStats:
    """Running counters for a session."""

    total: int = 0
    completed: int = 0
    correct: int = 0
    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0
    streak: int = 0
    max_streak: int = 0

    def record(self, rating: Rating) -> SessionStats:
        """Return the stats after one more rating."""
        streak = 0 if rating is Rating.AGAIN else self.streak + 1
        return replace(
            self,
            completed=self.completed + 1,
            correct=self.correct + (rating is not Rating.AGAIN),
            streak=streak,
            max_streak=max(self.max_streak, streak),
            **{rating.value: getattr(self, rating.value) + 1},
        )


@dataclass(frozen=True)
class Progress:
    current: int  # 1-based
    total: int


@dataclass(frozen=True)
class SessionState:
    """The working set of one review session."""

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    cards: tuple[SessionCard, ...] = ()
    session_filter: SessionFilter = field(default_factory=SessionFilter)
    index: int = 0
    revealed: bool = False
    stats: SessionStats = field(default_factory=SessionStats)
    status: SessionStatus = SessionStatus.IDLE
    multiple_choice: bool = False
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def idle(cls, session_filter: SessionFilter | None = None) -> SessionState:
        return cls(session_filter=session_filter or SessionFilter())


@dataclass(frozen=True)
class RateOutcome:
    """Result of a successfully stored rating."""

    state: SessionState
    persisted: ReviewState
    rating: Rating


class SessionController:
    """Loads sessions, sequences cards and feeds ratings to the scheduler.

    Calls against one session must be serialized by the caller; an
    overlapping ``rate`` for the same session raises SessionBusyError.
    """

    def __init__(
        self,
        repository: ReviewRepository,
        scheduler: SM2 | None = None,
        option_provider: OptionProvider | None = None,
    ) -> None:
        self.repository = repository
        self.scheduler = scheduler or SM2()
        self.option_provider = option_provider
        self._in_flight: set[str] = set()

    async def load_session(
        self,
        session_filter: SessionFilter | None = None,
        multiple_choice: bool = False,
        now: datetime | None = None,
    ) -> SessionState:
        """Load due and new cards for a filter.

        Returns:
            An ``active`` state, or an ``empty`` one when nothing is due and
            nothing new is left in scope.

        Raises:
            ValidationError: If the filter is malformed.
            PersistenceError: If loading fails. No partial session is built.
        """
        session_filter = (session_filter or SessionFilter()).validate()
        queue = await build_queue(self.repository, session_filter, now=now)

        cards = [SessionCard(item=item, review=review) for item, review in queue.ordered()]
        if not cards:
            logger.info("No cards to review for category=%s", session_filter.category)
            return SessionState(session_filter=session_filter, status=SessionStatus.EMPTY)

        if multiple_choice:
            cards = await self._attach_options(cards, session_filter)

        state = SessionState(
            cards=tuple(cards),
            session_filter=session_filter,
            stats=SessionStats(total=len(cards)),
            status=SessionStatus.ACTIVE,
            multiple_choice=multiple_choice,
        )
        logger.info(
            "Started session %s: %d due + %d new cards",
            state.session_id,
            len(queue.due),
            len(queue.new),
        )
        return state

    async def _attach_options(
        self, cards: list[SessionCard], session_filter: SessionFilter
    ) -> list[SessionCard]:
        provider = self.option_provider or OptionProvider(self.repository)
        pool = await self.repository.list_vocabulary(session_filter)
        return [
            replace(card, options=tuple(await provider.options_for(card.item, pool)))
            for card in cards
        ]

    def current_card(self, state: SessionState) -> SessionCard | None:
        """Return the card at the current position, or None when exhausted."""
        if state.status is not SessionStatus.ACTIVE:
            return None
        if 0 <= state.index < len(state.cards):
            return state.cards[state.index]
        return None

    def reveal(self, state: SessionState) -> SessionState:
        """Show the current card's answer. Revealing twice changes nothing."""
        if state.revealed or self.current_card(state) is None:
            return state
        return replace(state, revealed=True)

    def next_card(self, state: SessionState) -> SessionState:
        """Move forward without rating; stays put on the last card."""
        if self.current_card(state) is None or state.index >= len(state.cards) - 1:
            return state
        return replace(state, index=state.index + 1, revealed=False)

    def previous_card(self, state: SessionState) -> SessionState:
        """Move back one card; stays put on the first card."""
        if self.current_card(state) is None or state.index == 0:
            return state
        return replace(state, index=state.index - 1, revealed=False)

    async def rate(
        self,
        state: SessionState,
        rating: Rating | str,
        now: datetime | None = None,
    ) -> RateOutcome | None:
        """Rate the current card, store its new schedule, then advance.

        The session only advances after the new review state has been
        written. If the write fails the error propagates and ``state`` is
        still positioned on the same card, ready for a retry.

        Returns:
            The outcome, or None when the session has no active card.

        Raises:
            ValidationError: If the rating is not recognised.
            SessionBusyError: If a rating for this session is still being saved.
            PersistenceError: If the write fails.
        """
        rating = parse_rating(rating)
        card = self.current_card(state)
        if card is None:
            logger.debug("Ignoring rating for session %s: no active card", state.session_id)
            return None
        if state.session_id in self._in_flight:
            raise SessionBusyError(f"A rating for session {state.session_id} is still being saved")

        self._in_flight.add(state.session_id)
        try:
            next_review = self.scheduler.review(
                card.review, rating, priority=card.item.priority, review_time=now
            )
            persisted = await self.repository.upsert_review_state(card.item.id, next_review)
        finally:
            self._in_flight.discard(state.session_id)

        cards = list(state.cards)
        cards[state.index] = replace(card, review=persisted)
        index = state.index + 1
        status = SessionStatus.COMPLETE if index >= len(cards) else SessionStatus.ACTIVE

        new_state = replace(
            state,
            cards=tuple(cards),
            index=index,
            revealed=False,
            stats=state.stats.record(rating),
            status=status,
        )
        logger.info(
            "Session %s: rated %r %s, next review in %d days",
            state.session_id,
            card.item.polish,
            rating.value,
            persisted.interval,
        )
        if status is SessionStatus.COMPLETE:
            logger.info(
                "Session %s complete: %d/%d correct",
                state.session_id,
                new_state.stats.correct,
                new_state.stats.completed,
            )
        return RateOutcome(state=new_state, persisted=persisted, rating=rating)

    def is_complete(self, state: SessionState) -> bool:
        """True once no card is left to rate. Check ``status`` to tell empty from complete."""
        return state.status in (SessionStatus.COMPLETE, SessionStatus.EMPTY)

    def progress(self, state: SessionState) -> Progress:
        """Return the 1-based position for display, capped at the total."""
        total = len(state.cards)
        return Progress(current=min(state.index + 1, total), total=total)

    def change_filter(self, state: SessionState, session_filter: SessionFilter) -> SessionState:
        """Switch filters. A different filter discards the working set."""
        session_filter = session_filter.validate()
        if session_filter == state.session_filter:
            return state
        logger.info("Filter changed, discarding session %s", state.session_id)
        return SessionState.idle(session_filter)
