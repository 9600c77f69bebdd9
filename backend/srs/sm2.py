"""SM-2 (SuperMemo 2) scheduling for vocabulary reviews.

Key concepts:
- Ease factor: per-item multiplier for interval growth, never below 1.3.
- Interval: whole days until the item is due again (0 = due immediately).
- Repetitions: consecutive successful reviews; reset by an "Again" rating.
- Priority: 1=low (intervals stretched x1.3), 2=standard, 3=important
  (intervals shortened x0.7).

Ratings map to SM-2 quality scores: Again=0, Hard=3, Good=4, Easy=5.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from backend.config import settings, utcnow
from backend.errors import ValidationError

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3

# Intervals for the first and second successful repetition
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6

DEFAULT_PRIORITY = 2
PRIORITY_MULTIPLIERS = {
    1: 1.3,  # low priority: see it less often
    2: 1.0,
    3: 0.7,  # important: see it more often
}


class Rating(Enum):
    """How well the learner recalled a card, worst to best."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def quality(self) -> int:
        return RATING_QUALITY[self]


RATING_QUALITY = {
    Rating.AGAIN: 0,
    Rating.HARD: 3,
    Rating.GOOD: 4,
    Rating.EASY: 5,
}


@dataclass(frozen=True)
class ReviewState:
    """The scheduling state of one vocabulary item.

    A default-constructed instance is the state of an item that has never
    been reviewed.
    """

    ease_factor: float = INITIAL_EASE_FACTOR
    interval: int = 0  # days
    repetitions: int = 0
    next_review: datetime | None = None  # None = due now
    last_reviewed: datetime | None = None
    vocabulary_id: int | None = None
    id: int | None = None

    def is_due(self, now: datetime | None = None) -> bool:
        """Return True if the item should be shown at ``now``."""
        if self.next_review is None:
            return True
        return self.next_review <= (now or utcnow())


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero instead of to even."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def clamp_priority(priority: int | None) -> int:
    """Clamp a priority weight into the 1..3 range (None = standard)."""
    if priority is None:
        return DEFAULT_PRIORITY
    return max(1, min(3, int(priority)))


def parse_rating(value: "Rating | str") -> Rating:
    """Coerce a rating name such as ``"good"`` into a Rating.

    Raises:
        ValidationError: If the value does not name a rating.
    """
    if isinstance(value, Rating):
        return value
    if isinstance(value, str):
        try:
            return Rating(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError(f"Invalid rating: {value!r} (expected again, hard, good or easy)")


def quality_to_rating(quality: int) -> Rating:
    """Map a six-level SM-2 quality score (0-5) onto the four ratings.

    Scores below 3 are failed recalls and all become Again.
    """
    if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
        raise ValidationError(f"Invalid quality score: {quality!r} (expected 0-5)")
    if quality < 3:
        return Rating.AGAIN
    if quality == 3:
        return Rating.HARD
    if quality == 4:
        return Rating.GOOD
    return Rating.EASY


class SM2:
    """SM-2 scheduler with priority scaling."""

    def __init__(self, reset_interval: int | None = None) -> None:
        """Initialize the scheduler.

        Args:
            reset_interval: Days until a card rated Again is due again.
                Defaults to ``settings.again_interval_days``.
        """
        if reset_interval is None:
            reset_interval = settings.again_interval_days
        self.reset_interval = max(0, reset_interval)

    def review(
        self,
        state: ReviewState | None,
        rating: Rating,
        priority: int | None = DEFAULT_PRIORITY,
        review_time: datetime | None = None,
    ) -> ReviewState:
        """Apply a rating and return the next scheduling state.

        Args:
            state: Current state, or None for an item never reviewed.
            rating: The learner's rating.
            priority: Item priority weight (1-3).
            review_time: When the review happened (defaults to now).

        Returns:
            A new ReviewState; ``state`` is left untouched.
        """
        state = state or ReviewState()
        review_time = review_time or utcnow()
        q = rating.quality

        if q < 3:
            repetitions = 0
            interval = self.reset_interval
        else:
            repetitions = state.repetitions + 1
            if repetitions == 1:
                interval = FIRST_INTERVAL
            elif repetitions == 2:
                interval = SECOND_INTERVAL
            else:
                interval = int(round_half_up(state.interval * state.ease_factor))
            interval = self._scale_interval(interval, priority)

        ease_factor = state.ease_factor + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        ease_factor = round_half_up(max(MIN_EASE_FACTOR, ease_factor), 2)

        return replace(
            state,
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review=review_time + timedelta(days=interval),
            last_reviewed=review_time,
        )

    @staticmethod
    def _scale_interval(interval: int, priority: int | None) -> int:
        if interval <= 0:
            return interval
        multiplier = PRIORITY_MULTIPLIERS[clamp_priority(priority)]
        return int(round_half_up(interval * multiplier))


def compute_next_state(
    state: ReviewState | None,
    rating: Rating,
    priority: int | None = DEFAULT_PRIORITY,
    review_time: datetime | None = None,
) -> ReviewState:
    """Schedule a review with the default SM-2 settings."""
    return SM2().review(state, rating, priority=priority, review_time=review_time)
