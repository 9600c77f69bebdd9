"""Mastery classification and review statistics for dashboards.

Nothing here feeds back into scheduling.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from backend.config import utcnow
from backend.srs.sm2 import ReviewState

KNOWN_EASE_FACTOR = 2.5
KNOWN_REPETITIONS = 3
DIFFICULT_EASE_FACTOR = 2.0

MASTERED_INTERVAL_DAYS = 30
LEARNING_INTERVAL_DAYS = 7


class MasteryLevel(Enum):
    NEW = "new"
    LEARNING = "learning"
    DIFFICULT = "difficult"
    KNOWN = "known"


@dataclass
class ReviewStats:
    """Due counts and interval buckets over a set of review states."""

    due_today: int = 0
    due_this_week: int = 0
    total: int = 0
    mastered: int = 0  # interval >= 30 days
    learning: int = 0  # 0 < interval < 7 days


def classify_mastery(state: ReviewState | None) -> MasteryLevel:
    """Classify how well an item is known from its review state."""
    if state is None:
        return MasteryLevel.NEW
    if state.ease_factor >= KNOWN_EASE_FACTOR and state.repetitions >= KNOWN_REPETITIONS:
        return MasteryLevel.KNOWN
    if state.ease_factor < DIFFICULT_EASE_FACTOR and state.repetitions > 0:
        return MasteryLevel.DIFFICULT
    if state.repetitions in (1, 2):
        return MasteryLevel.LEARNING
    return MasteryLevel.NEW


def summarize_mastery(states: Iterable[ReviewState | None]) -> dict[MasteryLevel, int]:
    """Count items per mastery level. Every level is present in the result."""
    counts = {level: 0 for level in MasteryLevel}
    for state in states:
        counts[classify_mastery(state)] += 1
    return counts


def calculate_review_stats(
    states: Iterable[ReviewState],
    now: datetime | None = None,
) -> ReviewStats:
    """Bucket review states by due date and interval length.

    Items already due count toward ``due_today``; ``due_this_week`` holds the
    ones falling due within the next seven days from midnight today.
    """
    now = now or utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_from_now = today + timedelta(days=7)

    stats = ReviewStats()
    for state in states:
        stats.total += 1
        if state.next_review is not None:
            if state.next_review <= now:
                stats.due_today += 1
            elif state.next_review <= week_from_now:
                stats.due_this_week += 1

        if state.interval >= MASTERED_INTERVAL_DAYS:
            stats.mastered += 1
        elif 0 < state.interval < LEARNING_INTERVAL_DAYS:
            stats.learning += 1
    return stats
