"""Queue building for review sessions.

Due reviews come first, oldest due date first. When they don't fill the
session, never-reviewed vocabulary from the same scope is appended. A
filter without a size limit takes everything in scope.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from backend.config import utcnow
from backend.srs.repository import DueReview, ReviewRepository, SessionFilter, VocabularyItem
from backend.srs.sm2 import ReviewState

logger = logging.getLogger(__name__)


@dataclass
class ReviewQueue:
    """A prepared queue of cards for a review session."""

    due: list[DueReview] = field(default_factory=list)
    new: list[VocabularyItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.due) + len(self.new)

    def ordered(self) -> list[tuple[VocabularyItem, ReviewState | None]]:
        """Return (item, review state or None) pairs: due first, then new."""
        pairs: list[tuple[VocabularyItem, ReviewState | None]] = [(d.item, d.review) for d in self.due]
        pairs.extend((item, None) for item in self.new)
        return pairs


def _due_sort_key(due: DueReview) -> tuple[int, datetime]:
    # Never-scheduled reviews sort after every dated one
    if due.review.next_review is None:
        return (1, datetime.max)
    return (0, due.review.next_review)


async def build_queue(
    repository: ReviewRepository,
    session_filter: SessionFilter,
    now: datetime | None = None,
) -> ReviewQueue:
    """Build a review queue for a session.

    Args:
        repository: Storage to query.
        session_filter: Category scope and optional size limit.
        now: Current time (defaults to utcnow).

    Returns:
        A ReviewQueue with due reviews and backfilled new items.

    Raises:
        PersistenceError: If either query fails.
    """
    now = now or utcnow()
    limit = session_filter.size_limit

    due = await repository.list_due_review_states(session_filter, now)
    due = sorted(due, key=_due_sort_key)
    if limit is not None:
        due = due[:limit]

    new: list[VocabularyItem] = []
    slots = None if limit is None else limit - len(due)
    if slots is None or slots > 0:
        seen = {d.item.id for d in due}
        candidates = await repository.list_vocabulary(
            session_filter,
            unreviewed_only=True,
            limit=None if slots is None else slots + len(seen),
        )
        new = [item for item in candidates if item.id not in seen]
        if slots is not None:
            new = new[:slots]

    queue = ReviewQueue(due=due, new=new)
    logger.info(
        "Built queue (category=%s, limit=%s): %d due + %d new = %d total",
        session_filter.category,
        limit,
        len(queue.due),
        len(queue.new),
        queue.total,
    )
    return queue
