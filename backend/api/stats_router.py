"""API routes for vocabulary statistics and dashboard data."""

import logging

from fastapi import APIRouter, Depends

from backend.api.dependencies import get_repository
from backend.api.schemas import OverviewStatsResponse
from backend.srs.mastery import calculate_review_stats, summarize_mastery
from backend.srs.repository import SqlReviewRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=OverviewStatsResponse)
async def get_overview_stats(
    repository: SqlReviewRepository = Depends(get_repository),
) -> OverviewStatsResponse:
    """Mastery levels, due counts and interval buckets across all vocabulary."""
    rows = await repository.list_review_states()
    states = [state for _, state in rows]
    reviewed = [state for state in states if state is not None]

    mastery = summarize_mastery(states)
    review_stats = calculate_review_stats(reviewed)

    return OverviewStatsResponse(
        total_vocabulary=len(rows),
        mastery={level.value: count for level, count in mastery.items()},
        due_today=review_stats.due_today,
        due_this_week=review_stats.due_this_week,
        mastered=review_stats.mastered,
        learning=review_stats.learning,
        missing_reviews=len(states) - len(reviewed),
    )
