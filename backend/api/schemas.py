"""Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from backend.config import settings

# --- Session ---


class SessionStartRequest(BaseModel):
    """Request to start a review session."""

    category: int | Literal["all", "uncategorized"] = "all"
    # null asks for every due and new card in scope
    size_limit: int | None = Field(default_factory=lambda: settings.max_session_size, ge=1)
    multiple_choice: bool = False


class CardResponse(BaseModel):
    """The card currently shown to the learner."""

    vocabulary_id: int
    polish: str
    english: str | None = None  # hidden until revealed
    definition: str | None = None
    examples: list[str] = []
    options: list[str] | None = None  # For multiple choice
    is_new: bool
    mastery: str
    priority: int


class SessionResponse(BaseModel):
    """Session status, position and the current card, if any."""

    session_id: str
    status: str  # idle, empty, active, complete
    current: int
    total: int
    revealed: bool
    card: CardResponse | None = None


class RateRequest(BaseModel):
    """Request to rate the current card."""

    rating: str  # again, hard, good, easy
    vocabulary_id: int | None = None  # Optional guard against rating a stale card


class RateResponse(BaseModel):
    """Response after a rating has been stored."""

    vocabulary_id: int
    rating: str
    ease_factor: float
    interval: int
    repetitions: int
    next_review: datetime | None
    session: SessionResponse


class SessionStatsResponse(BaseModel):
    """Statistics for the current review session."""

    total: int
    completed: int
    correct: int
    again: int
    hard: int
    good: int
    easy: int
    streak: int
    max_streak: int


# --- Stats ---


class OverviewStatsResponse(BaseModel):
    """Mastery and due counts across all vocabulary."""

    total_vocabulary: int
    mastery: dict[str, int]
    due_today: int
    due_this_week: int
    mastered: int  # interval >= 30 days
    learning: int  # interval < 7 days
    missing_reviews: int


# --- Translation ---


class TranslateRequest(BaseModel):
    text: str
    source: Literal["pl", "en"]
    target: Literal["pl", "en"]


class TranslateResponse(BaseModel):
    translated_text: str
