"""API routes for review sessions."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.api.dependencies import get_controller
from backend.api.schemas import (
    CardResponse,
    RateRequest,
    RateResponse,
    SessionResponse,
    SessionStartRequest,
    SessionStatsResponse,
)
from backend.srs.repository import SessionFilter
from backend.srs.session import SessionController, SessionState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])

# In-memory session store (single process; move to Redis for multiple workers)
_active_sessions: dict[str, SessionState] = {}


def _get_state(session_id: str) -> SessionState:
    state = _active_sessions.get(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return state


def _session_response(controller: SessionController, state: SessionState) -> SessionResponse:
    progress = controller.progress(state)
    card = controller.current_card(state)
    card_response = None
    if card is not None:
        card_response = CardResponse(
            vocabulary_id=card.item.id,
            polish=card.item.polish,
            english=card.item.english if state.revealed else None,
            definition=card.item.definition if state.revealed else None,
            examples=list(card.item.examples) if state.revealed else [],
            options=list(card.options) if card.options is not None else None,
            is_new=card.is_new,
            mastery=card.mastery.value,
            priority=card.item.priority,
        )
    return SessionResponse(
        session_id=state.session_id,
        status=state.status.value,
        current=progress.current,
        total=progress.total,
        revealed=state.revealed,
        card=card_response,
    )


@router.post("/start", response_model=SessionResponse)
async def session_start(
    request: SessionStartRequest,
    controller: SessionController = Depends(get_controller),
) -> SessionResponse:
    """Start a new review session. An empty session is reported, not stored."""
    state = await controller.load_session(
        SessionFilter(category=request.category, size_limit=request.size_limit),
        multiple_choice=request.multiple_choice,
    )
    if state.cards:
        _active_sessions[state.session_id] = state
    return _session_response(controller, state)


@router.get("/{session_id}", response_model=SessionResponse)
async def session_get(
    session_id: str,
    controller: SessionController = Depends(get_controller),
) -> SessionResponse:
    """Get the session position and current card."""
    return _session_response(controller, _get_state(session_id))


@router.post("/{session_id}/reveal", response_model=SessionResponse)
async def session_reveal(
    session_id: str,
    controller: SessionController = Depends(get_controller),
) -> SessionResponse:
    """Reveal the answer of the current card."""
    state = controller.reveal(_get_state(session_id))
    _active_sessions[session_id] = state
    return _session_response(controller, state)


@router.post("/{session_id}/next", response_model=SessionResponse)
async def session_next(
    session_id: str,
    controller: SessionController = Depends(get_controller),
) -> SessionResponse:
    state = controller.next_card(_get_state(session_id))
    _active_sessions[session_id] = state
    return _session_response(controller, state)


@router.post("/{session_id}/previous", response_model=SessionResponse)
async def session_previous(
    session_id: str,
    controller: SessionController = Depends(get_controller),
) -> SessionResponse:
    state = controller.previous_card(_get_state(session_id))
    _active_sessions[session_id] = state
    return _session_response(controller, state)


@router.post("/{session_id}/rate", response_model=RateResponse)
async def session_rate(
    session_id: str,
    request: RateRequest,
    controller: SessionController = Depends(get_controller),
) -> RateResponse:
    """Rate the current card. The session only advances once the rating is saved."""
    state = _get_state(session_id)
    card = controller.current_card(state)
    if card is None:
        raise HTTPException(status_code=410, detail="Session is complete")
    if request.vocabulary_id is not None and request.vocabulary_id != card.item.id:
        raise HTTPException(status_code=409, detail="Card ID mismatch")

    outcome = await controller.rate(state, request.rating)
    if outcome is None:
        raise HTTPException(status_code=410, detail="Session is complete")
    _active_sessions[session_id] = outcome.state

    return RateResponse(
        vocabulary_id=card.item.id,
        rating=outcome.rating.value,
        ease_factor=outcome.persisted.ease_factor,
        interval=outcome.persisted.interval,
        repetitions=outcome.persisted.repetitions,
        next_review=outcome.persisted.next_review,
        session=_session_response(controller, outcome.state),
    )


@router.get("/{session_id}/stats", response_model=SessionStatsResponse)
async def session_stats(session_id: str) -> SessionStatsResponse:
    """Get stats for the current session."""
    s = _get_state(session_id).stats
    return SessionStatsResponse(
        total=s.total,
        completed=s.completed,
        correct=s.correct,
        again=s.again,
        hard=s.hard,
        good=s.good,
        easy=s.easy,
        streak=s.streak,
        max_streak=s.max_streak,
    )


@router.post("/{session_id}/end")
async def session_end(session_id: str) -> dict:
    """End a session and discard its working set."""
    state = _active_sessions.pop(session_id, None)
    if state is None:
        raise HTTPException(status_code=404, detail="Session not found")

    s = state.stats
    logger.info("Session %s ended after %d ratings", session_id, s.completed)
    return {
        "status": "ended",
        "completed": s.completed,
        "correct": s.correct,
        "max_streak": s.max_streak,
    }
