import logging
import random
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from telugu_learning.config import get_settings
from telugu_learning.exceptions import InvalidStateError, PersistenceError
from telugu_learning.routes.deps import get_rng, get_store
from telugu_learning.schemas.game import (
    AnswerRequest,
    AnswerResponse,
    GameSession,
    QuestionView,
    SaveResponse,
    StartGameRequest,
    StartGameResponse,
)
from telugu_learning.services import catalog_service, game_service, progress_service
from telugu_learning.services.progress_store import ProgressStore
from telugu_learning.services.question_service import generate_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])

TRACK = "reading"

# Sessions in play, by id. Never persisted: an abandoned session is simply lost.
_sessions: Dict[str, GameSession] = {}
# When each session was last started, answered or saved
_last_seen: Dict[str, datetime] = {}
_now = datetime.now


def _question_view(session: GameSession) -> Optional[QuestionView]:
    question = session.current_question
    if question is None:
        return None
    return QuestionView(
        id=question.id,
        glyph=question.glyph,
        options=question.options,
        position=session.current_index + 1,
        total=session.total_questions
    )


def _get_session(session_id: str) -> GameSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Game session {session_id} not found")
    return session


def _keep(session_id: str, session: GameSession) -> None:
    _sessions[session_id] = session
    _last_seen[session_id] = _now()


def _forget(session_id: str) -> None:
    _sessions.pop(session_id, None)
    _last_seen.pop(session_id, None)


def _evict_stale() -> None:
    """Drop sessions nobody has touched within the configured idle time"""
    cutoff = _now() - timedelta(minutes=get_settings().SESSION_IDLE_MINUTES)
    stale = [session_id for session_id, seen in _last_seen.items() if seen < cutoff]
    for session_id in stale:
        _forget(session_id)
    if stale:
        logger.info("Evicted %d idle game sessions", len(stale))


async def _save(session_id: str, session: GameSession, store: ProgressStore) -> SaveResponse:
    """Record a completed session; keep it around for a retry if the store fails"""
    # Unregistered while saving so a concurrent retry cannot record it twice
    _forget(session_id)
    try:
        progress = await progress_service.record_completion(store, session.learner_id, session)
    except PersistenceError as e:
        logger.warning("Progress for session %s was not saved: %s", session_id, e)
        _keep(session_id, session)
        return SaveResponse(results=session.results, saved=False, save_error=str(e))

    return SaveResponse(results=session.results, saved=True, progress=progress)


@router.post("/letter-match/start", response_model=StartGameResponse)
async def start_letter_match(
    body: StartGameRequest,
    store: ProgressStore = Depends(get_store),
    rng: random.Random = Depends(get_rng)
):
    """Start a letter match game for an unlocked lesson"""
    config = catalog_service.get_level_config(body.level)
    if not config:
        raise HTTPException(status_code=404, detail=f"Level {body.level} not found")
    if not 1 <= body.lesson <= config.total_lessons:
        raise HTTPException(status_code=404, detail=f"Lesson {body.lesson} not found")

    try:
        progress = await progress_service.get_level_progress(store, body.learner_id, TRACK, body.level)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if not progress_service.is_lesson_unlocked(progress, body.lesson):
        raise HTTPException(status_code=403, detail=f"Lesson {body.lesson} is locked")

    settings = get_settings()
    catalog = catalog_service.get_catalog()
    difficulty = game_service.lesson_difficulty(config, body.lesson)

    questions = generate_questions(
        catalog.get_by_difficulty(difficulty),
        config.questions_per_lesson,
        option_count=settings.OPTION_COUNT,
        rng=rng,
        option_pool=catalog.all(),
        dedupe_by_transliteration=settings.DEDUPE_OPTIONS_BY_TRANSLITERATION
    )
    session = game_service.create_session(body.learner_id, body.level, body.lesson, questions, track=TRACK)

    _evict_stale()
    session_id = uuid.uuid4().hex
    _keep(session_id, session)
    logger.info(
        "Learner %s started lesson %d (tier %d), session %s",
        body.learner_id, body.lesson, difficulty, session_id
    )

    return StartGameResponse(
        session_id=session_id,
        track=session.track,
        level=session.level,
        lesson=session.lesson,
        difficulty=difficulty,
        total_questions=session.total_questions,
        question=_question_view(session)
    )


@router.post("/sessions/{session_id}/answer", response_model=AnswerResponse)
async def answer_question(
    session_id: str,
    body: AnswerRequest,
    store: ProgressStore = Depends(get_store)
):
    """Answer the current question; the last answer also scores and saves the game"""
    session = _get_session(session_id)

    try:
        session = game_service.submit_answer(session, body.selected_answer)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    _keep(session_id, session)

    answer = session.answers[-1]
    response = AnswerResponse(
        is_correct=answer.is_correct,
        correct_answer=answer.correct_answer,
        progress_current=session.current_index,
        progress_total=session.total_questions,
        finished=session.is_exhausted,
        next_question=_question_view(session)
    )
    if not session.is_exhausted:
        return response

    config = catalog_service.get_level_config(session.level)
    session = game_service.complete_session(session, config.star_thresholds if config else None)

    saved = await _save(session_id, session, store)
    return response.model_copy(update={
        "results": saved.results,
        "saved": saved.saved,
        "save_error": saved.save_error,
        "progress": saved.progress
    })


@router.post("/sessions/{session_id}/save", response_model=SaveResponse)
async def retry_save(session_id: str, store: ProgressStore = Depends(get_store)):
    """Retry saving a finished game whose progress was not stored"""
    session = _get_session(session_id)
    if not session.completed:
        raise HTTPException(status_code=409, detail="Game is not finished yet")
    return await _save(session_id, session, store)


@router.delete("/sessions/{session_id}", status_code=204)
async def abandon_game(session_id: str):
    """Leave a game; nothing is saved"""
    _get_session(session_id)
    _forget(session_id)
    return Response(status_code=204)
