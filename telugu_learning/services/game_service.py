"""
Game session state machine and scoring

A session is in progress until every question is answered, then the caller
finalizes it with complete_session. submit_answer never completes a session
on its own.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional, Sequence

from telugu_learning.exceptions import InvalidStateError
from telugu_learning.schemas.game import AnswerRecord, GameSession, Question, ScoringResult
from telugu_learning.schemas.letters import LevelConfig

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_STAR_THRESHOLDS: Dict[int, float] = {3: 0.9, 2: 0.75, 1: 0.6}


def lesson_difficulty(config: LevelConfig, lesson: int) -> int:
    """Difficulty tier of a lesson (level 1: lessons 1-4 tier 1, 5-8 tier 2, 9-10 tier 3)"""
    if lesson < 1:
        raise ValueError(f"Lesson numbers start at 1, got {lesson}")

    last_lesson = 0
    tier = 1
    for tier in sorted(config.lessons_per_difficulty):
        last_lesson += config.lessons_per_difficulty[tier]
        if lesson <= last_lesson:
            return tier
    return tier


def create_session(
    learner_id: str,
    level: int,
    lesson: int,
    questions: Sequence[Question],
    track: str = "reading",
    clock: Clock = datetime.now
) -> GameSession:
    return GameSession(
        learner_id=learner_id,
        track=track,
        level=level,
        lesson=lesson,
        questions=list(questions),
        started_at=clock()
    )


def submit_answer(
    session: GameSession,
    selected_answer: str,
    clock: Clock = datetime.now
) -> GameSession:
    """
    Record the answer to the current question and move to the next one

    Returns:
        GameSession: A new session; the given one is left untouched
    """
    if session.completed:
        raise InvalidStateError("Cannot answer: the session is already completed")
    if session.is_exhausted:
        raise InvalidStateError("Cannot answer: every question has been answered")

    question = session.questions[session.current_index]
    is_correct = selected_answer == question.correct_answer

    record = AnswerRecord(
        question_id=question.id,
        selected_answer=selected_answer,
        correct_answer=question.correct_answer,
        is_correct=is_correct,
        answered_at=clock()
    )

    return session.model_copy(update={
        "answers": [*session.answers, record],
        "correct_count": session.correct_count + (1 if is_correct else 0),
        "current_index": session.current_index + 1
    })


def calculate_stars(
    correct_count: int,
    total_questions: int,
    thresholds: Optional[Mapping[int, float]] = None
) -> int:
    """Stars (0-3) for a score; each threshold counts as met when reached exactly"""
    thresholds = thresholds or DEFAULT_STAR_THRESHOLDS
    if total_questions <= 0:
        return 0

    ratio = correct_count / total_questions
    if ratio >= thresholds[3]:
        return 3
    if ratio >= thresholds[2]:
        return 2
    if ratio >= thresholds[1]:
        return 1
    return 0


def complete_session(
    session: GameSession,
    star_thresholds: Optional[Mapping[int, float]] = None,
    clock: Clock = datetime.now
) -> GameSession:
    """
    Score a fully answered session

    Must be called exactly once per session, after the last answer.
    """
    if session.completed:
        raise InvalidStateError("Session is already completed")
    if not session.is_exhausted:
        raise InvalidStateError(
            f"Cannot complete: {session.current_index} of "
            f"{session.total_questions} questions answered"
        )

    now = clock()
    total = session.total_questions
    correct = session.correct_count
    stars = calculate_stars(correct, total, star_thresholds)
    percentage = round(correct / total * 100, 1) if total else 0.0
    time_spent_ms = max(0, int((now - session.started_at).total_seconds() * 1000))

    results = ScoringResult(
        total_questions=total,
        correct_count=correct,
        incorrect_count=total - correct,
        percentage=percentage,
        stars=stars,
        time_spent_ms=time_spent_ms,
        passed=stars >= 1
    )
    logger.info(
        "Learner %s finished %s level %d lesson %d: %d/%d, %d stars",
        session.learner_id, session.track, session.level, session.lesson, correct, total, stars
    )

    return session.model_copy(update={
        "completed": True,
        "ended_at": now,
        "results": results
    })
