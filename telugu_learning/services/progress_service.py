import logging
from datetime import date, datetime, timedelta
from typing import List, Sequence

from telugu_learning.exceptions import InvalidStateError, PersistenceError
from telugu_learning.schemas.game import GameSession
from telugu_learning.schemas.progress import LessonProgress, StreakRecord, TrackProgress
from telugu_learning.services.game_service import Clock
from telugu_learning.services.progress_store import LessonKey, ProgressStore

logger = logging.getLogger(__name__)


async def record_completion(
    store: ProgressStore,
    learner_id: str,
    session: GameSession,
    clock: Clock = datetime.now
) -> LessonProgress:
    """
    Merge a completed session into the learner's lesson progress

    The best attempt (by stars, strictly better only) is kept; attempts and
    last_played_at change on every call. The daily streak is updated
    afterwards on a best-effort basis.

    Returns:
        LessonProgress: The stored record after the merge
    """
    if not session.completed or session.results is None:
        raise InvalidStateError("Only completed sessions can be recorded")

    results = session.results
    now = clock()
    key = LessonKey(learner_id, session.track, session.level, session.lesson)
    existing = await store.get_lesson(key)

    if not existing:
        progress = LessonProgress(
            learner_id=learner_id,
            track=session.track,
            level=session.level,
            lesson=session.lesson,
            stars=results.stars,
            percentage=results.percentage,
            correct_count=results.correct_count,
            total_questions=results.total_questions,
            time_spent_ms=results.time_spent_ms,
            attempts=1,
            completed=results.passed,
            first_played_at=now,
            last_played_at=now
        )
        await store.put_lesson(progress)
    else:
        fields = {
            "attempts": existing.attempts + 1,
            "last_played_at": now,
            "completed": existing.completed or results.passed
        }
        if results.stars > existing.stars:
            fields.update({
                "stars": results.stars,
                "percentage": results.percentage,
                "correct_count": results.correct_count,
                "total_questions": results.total_questions,
                "time_spent_ms": results.time_spent_ms
            })
        await store.update_lesson(key, fields)
        progress = existing.model_copy(update=fields)

    logger.info(
        "Saved %s level %d lesson %d for learner %s: best %d stars after %d attempts",
        key.track, key.level, key.lesson, learner_id, progress.stars, progress.attempts
    )

    try:
        await update_streak(store, learner_id, now.date())
    except PersistenceError:
        logger.exception("Error updating streak for learner %s", learner_id)

    return progress


async def update_streak(store: ProgressStore, learner_id: str, today: date) -> StreakRecord:
    """
    Count today as an active day for the learner

    Playing again on the same calendar day changes nothing. Yesterday
    extends the streak; any other last active day starts a new one.
    """
    existing = await store.get_streak(learner_id)

    if not existing:
        record = StreakRecord(
            learner_id=learner_id,
            current_streak=1,
            longest_streak=1,
            last_active_date=today,
            total_days_active=1
        )
        await store.put_streak(record)
        return record

    if existing.last_active_date == today:
        return existing

    if existing.last_active_date == today - timedelta(days=1):
        current = existing.current_streak + 1
    else:
        current = 1

    fields = {
        "current_streak": current,
        "longest_streak": max(existing.longest_streak, current),
        "last_active_date": today,
        "total_days_active": existing.total_days_active + 1
    }
    await store.update_streak(learner_id, fields)
    logger.info("Learner %s streak is now %d days", learner_id, current)
    return existing.model_copy(update=fields)


async def get_level_progress(
    store: ProgressStore,
    learner_id: str,
    track: str,
    level: int
) -> List[LessonProgress]:
    """Stored progress of every played lesson of a level, ordered by lesson"""
    return await store.list_lessons(learner_id, track, level)


def is_lesson_unlocked(progress: Sequence[LessonProgress], lesson_number: int) -> bool:
    """Lesson 1 is always open; later lessons need the previous one passed"""
    if lesson_number == 1:
        return True

    previous = next((p for p in progress if p.lesson == lesson_number - 1), None)
    return previous is not None and previous.completed and previous.stars >= 1


def calculate_track_progress(progress: Sequence[LessonProgress], total_lessons: int) -> TrackProgress:
    completed_lessons = sum(1 for p in progress if p.completed)
    total_stars = sum(p.stars for p in progress)
    percentage = (completed_lessons / total_lessons * 100) if total_lessons > 0 else 0

    return TrackProgress(
        completed_lessons=completed_lessons,
        total_lessons=total_lessons,
        total_stars=total_stars,
        max_stars=total_lessons * 3,
        percentage=round(percentage, 1),
        is_complete=completed_lessons == total_lessons
    )
