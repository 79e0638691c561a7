from fastapi import APIRouter, Depends, HTTPException

from telugu_learning.exceptions import PersistenceError
from telugu_learning.routes.deps import get_store
from telugu_learning.schemas.progress import LessonStatus, LevelOverview, StreakRecord
from telugu_learning.services import catalog_service, game_service, progress_service
from telugu_learning.services.progress_store import ProgressStore

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/{learner_id}/streak", response_model=StreakRecord)
async def learner_streak(learner_id: str, store: ProgressStore = Depends(get_store)):
    """Daily play streak of a learner"""
    try:
        streak = await store.get_streak(learner_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if not streak:
        raise HTTPException(status_code=404, detail=f"No streak for learner {learner_id}")
    return streak


@router.get("/{learner_id}/{track}/levels/{level}", response_model=LevelOverview)
async def level_progress(
    learner_id: str,
    track: str,
    level: int,
    store: ProgressStore = Depends(get_store)
):
    """Lessons of a level with their unlock state and best scores"""
    config = catalog_service.get_level_config(level)
    if not config:
        raise HTTPException(status_code=404, detail=f"Level {level} not found")

    try:
        progress = await progress_service.get_level_progress(store, learner_id, track, level)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    by_lesson = {p.lesson: p for p in progress}
    lessons = [
        LessonStatus(
            lesson=number,
            difficulty=game_service.lesson_difficulty(config, number),
            unlocked=progress_service.is_lesson_unlocked(progress, number),
            progress=by_lesson.get(number)
        )
        for number in range(1, config.total_lessons + 1)
    ]

    return LevelOverview(
        learner_id=learner_id,
        track=track,
        level=level,
        name=config.name,
        description=config.description,
        questions_per_lesson=config.questions_per_lesson,
        passing_score=config.passing_score,
        lessons=lessons,
        summary=progress_service.calculate_track_progress(progress, config.total_lessons)
    )
