"""
Persistence adapter for lesson progress and streak records

Each record is an independent row; every write commits on its own. Database
failures surface as PersistenceError.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select
from typing import Any, Dict, List, NamedTuple, Optional

from telugu_learning.exceptions import PersistenceError
from telugu_learning.models.progress import GameProgress, LearnerStreak
from telugu_learning.schemas.progress import LessonProgress, StreakRecord


class LessonKey(NamedTuple):
    learner_id: str
    track: str
    level: int
    lesson: int


class ProgressStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, statement):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Progress store read failed: {e}") from e

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Progress store write failed: {e}") from e

    async def _lesson_row(self, key: LessonKey) -> Optional[GameProgress]:
        result = await self._execute(
            select(GameProgress).where(
                GameProgress.learner_id == key.learner_id,
                GameProgress.track == key.track,
                GameProgress.level == key.level,
                GameProgress.lesson == key.lesson
            )
        )
        return result.scalar_one_or_none()

    async def _streak_row(self, learner_id: str) -> Optional[LearnerStreak]:
        result = await self._execute(
            select(LearnerStreak).where(LearnerStreak.learner_id == learner_id)
        )
        return result.scalar_one_or_none()

    # Lesson progress

    async def get_lesson(self, key: LessonKey) -> Optional[LessonProgress]:
        row = await self._lesson_row(key)
        return LessonProgress.model_validate(row) if row else None

    async def put_lesson(self, record: LessonProgress) -> None:
        """Insert or replace the record for its lesson"""
        key = LessonKey(record.learner_id, record.track, record.level, record.lesson)
        row = await self._lesson_row(key)
        if not row:
            self.db.add(GameProgress(**record.model_dump()))
        else:
            for name, value in record.model_dump().items():
                setattr(row, name, value)
        await self._commit()

    async def update_lesson(self, key: LessonKey, fields: Dict[str, Any]) -> None:
        """Merge fields into an existing record"""
        row = await self._lesson_row(key)
        if not row:
            raise PersistenceError(f"No progress record for {key}")
        for name, value in fields.items():
            setattr(row, name, value)
        await self._commit()

    async def list_lessons(self, learner_id: str, track: str, level: int) -> List[LessonProgress]:
        result = await self._execute(
            select(GameProgress)
            .where(
                GameProgress.learner_id == learner_id,
                GameProgress.track == track,
                GameProgress.level == level
            )
            .order_by(GameProgress.lesson)
        )
        return [LessonProgress.model_validate(row) for row in result.scalars().all()]

    # Streaks

    async def get_streak(self, learner_id: str) -> Optional[StreakRecord]:
        row = await self._streak_row(learner_id)
        return StreakRecord.model_validate(row) if row else None

    async def put_streak(self, record: StreakRecord) -> None:
        row = await self._streak_row(record.learner_id)
        if not row:
            self.db.add(LearnerStreak(**record.model_dump()))
        else:
            for name, value in record.model_dump().items():
                setattr(row, name, value)
        await self._commit()

    async def update_streak(self, learner_id: str, fields: Dict[str, Any]) -> None:
        row = await self._streak_row(learner_id)
        if not row:
            raise PersistenceError(f"No streak record for learner {learner_id}")
        for name, value in fields.items():
            setattr(row, name, value)
        await self._commit()
