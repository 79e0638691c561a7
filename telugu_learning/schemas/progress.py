from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, datetime


class LessonProgress(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    learner_id: str
    track: str
    level: int
    lesson: int
    stars: int = 0  # best attempt
    percentage: float = 0.0
    correct_count: int = 0
    total_questions: int = 0
    time_spent_ms: int = 0
    attempts: int = 0
    completed: bool = False
    first_played_at: Optional[datetime] = None
    last_played_at: Optional[datetime] = None


class StreakRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    learner_id: str
    current_streak: int
    longest_streak: int
    last_active_date: date
    total_days_active: int


class TrackProgress(BaseModel):
    completed_lessons: int
    total_lessons: int
    total_stars: int
    max_stars: int
    percentage: float
    is_complete: bool


class LessonStatus(BaseModel):
    lesson: int
    difficulty: int
    unlocked: bool
    progress: Optional[LessonProgress] = None


class LevelOverview(BaseModel):
    learner_id: str
    track: str
    level: int
    name: str
    description: str
    questions_per_lesson: int
    passing_score: float
    lessons: List[LessonStatus]
    summary: TrackProgress
