from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Float, Boolean, Date, DateTime, UniqueConstraint
from datetime import date, datetime
from typing import Optional
from telugu_learning.database import Base


class GameProgress(Base):
    __tablename__ = 'game_progress'
    __table_args__ = (
        UniqueConstraint('learner_id', 'track', 'level', 'lesson', name='uix_learner_lesson'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    track: Mapped[str] = mapped_column(String, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    lesson: Mapped[int] = mapped_column(Integer, nullable=False)
    # Best attempt so far
    stars: Mapped[int] = mapped_column(Integer, default=0)
    percentage: Mapped[float] = mapped_column(Float, default=0.0)
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    total_questions: Mapped[int] = mapped_column(Integer, default=0)
    time_spent_ms: Mapped[int] = mapped_column(Integer, default=0)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    first_played_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_played_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class LearnerStreak(Base):
    __tablename__ = 'learner_streaks'

    learner_id: Mapped[str] = mapped_column(String, primary_key=True)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_active_date: Mapped[date] = mapped_column(Date, nullable=False)  # calendar day, not a timestamp
    total_days_active: Mapped[int] = mapped_column(Integer, default=0)
