from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from telugu_learning.schemas.progress import LessonProgress


class Question(BaseModel):
    id: str
    question_type: str = "letter-to-transliteration"
    glyph: str
    correct_answer: str
    options: List[str]
    source_letter_id: str


class AnswerRecord(BaseModel):
    question_id: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    answered_at: datetime


class ScoringResult(BaseModel):
    total_questions: int
    correct_count: int
    incorrect_count: int
    percentage: float  # 0-100, one decimal
    stars: int
    time_spent_ms: int
    passed: bool


class GameSession(BaseModel):
    learner_id: str
    track: str = "reading"
    level: int
    lesson: int
    questions: List[Question]
    current_index: int = 0
    answers: List[AnswerRecord] = Field(default_factory=list)
    correct_count: int = 0
    started_at: datetime
    ended_at: Optional[datetime] = None
    completed: bool = False
    results: Optional[ScoringResult] = None

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def is_exhausted(self) -> bool:
        return self.current_index >= len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_exhausted:
            return None
        return self.questions[self.current_index]


# API payloads

class QuestionView(BaseModel):
    """A question as shown to the player, without its answer"""
    id: str
    glyph: str
    options: List[str]
    position: int  # 1-based
    total: int


class StartGameRequest(BaseModel):
    learner_id: str
    lesson: int
    level: int = 1


class StartGameResponse(BaseModel):
    session_id: str
    track: str
    level: int
    lesson: int
    difficulty: int
    total_questions: int
    question: Optional[QuestionView] = None


class AnswerRequest(BaseModel):
    selected_answer: str


class AnswerResponse(BaseModel):
    is_correct: bool
    correct_answer: str
    progress_current: int
    progress_total: int
    finished: bool
    next_question: Optional[QuestionView] = None
    results: Optional[ScoringResult] = None
    saved: bool = False
    save_error: Optional[str] = None
    progress: Optional[LessonProgress] = None


class SaveResponse(BaseModel):
    results: ScoringResult
    saved: bool
    save_error: Optional[str] = None
    progress: Optional[LessonProgress] = None
