from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Literal, Optional


class LetterEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    glyph: str
    transliteration: str
    category: Literal["vowel", "consonant"]
    group: Optional[str] = None  # varga, display only
    difficulty_tier: int = Field(ge=1, le=3)
    sound_file: Optional[str] = None


class LevelConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int
    name: str
    description: str = ""
    total_lessons: int
    lessons_per_difficulty: Dict[int, int]  # tier -> number of lessons
    questions_per_lesson: int = 10
    passing_score: float = 0.7
    star_thresholds: Dict[int, float]
