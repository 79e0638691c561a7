"""
Question generation for the letter match game

Each question shows one glyph and asks for its transliteration among a
small set of options. Distractors prefer letters of a similar difficulty.
"""
import logging
import random
from typing import List, Optional, Sequence

from telugu_learning.schemas.game import Question
from telugu_learning.schemas.letters import LetterEntry

logger = logging.getLogger(__name__)


def generate_options(
    correct: LetterEntry,
    pool: Sequence[LetterEntry],
    count: int,
    rng: Optional[random.Random] = None,
    dedupe_by_transliteration: bool = False
) -> List[LetterEntry]:
    """
    Pick answer options for a letter

    Priority:
    1. Letters within one difficulty tier of the correct letter
    2. Any other letter of the pool

    Options are distinct letters (by id). Two distinct letters may still
    share a transliteration unless dedupe_by_transliteration is set.

    Returns:
        list: The correct letter first, then the distractors. May hold fewer
        than count entries when the pool is too small.
    """
    rng = rng or random.Random()
    options = [correct]
    chosen_ids = {correct.id}
    seen_answers = {correct.transliteration}

    def take_from(candidates: List[LetterEntry]) -> None:
        while len(options) < count and candidates:
            picked = candidates.pop(rng.randrange(len(candidates)))
            if picked.id in chosen_ids:
                continue
            if dedupe_by_transliteration and picked.transliteration in seen_answers:
                continue
            options.append(picked)
            chosen_ids.add(picked.id)
            seen_answers.add(picked.transliteration)

    available = [entry for entry in pool if entry.id != correct.id]
    similar = [
        entry for entry in available
        if abs(entry.difficulty_tier - correct.difficulty_tier) <= 1
    ]
    take_from(similar)
    take_from([entry for entry in available if entry.id not in chosen_ids])

    if len(options) < count:
        logger.warning(
            "Only %d of %d options available for letter %s", len(options), count, correct.id
        )
    return options


def generate_questions(
    pool: Sequence[LetterEntry],
    count: int,
    option_count: int = 4,
    rng: Optional[random.Random] = None,
    option_pool: Optional[Sequence[LetterEntry]] = None,
    dedupe_by_transliteration: bool = False
) -> List[Question]:
    """
    Build a quiz of `count` questions from a letter pool

    Every letter of the pool is used once (in random order) before any
    letter repeats; if the pool is smaller than count, the rest is drawn
    with replacement, so the same letter can appear twice in one quiz.

    Args:
        pool: Letters to ask about
        count: Number of questions
        option_count: Options per question, correct answer included
        rng: Random source (a fresh one by default)
        option_pool: Letters to draw distractors from (defaults to pool)
        dedupe_by_transliteration: Skip distractors whose answer string repeats

    Raises:
        ValueError: If count is negative
    """
    if count < 0:
        raise ValueError(f"Question count must not be negative, got {count}")
    rng = rng or random.Random()
    option_pool = pool if option_pool is None else option_pool

    letters = list(pool)
    rng.shuffle(letters)
    letters = letters[:count]
    while len(letters) < count and pool:
        letters.append(rng.choice(pool))

    questions = []
    for index, letter in enumerate(letters):
        options = generate_options(
            letter, option_pool, option_count, rng, dedupe_by_transliteration
        )
        rng.shuffle(options)
        questions.append(Question(
            id=f"q_{index + 1}",
            glyph=letter.glyph,
            correct_answer=letter.transliteration,
            options=[option.transliteration for option in options],
            source_letter_id=letter.id
        ))

    logger.debug("Generated %d questions from a pool of %d letters", len(questions), len(pool))
    return questions
