from telugu_learning.models.progress import GameProgress, LearnerStreak

__all__ = [
    'GameProgress',
    'LearnerStreak'
]
