"""
Question domain module.

Question content, usage statistics and the adaptive difficulty rule.
"""

from .model import AdaptiveDifficulty, AdaptivePolicy, Question, classify_difficulty
from .repository import QuestionRepository, SqlQuestionRepository

__all__ = [
    'AdaptiveDifficulty',
    'AdaptivePolicy',
    'Question',
    'classify_difficulty',
    'QuestionRepository',
    'SqlQuestionRepository',
]
