"""
Question Domain Model Module

This module defines the question entity and the adaptive difficulty rule
applied after every graded attempt.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from examhub.common.serialization import SerializableMixin


class AdaptiveDifficulty(str, enum.Enum):
    """Difficulty label derived from how often students answer correctly."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class AdaptivePolicy:
    """
    Thresholds for relabeling a question.

    Attributes:
        min_attempts: Attempts required before the label leaves medium
        easy_threshold: Success rate (percent) above which a question is easy
        hard_threshold: Success rate (percent) below which a question is hard
    """
    min_attempts: int = 5
    easy_threshold: float = 75.0
    hard_threshold: float = 40.0

    @classmethod
    def from_settings(cls, config) -> 'AdaptivePolicy':
        return cls(
            min_attempts=config.ADAPTIVE_MIN_ATTEMPTS,
            easy_threshold=config.ADAPTIVE_EASY_THRESHOLD,
            hard_threshold=config.ADAPTIVE_HARD_THRESHOLD,
        )


def classify_difficulty(
    usage_count: int,
    success_rate: float,
    policy: AdaptivePolicy = AdaptivePolicy()
) -> str:
    """
    Derive the adaptive difficulty label for a question.

    Args:
        usage_count: Number of graded attempts, including the latest one
        success_rate: Percentage of correct attempts
        policy: Thresholds to apply

    Returns:
        The label value; medium while there are too few attempts
    """
    if usage_count < policy.min_attempts:
        return AdaptiveDifficulty.MEDIUM.value
    if success_rate > policy.easy_threshold:
        return AdaptiveDifficulty.EASY.value
    if success_rate < policy.hard_threshold:
        return AdaptiveDifficulty.HARD.value
    return AdaptiveDifficulty.MEDIUM.value


@dataclass
class Question(SerializableMixin):
    """
    A multiple-choice question from a question bank.

    The canonical option order is every incorrect option followed by the
    correct one; letters and indexes in submissions refer to that order.
    """
    id: str
    question_bank_id: str
    text: str
    correct_option: str
    incorrect_options: List[str] = field(default_factory=list)
    subject: Optional[str] = None
    difficulty_rating: Optional[str] = None
    usage_count: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    success_rate: float = 0.0
    adaptive_difficulty: str = AdaptiveDifficulty.MEDIUM.value
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def options(self) -> List[str]:
        return list(self.incorrect_options or []) + [self.correct_option]
