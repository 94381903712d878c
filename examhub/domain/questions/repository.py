"""
Question Repository Module

This module defines the repository interface for question content and its
SQLAlchemy implementation.
"""

import abc
from typing import Dict, Iterable, List, Optional

from sqlalchemy import Numeric, case, cast, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from examhub.common.logger import app_logger
from examhub.database import models as orm
from examhub.domain.questions.model import AdaptiveDifficulty, AdaptivePolicy, Question

logger = app_logger.getChild("domain.questions")


class QuestionRepository(abc.ABC):
    """
    Abstract base class for question repositories.

    This interface defines the contract for reading questions and for
    recording graded attempts against their usage statistics.
    """

    @abc.abstractmethod
    async def get(self, question_id: str) -> Optional[Question]:
        """
        Get a question by its ID, including soft-deleted ones.

        Args:
            question_id: The ID of the question to retrieve

        Returns:
            The Question entity if found, None otherwise
        """
        pass

    @abc.abstractmethod
    async def get_many(self, question_ids: Iterable[str]) -> Dict[str, Question]:
        """
        Get several questions at once.

        Returns:
            Mapping of question ID to Question for the IDs that exist
        """
        pass

    @abc.abstractmethod
    async def find_by_bank(self, question_bank_id: str) -> List[Question]:
        """List the live questions of a question bank in creation order."""
        pass

    @abc.abstractmethod
    async def add(self, question: Question) -> Question:
        pass

    @abc.abstractmethod
    async def record_attempt(self, question_id: str, is_correct: bool) -> Optional[Question]:
        """
        Record one graded attempt as a single atomic store update.

        Usage and correct/incorrect counters are incremented, the success
        rate recomputed and the adaptive label re-derived.

        Args:
            question_id: The attempted question
            is_correct: Whether the attempt was correct

        Returns:
            The updated question, or None if it does not exist
        """
        pass


class SqlQuestionRepository(QuestionRepository):
    """Question repository backed by the ``questions`` table."""

    def __init__(self, session: AsyncSession, policy: AdaptivePolicy = AdaptivePolicy()):
        self.session = session
        self.policy = policy

    async def get(self, question_id: str) -> Optional[Question]:
        stmt = (
            select(orm.Question)
            .where(orm.Question.id == question_id)
            .execution_options(populate_existing=True)
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return Question.from_row(row) if row else None

    async def get_many(self, question_ids: Iterable[str]) -> Dict[str, Question]:
        ids = list(dict.fromkeys(question_ids))
        if not ids:
            return {}
        stmt = (
            select(orm.Question)
            .where(orm.Question.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return {row.id: Question.from_row(row) for row in rows}

    async def find_by_bank(self, question_bank_id: str) -> List[Question]:
        stmt = (
            select(orm.Question)
            .where(
                orm.Question.question_bank_id == question_bank_id,
                orm.Question.deleted_at.is_(None),
            )
            .order_by(orm.Question.created_at, orm.Question.id)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [Question.from_row(row) for row in rows]

    async def add(self, question: Question) -> Question:
        self.session.add(orm.Question.from_dict(question.to_dict()))
        await self.session.flush()
        return question

    async def record_attempt(self, question_id: str, is_correct: bool) -> Optional[Question]:
        # SET expressions read the pre-update column values
        usage = orm.Question.usage_count + 1
        correct = orm.Question.correct_count + (1 if is_correct else 0)
        rate = correct * 100.0 / usage

        stmt = (
            update(orm.Question)
            .where(orm.Question.id == question_id)
            .values(
                usage_count=usage,
                correct_count=correct,
                incorrect_count=orm.Question.incorrect_count + (0 if is_correct else 1),
                success_rate=func.round(cast(rate, Numeric(10, 4)), 2),
                adaptive_difficulty=case(
                    (usage < self.policy.min_attempts, AdaptiveDifficulty.MEDIUM.value),
                    (rate > self.policy.easy_threshold, AdaptiveDifficulty.EASY.value),
                    (rate < self.policy.hard_threshold, AdaptiveDifficulty.HARD.value),
                    else_=AdaptiveDifficulty.MEDIUM.value,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            logger.warning(f"Attempt recorded for unknown question {question_id}")
            return None
        return await self.get(question_id)
