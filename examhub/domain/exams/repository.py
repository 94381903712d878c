"""
Exam Repository Module

SQLAlchemy repositories for exams, question sets and submissions. Each
repository works inside the caller's session so that a service operation
spanning several of them commits or rolls back as one unit.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from examhub.common.exceptions import AlreadySubmitted, NotFoundError
from examhub.common.logger import app_logger
from examhub.database import models as orm
from examhub.domain.exams.model import Exam, QuestionSet, QuestionSetItem, Submission

logger = app_logger.getChild("domain.exams")


class ExamRepository:
    """Access to live (not soft-deleted) exams."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, exam_id: str) -> Optional[Exam]:
        stmt = (
            select(orm.Exam)
            .where(orm.Exam.id == exam_id, orm.Exam.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return Exam.from_row(row) if row else None

    async def require(self, exam_id: str) -> Exam:
        """
        Get an exam or fail.

        Raises:
            NotFoundError: If the exam does not exist or was deleted
        """
        exam = await self.get(exam_id)
        if exam is None:
            raise NotFoundError("Exam", exam_id)
        return exam

    async def get_many(self, exam_ids: Iterable[str], include_deleted: bool = False) -> Dict[str, Exam]:
        ids = list(dict.fromkeys(exam_ids))
        if not ids:
            return {}
        stmt = select(orm.Exam).where(orm.Exam.id.in_(ids))
        if not include_deleted:
            stmt = stmt.where(orm.Exam.deleted_at.is_(None))
        rows = (await self.session.execute(stmt)).scalars().all()
        return {row.id: Exam.from_row(row) for row in rows}

    async def list_for_class(self, class_id: str) -> List[Exam]:
        stmt = (
            select(orm.Exam)
            .where(orm.Exam.class_id == class_id, orm.Exam.deleted_at.is_(None))
            .order_by(orm.Exam.created_at)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [Exam.from_row(row) for row in rows]

    async def add(self, exam: Exam) -> Exam:
        self.session.add(orm.Exam.from_dict(exam.to_dict()))
        await self.session.flush()
        return exam

    async def update(self, exam_id: str, **values: Any) -> Exam:
        """Apply ``values`` to a live exam and return its fresh state."""
        await self.session.execute(
            update(orm.Exam)
            .where(orm.Exam.id == exam_id, orm.Exam.deleted_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self.require(exam_id)

    async def soft_delete(self, exam_id: str, now: datetime) -> None:
        await self.session.execute(
            update(orm.Exam)
            .where(orm.Exam.id == exam_id)
            .values(deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    async def claim_sets_version(self, exam_id: str, expected_version: int) -> bool:
        """
        Bump ``sets_version`` if it still equals ``expected_version``.

        Returns:
            False when another writer changed the version first
        """
        result = await self.session.execute(
            update(orm.Exam)
            .where(orm.Exam.id == exam_id, orm.Exam.sets_version == expected_version)
            .values(sets_version=orm.Exam.sets_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class QuestionSetRepository:
    """Access to generated question sets and their items."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, question_set_id: str) -> Optional[QuestionSet]:
        stmt = (
            select(orm.QuestionSet)
            .where(orm.QuestionSet.id == question_set_id)
            .execution_options(populate_existing=True)
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return QuestionSet.from_row(row) if row else None

    async def list_for_exam(self, exam_id: str) -> List[QuestionSet]:
        stmt = (
            select(orm.QuestionSet)
            .where(orm.QuestionSet.exam_id == exam_id)
            .order_by(orm.QuestionSet.created_at, orm.QuestionSet.set_number, orm.QuestionSet.student_email)
            .execution_options(populate_existing=True)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [QuestionSet.from_row(row) for row in rows]

    async def find_for_student(
        self,
        exam_id: str,
        email: Optional[str],
        student_id: Optional[str] = None
    ) -> Optional[QuestionSet]:
        """
        Find the set assigned to a student, by email first and then by account ID.
        """
        if email:
            stmt = (
                select(orm.QuestionSet)
                .where(orm.QuestionSet.exam_id == exam_id, orm.QuestionSet.student_email == email)
                .execution_options(populate_existing=True)
            )
            row = (await self.session.execute(stmt)).scalars().first()
            if row:
                return QuestionSet.from_row(row)
        if student_id:
            stmt = (
                select(orm.QuestionSet)
                .where(orm.QuestionSet.exam_id == exam_id, orm.QuestionSet.student_id == student_id)
                .execution_options(populate_existing=True)
            )
            row = (await self.session.execute(stmt)).scalars().first()
            if row:
                return QuestionSet.from_row(row)
        return None

    async def items_for(self, question_set_id: str) -> List[QuestionSetItem]:
        """Get the items of a set in ascending question order."""
        stmt = (
            select(orm.QuestionSetItem)
            .where(orm.QuestionSetItem.question_set_id == question_set_id)
            .order_by(orm.QuestionSetItem.question_order)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [QuestionSetItem.from_row(row) for row in rows]

    async def items_for_exam(self, exam_id: str) -> Dict[str, List[QuestionSetItem]]:
        stmt = (
            select(orm.QuestionSetItem)
            .join(orm.QuestionSet, orm.QuestionSet.id == orm.QuestionSetItem.question_set_id)
            .where(orm.QuestionSet.exam_id == exam_id)
            .order_by(orm.QuestionSetItem.question_set_id, orm.QuestionSetItem.question_order)
        )
        grouped: Dict[str, List[QuestionSetItem]] = {}
        for row in (await self.session.execute(stmt)).scalars().all():
            grouped.setdefault(row.question_set_id, []).append(QuestionSetItem.from_row(row))
        return grouped

    async def delete_for_exam(self, exam_id: str) -> int:
        """Delete every set of an exam together with its items."""
        set_ids = select(orm.QuestionSet.id).where(orm.QuestionSet.exam_id == exam_id)
        await self.session.execute(
            delete(orm.QuestionSetItem)
            .where(orm.QuestionSetItem.question_set_id.in_(set_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(orm.QuestionSet)
            .where(orm.QuestionSet.exam_id == exam_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def add_many(self, sets: Sequence[QuestionSet], items: Sequence[QuestionSetItem]) -> None:
        self.session.add_all([orm.QuestionSet.from_dict(s.to_dict()) for s in sets])
        await self.session.flush()
        self.session.add_all([orm.QuestionSetItem.from_dict(i.to_dict()) for i in items])
        await self.session.flush()

    async def mark_started(self, question_set_id: str, now: datetime) -> bool:
        """Stamp the first access to a set; later calls leave the stamp alone."""
        result = await self.session.execute(
            update(orm.QuestionSet)
            .where(orm.QuestionSet.id == question_set_id, orm.QuestionSet.started_at.is_(None))
            .values(started_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def claim_completion(self, question_set_id: str, now: datetime) -> bool:
        """
        Mark a set completed unless it already is.

        Returns:
            True if this call performed the transition
        """
        result = await self.session.execute(
            update(orm.QuestionSet)
            .where(orm.QuestionSet.id == question_set_id, orm.QuestionSet.is_completed.is_(False))
            .values(is_completed=True, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def complete_for_exam(self, exam_id: str, now: datetime, student_email: Optional[str] = None) -> int:
        """Force-complete the open sets of an exam, or of one student, and return how many changed."""
        stmt = (
            update(orm.QuestionSet)
            .where(orm.QuestionSet.exam_id == exam_id, orm.QuestionSet.is_completed.is_(False))
            .values(is_completed=True, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        if student_email:
            stmt = stmt.where(orm.QuestionSet.student_email == student_email)
        result = await self.session.execute(stmt)
        return result.rowcount


class SubmissionRepository:
    """Access to graded submissions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, submission: Submission) -> Submission:
        """
        Insert a submission.

        Raises:
            AlreadySubmitted: If the student already has a submission for the exam
        """
        self.session.add(orm.Submission.from_dict(submission.to_dict()))
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.info(f"Duplicate submission rejected for exam {submission.exam_id}")
            raise AlreadySubmitted(submission.exam_id, submission.student_id) from e
        return submission

    async def get(self, submission_id: str) -> Optional[Submission]:
        row = await self.session.get(orm.Submission, submission_id)
        return Submission.from_row(row) if row else None

    async def find(self, exam_id: str, student_id: str) -> Optional[Submission]:
        stmt = select(orm.Submission).where(
            orm.Submission.exam_id == exam_id,
            orm.Submission.student_id == student_id,
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return Submission.from_row(row) if row else None

    async def count_for_exam(self, exam_id: str) -> int:
        stmt = select(func.count(orm.Submission.id)).where(orm.Submission.exam_id == exam_id)
        return (await self.session.execute(stmt)).scalar_one()

    async def list_for_exam(self, exam_id: str) -> List[Submission]:
        stmt = (
            select(orm.Submission)
            .where(orm.Submission.exam_id == exam_id)
            .order_by(orm.Submission.submitted_at)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [Submission.from_row(row) for row in rows]

    async def list_for_exams(self, exam_ids: Iterable[str]) -> List[Submission]:
        ids = list(exam_ids)
        if not ids:
            return []
        stmt = (
            select(orm.Submission)
            .where(orm.Submission.exam_id.in_(ids))
            .order_by(orm.Submission.submitted_at)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [Submission.from_row(row) for row in rows]

    async def list_for_student(self, student_id: str) -> List[Submission]:
        """List a student's submissions, oldest first."""
        stmt = (
            select(orm.Submission)
            .where(orm.Submission.student_id == student_id)
            .order_by(orm.Submission.submitted_at)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [Submission.from_row(row) for row in rows]
