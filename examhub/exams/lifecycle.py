"""
Exam Lifecycle Service

Creation, ending, release toggles and soft deletion of exams.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from examhub.common.audit import AuditSink, emit
from examhub.common.auth.user import User, normalize_email
from examhub.common.clock import Clock
from examhub.common.db.session import SessionFactory, transaction
from examhub.common.exceptions import AuthorizationError, ValidationError
from examhub.common.logger import app_logger
from examhub.config import Settings, settings as default_settings
from examhub.database.base import new_id
from examhub.domain.exams import Exam, ExamRepository, QuestionSetRepository
from examhub.domain.questions import SqlQuestionRepository
from examhub.exams.publisher import ensure_can_manage
from examhub.exams.set_generator import dedupe_pool

logger = app_logger.getChild("exams.lifecycle")


@dataclass
class ExamDraft:
    """Instructor input for a new exam."""
    title: str
    questions_per_set: int
    duration_minutes: int
    question_bank_id: Optional[str] = None
    pool_question_ids: List[str] = field(default_factory=list)
    set_count: int = 1
    description: Optional[str] = None
    subject: Optional[str] = None
    shuffle_questions: bool = True
    shuffle_options: bool = False
    expiring_hours: Optional[float] = None


@dataclass
class EndTestResult:
    exam: Exam
    sets_completed: int
    student_email: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exam_id": self.exam.id,
            "sets_completed": self.sets_completed,
            "student_email": self.student_email,
            "exam_ended": self.exam.is_ended,
        }


class ExamLifecycle:
    """Instructor operations that change an exam as a whole."""

    def __init__(
        self,
        session_factory: SessionFactory,
        clock: Clock,
        audit: Optional[AuditSink] = None,
        config: Settings = default_settings
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.audit = audit
        self.config = config

    def _validate(self, draft: ExamDraft) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not (draft.title or "").strip():
            errors["title"] = "Title is required"
        low, high = self.config.MIN_DURATION_MINUTES, self.config.MAX_DURATION_MINUTES
        if not low <= draft.duration_minutes <= high:
            errors["duration_minutes"] = f"Duration must be between {low} and {high} minutes"
        if draft.set_count < 1:
            errors["set_count"] = "At least one set is required"
        if draft.questions_per_set < 1:
            errors["questions_per_set"] = "At least one question per set is required"
        if not draft.pool_question_ids:
            errors["pool_question_ids"] = "Select at least one question"
        if draft.expiring_hours is not None and draft.expiring_hours <= 0:
            errors["expiring_hours"] = "Expiring hours must be greater than zero"
        return errors

    async def create_exam(self, actor: User, draft: ExamDraft) -> Exam:
        """
        Create an unpublished exam.

        Raises:
            AuthorizationError: If the actor is a student
            ValidationError: If the draft is invalid or references unknown questions
        """
        if not actor.can_author():
            raise AuthorizationError("Only teachers and admins can create exams", resource="exam", action="create")

        errors = self._validate(draft)
        if errors:
            raise ValidationError("invalid exam", errors)

        pool = dedupe_pool(draft.pool_question_ids)
        now = self.clock.now()

        async with transaction(self.session_factory) as session:
            found = await SqlQuestionRepository(session).get_many(pool)
            unknown = [
                qid for qid in pool
                if qid not in found
                or found[qid].deleted_at is not None
                or (draft.question_bank_id and found[qid].question_bank_id != draft.question_bank_id)
            ]
            if unknown:
                raise ValidationError("unknown questions in pool", {"pool_question_ids": unknown})

            exam = Exam(
                id=new_id(),
                owner_id=actor.id,
                title=draft.title.strip(),
                description=draft.description,
                subject=draft.subject,
                question_bank_id=draft.question_bank_id,
                pool_question_ids=pool,
                set_count=draft.set_count,
                questions_per_set=draft.questions_per_set,
                duration_minutes=draft.duration_minutes,
                expiring_hours=draft.expiring_hours or self.config.DEFAULT_EXPIRING_HOURS,
                shuffle_questions=draft.shuffle_questions,
                shuffle_options=draft.shuffle_options,
                created_at=now,
                updated_at=now,
            )
            await ExamRepository(session).add(exam)

        logger.info(f"Exam {exam.id} created by {actor.id} with a pool of {len(pool)} questions")
        await emit(self.audit, "exam.create", actor.id, exam_id=exam.id)
        return exam

    async def end_test(self, exam_id: str, actor: User, student_email: Optional[str] = None) -> EndTestResult:
        """
        Force-complete question sets.

        With ``student_email`` only that student's set is completed; otherwise
        every open set is and the exam is marked ended.
        """
        email = normalize_email(student_email)
        async with transaction(self.session_factory) as session:
            exams = ExamRepository(session)
            exam = await exams.require(exam_id)
            ensure_can_manage(actor, exam, "end")

            now = self.clock.now()
            affected = await QuestionSetRepository(session).complete_for_exam(exam.id, now, email)
            if email is None:
                exam = await exams.update(exam.id, is_ended=True, ended_at=now, updated_at=now)

        target = email or "all students"
        logger.info(f"Exam {exam.id} ended for {target}; {affected} sets completed")
        await emit(self.audit, "exam.end", actor.id, exam_id=exam.id, student_email=email, sets=affected)
        return EndTestResult(exam, affected, email)

    async def _toggle(self, exam_id: str, actor: User, flag: str) -> Exam:
        async with transaction(self.session_factory) as session:
            exams = ExamRepository(session)
            exam = await exams.require(exam_id)
            ensure_can_manage(actor, exam, f"toggle_{flag}")
            exam = await exams.update(exam.id, **{flag: not getattr(exam, flag), "updated_at": self.clock.now()})

        await emit(self.audit, f"exam.{flag}", actor.id, exam_id=exam.id, value=getattr(exam, flag))
        return exam

    async def toggle_score_release(self, exam_id: str, actor: User) -> Exam:
        """Flip whether students can see their scores."""
        return await self._toggle(exam_id, actor, "score_released")

    async def toggle_answer_release(self, exam_id: str, actor: User) -> Exam:
        """Flip whether students can review the correct answers."""
        return await self._toggle(exam_id, actor, "answers_released")

    async def delete_exam(self, exam_id: str, actor: User) -> None:
        """Soft-delete an exam; it disappears from every read path."""
        async with transaction(self.session_factory) as session:
            exams = ExamRepository(session)
            exam = await exams.require(exam_id)
            ensure_can_manage(actor, exam, "delete")
            await exams.soft_delete(exam.id, self.clock.now())

        logger.info(f"Exam {exam_id} deleted by {actor.id}")
        await emit(self.audit, "exam.delete", actor.id, exam_id=exam_id)
