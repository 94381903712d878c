"""
Grading Engine

Scores a student's answers against the answer key of their question set,
feeds every graded answer back into the question's usage statistics and
records the submission. A student submits an exam at most once.
"""

import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from examhub.common.audit import AuditSink, emit
from examhub.common.auth.user import User
from examhub.common.clock import Clock
from examhub.common.db.session import SessionFactory, transaction
from examhub.common.exceptions import AlreadySubmitted, NoSetFound, SetCompleted, ValidationError
from examhub.common.logger import app_logger, log_execution_time
from examhub.config import settings as default_settings
from examhub.database.base import new_id
from examhub.domain.exams import (
    AnswerRecord,
    ExamRepository,
    QuestionSetRepository,
    Submission,
    SubmissionRepository,
)
from examhub.domain.questions import AdaptivePolicy, Question, SqlQuestionRepository

logger = app_logger.getChild("exams.grading")

LETTER = "letter"
TEXT = "text"
DEFAULT_SUBMISSION_REASON = "Manual submission"


@dataclass(frozen=True)
class AnswerChoice:
    """
    A student's choice for one question.

    ``kind`` says how ``value`` identifies the option: ``letter`` is a
    single letter over the canonical option order, ``text`` is the option
    text itself.
    """
    kind: str
    value: str

    def __post_init__(self):
        if self.kind not in (LETTER, TEXT):
            raise ValidationError(f"unknown answer kind {self.kind!r}", {"kind": self.kind})


@dataclass
class SubmissionMetadata:
    """Client-reported facts about the attempt, taken at face value."""
    time_spent_seconds: int = 0
    tab_switches: int = 0
    fullscreen_exits: int = 0
    reason: Optional[str] = None


@dataclass
class SubmissionResult:
    submission_id: str
    exam_id: str
    question_set_id: str
    score: int
    correct_count: int
    total_questions: int
    percentage: float
    submitted_at: Optional[datetime] = None
    answers: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def for_student(self) -> Dict[str, Any]:
        """Score view returned to the submitting student; per-answer grading stays out."""
        return {
            "submission_id": self.submission_id,
            "exam_id": self.exam_id,
            "question_set_id": self.question_set_id,
            "score": self.score,
            "correct_count": self.correct_count,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "submitted_at": self.submitted_at,
        }


def normalize_answer(choice: AnswerChoice, options: Sequence[str]) -> AnswerRecord:
    """
    Resolve a choice to its letter, text and index over ``options``.

    A letter outside the options yields empty text; a text that is not an
    option yields index -1 and an empty letter. ``is_correct`` is left False
    for the caller to decide.
    """
    if choice.kind == LETTER:
        letter = (choice.value or "").strip().upper()
        index = string.ascii_uppercase.find(letter) if len(letter) == 1 else -1
        text = options[index] if 0 <= index < len(options) else ""
        return AnswerRecord(selected_letter=letter, selected_text=text, selected_index=index, is_correct=False)

    text = choice.value
    index = list(options).index(text) if text in options else -1
    letter = string.ascii_uppercase[index] if 0 <= index < len(string.ascii_uppercase) else ""
    return AnswerRecord(selected_letter=letter, selected_text=text, selected_index=index, is_correct=False)


def grade_answer(question: Question, choice: AnswerChoice) -> AnswerRecord:
    record = normalize_answer(choice, question.options)
    record.is_correct = record.selected_text == question.correct_option
    return record


def compute_percentage(correct: int, total: int) -> float:
    """Percentage of correct answers, 0 when there are no questions."""
    if total <= 0:
        return 0.0
    return round(correct / total * 100, 2)


class GradingEngine:
    """Grades and records submissions."""

    def __init__(
        self,
        session_factory: SessionFactory,
        clock: Clock,
        policy: Optional[AdaptivePolicy] = None,
        audit: Optional[AuditSink] = None
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.policy = policy or AdaptivePolicy.from_settings(default_settings)
        self.audit = audit

    @log_execution_time(logger)
    async def submit(
        self,
        exam_id: str,
        student: User,
        answers: Mapping[str, AnswerChoice],
        metadata: Optional[SubmissionMetadata] = None,
        question_set_id: Optional[str] = None
    ) -> SubmissionResult:
        """
        Grade and store a student's submission.

        Only answers to questions of the student's set count; others are
        ignored. Unanswered questions count as incorrect but do not touch the
        question statistics.

        Args:
            exam_id: The exam being submitted
            student: The submitting student
            answers: Choice per question ID
            metadata: Time spent, proctoring counters and reason
            question_set_id: The set the client answered, when it knows it

        Returns:
            Raw score and percentage, regardless of score release

        Raises:
            NotFoundError: If the exam does not exist
            NoSetFound: If the set is not the student's
            AlreadySubmitted: If the student already submitted this exam
            SetCompleted: If the instructor ended the student's attempt
        """
        metadata = metadata or SubmissionMetadata()

        async with transaction(self.session_factory) as session:
            exam = await ExamRepository(session).require(exam_id)
            sets = QuestionSetRepository(session)
            submissions = SubmissionRepository(session)

            if question_set_id:
                question_set = await sets.get(question_set_id)
                if (
                    question_set is None
                    or question_set.exam_id != exam.id
                    or not question_set.belongs_to(student.email, student.id)
                ):
                    raise NoSetFound(exam.id, question_set_id)
            else:
                question_set = await sets.find_for_student(exam.id, student.email, student.id)
                if question_set is None:
                    raise NoSetFound(exam.id)

            now = self.clock.now()
            if not await sets.claim_completion(question_set.id, now):
                if await submissions.find(exam.id, student.id) is not None:
                    raise AlreadySubmitted(exam.id, student.id)
                raise SetCompleted(question_set.id)

            items = await sets.items_for(question_set.id)
            questions_repo = SqlQuestionRepository(session, self.policy)
            questions = await questions_repo.get_many(item.question_id for item in items)

            graded: Dict[str, AnswerRecord] = {}
            for item in items:
                choice = answers.get(item.question_id)
                question = questions.get(item.question_id)
                if choice is None or question is None:
                    continue
                record = grade_answer(question, choice)
                graded[item.question_id] = record
                await questions_repo.record_attempt(item.question_id, record.is_correct)

            total = len(items)
            correct = sum(1 for record in graded.values() if record.is_correct)
            submission = Submission(
                id=new_id(),
                exam_id=exam.id,
                student_id=student.id,
                student_email=student.email,
                question_set_id=question_set.id,
                answers={qid: record.to_dict() for qid, record in graded.items()},
                score=correct,
                total_questions=total,
                correct_count=correct,
                percentage=compute_percentage(correct, total),
                time_spent_seconds=max(0, int(metadata.time_spent_seconds or 0)),
                tab_switches=max(0, int(metadata.tab_switches or 0)),
                fullscreen_exits=max(0, int(metadata.fullscreen_exits or 0)),
                submission_reason=metadata.reason or DEFAULT_SUBMISSION_REASON,
                submitted_at=now,
            )
            await submissions.add(submission)

        ignored = len([qid for qid in answers if qid not in graded])
        if ignored:
            logger.info(f"Ignored {ignored} answers outside set {question_set.id}")
        logger.info(
            f"Graded submission {submission.id} for exam {exam.id}: "
            f"{correct}/{total} ({submission.percentage}%)"
        )
        await emit(
            self.audit, "exam.submit", student.id,
            exam_id=exam.id, submission_id=submission.id, percentage=submission.percentage,
            tab_switches=submission.tab_switches, fullscreen_exits=submission.fullscreen_exits,
        )
        return SubmissionResult(
            submission_id=submission.id,
            exam_id=exam.id,
            question_set_id=question_set.id,
            score=correct,
            correct_count=correct,
            total_questions=total,
            percentage=submission.percentage,
            submitted_at=submission.submitted_at,
            answers=submission.answers,
        )
