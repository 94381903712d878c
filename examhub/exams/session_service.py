"""
Exam Session Service

The student read path: resolving which question set a student may see,
enforcing enrollment and timing gates, and building the paper they answer
from. Also serves instructor previews, release-gated result listings,
submission review and live monitoring.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from examhub.common.auth.user import User
from examhub.common.clock import Clock
from examhub.common.db.session import SessionFactory, transaction
from examhub.common.exceptions import (
    AuthorizationError,
    Expired,
    NoAssignedSet,
    NotEnrolled,
    NotFoundError,
    NotPublished,
    NotStarted,
    SetCompleted,
)
from examhub.common.logger import app_logger
from examhub.domain.classes import SqlRosterProvider
from examhub.domain.exams import (
    ExamRepository,
    QuestionSetRepository,
    SetStatus,
    SubmissionRepository,
)
from examhub.domain.questions import SqlQuestionRepository
from examhub.exams.analytics import letter_grade
from examhub.exams.publisher import ensure_can_manage

logger = app_logger.getChild("exams.session")


@dataclass
class PaperQuestion:
    question_id: str
    order: int
    text: str
    options: List[str]
    correct_option: str

    def for_student(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "order": self.order,
            "text": self.text,
            "options": list(self.options),
        }


@dataclass
class ExamPaper:
    """
    The questions one student answers.

    The answer key stays on the server: ``for_student`` is the only view that
    leaves the service for a student.
    """
    exam_id: str
    title: str
    question_set_id: str
    set_number: int
    access_link: str
    duration_minutes: int
    end_time: Optional[datetime]
    started_at: Optional[datetime]
    questions: List[PaperQuestion] = field(default_factory=list)

    def for_student(self) -> Dict[str, Any]:
        return {
            "exam_id": self.exam_id,
            "title": self.title,
            "question_set_id": self.question_set_id,
            "set_number": self.set_number,
            "access_link": self.access_link,
            "duration_minutes": self.duration_minutes,
            "end_time": self.end_time,
            "started_at": self.started_at,
            "questions": [question.for_student() for question in self.questions],
        }


class ExamSession:
    """Read-side service for exam papers, results and monitoring."""

    def __init__(
        self,
        session_factory: SessionFactory,
        clock: Clock,
        rng: Optional[random.Random] = None
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.rng = rng or random.Random()

    async def get_questions_for_student(self, exam_id: str, student: User) -> ExamPaper:
        """
        Build the paper of the set assigned to ``student``.

        Gates are checked in order: enrollment, publication, start time,
        expiry, set assignment, set completion. The first successful read
        records when the student started.

        Raises:
            NotFoundError: If the exam does not exist
            NotEnrolled: If the student is not on the exam's class roster
            NotPublished: If the exam is not published
            NotStarted: If the window has not opened
            Expired: If the window has closed
            NoAssignedSet: If no set was generated for the student
            SetCompleted: If the student's set was already completed
        """
        async with transaction(self.session_factory) as session:
            exam = await ExamRepository(session).require(exam_id)

            enrolled = bool(exam.class_id) and await SqlRosterProvider(session).is_enrolled(
                exam.class_id, student.email, student.id
            )
            if not enrolled:
                raise NotEnrolled(exam.id, student.email)
            if not exam.is_published:
                raise NotPublished(exam.id)

            now = self.clock.now()
            if not exam.has_started(now):
                raise NotStarted(exam.id)
            if exam.has_expired(now):
                raise Expired(exam.id)

            sets = QuestionSetRepository(session)
            question_set = await sets.find_for_student(exam.id, student.email, student.id)
            if question_set is None:
                raise NoAssignedSet(exam.id, student.email)
            if question_set.is_completed:
                raise SetCompleted(question_set.id)

            items = await sets.items_for(question_set.id)
            questions = await SqlQuestionRepository(session).get_many(item.question_id for item in items)
            if await sets.mark_started(question_set.id, now):
                question_set.started_at = now

        paper = ExamPaper(
            exam_id=exam.id,
            title=exam.title,
            question_set_id=question_set.id,
            set_number=question_set.set_number,
            access_link=question_set.access_link,
            duration_minutes=exam.duration_minutes,
            end_time=exam.end_time,
            started_at=question_set.started_at,
        )
        for item in items:
            question = questions.get(item.question_id)
            if question is None:
                logger.warning(f"Question {item.question_id} of set {question_set.id} no longer exists")
                continue
            options = question.options
            if exam.shuffle_options:
                self.rng.shuffle(options)
            paper.questions.append(PaperQuestion(
                question_id=question.id,
                order=item.question_order,
                text=question.text,
                options=options,
                correct_option=question.correct_option,
            ))

        logger.debug(f"Served set {question_set.set_number} of exam {exam.id} to {student.email}")
        return paper

    async def preview_pool(self, exam_id: str, actor: User) -> Dict[str, Any]:
        """Owner view of the whole question pool, answers included."""
        async with transaction(self.session_factory) as session:
            exam = await ExamRepository(session).require(exam_id)
            ensure_can_manage(actor, exam, "preview")
            questions = await SqlQuestionRepository(session).get_many(exam.pool_question_ids)

        return {
            "exam": exam,
            "questions": [
                {
                    "question_id": qid,
                    "text": questions[qid].text,
                    "options": questions[qid].options,
                    "correct_option": questions[qid].correct_option,
                    "adaptive_difficulty": questions[qid].adaptive_difficulty,
                    "success_rate": questions[qid].success_rate,
                }
                for qid in exam.pool_question_ids
                if qid in questions
            ],
        }

    async def attended_tests(self, student: User) -> List[Dict[str, Any]]:
        """
        List a student's submissions, newest first.

        Score, correct count and letter grade stay hidden until the
        instructor releases scores for the exam.
        """
        async with transaction(self.session_factory) as session:
            submissions = await SubmissionRepository(session).list_for_student(student.id)
            exams = await ExamRepository(session).get_many(s.exam_id for s in submissions)

        results = []
        for submission in reversed(submissions):
            exam = exams.get(submission.exam_id)
            if exam is None:
                continue
            released = exam.score_released
            results.append({
                "submission_id": submission.id,
                "exam_id": exam.id,
                "title": exam.title,
                "subject": exam.subject,
                "submitted_at": submission.submitted_at,
                "time_spent_seconds": submission.time_spent_seconds,
                "total_questions": submission.total_questions,
                "score_released": released,
                "answers_released": exam.answers_released,
                "score": submission.score if released else None,
                "correct_count": submission.correct_count if released else None,
                "percentage": submission.percentage if released else None,
                "grade": letter_grade(submission.percentage) if released else "N/A",
            })
        return results

    async def review_submission(self, submission_id: str, user: User) -> Dict[str, Any]:
        """
        Per-question review of a submission with the correct answers.

        Students may only review their own submission, and only once answers
        are released; instructors may review submissions of exams they manage.
        """
        async with transaction(self.session_factory) as session:
            submission = await SubmissionRepository(session).get(submission_id)
            if submission is None:
                raise NotFoundError("Submission", submission_id)
            exam = await ExamRepository(session).require(submission.exam_id)

            if user.is_student:
                if submission.student_id != user.id:
                    raise AuthorizationError("This is not your submission", f"submission:{submission_id}", "review")
                if not exam.answers_released:
                    raise AuthorizationError("Answers have not been released yet", f"exam:{exam.id}", "review")
            else:
                ensure_can_manage(user, exam, "review")

            order: List[str] = []
            if submission.question_set_id:
                items = await QuestionSetRepository(session).items_for(submission.question_set_id)
                order = [item.question_id for item in items]
            for question_id in submission.answers:
                if question_id not in order:
                    order.append(question_id)
            questions = await SqlQuestionRepository(session).get_many(order)

        review = []
        for position, question_id in enumerate(order, start=1):
            question = questions.get(question_id)
            if question is None:
                continue
            answer = submission.answer_for(question_id)
            review.append({
                "order": position,
                "question_id": question_id,
                "text": question.text,
                "options": question.options,
                "correct_option": question.correct_option,
                "selected_option": answer.selected_text if answer else None,
                "is_correct": answer.is_correct if answer else False,
            })

        return {
            "submission_id": submission.id,
            "exam_id": exam.id,
            "title": exam.title,
            "score": submission.score,
            "total_questions": submission.total_questions,
            "percentage": submission.percentage,
            "grade": letter_grade(submission.percentage),
            "questions": review,
        }

    async def monitor(self, exam_id: str, actor: User) -> Dict[str, Any]:
        """Live status of every roster student for an instructor."""
        async with transaction(self.session_factory) as session:
            exam = await ExamRepository(session).require(exam_id)
            ensure_can_manage(actor, exam, "monitor")
            roster = await SqlRosterProvider(session).get_roster(exam.class_id) if exam.class_id else []
            sets = await QuestionSetRepository(session).list_for_exam(exam.id)
            submissions = await SubmissionRepository(session).list_for_exam(exam.id)

        sets_by_email = {s.student_email: s for s in sets}
        submissions_by_set = {s.question_set_id: s for s in submissions}
        students = []
        counts = {status.value: 0 for status in SetStatus}
        for entry in roster:
            question_set = sets_by_email.get(entry.email)
            status = question_set.status if question_set else SetStatus.NOT_STARTED
            counts[status.value] += 1
            submission = submissions_by_set.get(question_set.id) if question_set else None
            students.append({
                "name": entry.name,
                "email": entry.email,
                "set_number": question_set.set_number if question_set else None,
                "status": status.value,
                "started_at": question_set.started_at if question_set else None,
                "completed_at": question_set.completed_at if question_set else None,
                "percentage": submission.percentage if submission else None,
                "time_spent_seconds": submission.time_spent_seconds if submission else None,
                "tab_switches": submission.tab_switches if submission else 0,
                "fullscreen_exits": submission.fullscreen_exits if submission else 0,
                "submission_reason": submission.submission_reason if submission else None,
            })

        return {
            "exam_id": exam.id,
            "title": exam.title,
            "is_published": exam.is_published,
            "is_ended": exam.is_ended,
            "start_time": exam.start_time,
            "end_time": exam.end_time,
            "summary": counts,
            "students": students,
        }
