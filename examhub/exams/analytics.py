"""
Analytics Aggregator

Rolls submissions up into per-exam, per-student and per-class summaries.
The summarizing functions are pure and return zeroed results for empty
input; ``AnalyticsAggregator`` loads the data and applies access rules.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from examhub.common.auth.user import User
from examhub.common.db.session import SessionFactory, transaction
from examhub.common.exceptions import AuthorizationError, NotFoundError
from examhub.common.logger import app_logger
from examhub.config import Settings, settings as default_settings
from examhub.domain.classes import SqlRosterProvider
from examhub.domain.exams import Exam, ExamRepository, Submission, SubmissionRepository

logger = app_logger.getChild("exams.analytics")

GENERAL_SUBJECT = "General"

GRADE_BOUNDARIES = (
    (90.0, "A"),
    (80.0, "B+"),
    (70.0, "B"),
    (60.0, "C"),
    (50.0, "D"),
)


def letter_grade(percentage: Optional[float]) -> str:
    """Map a percentage to a letter grade."""
    if percentage is None:
        return "N/A"
    for boundary, grade in GRADE_BOUNDARIES:
        if percentage >= boundary:
            return grade
    return "F"


def derive_subject(exam: Exam) -> str:
    """
    Subject of an exam for grouping.

    Uses the exam's subject, else the title prefix before ``-``
    ("Physics - Midterm" groups under "Physics"), else "General".
    """
    if exam.subject and exam.subject.strip():
        return exam.subject.strip()
    if exam.title and "-" in exam.title:
        prefix = exam.title.split("-", 1)[0].strip()
        if prefix:
            return prefix
    return GENERAL_SUBJECT


def _average(values: Sequence[float], digits: int = 2) -> float:
    return round(sum(values) / len(values), digits) if values else 0.0


@dataclass
class ExamSummary:
    participants: int = 0
    average_score: float = 0.0
    average_time_seconds: float = 0.0
    highest_score: float = 0.0
    lowest_score: float = 0.0
    grade_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass
class SubjectStats:
    tests: int = 0
    average_score: float = 0.0


@dataclass
class StudentSummary:
    tests_attempted: int = 0
    average_score: float = 0.0
    best_score: float = 0.0
    total_time_spent: int = 0
    recent_scores: List[Dict[str, Any]] = field(default_factory=list)
    subjects: Dict[str, SubjectStats] = field(default_factory=dict)


@dataclass
class RankedStudent:
    rank: int
    student_id: str
    student_email: str
    tests_attempted: int
    average_score: float


def summarize_exam(submissions: Sequence[Submission]) -> ExamSummary:
    """Participants, averages and grade spread of one exam's submissions."""
    if not submissions:
        return ExamSummary()

    scores = [s.percentage for s in submissions]
    distribution: Dict[str, int] = OrderedDict((grade, 0) for _, grade in GRADE_BOUNDARIES)
    distribution["F"] = 0
    for score in scores:
        distribution[letter_grade(score)] += 1

    return ExamSummary(
        participants=len(submissions),
        average_score=_average(scores),
        average_time_seconds=_average([s.time_spent_seconds for s in submissions]),
        highest_score=max(scores),
        lowest_score=min(scores),
        grade_distribution=dict(distribution),
    )


def summarize_student(
    attempts: Sequence[Tuple[Submission, Exam]],
    recent_limit: int = 10
) -> StudentSummary:
    """
    Summarize a student's submissions.

    Args:
        attempts: Submission and its exam, oldest first
        recent_limit: How many of the newest scores to return

    Returns:
        Totals, the newest scores in chronological order and per-subject averages
    """
    if not attempts:
        return StudentSummary()

    scores = [submission.percentage for submission, _ in attempts]
    per_subject: Dict[str, List[float]] = OrderedDict()
    for submission, exam in attempts:
        per_subject.setdefault(derive_subject(exam), []).append(submission.percentage)

    recent = attempts[-recent_limit:] if recent_limit > 0 else []
    return StudentSummary(
        tests_attempted=len(attempts),
        average_score=_average(scores, 1),
        best_score=max(scores),
        total_time_spent=sum(submission.time_spent_seconds for submission, _ in attempts),
        recent_scores=[
            {
                "exam_id": exam.id,
                "title": exam.title,
                "percentage": submission.percentage,
                "submitted_at": submission.submitted_at,
            }
            for submission, exam in recent
        ],
        subjects={
            subject: SubjectStats(tests=len(values), average_score=_average(values, 1))
            for subject, values in per_subject.items()
        },
    )


def rank_students(submissions: Sequence[Submission]) -> List[RankedStudent]:
    """Rank students by average percentage; ties share a rank."""
    grouped: Dict[str, List[Submission]] = OrderedDict()
    for submission in submissions:
        grouped.setdefault(submission.student_id, []).append(submission)

    rows = sorted(
        (
            (student_id, items[0].student_email, len(items), _average([s.percentage for s in items]))
            for student_id, items in grouped.items()
        ),
        key=lambda row: (-row[3], row[1]),
    )

    ranked: List[RankedStudent] = []
    for position, (student_id, email, attempted, average) in enumerate(rows, start=1):
        rank = ranked[-1].rank if ranked and ranked[-1].average_score == average else position
        ranked.append(RankedStudent(rank, student_id, email, attempted, average))
    return ranked


class AnalyticsAggregator:
    """Loads submissions and produces analytics views."""

    def __init__(self, session_factory: SessionFactory, config: Settings = default_settings):
        self.session_factory = session_factory
        self.config = config

    async def exam_analysis(self, exam_id: str, actor: User) -> Dict[str, Any]:
        async with transaction(self.session_factory) as session:
            exam = await ExamRepository(session).require(exam_id)
            if not actor.can_manage(exam.owner_id):
                raise AuthorizationError("You do not manage this exam", f"exam:{exam.id}", "analyze")
            submissions = await SubmissionRepository(session).list_for_exam(exam.id)

        return {
            "exam_id": exam.id,
            "title": exam.title,
            "summary": summarize_exam(submissions),
            "submissions": [
                {
                    "submission_id": s.id,
                    "student_email": s.student_email,
                    "percentage": s.percentage,
                    "grade": letter_grade(s.percentage),
                    "time_spent_seconds": s.time_spent_seconds,
                    "tab_switches": s.tab_switches,
                    "fullscreen_exits": s.fullscreen_exits,
                    "submitted_at": s.submitted_at,
                }
                for s in submissions
            ],
        }

    async def student_performance(self, student: User) -> StudentSummary:
        """
        Performance summary of a student over exams whose scores are released.
        """
        async with transaction(self.session_factory) as session:
            submissions = await SubmissionRepository(session).list_for_student(student.id)
            exams = await ExamRepository(session).get_many(s.exam_id for s in submissions)

        attempts = [
            (submission, exams[submission.exam_id])
            for submission in submissions
            if submission.exam_id in exams and exams[submission.exam_id].score_released
        ]
        return summarize_student(attempts, self.config.RECENT_SCORES_LIMIT)

    async def class_ranking(self, class_id: str, actor: User) -> List[RankedStudent]:
        """Rank a class's students across every exam assigned to it."""
        async with transaction(self.session_factory) as session:
            school_class = await SqlRosterProvider(session).get_class(class_id)
            if school_class is None:
                raise NotFoundError("Class", class_id)
            if not actor.can_manage(school_class.teacher_id):
                raise AuthorizationError("You do not teach this class", f"class:{class_id}", "rank")
            exams = await ExamRepository(session).list_for_class(class_id)
            submissions = await SubmissionRepository(session).list_for_exams(e.id for e in exams)

        logger.debug(f"Ranking {len(submissions)} submissions across {len(exams)} exams of class {class_id}")
        return rank_students(submissions)
