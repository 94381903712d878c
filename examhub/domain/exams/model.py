"""
Exam Domain Model Module

This module defines exams, the per-student question sets generated for
them, and graded submissions.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from examhub.common.serialization import SerializableMixin


class SetStatus(str, enum.Enum):
    """Progress of a student through their question set."""
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


@dataclass
class Exam(SerializableMixin):
    """
    An exam authored by an instructor.

    ``pool_question_ids`` is the candidate pool that question sets are drawn
    from. ``sets_version`` increases every time the sets are regenerated.
    """
    id: str
    owner_id: str
    title: str
    questions_per_set: int
    duration_minutes: int
    description: Optional[str] = None
    subject: Optional[str] = None
    class_id: Optional[str] = None
    question_bank_id: Optional[str] = None
    pool_question_ids: List[str] = field(default_factory=list)
    set_count: int = 1
    expiring_hours: float = 1.0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_published: bool = False
    is_ended: bool = False
    ended_at: Optional[datetime] = None
    shuffle_questions: bool = True
    shuffle_options: bool = False
    score_released: bool = False
    answers_released: bool = False
    sets_version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def has_started(self, now: datetime) -> bool:
        return self.start_time is not None and now >= self.start_time

    def has_expired(self, now: datetime) -> bool:
        return self.end_time is not None and now > self.end_time


@dataclass
class QuestionSet(SerializableMixin):
    id: str
    exam_id: str
    set_number: int
    student_email: str
    access_link: str
    student_id: Optional[str] = None
    is_completed: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def status(self) -> SetStatus:
        if self.is_completed:
            return SetStatus.COMPLETED
        if self.started_at is not None:
            return SetStatus.IN_PROGRESS
        return SetStatus.NOT_STARTED

    def belongs_to(self, email: Optional[str], student_id: Optional[str]) -> bool:
        if email and self.student_email == email:
            return True
        return student_id is not None and self.student_id == student_id


@dataclass
class QuestionSetItem(SerializableMixin):
    id: str
    question_set_id: str
    question_id: str
    question_order: int


@dataclass
class AnswerRecord(SerializableMixin):
    """
    A graded answer as stored on a submission.

    ``selected_index`` is -1 and ``selected_letter`` empty when the chosen
    text is not one of the question's options.
    """
    selected_letter: str
    selected_text: str
    selected_index: int
    is_correct: bool


@dataclass
class Submission(SerializableMixin):
    id: str
    exam_id: str
    student_id: str
    student_email: str
    question_set_id: Optional[str] = None
    answers: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    score: int = 0
    total_questions: int = 0
    correct_count: int = 0
    percentage: float = 0.0
    time_spent_seconds: int = 0
    tab_switches: int = 0
    fullscreen_exits: int = 0
    submission_reason: str = "Manual submission"
    submitted_at: Optional[datetime] = None

    def answer_for(self, question_id: str) -> Optional[AnswerRecord]:
        raw = self.answers.get(question_id)
        return AnswerRecord.from_dict(raw) if raw else None
