"""
Database Models

ORM tables for users, classes and rosters, question banks, exams, per-student
question sets and submissions. Column names match the field names of the
domain dataclasses so rows convert without a mapping layer.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from examhub.database.base import ModelBase, new_id


class User(ModelBase):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="student")
    is_super_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=True)


class SchoolClass(ModelBase):
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=True)


class ClassStudent(ModelBase):
    """Roster entry; email may be missing for students imported without one."""

    __tablename__ = "class_students"

    id = Column(String(36), primary_key=True, default=new_id)
    class_id = Column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    position = Column(Integer, nullable=False, default=0)


class Question(ModelBase):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=new_id)
    question_bank_id = Column(String(36), nullable=False, index=True)
    text = Column(Text, nullable=False)
    correct_option = Column(Text, nullable=False)
    incorrect_options = Column(JSON, nullable=False, default=list)
    subject = Column(String(255), nullable=True)
    difficulty_rating = Column(String(20), nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    success_rate = Column(Float, nullable=False, default=0.0)
    adaptive_difficulty = Column(String(20), nullable=False, default="medium")
    created_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)


class Exam(ModelBase):
    __tablename__ = "exams"

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(255), nullable=True)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=True)
    question_bank_id = Column(String(36), nullable=True)
    pool_question_ids = Column(JSON, nullable=False, default=list)
    set_count = Column(Integer, nullable=False, default=1)
    questions_per_set = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    expiring_hours = Column(Float, nullable=False, default=1.0)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)
    is_ended = Column(Boolean, nullable=False, default=False)
    ended_at = Column(DateTime, nullable=True)
    shuffle_questions = Column(Boolean, nullable=False, default=True)
    shuffle_options = Column(Boolean, nullable=False, default=False)
    score_released = Column(Boolean, nullable=False, default=False)
    answers_released = Column(Boolean, nullable=False, default=False)
    sets_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)


class QuestionSet(ModelBase):
    __tablename__ = "question_sets"
    __table_args__ = (
        Index("ix_question_sets_exam_email", "exam_id", "student_email"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    exam_id = Column(String(36), ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    set_number = Column(Integer, nullable=False)
    student_email = Column(String(255), nullable=False)
    student_id = Column(String(36), nullable=True)
    access_link = Column(String(255), nullable=False, unique=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=True)


class QuestionSetItem(ModelBase):
    __tablename__ = "question_set_items"
    __table_args__ = (
        UniqueConstraint("question_set_id", "question_id", name="uq_question_set_items_set_question"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    question_set_id = Column(
        String(36), ForeignKey("question_sets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id = Column(String(36), ForeignKey("questions.id"), nullable=False)
    question_order = Column(Integer, nullable=False)


class Submission(ModelBase):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_submissions_exam_student"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False, index=True)
    student_id = Column(String(36), nullable=False, index=True)
    student_email = Column(String(255), nullable=False)
    question_set_id = Column(String(36), ForeignKey("question_sets.id", ondelete="SET NULL"), nullable=True)
    answers = Column(JSON, nullable=False, default=dict)
    score = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    percentage = Column(Float, nullable=False, default=0.0)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    tab_switches = Column(Integer, nullable=False, default=0)
    fullscreen_exits = Column(Integer, nullable=False, default=0)
    submission_reason = Column(String(255), nullable=False, default="Manual submission")
    submitted_at = Column(DateTime, nullable=True)
