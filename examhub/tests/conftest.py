"""
Shared fixtures for the exam backend tests.

Every test gets its own in-memory SQLite database, a frozen clock and a
seeded random source, plus a ``Seeder`` for building users, classes,
question banks and exams.
"""

import random
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from examhub.common.audit import MemoryAuditSink
from examhub.common.auth.user import User, UserRole
from examhub.common.clock import FrozenClock
from examhub.common.db.session import transaction
from examhub.database import models as orm
from examhub.database.base import new_id
from examhub.database.init_db import create_schema, create_session_factory
from examhub.domain.exams import Exam
from examhub.exams.lifecycle import ExamDraft
from examhub.exams.services import build_services

START = datetime(2024, 5, 1, 9, 0, 0)


class Seeder:
    """Builds test data directly in the store."""

    def __init__(self, session_factory, services, clock):
        self.session_factory = session_factory
        self.services = services
        self.clock = clock

    async def user(
        self,
        email: str,
        role: UserRole = UserRole.STUDENT,
        name: Optional[str] = None,
        super_admin: bool = False
    ) -> User:
        user = User(id=new_id(), email=email, role=role, name=name or email.split("@")[0],
                    is_super_admin=super_admin)
        async with transaction(self.session_factory) as session:
            session.add(orm.User(
                id=user.id, email=user.email, name=user.name, role=role.value,
                is_super_admin=super_admin, created_at=self.clock.now(),
            ))
        return user

    async def teacher(self, email: str = "teacher@school.test") -> User:
        return await self.user(email, UserRole.TEACHER)

    async def school_class(
        self,
        teacher: User,
        students: Sequence[Tuple[str, Optional[str]]],
        user_ids: Optional[Sequence[Optional[str]]] = None
    ) -> str:
        """Create a class whose roster holds ``(name, email)`` pairs in order."""
        class_id = new_id()
        async with transaction(self.session_factory) as session:
            session.add(orm.SchoolClass(id=class_id, name="Class", teacher_id=teacher.id,
                                        created_at=self.clock.now()))
            await session.flush()
            for position, (name, email) in enumerate(students):
                session.add(orm.ClassStudent(
                    class_id=class_id, name=name, email=email, position=position,
                    user_id=user_ids[position] if user_ids else None,
                ))
        return class_id

    async def add_to_roster(self, class_id: str, name: str, email: str, position: int = 100) -> None:
        async with transaction(self.session_factory) as session:
            session.add(orm.ClassStudent(class_id=class_id, name=name, email=email, position=position))

    async def questions(self, count: int, bank_id: str = "bank-1", subject: Optional[str] = None) -> List[str]:
        """Create ``count`` questions; question ``i`` has correct option ``Answer i``."""
        ids = []
        async with transaction(self.session_factory) as session:
            for index in range(count):
                question_id = new_id()
                ids.append(question_id)
                session.add(orm.Question(
                    id=question_id,
                    question_bank_id=bank_id,
                    text=f"Question {index}",
                    correct_option=f"Answer {index}",
                    incorrect_options=[f"Wrong {index}a", f"Wrong {index}b", f"Wrong {index}c"],
                    subject=subject,
                    created_at=self.clock.now() + timedelta(seconds=index),
                ))
        return ids

    async def exam(self, owner: User, pool: Iterable[str], **overrides) -> Exam:
        values = dict(
            title="Algebra - Unit 1",
            questions_per_set=2,
            duration_minutes=30,
            question_bank_id="bank-1",
            pool_question_ids=list(pool),
            set_count=2,
            shuffle_questions=False,
        )
        values.update(overrides)
        return await self.services.lifecycle.create_exam(owner, ExamDraft(**values))

    async def update_exam(self, exam_id: str, **values) -> None:
        async with transaction(self.session_factory) as session:
            await session.execute(update(orm.Exam).where(orm.Exam.id == exam_id).values(**values))

    async def students(self, count: int, prefix: str = "student") -> List[User]:
        return [await self.user(f"{prefix}{index}@school.test") for index in range(count)]


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def clock():
    return FrozenClock(START)


@pytest.fixture
def audit():
    return MemoryAuditSink()


@pytest.fixture
def services(session_factory, clock, audit):
    return build_services(session_factory, clock=clock, rng=random.Random(1234), audit=audit)


@pytest.fixture
def seed(session_factory, services, clock):
    return Seeder(session_factory, services, clock)


@pytest_asyncio.fixture
async def published(seed, services):
    """
    A published exam over a class of four students, each with an account.

    Pool of four questions, two sets of two questions, no shuffling.
    """
    teacher = await seed.teacher()
    students = await seed.students(4)
    class_id = await seed.school_class(
        teacher,
        [(s.name, s.email) for s in students],
        [s.id for s in students],
    )
    pool = await seed.questions(4)
    exam = await seed.exam(teacher, pool)
    result = await services.publisher.publish(exam.id, class_id, teacher)
    return {
        "teacher": teacher,
        "students": students,
        "class_id": class_id,
        "pool": pool,
        "exam": result.exam,
        "sets": result.sets,
    }
