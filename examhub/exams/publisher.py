"""
Assignment Publisher

Binds an exam to a class, opens its availability window and generates the
question set of every student on the class roster. The publish flag and the
generated sets are written in one transaction, so a failed generation leaves
the exam exactly as it was.
"""

import random
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from examhub.common.audit import AuditSink, emit
from examhub.common.auth.user import User
from examhub.common.clock import Clock
from examhub.common.db.session import SessionFactory, transaction
from examhub.common.exceptions import AuthorizationError, NotFoundError, ValidationError
from examhub.common.logger import app_logger
from examhub.config import Settings, settings as default_settings
from examhub.domain.classes import SchoolClass, SqlRosterProvider, SqlUserDirectory
from examhub.domain.exams import Exam, ExamRepository
from examhub.exams.set_generator import GeneratedSet, SetGenerator

logger = app_logger.getChild("exams.publisher")


@dataclass
class PublishResult:
    exam: Exam
    sets: List[GeneratedSet]

    @property
    def students_assigned(self) -> int:
        return len(self.sets)

    def to_dict(self):
        return {
            "exam": self.exam,
            "students_assigned": self.students_assigned,
            "assignments": [
                {
                    "student_name": generated.student.name,
                    "student_email": generated.question_set.student_email,
                    "set_number": generated.question_set.set_number,
                    "access_link": generated.question_set.access_link,
                }
                for generated in self.sets
            ],
        }


def ensure_can_manage(actor: User, exam: Exam, action: str) -> None:
    """
    Raises:
        AuthorizationError: If ``actor`` may not manage ``exam``
    """
    if not actor.can_manage(exam.owner_id):
        raise AuthorizationError("You do not manage this exam", resource=f"exam:{exam.id}", action=action)


def ensure_can_use_class(actor: User, school_class: SchoolClass) -> None:
    if actor.is_admin:
        return
    if school_class.teacher_id != actor.id:
        raise AuthorizationError(
            "You can only assign exams to your own classes",
            resource=f"class:{school_class.id}",
            action="assign",
        )


class AssignmentPublisher:
    """Publishes exams to class rosters and regenerates their question sets."""

    def __init__(
        self,
        session_factory: SessionFactory,
        clock: Clock,
        rng: Optional[random.Random] = None,
        audit: Optional[AuditSink] = None,
        config: Settings = default_settings
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.generator = SetGenerator(clock, rng)
        self.audit = audit
        self.config = config

    async def publish(
        self,
        exam_id: str,
        class_id: str,
        actor: User,
        expiring_hours: Optional[float] = None
    ) -> PublishResult:
        """
        Publish an exam to a class.

        The window opens now and closes ``expiring_hours`` later (the
        configured default when omitted).

        Args:
            exam_id: Exam to publish
            class_id: Class whose roster receives question sets
            actor: The instructor publishing the exam
            expiring_hours: Length of the availability window

        Returns:
            The published exam and the generated assignments

        Raises:
            ValidationError: If ``expiring_hours`` is not positive
            NotFoundError: If the exam or class does not exist
            AuthorizationError: If the actor does not manage the exam or class
        """
        hours = self.config.DEFAULT_EXPIRING_HOURS if expiring_hours is None else expiring_hours
        if hours <= 0:
            raise ValidationError("expiring hours must be greater than zero", {"expiring_hours": hours})

        async with transaction(self.session_factory) as session:
            exams = ExamRepository(session)
            exam = await exams.require(exam_id)
            ensure_can_manage(actor, exam, "publish")

            roster_provider = SqlRosterProvider(session)
            school_class = await roster_provider.get_class(class_id)
            if school_class is None:
                raise NotFoundError("Class", class_id)
            ensure_can_use_class(actor, school_class)

            now = self.clock.now()
            exam = await exams.update(
                exam.id,
                class_id=class_id,
                expiring_hours=hours,
                start_time=now,
                end_time=now + timedelta(hours=hours),
                is_published=True,
                is_ended=False,
                ended_at=None,
                updated_at=now,
            )
            roster = await roster_provider.get_roster(class_id)
            generated = await self.generator.generate(session, exam, roster, SqlUserDirectory(session))

        logger.info(f"Published exam {exam.id} to class {class_id} until {exam.end_time.isoformat()}")
        await emit(
            self.audit, "exam.publish", actor.id,
            exam_id=exam.id, class_id=class_id, students=len(generated),
        )
        return PublishResult(exam, generated)

    async def regenerate(self, exam_id: str, actor: User) -> PublishResult:
        """
        Regenerate the question sets of an exam for its current class roster.

        Raises:
            ValidationError: If the exam has not been assigned to a class
            RegenerationBlocked: If the exam already has submissions
        """
        async with transaction(self.session_factory) as session:
            exam = await ExamRepository(session).require(exam_id)
            ensure_can_manage(actor, exam, "regenerate")
            if not exam.class_id:
                raise ValidationError("exam is not assigned to a class", {"class_id": None})

            roster = await SqlRosterProvider(session).get_roster(exam.class_id)
            generated = await self.generator.generate(session, exam, roster, SqlUserDirectory(session))

        await emit(
            self.audit, "exam.regenerate_sets", actor.id,
            exam_id=exam.id, students=len(generated), sets_version=exam.sets_version,
        )
        return PublishResult(exam, generated)
