"""
Question Set Generator

Partitions an exam's question pool into ``set_count`` sets of
``questions_per_set`` questions and hands one set to every roster student in
round-robin order.

When the pool holds fewer than ``set_count * questions_per_set`` distinct
questions the sets wrap around the (shuffled) pool, so questions are reused
across sets. Generation only fails when the pool cannot fill a single set.
"""

import random
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from examhub.common.clock import Clock
from examhub.common.exceptions import (
    ConcurrentRegeneration,
    EmptyRoster,
    InsufficientQuestions,
    InvalidRosterEntry,
    RegenerationBlocked,
    ValidationError,
)
from examhub.common.logger import app_logger, log_execution_time
from examhub.database.base import new_id
from examhub.domain.classes import RosterEntry, UserDirectory
from examhub.domain.exams import (
    Exam,
    ExamRepository,
    QuestionSet,
    QuestionSetItem,
    QuestionSetRepository,
    SubmissionRepository,
)

logger = app_logger.getChild("exams.set_generator")


@dataclass
class GeneratedSet:
    """A question set assigned to one roster student."""
    student: RosterEntry
    question_set: QuestionSet
    items: List[QuestionSetItem]

    @property
    def question_ids(self) -> List[str]:
        return [item.question_id for item in self.items]


def dedupe_pool(question_ids: Iterable[str]) -> List[str]:
    """Drop repeated IDs, keeping the first occurrence of each."""
    return list(dict.fromkeys(question_ids))


def plan_sets(
    pool: Sequence[str],
    set_count: int,
    questions_per_set: int,
    shuffle: bool,
    rng: Optional[random.Random] = None
) -> List[List[str]]:
    """
    Decide the question IDs of every set.

    With ``shuffle`` the pool is permuted once and set ``i`` takes the
    ``questions_per_set`` IDs starting at ``i * questions_per_set``, wrapping
    around the end of the pool. Without it every set is the first
    ``questions_per_set`` IDs in pool order.

    Raises:
        ValidationError: If the set count or set size is below one
        InsufficientQuestions: If the pool cannot fill one set
    """
    if set_count < 1 or questions_per_set < 1:
        raise ValidationError(
            "sets need at least one set of at least one question",
            {"set_count": set_count, "questions_per_set": questions_per_set},
        )
    pool = dedupe_pool(pool)
    if len(pool) < questions_per_set:
        raise InsufficientQuestions(len(pool), questions_per_set)

    if not shuffle:
        return [list(pool[:questions_per_set]) for _ in range(set_count)]

    shuffled = list(pool)
    (rng or random.Random()).shuffle(shuffled)
    size = len(shuffled)
    return [
        [shuffled[(index * questions_per_set + offset) % size] for offset in range(questions_per_set)]
        for index in range(set_count)
    ]


def assign_round_robin(roster: Sequence[RosterEntry], set_count: int) -> List[Tuple[RosterEntry, int]]:
    """Pair each roster entry with the index of its set (``position mod set_count``)."""
    return [(entry, position % set_count) for position, entry in enumerate(roster)]


def build_access_link(exam_id: str, set_number: int, now: datetime) -> str:
    """Build a unique, unguessable link to one student's set."""
    millis = int(now.timestamp() * 1000)
    return f"{exam_id}-set-{set_number}-{millis}-{secrets.token_hex(8)}"


class SetGenerator:
    """
    Generates and persists the question sets of an exam.

    The caller owns the transaction; everything written here commits or
    rolls back with it.
    """

    def __init__(self, clock: Clock, rng: Optional[random.Random] = None):
        self.clock = clock
        self.rng = rng or random.Random()

    @log_execution_time(logger)
    async def generate(
        self,
        session: AsyncSession,
        exam: Exam,
        roster: Sequence[RosterEntry],
        directory: UserDirectory
    ) -> List[GeneratedSet]:
        """
        Replace the exam's question sets with freshly generated ones.

        Args:
            session: Session of the enclosing transaction
            exam: The exam, as read inside that transaction
            roster: Students to assign, in roster order
            directory: Used to resolve account IDs missing from the roster

        Returns:
            One generated set per roster entry, in roster order

        Raises:
            EmptyRoster: If there are no students
            InsufficientQuestions: If the pool cannot fill one set
            InvalidRosterEntry: If any student lacks an email
            RegenerationBlocked: If the exam already has submissions
            ConcurrentRegeneration: If another generation claimed the exam first
        """
        if not roster:
            raise EmptyRoster(exam.class_id)

        plan = plan_sets(
            exam.pool_question_ids,
            exam.set_count,
            exam.questions_per_set,
            exam.shuffle_questions,
            self.rng,
        )

        missing_email = [entry.name for entry in roster if not entry.email]
        if missing_email:
            raise InvalidRosterEntry(missing_email)

        submissions = await SubmissionRepository(session).count_for_exam(exam.id)
        if submissions:
            raise RegenerationBlocked(exam.id, submissions)

        if not await ExamRepository(session).claim_sets_version(exam.id, exam.sets_version):
            raise ConcurrentRegeneration(exam.id)
        exam.sets_version += 1

        sets_repo = QuestionSetRepository(session)
        removed = await sets_repo.delete_for_exam(exam.id)
        if removed:
            logger.info(f"Removed {removed} existing question sets for exam {exam.id}")

        now = self.clock.now()
        generated: List[GeneratedSet] = []
        for entry, set_index in assign_round_robin(roster, len(plan)):
            student_id = entry.user_id
            if not student_id:
                account = await directory.find_by_email(entry.email)
                student_id = account.id if account else None

            set_number = set_index + 1
            question_set = QuestionSet(
                id=new_id(),
                exam_id=exam.id,
                set_number=set_number,
                student_email=entry.email,
                student_id=student_id,
                access_link=build_access_link(exam.id, set_number, now),
                created_at=now,
            )
            items = [
                QuestionSetItem(
                    id=new_id(),
                    question_set_id=question_set.id,
                    question_id=question_id,
                    question_order=order,
                )
                for order, question_id in enumerate(plan[set_index], start=1)
            ]
            generated.append(GeneratedSet(entry, question_set, items))

        await sets_repo.add_many(
            [g.question_set for g in generated],
            [item for g in generated for item in g.items],
        )

        logger.info(
            f"Generated {len(plan)} question sets for exam {exam.id} "
            f"and assigned them to {len(generated)} students (version {exam.sets_version})"
        )
        return generated
