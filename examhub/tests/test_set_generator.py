"""
Tests for question set planning and generation.
"""

import random
import re
from datetime import datetime

import pytest

from examhub.common.db.session import transaction
from examhub.common.exceptions import ConcurrentRegeneration, InsufficientQuestions, ValidationError
from examhub.domain.classes import RosterEntry, SqlRosterProvider, SqlUserDirectory
from examhub.domain.exams import ExamRepository, QuestionSetRepository
from examhub.exams.set_generator import (
    SetGenerator,
    assign_round_robin,
    build_access_link,
    dedupe_pool,
    plan_sets,
)


class TestPlanSets:

    def test_without_shuffle_every_set_is_the_pool_prefix(self):
        pool = [f"q{i}" for i in range(6)]

        sets = plan_sets(pool, set_count=3, questions_per_set=4, shuffle=False)

        assert sets == [["q0", "q1", "q2", "q3"]] * 3

    def test_shuffle_partitions_a_large_enough_pool(self):
        pool = [f"q{i}" for i in range(12)]

        sets = plan_sets(pool, set_count=3, questions_per_set=4, shuffle=True, rng=random.Random(3))

        flattened = [qid for s in sets for qid in s]
        assert len(sets) == 3
        assert all(len(s) == 4 for s in sets)
        assert sorted(flattened) == sorted(pool)

    def test_small_pool_is_reused_with_wraparound(self):
        pool = [f"q{i}" for i in range(5)]

        sets = plan_sets(pool, set_count=3, questions_per_set=4, shuffle=True, rng=random.Random(9))

        for question_ids in sets:
            assert len(question_ids) == 4
            assert len(set(question_ids)) == 4
            assert set(question_ids) <= set(pool)

    def test_pool_smaller_than_one_set_fails(self):
        with pytest.raises(InsufficientQuestions) as excinfo:
            plan_sets(["q0", "q1", "q2"], set_count=2, questions_per_set=4, shuffle=True)

        assert excinfo.value.available == 3
        assert excinfo.value.required == 4

    def test_duplicate_ids_do_not_count_towards_capacity(self):
        assert dedupe_pool(["a", "b", "a", "c", "b"]) == ["a", "b", "c"]

        with pytest.raises(InsufficientQuestions):
            plan_sets(["a", "a", "a"], set_count=1, questions_per_set=2, shuffle=False)

    def test_same_seed_gives_same_plan(self):
        pool = [f"q{i}" for i in range(10)]

        first = plan_sets(pool, 2, 3, True, random.Random(42))
        second = plan_sets(pool, 2, 3, True, random.Random(42))

        assert first == second


class TestRoundRobin:

    def test_students_cycle_through_sets(self):
        roster = [RosterEntry(name=f"s{i}", email=f"s{i}@x.test") for i in range(7)]

        assignment = assign_round_robin(roster, 3)

        assert [index for _, index in assignment] == [0, 1, 2, 0, 1, 2, 0]
        assert [entry.name for entry, _ in assignment] == [entry.name for entry in roster]


def test_access_link_format():
    link = build_access_link("exam-1", 2, datetime(2024, 5, 1, 9, 0, 0))

    assert re.fullmatch(r"exam-1-set-2-\d+-[0-9a-f]{16}", link)
    assert link != build_access_link("exam-1", 2, datetime(2024, 5, 1, 9, 0, 0))


@pytest.mark.asyncio
async def test_generate_assigns_every_student_and_resolves_accounts(seed, services, session_factory, clock):
    teacher = await seed.teacher()
    registered = await seed.user("ana@school.test")
    class_id = await seed.school_class(
        teacher,
        [("Ana", "Ana@School.test"), ("Ben", "ben@school.test"), ("Cy", "cy@school.test")],
    )
    pool = await seed.questions(6)
    exam = await seed.exam(teacher, pool, set_count=2, questions_per_set=3, shuffle_questions=True)

    generator = SetGenerator(clock, random.Random(5))
    async with transaction(session_factory) as session:
        exam = await ExamRepository(session).require(exam.id)
        roster = await SqlRosterProvider(session).get_roster(class_id)
        generated = await generator.generate(session, exam, roster, SqlUserDirectory(session))

    assert [g.question_set.set_number for g in generated] == [1, 2, 1]
    assert [g.question_set.student_email for g in generated] == [
        "ana@school.test", "ben@school.test", "cy@school.test"
    ]
    assert generated[0].question_set.student_id == registered.id
    assert generated[1].question_set.student_id is None
    assert generated[0].question_ids == generated[2].question_ids
    assert [item.question_order for item in generated[0].items] == [1, 2, 3]

    async with transaction(session_factory) as session:
        stored = await QuestionSetRepository(session).list_for_exam(exam.id)
        stored_exam = await ExamRepository(session).require(exam.id)
    assert len(stored) == 3
    assert stored_exam.sets_version == 1


@pytest.mark.asyncio
async def test_stale_version_is_rejected(seed, services, session_factory, clock, published):
    async with transaction(session_factory) as session:
        stale = await ExamRepository(session).require(published["exam"].id)

    await services.publisher.regenerate(published["exam"].id, published["teacher"])

    generator = SetGenerator(clock)
    with pytest.raises(ConcurrentRegeneration):
        async with transaction(session_factory) as session:
            roster = await SqlRosterProvider(session).get_roster(published["class_id"])
            await generator.generate(session, stale, roster, SqlUserDirectory(session))

    async with transaction(session_factory) as session:
        sets = await QuestionSetRepository(session).list_for_exam(published["exam"].id)
    assert len(sets) == 4


@pytest.mark.parametrize("set_count,questions_per_set", [(0, 2), (-1, 2), (2, 0)])
def test_plan_rejects_empty_layouts(set_count, questions_per_set):
    with pytest.raises(ValidationError):
        plan_sets(["q0", "q1", "q2"], set_count, questions_per_set, shuffle=False)


@pytest.mark.asyncio
async def test_publish_with_zero_sets_is_rejected(seed, services, session_factory):
    teacher = await seed.teacher()
    class_id = await seed.school_class(teacher, [("A", "a@school.test"), ("B", "b@school.test")])
    exam = await seed.exam(teacher, await seed.questions(3))
    await seed.update_exam(exam.id, set_count=0)

    with pytest.raises(ValidationError):
        await services.publisher.publish(exam.id, class_id, teacher)

    async with transaction(session_factory) as session:
        assert await QuestionSetRepository(session).list_for_exam(exam.id) == []
