"""
Tests for publishing exams to classes and regenerating their sets.
"""

from datetime import timedelta

import pytest

from examhub.common.db.session import transaction
from examhub.common.exceptions import (
    AuthorizationError,
    EmptyRoster,
    InsufficientQuestions,
    InvalidRosterEntry,
    NotFoundError,
    RegenerationBlocked,
    ValidationError,
)
from examhub.domain.exams import ExamRepository, QuestionSetRepository
from examhub.tests.conftest import START


async def _stored(session_factory, exam_id):
    async with transaction(session_factory) as session:
        exam = await ExamRepository(session).require(exam_id)
        sets = await QuestionSetRepository(session).list_for_exam(exam_id)
        items = await QuestionSetRepository(session).items_for_exam(exam_id)
    return exam, sets, items


class TestPublish:

    @pytest.mark.asyncio
    async def test_publish_opens_window_and_assigns_sets(self, session_factory, published):
        exam, sets, items = await _stored(session_factory, published["exam"].id)

        assert exam.is_published is True
        assert exam.class_id == published["class_id"]
        assert exam.start_time == START
        assert exam.end_time == START + timedelta(hours=1)
        assert len(sets) == 4
        assert sorted(s.set_number for s in sets) == [1, 1, 2, 2]
        assert all(len(items[s.id]) == 2 for s in sets)
        assert len({s.access_link for s in sets}) == 4

    @pytest.mark.asyncio
    async def test_round_robin_follows_roster_order(self, published):
        numbers = [g.question_set.set_number for g in published["sets"]]
        emails = [g.question_set.student_email for g in published["sets"]]

        assert numbers == [1, 2, 1, 2]
        assert emails == [s.email for s in published["students"]]

    @pytest.mark.asyncio
    async def test_custom_expiring_hours(self, seed, services):
        teacher = await seed.teacher()
        class_id = await seed.school_class(teacher, [("A", "a@school.test")])
        exam = await seed.exam(teacher, await seed.questions(2))

        result = await services.publisher.publish(exam.id, class_id, teacher, expiring_hours=3)

        assert result.exam.end_time - result.exam.start_time == timedelta(hours=3)
        assert result.exam.expiring_hours == 3

    @pytest.mark.asyncio
    async def test_non_positive_expiring_hours_rejected(self, seed, services):
        teacher = await seed.teacher()
        class_id = await seed.school_class(teacher, [("A", "a@school.test")])
        exam = await seed.exam(teacher, await seed.questions(2))

        with pytest.raises(ValidationError):
            await services.publisher.publish(exam.id, class_id, teacher, expiring_hours=0)

    @pytest.mark.asyncio
    async def test_missing_email_rolls_back_publish(self, seed, services, session_factory):
        teacher = await seed.teacher()
        class_id = await seed.school_class(teacher, [("A", "a@school.test"), ("NoMail", None)])
        exam = await seed.exam(teacher, await seed.questions(2))

        with pytest.raises(InvalidRosterEntry) as excinfo:
            await services.publisher.publish(exam.id, class_id, teacher)

        assert excinfo.value.student_names == ["NoMail"]
        stored, sets, _ = await _stored(session_factory, exam.id)
        assert stored.is_published is False
        assert stored.start_time is None
        assert sets == []

    @pytest.mark.asyncio
    async def test_empty_roster(self, seed, services):
        teacher = await seed.teacher()
        class_id = await seed.school_class(teacher, [])
        exam = await seed.exam(teacher, await seed.questions(2))

        with pytest.raises(EmptyRoster):
            await services.publisher.publish(exam.id, class_id, teacher)

    @pytest.mark.asyncio
    async def test_pool_too_small_for_one_set(self, seed, services, session_factory):
        teacher = await seed.teacher()
        class_id = await seed.school_class(teacher, [("A", "a@school.test")])
        exam = await seed.exam(teacher, await seed.questions(2), questions_per_set=3)

        with pytest.raises(InsufficientQuestions):
            await services.publisher.publish(exam.id, class_id, teacher)

        stored, _, _ = await _stored(session_factory, exam.id)
        assert stored.is_published is False

    @pytest.mark.asyncio
    async def test_only_owner_or_admin_can_publish(self, seed, services):
        owner = await seed.teacher()
        other = await seed.teacher("other@school.test")
        class_id = await seed.school_class(owner, [("A", "a@school.test")])
        exam = await seed.exam(owner, await seed.questions(2))

        with pytest.raises(AuthorizationError):
            await services.publisher.publish(exam.id, class_id, other)

        admin = await seed.user("root@school.test", super_admin=True)
        result = await services.publisher.publish(exam.id, class_id, admin)
        assert result.students_assigned == 1

    @pytest.mark.asyncio
    async def test_unknown_class(self, seed, services):
        teacher = await seed.teacher()
        exam = await seed.exam(teacher, await seed.questions(2))

        with pytest.raises(NotFoundError):
            await services.publisher.publish(exam.id, "missing-class", teacher)

    @pytest.mark.asyncio
    async def test_publish_is_audited(self, published, audit):
        assert "exam.publish" in audit.actions()


class TestRegenerate:

    @pytest.mark.asyncio
    async def test_regenerate_replaces_sets(self, services, session_factory, published):
        before = {g.question_set.access_link for g in published["sets"]}

        result = await services.publisher.regenerate(published["exam"].id, published["teacher"])

        exam, sets, _ = await _stored(session_factory, published["exam"].id)
        assert len(sets) == 4
        assert {s.access_link for s in sets}.isdisjoint(before)
        assert exam.sets_version == published["exam"].sets_version + 1
        assert result.students_assigned == 4

    @pytest.mark.asyncio
    async def test_regenerate_picks_up_new_roster_entries(self, seed, services, published):
        await seed.add_to_roster(published["class_id"], "Late", "late@school.test")

        result = await services.publisher.regenerate(published["exam"].id, published["teacher"])

        assert result.students_assigned == 5
        assert result.sets[-1].question_set.set_number == 1

    @pytest.mark.asyncio
    async def test_regenerate_blocked_after_submission(self, services, session_factory, published):
        student = published["students"][0]
        await services.grading.submit(published["exam"].id, student, {})

        with pytest.raises(RegenerationBlocked):
            await services.publisher.regenerate(published["exam"].id, published["teacher"])

        _, sets, _ = await _stored(session_factory, published["exam"].id)
        assert {s.access_link for s in sets} == {g.question_set.access_link for g in published["sets"]}

    @pytest.mark.asyncio
    async def test_regenerate_requires_class(self, seed, services):
        teacher = await seed.teacher()
        exam = await seed.exam(teacher, await seed.questions(2))

        with pytest.raises(ValidationError):
            await services.publisher.regenerate(exam.id, teacher)
