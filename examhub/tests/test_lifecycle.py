"""
Tests for exam creation, ending, release toggles and deletion.
"""

import pytest

from examhub.common.exceptions import AuthorizationError, NotFoundError, ValidationError
from examhub.exams.lifecycle import ExamDraft


class TestCreateExam:

    @pytest.mark.asyncio
    async def test_create_dedupes_pool_and_applies_defaults(self, seed, services, audit):
        teacher = await seed.teacher()
        pool = await seed.questions(3)

        exam = await seed.exam(teacher, pool + [pool[0]], title="  Chemistry - Bonds ")

        assert exam.pool_question_ids == pool
        assert exam.title == "Chemistry - Bonds"
        assert exam.is_published is False
        assert exam.expiring_hours == 1.0
        assert exam.sets_version == 0
        assert audit.actions() == ["exam.create"]

    @pytest.mark.asyncio
    async def test_invalid_draft_reports_every_field(self, seed, services):
        teacher = await seed.teacher()
        draft = ExamDraft(title=" ", questions_per_set=0, duration_minutes=1, set_count=0)

        with pytest.raises(ValidationError) as excinfo:
            await services.lifecycle.create_exam(teacher, draft)

        assert set(excinfo.value.errors) == {
            "title", "questions_per_set", "duration_minutes", "set_count", "pool_question_ids"
        }

    @pytest.mark.asyncio
    async def test_pool_must_come_from_the_bank(self, seed, services):
        teacher = await seed.teacher()
        own = await seed.questions(2, bank_id="bank-1")
        foreign = await seed.questions(1, bank_id="bank-2")

        with pytest.raises(ValidationError) as excinfo:
            await seed.exam(teacher, own + foreign + ["missing"])

        assert excinfo.value.errors["pool_question_ids"] == foreign + ["missing"]

    @pytest.mark.asyncio
    async def test_students_cannot_author(self, seed, services):
        student = await seed.user("s@school.test")

        with pytest.raises(AuthorizationError):
            await seed.exam(student, await seed.questions(2))


class TestEndAndRelease:

    @pytest.mark.asyncio
    async def test_end_for_everyone(self, services, published):
        result = await services.lifecycle.end_test(published["exam"].id, published["teacher"])

        assert result.sets_completed == 4
        assert result.exam.is_ended is True
        assert result.exam.ended_at is not None

        again = await services.lifecycle.end_test(published["exam"].id, published["teacher"])
        assert again.sets_completed == 0

    @pytest.mark.asyncio
    async def test_end_for_one_student(self, services, published):
        email = published["students"][0].email.upper()

        result = await services.lifecycle.end_test(published["exam"].id, published["teacher"], email)

        assert result.sets_completed == 1
        assert result.student_email == published["students"][0].email
        assert result.exam.is_ended is False

    @pytest.mark.asyncio
    async def test_toggles_flip_each_time(self, services, published):
        exam_id, teacher = published["exam"].id, published["teacher"]

        assert (await services.lifecycle.toggle_score_release(exam_id, teacher)).score_released is True
        assert (await services.lifecycle.toggle_score_release(exam_id, teacher)).score_released is False
        assert (await services.lifecycle.toggle_answer_release(exam_id, teacher)).answers_released is True

    @pytest.mark.asyncio
    async def test_other_teacher_cannot_end(self, seed, services, published):
        other = await seed.teacher("other@school.test")

        with pytest.raises(AuthorizationError):
            await services.lifecycle.end_test(published["exam"].id, other)


@pytest.mark.asyncio
async def test_deleted_exam_disappears(services, published):
    exam_id = published["exam"].id

    await services.lifecycle.delete_exam(exam_id, published["teacher"])

    with pytest.raises(NotFoundError):
        await services.session.get_questions_for_student(exam_id, published["students"][0])
    with pytest.raises(NotFoundError):
        await services.lifecycle.delete_exam(exam_id, published["teacher"])
    assert await services.session.attended_tests(published["students"][0]) == []
