"""
Tests for the student read path: access gates, paper building, result
listings, submission review and monitoring.
"""

from datetime import timedelta

import pytest

from examhub.common.auth.user import User
from examhub.common.exceptions import (
    AuthorizationError,
    Expired,
    NoAssignedSet,
    NotEnrolled,
    NotPublished,
    NotStarted,
    SetCompleted,
)
from examhub.exams.grading import AnswerChoice, SubmissionMetadata
from examhub.tests.conftest import START


class TestAccessGates:

    @pytest.mark.asyncio
    async def test_student_outside_roster_is_not_enrolled(self, seed, services, published):
        outsider = await seed.user("outsider@school.test")

        with pytest.raises(NotEnrolled):
            await services.session.get_questions_for_student(published["exam"].id, outsider)

    @pytest.mark.asyncio
    async def test_unpublished_exam(self, seed, services, published):
        await seed.update_exam(published["exam"].id, is_published=False)

        with pytest.raises(NotPublished):
            await services.session.get_questions_for_student(published["exam"].id, published["students"][0])

    @pytest.mark.asyncio
    async def test_window_not_open_yet(self, seed, services, published):
        await seed.update_exam(published["exam"].id, start_time=START + timedelta(minutes=30))

        with pytest.raises(NotStarted):
            await services.session.get_questions_for_student(published["exam"].id, published["students"][0])

    @pytest.mark.asyncio
    async def test_window_closed(self, services, clock, published):
        clock.advance(hours=1, seconds=1)

        with pytest.raises(Expired):
            await services.session.get_questions_for_student(published["exam"].id, published["students"][0])

    @pytest.mark.asyncio
    async def test_last_second_of_window_is_open(self, services, clock, published):
        clock.advance(hours=1)

        paper = await services.session.get_questions_for_student(published["exam"].id, published["students"][0])

        assert len(paper.questions) == 2

    @pytest.mark.asyncio
    async def test_enrolled_after_publish_has_no_set(self, seed, services, published):
        late = await seed.user("late@school.test")
        await seed.add_to_roster(published["class_id"], "Late", late.email)

        with pytest.raises(NoAssignedSet):
            await services.session.get_questions_for_student(published["exam"].id, late)

    @pytest.mark.asyncio
    async def test_ended_set_cannot_be_read(self, services, published):
        student = published["students"][1]
        await services.lifecycle.end_test(published["exam"].id, published["teacher"], student.email)

        with pytest.raises(SetCompleted):
            await services.session.get_questions_for_student(published["exam"].id, student)

        other = await services.session.get_questions_for_student(published["exam"].id, published["students"][0])
        assert other.questions


class TestPaper:

    @pytest.mark.asyncio
    async def test_paper_hides_answer_key(self, services, published):
        student = published["students"][0]

        paper = await services.session.get_questions_for_student(published["exam"].id, student)
        view = paper.for_student()

        assert paper.set_number == 1
        assert [q["order"] for q in view["questions"]] == [1, 2]
        assert [q["question_id"] for q in view["questions"]] == published["pool"][:2]
        for question in view["questions"]:
            assert "correct_option" not in question
            assert len(question["options"]) == 4
        first = view["questions"][0]
        assert first["options"] == ["Wrong 0a", "Wrong 0b", "Wrong 0c", "Answer 0"]

    @pytest.mark.asyncio
    async def test_set_found_by_account_id_when_email_differs(self, seed, services, published):
        student = published["students"][2]
        renamed = User(id=student.id, email="renamed@school.test", role=student.role)
        await seed.add_to_roster(published["class_id"], "Renamed", renamed.email)

        paper = await services.session.get_questions_for_student(published["exam"].id, renamed)

        assert paper.set_number == 1

    @pytest.mark.asyncio
    async def test_shuffled_options_are_a_permutation(self, seed, services):
        teacher = await seed.teacher()
        student = await seed.user("solo@school.test")
        class_id = await seed.school_class(teacher, [("Solo", student.email)])
        pool = await seed.questions(3)
        exam = await seed.exam(teacher, pool, set_count=1, questions_per_set=3, shuffle_options=True)
        await services.publisher.publish(exam.id, class_id, teacher)

        paper = await services.session.get_questions_for_student(exam.id, student)

        for index, question in enumerate(paper.questions):
            assert sorted(question.options) == sorted(
                [f"Wrong {index}a", f"Wrong {index}b", f"Wrong {index}c", f"Answer {index}"]
            )
            assert question.correct_option == f"Answer {index}"

    @pytest.mark.asyncio
    async def test_first_read_marks_set_in_progress(self, services, clock, published):
        student = published["students"][0]

        first = await services.session.get_questions_for_student(published["exam"].id, student)
        clock.advance(minutes=5)
        second = await services.session.get_questions_for_student(published["exam"].id, student)

        assert first.started_at == START
        assert second.started_at == START

        status = await services.session.monitor(published["exam"].id, published["teacher"])
        by_email = {row["email"]: row for row in status["students"]}
        assert by_email[student.email]["status"] == "In Progress"
        assert status["summary"] == {"Not Started": 3, "In Progress": 1, "Completed": 0}

    @pytest.mark.asyncio
    async def test_owner_preview_includes_answers(self, services, published):
        preview = await services.session.preview_pool(published["exam"].id, published["teacher"])

        assert [q["question_id"] for q in preview["questions"]] == published["pool"]
        assert preview["questions"][0]["correct_option"] == "Answer 0"

    @pytest.mark.asyncio
    async def test_student_cannot_preview(self, services, published):
        with pytest.raises(AuthorizationError):
            await services.session.preview_pool(published["exam"].id, published["students"][0])


class TestResults:

    async def _submit_correct(self, services, published, student):
        paper = await services.session.get_questions_for_student(published["exam"].id, student)
        answers = {q.question_id: AnswerChoice("text", q.correct_option) for q in paper.questions}
        return await services.grading.submit(published["exam"].id, student, answers)

    @pytest.mark.asyncio
    async def test_scores_hidden_until_released(self, services, published):
        student = published["students"][0]
        await self._submit_correct(services, published, student)

        hidden = await services.session.attended_tests(student)
        assert hidden[0]["score"] is None
        assert hidden[0]["percentage"] is None
        assert hidden[0]["grade"] == "N/A"

        await services.lifecycle.toggle_score_release(published["exam"].id, published["teacher"])

        shown = await services.session.attended_tests(student)
        assert shown[0]["score"] == 2
        assert shown[0]["percentage"] == 100.0
        assert shown[0]["grade"] == "A"

    @pytest.mark.asyncio
    async def test_review_requires_answer_release(self, services, published):
        student = published["students"][0]
        result = await self._submit_correct(services, published, student)

        with pytest.raises(AuthorizationError):
            await services.session.review_submission(result.submission_id, student)

        await services.lifecycle.toggle_answer_release(published["exam"].id, published["teacher"])
        review = await services.session.review_submission(result.submission_id, student)

        assert [q["question_id"] for q in review["questions"]] == published["pool"][:2]
        assert all(q["is_correct"] for q in review["questions"])
        assert review["questions"][0]["correct_option"] == "Answer 0"

    @pytest.mark.asyncio
    async def test_students_cannot_review_each_other(self, services, published):
        owner = published["students"][0]
        result = await self._submit_correct(services, published, owner)
        await services.lifecycle.toggle_answer_release(published["exam"].id, published["teacher"])

        with pytest.raises(AuthorizationError):
            await services.session.review_submission(result.submission_id, published["students"][1])

    @pytest.mark.asyncio
    async def test_teacher_reviews_without_release(self, services, published):
        result = await self._submit_correct(services, published, published["students"][0])

        review = await services.session.review_submission(result.submission_id, published["teacher"])

        assert review["percentage"] == 100.0

    @pytest.mark.asyncio
    async def test_monitor_reports_completion_and_proctoring(self, services, published):
        student = published["students"][3]
        paper = await services.session.get_questions_for_student(published["exam"].id, student)
        await services.grading.submit(
            published["exam"].id,
            student,
            {paper.questions[0].question_id: AnswerChoice("letter", "D")},
            SubmissionMetadata(time_spent_seconds=300, tab_switches=2, fullscreen_exits=1, reason="Time expired"),
        )

        status = await services.session.monitor(published["exam"].id, published["teacher"])
        row = next(r for r in status["students"] if r["email"] == student.email)

        assert row["status"] == "Completed"
        assert row["set_number"] == 2
        assert row["tab_switches"] == 2
        assert row["fullscreen_exits"] == 1
        assert row["submission_reason"] == "Time expired"
        assert row["percentage"] == 50.0
