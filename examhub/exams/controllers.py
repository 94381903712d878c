"""
Exam API Controller

HTTP endpoints for exam authoring, assignment, test taking, grading and
analytics. Handlers translate requests into service calls; domain errors
propagate to the exception handlers registered in ``examhub.api``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request, status

from examhub.api import APIResponse
from examhub.common.auth.dependencies import get_current_user
from examhub.common.auth.user import User
from examhub.common.logger import app_logger
from examhub.common.serialization import serialize
from examhub.exams.schemas import AssignExamRequest, CreateExamRequest, EndTestRequest, SubmitTestRequest
from examhub.exams.services import ExamServices

logger = app_logger.getChild("exams.controllers")

router = APIRouter()


def get_services(request: Request) -> ExamServices:
    """Dependency returning the service container of the running app."""
    return request.app.state.services


def _ok(data: Any, message: str = "Success") -> Dict[str, Any]:
    return APIResponse.success(serialize(data, camel_case=True), message)


@router.post("/exams", status_code=status.HTTP_201_CREATED)
async def create_exam(
    payload: CreateExamRequest,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    exam = await services.lifecycle.create_exam(user, payload.to_draft())
    return _ok(exam, "Exam created")


@router.post("/exams/submit-test")
async def submit_test(
    payload: SubmitTestRequest,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    result = await services.grading.submit(
        payload.exam_id,
        user,
        payload.choices(),
        payload.metadata(),
        payload.question_set_id,
    )
    return _ok(result.for_student(), "Test submitted")


@router.post("/exams/{exam_id}/assign")
async def assign_exam(
    exam_id: str,
    payload: AssignExamRequest,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    result = await services.publisher.publish(exam_id, payload.class_id, user, payload.expiring_hours)
    return _ok(result, f"Exam assigned to {result.students_assigned} students")


@router.post("/exams/{exam_id}/regenerate-sets")
async def regenerate_sets(
    exam_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    result = await services.publisher.regenerate(exam_id, user)
    return _ok(result, "Question sets regenerated")


@router.get("/exams/{exam_id}/questions")
async def get_exam_questions(
    exam_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    """Students get their own paper; instructors get the full pool with answers."""
    if user.is_student:
        paper = await services.session.get_questions_for_student(exam_id, user)
        return _ok(paper.for_student())
    return _ok(await services.session.preview_pool(exam_id, user))


@router.post("/exams/{exam_id}/end")
async def end_test(
    exam_id: str,
    payload: Optional[EndTestRequest] = Body(None),
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    student_email = payload.student_email if payload else None
    result = await services.lifecycle.end_test(exam_id, user, student_email)
    return _ok(result, "Test ended")


@router.post("/exams/{exam_id}/score-release")
async def toggle_score_release(
    exam_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    exam = await services.lifecycle.toggle_score_release(exam_id, user)
    return _ok(exam, "Scores released" if exam.score_released else "Scores hidden")


@router.post("/exams/{exam_id}/answer-release")
async def toggle_answer_release(
    exam_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    exam = await services.lifecycle.toggle_answer_release(exam_id, user)
    return _ok(exam, "Answers released" if exam.answers_released else "Answers hidden")


@router.delete("/exams/{exam_id}")
async def delete_exam(
    exam_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    await services.lifecycle.delete_exam(exam_id, user)
    return _ok({"exam_id": exam_id}, "Exam deleted")


@router.get("/exams/{exam_id}/analysis")
async def exam_analysis(
    exam_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    return _ok(await services.analytics.exam_analysis(exam_id, user))


@router.get("/exams/{exam_id}/monitoring")
async def exam_monitoring(
    exam_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    return _ok(await services.session.monitor(exam_id, user))


@router.get("/students/me/attended-tests")
async def attended_tests(
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    return _ok(await services.session.attended_tests(user))


@router.get("/students/me/performance")
async def student_performance(
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    return _ok(await services.analytics.student_performance(user))


@router.get("/submissions/{submission_id}/review")
async def review_submission(
    submission_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    return _ok(await services.session.review_submission(submission_id, user))


@router.get("/classes/{class_id}/ranking")
async def class_ranking(
    class_id: str,
    user: User = Depends(get_current_user),
    services: ExamServices = Depends(get_services),
):
    return _ok(await services.analytics.class_ranking(class_id, user))
