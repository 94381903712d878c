"""
Exam API Schemas

Pydantic request models. Clients send camelCase keys; models also accept the
snake_case field names.
"""

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, constr
from examhub.common.serialization import to_camel
from examhub.exams.grading import AnswerChoice, SubmissionMetadata
from examhub.exams.lifecycle import ExamDraft


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        allow_population_by_field_name = True


class CreateExamRequest(CamelModel):
    title: str = Field(..., description="Exam title")
    description: Optional[str] = None
    subject: Optional[str] = None
    question_bank_id: Optional[str] = None
    pool_question_ids: List[str] = Field(default_factory=list, description="Candidate question pool")
    set_count: int = Field(1, description="Number of distinct question sets")
    questions_per_set: int = Field(..., description="Questions in every set")
    duration_minutes: int = Field(..., description="Time allowed per student")
    shuffle_questions: bool = True
    shuffle_options: bool = False
    expiring_hours: Optional[float] = None

    def to_draft(self) -> ExamDraft:
        return ExamDraft(**self.dict())


class AssignExamRequest(CamelModel):
    class_id: str
    expiring_hours: Optional[float] = Field(None, gt=0, description="Length of the availability window")


class LetterAnswer(CamelModel):
    kind: Literal["letter"]
    value: constr(regex=r"^[A-Za-z]$")


class TextAnswer(CamelModel):
    kind: Literal["text"]
    value: str


class SubmitTestRequest(CamelModel):
    exam_id: str
    question_set_id: Optional[str] = None
    answers: Dict[str, Union[LetterAnswer, TextAnswer]] = Field(default_factory=dict)
    time_spent_seconds: int = Field(0, ge=0)
    tab_switches: int = Field(0, ge=0)
    fullscreen_exits: int = Field(0, ge=0)
    reason: Optional[str] = None

    def choices(self) -> Dict[str, AnswerChoice]:
        return {qid: AnswerChoice(answer.kind, answer.value) for qid, answer in self.answers.items()}

    def metadata(self) -> SubmissionMetadata:
        return SubmissionMetadata(
            time_spent_seconds=self.time_spent_seconds,
            tab_switches=self.tab_switches,
            fullscreen_exits=self.fullscreen_exits,
            reason=self.reason,
        )


class EndTestRequest(CamelModel):
    student_email: Optional[str] = None
