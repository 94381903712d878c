"""
Exam domain module.

Exams, per-student question sets and submissions, with their repositories.
"""

from .model import AnswerRecord, Exam, QuestionSet, QuestionSetItem, SetStatus, Submission
from .repository import ExamRepository, QuestionSetRepository, SubmissionRepository

__all__ = [
    'AnswerRecord',
    'Exam',
    'QuestionSet',
    'QuestionSetItem',
    'SetStatus',
    'Submission',
    'ExamRepository',
    'QuestionSetRepository',
    'SubmissionRepository',
]
