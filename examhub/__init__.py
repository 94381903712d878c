"""
ExamHub Exam Administration Backend

This package implements the exam-administration core of the ExamHub
platform:
1. Question-set generation and round-robin assignment to class rosters
2. Publication windows and gated access to a student's question set
3. Server-side grading with adaptive difficulty feedback per question
4. Per-exam and per-student analytics
"""

__version__ = "0.1.0"
