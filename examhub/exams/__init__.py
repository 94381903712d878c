"""
Exam services.

Set generation and publication, the student read path, grading and
analytics, plus the HTTP controller exposing them.
"""
