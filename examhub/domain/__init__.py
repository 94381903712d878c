"""
Domain layer.

Entities and repositories for questions, classes and rosters, and exams.
"""
