"""
Common Components for ExamHub

Infrastructure shared by every module: logging, the error taxonomy,
serialization, the clock, audit delivery, authentication and database
sessions.
"""

from examhub.common.logger import app_logger

__all__ = ['app_logger']
