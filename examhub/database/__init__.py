"""
Database Module

This module provides the declarative base and ORM models for ExamHub.
"""

from examhub.database.base import Base, ModelBase, metadata, new_id

__all__ = ['Base', 'ModelBase', 'metadata', 'new_id']
