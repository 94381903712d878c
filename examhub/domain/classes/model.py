"""
Class Domain Model Module

A class groups students under a teacher; exams are assigned to a class
and reach every student on its roster.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from examhub.common.auth.user import normalize_email
from examhub.common.serialization import SerializableMixin


@dataclass
class SchoolClass(SerializableMixin):
    id: str
    name: str
    teacher_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class RosterEntry(SerializableMixin):
    """
    A student on a class roster.

    Attributes:
        name: Student display name
        email: Normalized email; roster imports may lack one
        user_id: Account ID when the student has signed up
        position: Order of the entry on the roster
    """
    name: str
    email: Optional[str] = None
    user_id: Optional[str] = None
    position: int = 0

    def __post_init__(self):
        self.email = normalize_email(self.email)
