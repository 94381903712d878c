"""
Authentication User Models

This module defines the authenticated principal and the role checks the
exam services perform before mutating or revealing an exam.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Lower-case and strip an email; blank values become None."""
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


class UserRole(enum.Enum):
    """User roles for authorization."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


@dataclass
class User:
    """
    Authenticated principal.

    Attributes:
        id: Unique user identifier
        email: Normalized email address
        role: User's role
        name: Display name
        is_super_admin: Capability flag granting access to every tenant
    """
    id: str
    email: str
    role: UserRole = UserRole.STUDENT
    name: Optional[str] = None
    is_super_admin: bool = False

    def __post_init__(self):
        self.email = normalize_email(self.email) or ""
        if not isinstance(self.role, UserRole):
            self.role = UserRole(self.role)

    @property
    def is_admin(self) -> bool:
        return self.is_super_admin or self.role == UserRole.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT and not self.is_super_admin

    def can_author(self) -> bool:
        """Check whether the user may create exams."""
        return self.is_admin or self.is_teacher

    def can_manage(self, owner_id: Optional[str]) -> bool:
        """
        Check whether the user may manage a resource owned by ``owner_id``.

        Admins and super admins manage everything; teachers manage what they own.
        """
        if self.is_admin:
            return True
        return self.is_teacher and owner_id is not None and owner_id == self.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role.value,
            "name": self.name,
            "is_super_admin": self.is_super_admin,
        }
