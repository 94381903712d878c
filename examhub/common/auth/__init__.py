"""
Authentication Framework

Identity arrives from the gateway; this package turns it into a ``User``
and holds the role checks the exam services rely on.
"""

from examhub.common.auth.user import User, UserRole, normalize_email

__all__ = ['User', 'UserRole', 'normalize_email']
