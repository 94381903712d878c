"""
Authentication dependencies for the exam API.

Authentication happens at the gateway; it forwards the resolved identity in
``X-User-*`` headers which this module turns into a ``User``.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from examhub.common.auth.user import User, UserRole, normalize_email
from examhub.common.logger import app_logger

logger = app_logger.getChild("auth")

_TRUE_VALUES = {"1", "true", "yes"}


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_super_admin: Optional[str] = Header(None),
) -> User:
    """
    Build the current user from the gateway identity headers.

    Raises:
        HTTPException: 401 when the identity headers are missing or malformed
    """
    email = normalize_email(x_user_email)
    if not x_user_id or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity headers"
        )

    try:
        role = UserRole((x_user_role or UserRole.STUDENT.value).strip().lower())
    except ValueError:
        logger.warning(f"Rejected request with unknown role {x_user_role!r} for user {x_user_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user role"
        )

    return User(
        id=x_user_id,
        email=email,
        role=role,
        name=x_user_name,
        is_super_admin=(x_user_super_admin or "").strip().lower() in _TRUE_VALUES,
    )
