"""
Roster and Directory Repositories

``RosterProvider`` answers which students belong to a class and
``UserDirectory`` resolves accounts by email. Both are consumed by the exam
services through these interfaces; the SQL implementations read the
``classes``, ``class_students`` and ``users`` tables.
"""

import abc
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from examhub.common.auth.user import User, UserRole, normalize_email
from examhub.database import models as orm
from examhub.domain.classes.model import RosterEntry, SchoolClass


class RosterProvider(abc.ABC):
    """Read access to classes and their rosters."""

    @abc.abstractmethod
    async def get_class(self, class_id: str) -> Optional[SchoolClass]:
        pass

    @abc.abstractmethod
    async def get_roster(self, class_id: str) -> List[RosterEntry]:
        """
        Get the roster of a class in roster order.

        Args:
            class_id: The class to read

        Returns:
            Roster entries, possibly empty
        """
        pass

    @abc.abstractmethod
    async def is_enrolled(self, class_id: str, email: str, user_id: Optional[str] = None) -> bool:
        """Check whether a student, by email or account ID, is on the roster."""
        pass


class UserDirectory(abc.ABC):
    """Lookup of registered accounts."""

    @abc.abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        pass

    @abc.abstractmethod
    async def get(self, user_id: str) -> Optional[User]:
        pass


def _to_user(row: orm.User) -> User:
    return User(
        id=row.id,
        email=row.email,
        role=UserRole(row.role),
        name=row.name,
        is_super_admin=bool(row.is_super_admin),
    )


class SqlRosterProvider(RosterProvider):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_class(self, class_id: str) -> Optional[SchoolClass]:
        row = await self.session.get(orm.SchoolClass, class_id)
        return SchoolClass.from_row(row) if row else None

    async def get_roster(self, class_id: str) -> List[RosterEntry]:
        stmt = (
            select(orm.ClassStudent)
            .where(orm.ClassStudent.class_id == class_id)
            .order_by(orm.ClassStudent.position, orm.ClassStudent.id)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [RosterEntry.from_row(row) for row in rows]

    async def is_enrolled(self, class_id: str, email: str, user_id: Optional[str] = None) -> bool:
        matches = [func.lower(orm.ClassStudent.email) == normalize_email(email)]
        if user_id:
            matches.append(orm.ClassStudent.user_id == user_id)
        stmt = (
            select(orm.ClassStudent.id)
            .where(orm.ClassStudent.class_id == class_id, or_(*matches))
            .limit(1)
        )
        return (await self.session.execute(stmt)).first() is not None


class SqlUserDirectory(UserDirectory):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> Optional[User]:
        stmt = select(orm.User).where(func.lower(orm.User.email) == normalize_email(email))
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return _to_user(row) if row else None

    async def get(self, user_id: str) -> Optional[User]:
        row = await self.session.get(orm.User, user_id)
        return _to_user(row) if row else None
