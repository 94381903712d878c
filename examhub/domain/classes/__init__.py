"""Class and roster domain module."""

from .model import RosterEntry, SchoolClass
from .repository import RosterProvider, SqlRosterProvider, SqlUserDirectory, UserDirectory

__all__ = [
    'RosterEntry',
    'SchoolClass',
    'RosterProvider',
    'SqlRosterProvider',
    'SqlUserDirectory',
    'UserDirectory',
]
