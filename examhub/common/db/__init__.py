"""Database session helpers."""

from examhub.common.db.session import SessionFactory, transaction

__all__ = ['SessionFactory', 'transaction']
