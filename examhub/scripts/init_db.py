#!/usr/bin/env python3
"""
Database initialization script.

Upgrades the database with the Alembic migrations, or creates the tables
straight from the ORM metadata with ``--create-all``.

Usage:
    python -m examhub.scripts.init_db [--database-url URL] [--create-all]
"""

import sys
import asyncio
import argparse

from examhub.common.logger import app_logger
from examhub.config import settings
from examhub.database.init_db import close_database, initialize_database, run_migrations

logger = app_logger.getChild("scripts.init_db")


async def create_all(database_url: str) -> None:
    await initialize_database(database_url=database_url, echo=settings.SQL_ECHO, create_tables=True)
    await close_database()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the ExamHub database")
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    parser.add_argument("--create-all", action="store_true", help="create tables without migrations")
    args = parser.parse_args(argv)

    try:
        if args.create_all:
            asyncio.run(create_all(args.database_url))
        else:
            run_migrations(args.database_url)
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        return 1

    logger.info("Database initialized successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
