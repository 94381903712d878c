"""
Main application entry point for ExamHub.

Usage:
    - Direct: python -m examhub.main
    - ASGI server: uvicorn examhub.main:app
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from examhub import __version__
from examhub.api import domain_exception_handler, main_router, register_module, validation_exception_handler
from examhub.common.exceptions import BaseError
from examhub.common.logger import app_logger
from examhub.config import settings
from examhub.database.init_db import close_database, get_session_factory, initialize_database
from examhub.exams.controllers import router as exams_router
from examhub.exams.services import ExamServices, build_services

logger = app_logger.getChild("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and build the services; dispose of the pool on shutdown."""
    try:
        await initialize_database(
            database_url=settings.DATABASE_URL,
            echo=settings.SQL_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            create_tables=settings.DB_CREATE_SCHEMA,
        )
        app.state.services = build_services(get_session_factory())
        logger.info("Application startup complete")
    except Exception as e:
        logger.error(f"Failed to initialize application: {str(e)}")
        raise

    yield

    await close_database()
    logger.info("Application shutdown complete")


def create_app(services: Optional[ExamServices] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Prebuilt services; when given, the app skips its own
            database lifecycle and uses them as-is

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=f"{settings.PROJECT_NAME} API",
        description="Exam administration: question sets, timed test taking, grading and analytics",
        version=__version__,
        lifespan=None if services is not None else lifespan,
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_module("exams", exams_router)
    app.include_router(main_router, prefix=settings.API_V1_STR)

    app.add_exception_handler(BaseError, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"Welcome to the {settings.PROJECT_NAME} API", "version": __version__}

    logger.info(f"Application created with {len(app.routes)} routes")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port} (reload: {reload_enabled})")

    uvicorn.run(
        "examhub.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level=settings.LOG_LEVEL.lower()
    )
