"""Application configuration module."""

from typing import List, Optional

from pydantic import BaseSettings, validator


class Settings(BaseSettings):
    """Application settings."""

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./examhub.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_CREATE_SCHEMA: bool = True

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None

    # API settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "ExamHub"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Exam rules
    DEFAULT_EXPIRING_HOURS: float = 1.0
    MIN_DURATION_MINUTES: int = 5
    MAX_DURATION_MINUTES: int = 240
    RECENT_SCORES_LIMIT: int = 10

    # Adaptive difficulty
    ADAPTIVE_MIN_ATTEMPTS: int = 5
    ADAPTIVE_EASY_THRESHOLD: float = 75.0
    ADAPTIVE_HARD_THRESHOLD: float = 40.0

    @validator("DEFAULT_EXPIRING_HOURS")
    def expiring_hours_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("DEFAULT_EXPIRING_HOURS must be greater than zero")
        return value

    @validator("ADAPTIVE_HARD_THRESHOLD")
    def thresholds_ordered(cls, value: float, values: dict) -> float:
        easy = values.get("ADAPTIVE_EASY_THRESHOLD")
        if easy is not None and value >= easy:
            raise ValueError("ADAPTIVE_HARD_THRESHOLD must be below ADAPTIVE_EASY_THRESHOLD")
        return value

    class Config:
        """Pydantic settings config."""
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()
