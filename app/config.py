"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str
    STORE_TIMEOUT_SECONDS: int = 10

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "DoughJo Progress Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:8081", "http://localhost:19006"]
    APP_TIMEZONE: str = "UTC"  # calendar days roll over at local midnight here

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000

    # Rewards and progress
    STREAK_ACCURACY_THRESHOLD: float = 0.6
    ASSUMED_QUESTION_COUNT: int = 15
    LESSON_TIME_SPENT: int = 300  # 5 minutes per lesson attempt
    DAILY_QUIZ_TIME_SPENT: int = 120  # 2 minutes per daily quiz

    # Caching
    LESSON_CACHE_TTL: int = 600
    PROFILE_CACHE_TTL: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
