"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./seatsync.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")

    # Security
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "admin_token_123")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"

    # Batch writes. Firestore rejects commits with more than 500 writes.
    BATCH_CHUNK_SIZE: int = Field(400, ge=1, le=500)
    BATCH_MAX_CONCURRENCY: int = Field(4, ge=1)
    BATCH_MAX_ATTEMPTS: int = Field(3, ge=1)
    BATCH_RETRY_BASE_DELAY: float = 1.0  # seconds
    BATCH_RETRY_MAX_DELAY: float = 10.0

    # Seating
    ASSIGN_STRATEGY: str = "balanced"
    DEFAULT_TABLE_CAPACITY: int = Field(10, ge=1)
    DEFAULT_TABLE_COLOR: str = "#3B82F6"

    # Guest search
    SUGGEST_MIN_PREFIX: int = 2
    SUGGEST_LIMIT: int = 10

    class Config:
        env_file = ".env"

settings = Settings()
