"""
Core configuration for QuizForge Backend
Quiz authoring, attempt scoring and leaderboards
"""

import secrets
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application Settings
    APP_NAME: str = "QuizForge"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Quiz authoring, auto-scoring and leaderboard service"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "QuizForge Backend"

    # Security
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Identity provider
    AUTH_MODE: str = Field(default="jwt")  # jwt | remote
    AUTH_SERVICE_URL: str = Field(default="http://localhost:3001")
    AUTH_SERVICE_TIMEOUT: float = Field(default=5.0)

    # Database
    DATABASE_URL: Optional[str] = Field(default=None)
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=1800)
    DB_POOL_PRE_PING: bool = Field(default=True)

    # Redis Cache
    REDIS_ENABLED: bool = Field(default=False)
    REDIS_URL: Optional[str] = Field(default=None)
    REDIS_HOST: str = Field(default="localhost")
    REDIS_PORT: int = Field(default=6379)
    REDIS_DB: int = Field(default=0)
    REDIS_POOL_MAX_CONNECTIONS: int = Field(default=20)
    LEADERBOARD_CACHE_TTL: int = Field(default=60)

    # CORS
    BACKEND_CORS_ORIGINS: str = Field(default="http://localhost:3000")
    CORS_ALLOW_ALL_ORIGINS: bool = Field(default=False)
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default=["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default=["*"])
    SECURITY_HEADERS_ENABLED: bool = Field(default=True)

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)

    # Metrics
    METRICS_ENABLED: bool = Field(default=False)

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_REQUESTS: int = Field(default=100)
    RATE_LIMIT_PERIOD: int = Field(default=60)  # seconds

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    LOG_FILE: Optional[str] = Field(default=None)
    LOG_MAX_BYTES: int = Field(default=10 * 1024 * 1024)
    LOG_BACKUP_COUNT: int = Field(default=5)

    # Quiz rules
    PASSING_PERCENTAGE: float = Field(default=60.0)
    DEFAULT_LEADERBOARD_LIMIT: int = Field(default=10)

    @field_validator("AUTH_MODE")
    @classmethod
    def validate_auth_mode(cls, v: str) -> str:
        if v not in ("jwt", "remote"):
            raise ValueError("AUTH_MODE must be 'jwt' or 'remote'")
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = ("development", "staging", "production", "test")
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def get_database_url(self) -> str:
        """Get database URL with proper formatting"""
        if self.DATABASE_URL:
            # Handle Render-style postgres:// URLs
            db_url = self.DATABASE_URL
            if db_url.startswith("postgres://"):
                db_url = db_url.replace("postgres://", "postgresql://", 1)
            return db_url

        # Default for development
        return "sqlite:///./quizforge.db"

    def get_redis_url(self) -> str:
        """Get Redis URL"""
        if self.REDIS_URL:
            return self.REDIS_URL
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    def get_cors_origins(self) -> list[str]:
        """Get CORS origins as list"""
        if self.CORS_ALLOW_ALL_ORIGINS:
            return ["*"]
        if self.BACKEND_CORS_ORIGINS:
            return [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",")]
        return ["http://localhost:3000"]


settings = Settings()
