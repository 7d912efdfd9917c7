from typing import List, Optional

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # App Settings
    ENVIRONMENT: str = "development"
    PORT: int = 5000
    VERSION: str = "2.0.0"
    LOG_LEVEL: str = "INFO"

    # API Settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "CentraTutor API"
    SECRET_KEY: str

    # JWT Settings
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # PostgreSQL Settings, ignored when DATABASE_URL is set
    DATABASE_URL: Optional[str] = None
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "centratutor"
    POSTGRES_PORT: str = "5432"
    DB_ECHO_QUERIES: bool = False

    # Subscriptions
    TRIAL_DAYS: int = 3
    SUBSCRIPTION_SWEEPS_ENABLED: bool = True
    SUBSCRIPTION_HOURLY_INTERVAL_SECONDS: int = 60 * 60
    SUBSCRIPTION_DAILY_INTERVAL_SECONDS: int = 24 * 60 * 60

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT in ("production", "prod")

    @property
    def DATABASE_URI(self) -> str:
        """Builds database URI dynamically."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @classmethod
    def load_from_env_file(cls):
        """Load settings from .env file in local development."""
        from pathlib import Path

        from dotenv import load_dotenv

        env_file = Path(".env")
        if env_file.exists():
            load_dotenv(env_file, override=False)

        return cls()


settings = Settings.load_from_env_file()
