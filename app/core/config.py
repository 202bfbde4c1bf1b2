"""
VLRBUDDY - Backend Configuration
Environment-driven settings for the mirror store, upstream client and scheduler
"""

from typing import List
from functools import lru_cache
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Backend configuration settings"""

    # Application Settings
    APP_NAME: str = "VLRBuddy"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Property aliases for lowercase access
    @property
    def app_name(self) -> str:
        return self.APP_NAME

    @property
    def app_version(self) -> str:
        return self.APP_VERSION

    @property
    def debug(self) -> bool:
        return self.DEBUG

    @property
    def port(self) -> int:
        return self.PORT

    @property
    def cors_origins(self) -> List[str]:
        return self.CORS_ORIGINS

    @property
    def environment(self) -> str:
        return self.ENVIRONMENT

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    RELOAD: bool = False
    MAX_BODY_BYTES: int = 15 * 1024 * 1024

    # Mirror Store (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "vlrbuddy"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # Upstream (PandaScore)
    PANDASCORE_API_KEY: str = ""
    PANDASCORE_BASE_URL: str = "https://api.pandascore.co"
    PANDASCORE_GAME: str = "valorant"
    UPSTREAM_MAX_ATTEMPTS: int = 3
    UPSTREAM_RETRY_DELAY: float = 1.0
    UPSTREAM_TIMEOUT: float = 30.0

    # Client-side base URL of this backend
    BACKEND_URL: str = "http://localhost:3000/api"

    # Ingestion Scheduler
    SCHEDULER_ENABLED: bool = True
    INGESTION_INTERVAL_SECONDS: int = 300
    DEFAULT_CHUNK_SIZE: int = 10
    DEFAULT_CHUNK_TIMEOUT: float = 10.0
    MATCH_CHUNK_SIZE: int = 5
    MATCH_CHUNK_TIMEOUT: float = 15.0

    # CORS Settings
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    @field_validator('MONGODB_URI')
    @classmethod
    def validate_mongodb_uri(cls, v: str) -> str:
        if not v.startswith(('mongodb://', 'mongodb+srv://')):
            raise ValueError('MONGODB_URI must be a MongoDB connection string')
        return v

    @field_validator('UPSTREAM_MAX_ATTEMPTS', 'DEFAULT_CHUNK_SIZE', 'MATCH_CHUNK_SIZE', 'INGESTION_INTERVAL_SECONDS')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError('must be at least 1')
        return v

    @model_validator(mode='after')
    def validate_production_settings(self) -> 'Settings':
        """Ensure production does not run in debug mode"""
        if self.ENVIRONMENT == 'production' and self.DEBUG:
            raise ValueError('DEBUG must be False in production')
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def has_upstream_credentials(self) -> bool:
        return bool(self.PANDASCORE_API_KEY.strip())

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Singleton instance
settings = get_settings()
