from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - docker-compose.yml environment section
    - .env file
    - System environment

    Variable names match docker-compose conventions:
    - POSTGRES_HOST, POSTGRES_PORT, etc. (for the collation database)
    - REDIS_URL (for the histogram cache)
    - AVERAGE_ALIGNMENT_SIZE, HISTOGRAM_WORKERS (for rendering)
    """

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # PostgreSQL (from docker-compose)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "juxta_user"
    postgres_password: str = "juxta_pass"
    postgres_db: str = "juxta"
    postgres_min_pool: int = 2
    postgres_max_pool: int = 10
    database_url: Optional[str] = Field(default=None, validate_default=True)

    # Histogram cache
    redis_url: str = "redis://localhost:6379"
    cache_backend: str = "redis"
    cache_ttl_seconds: Optional[int] = None

    # Rendering
    average_alignment_size: int = 1024  # bytes held in memory per difference record
    histogram_workers: int = 2
    task_retention_seconds: int = 600

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('cache_backend', mode='before')
    @classmethod
    def check_cache_backend(cls, v):
        """Only redis and memory caches exist"""
        v = (v or "redis").lower()
        if v not in ("redis", "memory"):
            raise ValueError(f"Unknown cache backend: {v}")
        return v

    @field_validator('database_url', mode='before')
    @classmethod
    def construct_database_url(cls, v, info):
        """Construct database URL from components if not explicitly set"""
        if v:
            return v

        data = info.data
        host = data.get('postgres_host', 'localhost')
        port = data.get('postgres_port', 5432)
        user = data.get('postgres_user', 'juxta_user')
        password = data.get('postgres_password', 'juxta_pass')
        db = data.get('postgres_db', 'juxta')

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
