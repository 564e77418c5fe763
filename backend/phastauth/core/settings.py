from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "PhastAuth"
    PROJECT_DESCRIPTION: str = "Simple and secure authentication service API"
    VERSION: str = "1.0.0"
    DATABASE_URL: str = "sqlite:///./data/phastauth.db"

    # Token Config
    JWT_SECRET_KEY: str
    TOKEN_TTL_SECONDS: int = 3600
    TOKEN_ISSUER: str = "phast-auth"
    TOKEN_AUDIENCE: str = "phast-auth-client"
    # None keeps rotation unbounded
    TOKEN_REFRESH_GRACE_SECONDS: int | None = None

    # Password hashing (argon2id)
    ARGON2_TIME_COST: int = 2
    ARGON2_MEMORY_COST: int = 102400
    ARGON2_PARALLELISM: int = 8

    LOG_LEVEL: str = "INFO"
    DOCUMENTATION_BASE_URL: str = "https://http.cat/status/"

    model_config = SettingsConfigDict(env_file=".env")


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
