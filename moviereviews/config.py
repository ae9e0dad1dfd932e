"""
Application configuration

All settings are read from environment variables (optionally loaded from a
.env file) once, and handed to the components that need them explicitly.
"""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional
from dotenv import load_dotenv
import os

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


@dataclass(frozen=True)
class TMDBSettings:
    """Connection settings for The Movie Database API"""
    api_key: Optional[str] = None
    access_token: Optional[str] = None  # v4 read access token (Bearer)
    base_url: str = "https://api.themoviedb.org/3"
    image_base_url: str = "https://image.tmdb.org/t/p"
    timeout_seconds: float = 5.0
    max_concurrent_fetches: int = 8
    primary_language: str = "es-ES"
    fallback_language: str = "en-US"

    @property
    def configured(self) -> bool:
        return bool(self.api_key or self.access_token)


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./moviereviews.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    secret_key: str = "fallback-secret-key"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    environment: str = "development"
    frontend_url: Optional[str] = None
    trusted_hosts: List[str] = field(default_factory=list)
    log_level: str = "INFO"

    like_toggle_max_attempts: int = 5

    tmdb: TMDBSettings = field(default_factory=TMDBSettings)


def load_settings() -> Settings:
    """Build a Settings object from the current environment"""
    tmdb = TMDBSettings(
        api_key=os.getenv("TMDB_API_KEY") or None,
        access_token=os.getenv("TMDB_ACCESS_TOKEN") or None,
        base_url=os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3"),
        image_base_url=os.getenv("TMDB_IMAGE_BASE_URL", "https://image.tmdb.org/t/p"),
        timeout_seconds=float(os.getenv("TMDB_TIMEOUT_SECONDS", 5)),
        max_concurrent_fetches=_env_int("TMDB_MAX_CONCURRENT_FETCHES", 8),
        primary_language=os.getenv("TMDB_PRIMARY_LANGUAGE", "es-ES"),
        fallback_language=os.getenv("TMDB_FALLBACK_LANGUAGE", "en-US"),
    )

    trusted_hosts = [h.strip() for h in os.getenv("TRUSTED_HOSTS", "").split(",") if h.strip()]

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./moviereviews.db"),
        db_pool_size=_env_int("DB_POOL_SIZE", 5),
        db_max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        db_pool_timeout=_env_int("DB_POOL_TIMEOUT", 30),
        db_pool_recycle=_env_int("DB_POOL_RECYCLE", 3600),
        db_echo=os.getenv("DB_ECHO", "false").lower() == "true",
        secret_key=os.getenv("SECRET_KEY", "fallback-secret-key"),
        algorithm=os.getenv("ALGORITHM", "HS256"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 30),
        environment=os.getenv("ENVIRONMENT", "development"),
        frontend_url=os.getenv("FRONTEND_URL") or None,
        trusted_hosts=trusted_hosts,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        like_toggle_max_attempts=_env_int("LIKE_TOGGLE_MAX_ATTEMPTS", 5),
        tmdb=tmdb,
    )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded on first use"""
    return load_settings()
