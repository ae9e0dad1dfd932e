from functools import lru_cache
from typing import Optional
from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from moviereviews.config import get_settings
from moviereviews.database import get_db
from moviereviews.errors import AuthRequired
from moviereviews.utils.security import decode_token
from moviereviews.models.user import User
from moviereviews.services.movie_search_service import MovieSearchService
from moviereviews.services.tmdb_service import TMDBService

# Bearer token is preferred; x-auth-token is still accepted for older clients
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
    db: Session = Depends(get_db)
) -> User:
    token = credentials.credentials if credentials else x_auth_token
    if not token:
        raise AuthRequired("No token provided")

    # Validate
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise AuthRequired("Invalid token")

    user_id = payload.get("user_id")
    user = db.query(User).filter(User.id == user_id).first() if user_id is not None else None

    if not user or not user.is_active:
        raise AuthRequired("User not found or inactive")

    return user


@lru_cache()
def get_tmdb_service() -> TMDBService:
    """Shared TMDB client (one metadata cache per process)"""
    return TMDBService(get_settings().tmdb)


def get_movie_search_service(
    resolver: TMDBService = Depends(get_tmdb_service)
) -> MovieSearchService:
    return MovieSearchService(resolver, get_settings().tmdb)
