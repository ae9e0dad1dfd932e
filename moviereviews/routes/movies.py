from fastapi import APIRouter, Depends, Query, Path
from typing import Dict, List, Optional

from moviereviews.errors import ValidationError
from moviereviews.schemas.movie import MovieSummary
from moviereviews.services.tmdb_service import TMDBService
from moviereviews.utils.dependencies import get_tmdb_service

router = APIRouter(prefix="/api/movies", tags=["Movies"])


def _to_summary(movie: Dict, resolver: TMDBService) -> Dict:
    """Normalize a TMDB movie to what the frontend needs"""
    release_date = movie.get("release_date")
    return {
        "id": movie.get("id"),
        "title": movie.get("title"),
        "year": int(release_date[:4]) if release_date and release_date[:4].isdigit() else None,
        "poster": resolver.poster_url(movie.get("poster_path"), size="w500"),
        "overview": movie.get("overview") or "",
        "vote_average": movie.get("vote_average") or 0,
    }


@router.get("/search", response_model=List[MovieSummary])
def search_movies(
    query: Optional[str] = Query(None, max_length=200, description="Movie title"),
    resolver: TMDBService = Depends(get_tmdb_service)
):
    """
    Search TMDB by title (first page, primary language)

    Returns 502 if TMDB cannot be reached.
    """
    if not query or not query.strip():
        raise ValidationError(
            "Search term is required",
            details={"query": "This field is required"}
        )

    result = resolver.search_movies(query.strip(), language=resolver.settings.primary_language)
    return [_to_summary(m, resolver) for m in result.get("results", [])]


@router.get("/{movie_id}", response_model=MovieSummary)
def get_movie(
    movie_id: str = Path(..., min_length=1, max_length=64, description="TMDB movie ID"),
    resolver: TMDBService = Depends(get_tmdb_service)
):
    """
    Get details of a single movie from TMDB

    Returns 502 if TMDB cannot be reached.
    """
    return _to_summary(resolver.get_movie_details(movie_id), resolver)
