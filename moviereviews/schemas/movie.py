"""
Movie Schemas - normalized TMDB movies returned by /api/movies
"""

from pydantic import BaseModel, Field
from typing import Optional


class MovieSummary(BaseModel):
    """Movie card data"""
    id: int = Field(..., description="TMDB movie ID")
    title: Optional[str] = None
    year: Optional[int] = Field(None, description="Release year")
    poster: Optional[str] = Field(None, description="Absolute poster URL")
    overview: str = ""
    vote_average: float = 0.0
