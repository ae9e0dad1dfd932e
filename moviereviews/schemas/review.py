"""
Review Schemas - Pydantic models for review request/response validation
JSON keys are camelCase on the wire (movieId, likesCount, hasLiked, ...)
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar, Union

T = TypeVar("T")


def reject_boolean_rating(v):
    """JSON true/false would otherwise be coerced to 1/0"""
    if isinstance(v, bool):
        raise ValueError("Rating must be an integer")
    return v


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase in JSON"""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class APIResponse(BaseModel, Generic[T]):
    """Standard success envelope"""
    status: str = "success"
    message: Optional[str] = None
    data: T


# ==================== SORT OPTIONS ====================

class UserReviewSort(str, Enum):
    """Sort orders for a user's own reviews"""
    RECENT = "recent"
    OLDEST = "oldest"
    RATING_DESC = "rating-desc"
    RATING_ASC = "rating-asc"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"


class FeedSort(str, Enum):
    """Sort orders for the explore feed"""
    RECENT = "recent"
    POPULAR = "popular"


# ==================== REQUEST SCHEMAS ====================

class ReviewCreate(CamelModel):
    """
    Schema for creating a review

    Fields are optional at the schema level so that ReviewService can report
    every missing field at once.
    """
    movie_id: Optional[Union[str, int]] = Field(None, description="TMDB movie ID")
    rating: Optional[int] = Field(None, description="Rating value (1-5)")
    comment: Optional[str] = Field(None, description="Review text")

    @field_validator('rating', mode='before')
    @classmethod
    def rating_not_boolean(cls, v):
        return reject_boolean_rating(v)

    @field_validator('movie_id')
    @classmethod
    def stringify_movie_id(cls, v):
        """Movie IDs are opaque strings, but clients often send numbers"""
        if v is None:
            return v
        return str(v).strip()


class ReviewUpdate(CamelModel):
    """Schema for updating an existing review"""
    rating: Optional[int] = Field(None, description="New rating value (1-5)")
    comment: Optional[str] = Field(None, description="New review text")

    @field_validator('rating', mode='before')
    @classmethod
    def rating_not_boolean(cls, v):
        return reject_boolean_rating(v)


# ==================== RESPONSE SCHEMAS ====================

class ReviewAuthor(CamelModel):
    """Public part of the review owner"""
    id: int
    username: str
    avatar: Optional[str] = None


class ReviewResponse(CamelModel):
    """Review with owner attached"""
    id: int
    movie_id: str
    user: ReviewAuthor
    rating: int
    comment: str
    likes_count: int = 0
    is_visible: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserReviewItem(CamelModel):
    """Review in the current user's own list (owner omitted)"""
    id: int
    movie_id: str
    rating: int
    comment: str
    likes_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserReviewList(CamelModel):
    reviews: List[UserReviewItem]
    movie_ids: List[str]


class FeedReview(ReviewResponse):
    """
    Review as seen in the explore feed
    Only the like count and the requester's own like status are exposed.
    """
    has_liked: bool = False


class FeedPage(CamelModel):
    reviews: List[FeedReview]
    total: int
    pages: int
    current_page: int


class LikeState(CamelModel):
    likes_count: int
    has_liked: bool


class DeletedReview(CamelModel):
    movie_id: str
    review_id: int


class ReviewedMovie(CamelModel):
    """Movie found by the review-driven movie search"""
    movie_id: str
    title: Optional[str] = None
    year: Optional[str] = None
    poster: Optional[str] = None
    reviews_count: int


class ReviewedMovieList(BaseModel):
    movies: List[ReviewedMovie]
