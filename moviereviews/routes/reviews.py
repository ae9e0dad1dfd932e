"""
Review Routes - API endpoints for reviews, likes, the explore feed and the
review-driven movie search
"""

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.orm import Session
from typing import List, Optional

from moviereviews.database import get_db
from moviereviews.errors import ValidationError
from moviereviews.utils.dependencies import get_current_user, get_movie_search_service
from moviereviews.models.user import User
from moviereviews.schemas.review import (
    APIResponse,
    DeletedReview,
    FeedPage,
    FeedSort,
    LikeState,
    ReviewCreate,
    ReviewedMovieList,
    ReviewResponse,
    ReviewUpdate,
    UserReviewList,
    UserReviewSort
)
from moviereviews.services.feed_service import FeedService
from moviereviews.services.like_service import LikeService
from moviereviews.services.movie_search_service import MovieSearchService
from moviereviews.services.review_service import ReviewService

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


def get_user_id(user: User) -> int:
    """Helper to extract user_id as int for type safety"""
    return int(user.id)  # type: ignore


# ==================== CURRENT USER ====================

@router.get("/user", response_model=APIResponse[UserReviewList])
def get_my_reviews(
    sort_by: UserReviewSort = Query(UserReviewSort.RECENT, alias="sortBy", description="Sort order"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get all reviews by current user

    - **sortBy**: recent, oldest, rating-desc, rating-asc, title-asc, title-desc

    Also returns the distinct movie IDs so the client can fetch titles/posters.
    """
    result = ReviewService.list_user_reviews(db, get_user_id(current_user), sort_by)
    return {
        "message": f"Found {len(result['reviews'])} reviews",
        "data": result
    }


# ==================== EXPLORE FEED ====================

@router.get("/explore", response_model=APIResponse[FeedPage])
def explore_reviews(
    movie_id: Optional[str] = Query(None, alias="movieId", description="Only reviews of this TMDB movie"),
    username: Optional[str] = Query(None, max_length=50, description="Partial username of the author"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Reviews per page"),
    sort_by: FeedSort = Query(FeedSort.RECENT, alias="sortBy", description="recent or popular"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Explore other users' reviews

    Your own reviews are never included. Each review carries `hasLiked` for
    the current user; who else liked it is not exposed.
    """
    result = FeedService.explore(
        db,
        get_user_id(current_user),
        movie_id=movie_id or None,
        username=username.strip() if username and username.strip() else None,
        page=page,
        limit=limit,
        sort_by=sort_by
    )
    return {
        "message": "Reviews found" if result["reviews"] else "No reviews available",
        "data": result
    }


# ==================== MOVIE SEARCH ====================

@router.get("/search-movies", response_model=ReviewedMovieList)
def search_reviewed_movies(
    query: Optional[str] = Query(None, max_length=200, description="Movie title (any word order)"),
    limit: int = Query(10, ge=1, le=50, description="Max movies to return"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    search_service: MovieSearchService = Depends(get_movie_search_service)
):
    """
    Autocomplete over movies that already have reviews

    Titles are matched in Spanish and English; results are ordered by number
    of reviews. Movies whose metadata cannot be fetched are skipped.
    """
    return {"movies": search_service.search(db, query, limit)}


# ==================== REVIEW CRUD ====================

@router.post("", response_model=APIResponse[ReviewResponse], status_code=status.HTTP_201_CREATED)
def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a review

    - **movieId**: TMDB movie ID (required)
    - **rating**: 1 to 5 (required)
    - **comment**: Review text (required)

    A user can review each movie only once; use PUT to change it.
    """
    review = ReviewService.create_review(
        db,
        get_user_id(current_user),
        review_data.movie_id,
        review_data.rating,
        review_data.comment
    )
    return {"message": "Review created successfully", "data": review}


@router.get("", response_model=APIResponse[List[ReviewResponse]])
def get_movie_reviews(
    movie_id: Optional[str] = Query(None, alias="movieId", description="TMDB movie ID"),
    db: Session = Depends(get_db)
):
    """
    Get all reviews of a movie, newest first

    Public endpoint - no authentication required.
    """
    if not movie_id:
        raise ValidationError(
            "Movie ID is required",
            details={"movieId": "This field is required"}
        )

    reviews = ReviewService.list_movie_reviews(db, movie_id)
    return {
        "message": f"Found {len(reviews)} reviews for this movie",
        "data": reviews
    }


@router.put("/{movie_id}", response_model=APIResponse[ReviewResponse])
def update_review(
    review_data: ReviewUpdate,
    movie_id: str = Path(..., description="TMDB movie ID"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update your review of a movie

    Only the author can update a review.
    """
    review = ReviewService.update_review(
        db,
        get_user_id(current_user),
        movie_id,
        review_data.rating,
        review_data.comment
    )
    return {"message": "Review updated successfully", "data": review}


@router.delete("/{movie_id}", response_model=APIResponse[DeletedReview])
def delete_review(
    movie_id: str = Path(..., description="TMDB movie ID"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete your review of a movie

    ⚠️ WARNING: This action cannot be undone! Likes are removed too.
    """
    deleted = ReviewService.delete_review(db, get_user_id(current_user), movie_id)
    return {"message": "Review deleted successfully", "data": deleted}


# ==================== LIKES ====================

@router.post("/{review_id}/like", response_model=APIResponse[LikeState])
def toggle_like(
    review_id: int = Path(..., description="Review ID", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Like a review, or remove your like if you already liked it
    """
    state = LikeService.toggle_like(db, review_id, get_user_id(current_user))
    return {
        "message": "Like added" if state["has_liked"] else "Like removed",
        "data": state
    }


@router.get("/{review_id}/hasLiked", response_model=APIResponse[LikeState])
def has_liked(
    review_id: int = Path(..., description="Review ID", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Check whether you liked a review"""
    state = LikeService.get_like_state(db, review_id, get_user_id(current_user))
    return {"data": state}
