"""
Review Service - Handle all review-related business logic
One review per user per movie; the owner is the only one who can change it
"""

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func
from typing import Dict, List, Optional, Tuple
import logging

from moviereviews.errors import DuplicateReview, NotFound, ValidationError
from moviereviews.models.review import Review, utcnow
from moviereviews.schemas.review import UserReviewSort
from moviereviews.schemas.validation import validate_rating, clean_comment

logger = logging.getLogger(__name__)

# Titles live in TMDB, so title sorts order by movie_id
USER_SORT_ORDERS = {
    UserReviewSort.RECENT: (Review.created_at.desc(), Review.id.desc()),
    UserReviewSort.OLDEST: (Review.created_at.asc(), Review.id.asc()),
    UserReviewSort.RATING_DESC: (Review.rating.desc(), Review.id.desc()),
    UserReviewSort.RATING_ASC: (Review.rating.asc(), Review.id.asc()),
    UserReviewSort.TITLE_ASC: (Review.movie_id.asc(), Review.id.asc()),
    UserReviewSort.TITLE_DESC: (Review.movie_id.desc(), Review.id.desc()),
}


class ReviewService:
    """Service for movie review operations"""

    @staticmethod
    def _validate_fields(rating, comment, movie_id: Optional[str] = None, check_movie: bool = False) -> str:
        """
        Validate review fields, reporting every problem at once

        Returns:
            The sanitized comment

        Raises:
            ValidationError: details map each field to its error (or None)
        """
        details: Dict[str, Optional[str]] = {}
        if check_movie:
            details["movieId"] = None if movie_id else "Movie ID is required"
        details["rating"] = validate_rating(rating)
        cleaned_comment, details["comment"] = clean_comment(comment)

        if any(details.values()):
            raise ValidationError("Incomplete or invalid data", details=details)
        return cleaned_comment

    @staticmethod
    def _get_owned_review(db: Session, user_id: int, movie_id: str) -> Review:
        review = db.query(Review).filter(
            Review.movie_id == movie_id,
            Review.user_id == user_id
        ).first()

        if not review:
            raise NotFound(
                "Review not found",
                details={"movieId": movie_id, "userId": user_id}
            )
        return review

    @staticmethod
    def _load_with_owner(db: Session, review_id: int) -> Review:
        """Reload a review with its owner for the response"""
        return db.query(Review).options(
            joinedload(Review.user)
        ).filter(
            Review.id == review_id
        ).first()

    @staticmethod
    def create_review(
        db: Session,
        user_id: int,
        movie_id: Optional[str],
        rating,
        comment
    ) -> Review:
        """
        Create a review for a movie

        Raises:
            ValidationError: If a field is missing or out of range
            DuplicateReview: If the user already reviewed this movie
        """
        cleaned_comment = ReviewService._validate_fields(rating, comment, movie_id, check_movie=True)

        existing_review = db.query(Review).filter(
            Review.user_id == user_id,
            Review.movie_id == movie_id
        ).first()

        if existing_review:
            raise DuplicateReview(
                details={"movieId": movie_id, "existingReviewId": existing_review.id}
            )

        review = Review(
            user_id=user_id,
            movie_id=movie_id,
            rating=rating,
            comment=cleaned_comment
        )
        db.add(review)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request created the same review first
            db.rollback()
            existing_review = db.query(Review).filter(
                Review.user_id == user_id,
                Review.movie_id == movie_id
            ).first()
            raise DuplicateReview(
                details={
                    "movieId": movie_id,
                    "existingReviewId": existing_review.id if existing_review else None
                }
            )

        logger.info(f"User {user_id} reviewed movie {movie_id} (review {review.id})")
        return ReviewService._load_with_owner(db, review.id)

    @staticmethod
    def update_review(
        db: Session,
        user_id: int,
        movie_id: str,
        rating,
        comment
    ) -> Review:
        """
        Update rating and comment of the user's review for a movie

        Raises:
            NotFound: If the user has no review for this movie
            ValidationError: If a field is missing or out of range
        """
        cleaned_comment = ReviewService._validate_fields(rating, comment)
        review = ReviewService._get_owned_review(db, user_id, movie_id)

        review.rating = rating
        review.comment = cleaned_comment
        review.updated_at = utcnow()
        db.commit()

        return ReviewService._load_with_owner(db, review.id)

    @staticmethod
    def delete_review(db: Session, user_id: int, movie_id: str) -> Dict:
        """
        Permanently delete the user's review for a movie (likes included)

        Raises:
            NotFound: If the user has no review for this movie
        """
        review = ReviewService._get_owned_review(db, user_id, movie_id)
        review_id = review.id

        db.delete(review)
        db.commit()
        logger.info(f"User {user_id} deleted review {review_id} for movie {movie_id}")

        return {"movie_id": movie_id, "review_id": review_id}

    @staticmethod
    def list_user_reviews(
        db: Session,
        user_id: int,
        sort_by: UserReviewSort = UserReviewSort.RECENT
    ) -> Dict:
        """
        Get all reviews written by a user

        Returns:
            {"reviews": [...], "movie_ids": distinct movie IDs in result order}
        """
        reviews = db.query(Review).filter(
            Review.user_id == user_id
        ).order_by(
            *USER_SORT_ORDERS[sort_by]
        ).all()

        movie_ids = list(dict.fromkeys(r.movie_id for r in reviews))
        return {"reviews": reviews, "movie_ids": movie_ids}

    @staticmethod
    def list_movie_reviews(db: Session, movie_id: str) -> List[Review]:
        """All reviews of a movie (any visibility), newest first"""
        return db.query(Review).options(
            joinedload(Review.user)
        ).filter(
            Review.movie_id == movie_id
        ).order_by(
            Review.created_at.desc(),
            Review.id.desc()
        ).all()

    @staticmethod
    def count_visible_by_movie(db: Session) -> List[Tuple[str, int]]:
        """
        Movies that have at least one visible review

        Returns:
            [(movie_id, visible review count)] ordered by first review,
            i.e. the order in which the movies were discovered
        """
        rows = db.query(
            Review.movie_id,
            func.count(Review.id).label("reviews_count"),
            func.min(Review.created_at).label("first_review_at")
        ).filter(
            Review.is_visible == True
        ).group_by(
            Review.movie_id
        ).order_by(
            func.min(Review.created_at).asc(),
            Review.movie_id.asc()
        ).all()

        return [(row.movie_id, row.reviews_count) for row in rows]
