"""
Like Service - toggle likes on reviews

Review.likes_count is a denormalized mirror of the number of ReviewLike rows.
Both are changed in the same transaction, and the counter write is a
compare-and-swap on the value read at the start of the attempt, so two
concurrent toggles on one review can never leave them out of step: the
slower one matches zero rows, rolls back and retries on fresh data.
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, OperationalError
from typing import Dict, Optional
import logging

from moviereviews.config import get_settings
from moviereviews.errors import InternalError, NotFound
from moviereviews.models.review import Review, ReviewLike

logger = logging.getLogger(__name__)


class LikeService:
    """Service for review likes"""

    @staticmethod
    def _current_likes_count(db: Session, review_id: int) -> int:
        row = db.query(Review.likes_count).filter(Review.id == review_id).first()
        if row is None:
            raise NotFound("Review not found", details={"reviewId": review_id})
        return row.likes_count

    @staticmethod
    def _has_liked(db: Session, review_id: int, user_id: int) -> bool:
        return db.query(ReviewLike.id).filter(
            ReviewLike.review_id == review_id,
            ReviewLike.user_id == user_id
        ).first() is not None

    @staticmethod
    def _try_toggle(db: Session, review_id: int, user_id: int) -> Optional[Dict]:
        """
        One toggle attempt inside a single transaction

        Returns:
            The new like state, or None when another writer got in first
            (the transaction has been rolled back)
        """
        try:
            expected = LikeService._current_likes_count(db, review_id)
            liked = LikeService._has_liked(db, review_id, user_id)

            if liked:
                removed = db.query(ReviewLike).filter(
                    ReviewLike.review_id == review_id,
                    ReviewLike.user_id == user_id
                ).delete(synchronize_session=False)
                if removed != 1:
                    db.rollback()
                    return None
                new_count = expected - 1
            else:
                db.add(ReviewLike(review_id=review_id, user_id=user_id))
                db.flush()
                new_count = expected + 1

            swapped = db.query(Review).filter(
                Review.id == review_id,
                Review.likes_count == expected
            ).update(
                {Review.likes_count: new_count},
                synchronize_session=False
            )
            if swapped != 1:
                db.rollback()
                return None

            db.commit()
        except IntegrityError:
            # Same user liked concurrently; re-read and try again
            db.rollback()
            return None
        except OperationalError as e:
            # Lock timeout / deadlock victim
            logger.warning(f"Like toggle on review {review_id} hit a lock conflict: {str(e)}")
            db.rollback()
            return None

        return {"likes_count": new_count, "has_liked": not liked}

    @staticmethod
    def toggle_like(
        db: Session,
        review_id: int,
        user_id: int,
        max_attempts: Optional[int] = None
    ) -> Dict:
        """
        Like the review if the user hasn't yet, otherwise remove the like

        Returns:
            {"likes_count": int, "has_liked": bool} after the toggle

        Raises:
            NotFound: If the review does not exist
            InternalError: If the toggle kept conflicting with other writers
        """
        attempts = max_attempts or get_settings().like_toggle_max_attempts

        for attempt in range(1, attempts + 1):
            state = LikeService._try_toggle(db, review_id, user_id)
            if state is not None:
                logger.debug(
                    f"User {user_id} {'liked' if state['has_liked'] else 'unliked'} review {review_id}"
                )
                return state
            logger.warning(f"Like toggle conflict on review {review_id} (attempt {attempt}/{attempts})")

        raise InternalError(
            "Could not update the like, please try again",
            details={"reviewId": review_id}
        )

    @staticmethod
    def get_like_state(db: Session, review_id: int, user_id: int) -> Dict:
        """
        Whether the user liked the review, and its like count

        Raises:
            NotFound: If the review does not exist
        """
        likes_count = LikeService._current_likes_count(db, review_id)
        return {
            "has_liked": LikeService._has_liked(db, review_id, user_id),
            "likes_count": likes_count
        }
