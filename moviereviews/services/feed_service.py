"""
Feed Service - the "explore" feed of other users' reviews

Filters:
- visible reviews only, never the requester's own
- optional partial username (resolved through IdentityService)
- optional exact movie ID
Both filters combine with AND.
"""

from sqlalchemy.orm import Session, joinedload
from typing import Dict, Optional
import math
import logging

from moviereviews.models.review import Review, ReviewLike
from moviereviews.schemas.review import FeedReview, FeedSort
from moviereviews.services.identity_service import IdentityService

logger = logging.getLogger(__name__)

# created_at then id keep pagination deterministic when likes/timestamps tie
FEED_SORT_ORDERS = {
    FeedSort.RECENT: (Review.created_at.desc(), Review.id.desc()),
    FeedSort.POPULAR: (Review.likes_count.desc(), Review.created_at.desc(), Review.id.desc()),
}


class FeedService:
    """Service for the explore feed"""

    @staticmethod
    def empty_page() -> Dict:
        return {"reviews": [], "total": 0, "pages": 0, "current_page": 1}

    @staticmethod
    def explore(
        db: Session,
        requester_id: int,
        movie_id: Optional[str] = None,
        username: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: FeedSort = FeedSort.RECENT
    ) -> Dict:
        """
        Build one page of the explore feed

        Args:
            db: Database session
            requester_id: Authenticated user; their reviews are excluded
            movie_id: Only reviews of this movie
            username: Only reviews by users whose name contains this text
            page: 1-based page number
            limit: Page size
            sort_by: recent (newest first) or popular (most liked first)

        Returns:
            {"reviews": [FeedReview], "total", "pages", "current_page"}
        """
        query = db.query(Review).filter(
            Review.is_visible == True,
            Review.user_id != requester_id
        )

        if username:
            user_ids = IdentityService.find_user_ids(db, username, exclude_user_id=requester_id)
            if not user_ids:
                logger.debug(f"Explore: no users match '{username}'")
                return FeedService.empty_page()
            query = query.filter(Review.user_id.in_(user_ids))

        if movie_id:
            query = query.filter(Review.movie_id == movie_id)

        total = query.count()

        reviews = query.options(
            joinedload(Review.user)
        ).order_by(
            *FEED_SORT_ORDERS[sort_by]
        ).offset(
            (page - 1) * limit
        ).limit(limit).all()

        # Requester's own like status for this page only
        liked_ids = set()
        if reviews:
            rows = db.query(ReviewLike.review_id).filter(
                ReviewLike.user_id == requester_id,
                ReviewLike.review_id.in_([r.id for r in reviews])
            ).all()
            liked_ids = {row.review_id for row in rows}

        items = []
        for review in reviews:
            item = FeedReview.model_validate(review)
            item.has_liked = review.id in liked_ids
            items.append(item)

        return {
            "reviews": items,
            "total": total,
            "pages": math.ceil(total / limit),
            "current_page": page
        }
