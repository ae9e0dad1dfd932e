from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from moviereviews.database import Base


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp with microsecond precision"""
    return datetime.now(timezone.utc)


class Review(Base):
    """
    Review model - one user's rating and comment for one TMDB movie

    likes_count mirrors the number of ReviewLike rows and is only ever
    changed through LikeService.toggle_like.
    """
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(String(64), nullable=False, index=True)  # External (TMDB) movie ID
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=False)
    likes_count = Column(Integer, nullable=False, default=0, index=True)
    is_visible = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="reviews")
    likes = relationship("ReviewLike", back_populates="review", cascade="all, delete-orphan")

    # Ensure one review per user per movie
    __table_args__ = (
        UniqueConstraint('user_id', 'movie_id', name='unique_user_movie_review'),
        Index('idx_reviews_created_at', 'created_at'),
        # Explore feed: visible reviews by recency / popularity
        Index('idx_reviews_feed_recent', 'is_visible', 'created_at'),
        Index('idx_reviews_feed_popular', 'is_visible', 'likes_count', 'created_at'),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, user_id={self.user_id}, movie_id={self.movie_id}, rating={self.rating})>"


class ReviewLike(Base):
    """
    Review likes - which users liked which review

    The set of rows for a review is its "likes" set; the unique constraint
    keeps a user from appearing twice.
    """
    __tablename__ = "review_likes"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    review = relationship("Review", back_populates="likes")

    __table_args__ = (
        UniqueConstraint('review_id', 'user_id', name='unique_review_user_like'),
    )

    def __repr__(self):
        return f"<ReviewLike(review_id={self.review_id}, user_id={self.user_id})>"
