"""
Import all models to ensure they are registered with SQLAlchemy
"""
from moviereviews.models.user import User
from moviereviews.models.review import Review, ReviewLike

__all__ = [
    "User",
    "Review",
    "ReviewLike"
]
