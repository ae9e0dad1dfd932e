from sqlalchemy.orm import Session
from typing import List

from moviereviews.models.user import User


class IdentityService:
    """Lookups over the user directory"""

    @staticmethod
    def _like_pattern(partial: str) -> str:
        """Substring LIKE pattern with the user's own wildcards escaped"""
        escaped = partial.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"

    @staticmethod
    def find_user_ids(db: Session, partial_username: str, exclude_user_id: int) -> List[int]:
        """
        Resolve a partial username to candidate user IDs

        Matching is a case-insensitive substring match. The requester is never
        part of the result.
        """
        rows = db.query(User.id).filter(
            User.username.ilike(IdentityService._like_pattern(partial_username), escape="\\"),
            User.id != exclude_user_id
        ).all()
        return [row.id for row in rows]
