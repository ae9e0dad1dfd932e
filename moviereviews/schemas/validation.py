"""Input validation helpers with XSS protection"""

import re
from typing import Optional, Tuple
import bleach

# Allowed HTML tags for user input
ALLOWED_TAGS = ['b', 'i', 'u', 'em', 'strong', 'p', 'br']

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 2000


class SafeStringMixin:
    """Mixin for XSS-safe string validation"""

    @staticmethod
    def sanitize_html(value: str) -> str:
        """Remove dangerous HTML/JavaScript"""
        if not value:
            return value
        return bleach.clean(value, tags=ALLOWED_TAGS, strip=True)


def validate_rating(rating) -> Optional[str]:
    """Return an error message for an invalid rating, None when valid"""
    if rating is None:
        return "Rating is required"
    if isinstance(rating, bool) or not isinstance(rating, int):
        return "Rating must be an integer"
    if rating < MIN_RATING or rating > MAX_RATING:
        return f"Rating must be between {MIN_RATING} and {MAX_RATING}"
    return None


def clean_comment(comment) -> Tuple[Optional[str], Optional[str]]:
    """
    Sanitize a review comment.

    Returns:
        (cleaned comment, error message) - exactly one of them is None
    """
    if comment is None:
        return None, "Comment is required"

    cleaned = SafeStringMixin.sanitize_html(comment.strip())
    # Collapse whitespace left behind by stripped tags
    cleaned = re.sub(r'[ \t]{2,}', ' ', cleaned).strip()

    if not cleaned:
        return None, "Comment is required"
    if len(cleaned) > MAX_COMMENT_LENGTH:
        return None, f"Comment cannot be longer than {MAX_COMMENT_LENGTH} characters"
    return cleaned, None
