"""
API error taxonomy

Services raise these exceptions; the handler registered in main.py renders
them as {"status": "error", "message": ..., "details": ...}.
"""
from typing import Any, Optional
from fastapi import HTTPException, status


class ReviewAPIError(HTTPException):
    """Base class for errors that map to a structured error payload"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(status_code=self.status_code, detail=self.message)

    def to_payload(self) -> dict:
        return {
            "status": "error",
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ReviewAPIError):
    """Missing or out-of-range fields"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Incomplete or invalid data"


class DuplicateReview(ReviewAPIError):
    """The user already reviewed this movie"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "You have already reviewed this movie"


class NotFound(ReviewAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Review not found"


class AuthRequired(ReviewAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message, details)
        self.headers = {"WWW-Authenticate": "Bearer"}


class UpstreamUnavailable(ReviewAPIError):
    """The movie metadata provider failed or timed out"""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Movie metadata provider unavailable"


class InternalError(ReviewAPIError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
