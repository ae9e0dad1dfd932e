"""
Movie Search Service - which reviewed movies match a text query

Titles are not stored locally, so every movie with a visible review is
resolved through TMDB in two languages and matched against the query:
- the whole query is a substring of the title, or
- every word of the query appears somewhere in the title
Results are ranked by number of visible reviews.

Metadata lookups run on a bounded thread pool. A failed or timed out lookup
only removes that language (or, if both fail, that movie) from the results.
"""

import concurrent.futures
from sqlalchemy.orm import Session
from typing import Dict, List, Optional, Tuple
import logging

from moviereviews.config import TMDBSettings
from moviereviews.errors import UpstreamUnavailable, ValidationError
from moviereviews.services.review_service import ReviewService
from moviereviews.services.tmdb_service import TMDBService

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


def normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def title_matches(title: Optional[str], normalized_query: str) -> bool:
    """Substring match, or every query word contained in the title"""
    normalized_title = normalize(title)
    if not normalized_title or not normalized_query:
        return False
    if normalized_query in normalized_title:
        return True
    words = normalized_query.split()
    return bool(words) and all(word in normalized_title for word in words)


def release_year(release_date: Optional[str]) -> Optional[str]:
    if not release_date:
        return None
    return release_date.split("-")[0] or None


class MovieSearchService:
    """Correlates reviewed movie IDs with TMDB titles"""

    def __init__(self, resolver: TMDBService, settings: TMDBSettings):
        self.resolver = resolver
        self.primary_language = settings.primary_language
        self.fallback_language = settings.fallback_language
        self.max_workers = max(1, settings.max_concurrent_fetches)

    def _safe_resolve(self, movie_id: str, locale: str) -> Optional[Dict]:
        """Resolve one (movie, locale) pair; any failure becomes None"""
        try:
            return self.resolver.resolve_title(movie_id, locale)
        except UpstreamUnavailable as e:
            logger.warning(f"Metadata unavailable for movie {movie_id} ({locale}): {e.message}")
        except Exception as e:
            logger.warning(f"Unexpected metadata error for movie {movie_id} ({locale}): {str(e)}")
        return None

    def _fetch_all(self, movie_ids: List[str]) -> Dict[Tuple[str, str], Optional[Dict]]:
        """
        Resolve every movie in both languages concurrently

        Returns:
            {(movie_id, locale): metadata or None}
        """
        locales = (self.primary_language, self.fallback_language)
        results: Dict[Tuple[str, str], Optional[Dict]] = {}

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_key = {
                executor.submit(self._safe_resolve, movie_id, locale): (movie_id, locale)
                for movie_id in movie_ids
                for locale in locales
            }
            for future in concurrent.futures.as_completed(future_to_key):
                results[future_to_key[future]] = future.result()

        return results

    def _build_match(
        self,
        movie_id: str,
        reviews_count: int,
        primary: Optional[Dict],
        fallback: Optional[Dict]
    ) -> Dict:
        """Prefer the primary language, fall back field by field"""
        primary = primary or {}
        fallback = fallback or {}
        poster_path = primary.get("poster_path") or fallback.get("poster_path")

        return {
            "movie_id": movie_id,
            "title": primary.get("title") or fallback.get("title"),
            "year": release_year(primary.get("release_date") or fallback.get("release_date")),
            "poster": self.resolver.poster_url(poster_path, size="w92"),
            "reviews_count": reviews_count,
        }

    def search(self, db: Session, query: Optional[str], limit: int = DEFAULT_LIMIT) -> List[Dict]:
        """
        Find reviewed movies whose title matches the query

        Raises:
            ValidationError: If the query is blank
        """
        normalized_query = normalize(query)
        if not normalized_query:
            raise ValidationError(
                "Search term is required",
                details={"query": "This field is required"}
            )

        candidates = ReviewService.count_visible_by_movie(db)
        if not candidates:
            return []

        metadata = self._fetch_all([movie_id for movie_id, _ in candidates])

        matches = []
        for movie_id, reviews_count in candidates:
            primary = metadata.get((movie_id, self.primary_language))
            fallback = metadata.get((movie_id, self.fallback_language))
            if primary is None and fallback is None:
                continue

            if any(title_matches(m.get("title"), normalized_query) for m in (primary, fallback) if m):
                matches.append(self._build_match(movie_id, reviews_count, primary, fallback))

        # sorted() is stable, so ties keep discovery order
        matches = sorted(matches, key=lambda m: m["reviews_count"], reverse=True)
        logger.info(f"Movie search '{normalized_query}': {len(matches)} of {len(candidates)} reviewed movies matched")
        return matches[:limit]
