import requests
from typing import Dict, Optional
from moviereviews.config import TMDBSettings
from moviereviews.errors import UpstreamUnavailable
from moviereviews.utils.cache import CacheStore
import logging

logger = logging.getLogger(__name__)

TITLE_CACHE_TTL = 600  # Movie titles/posters rarely change


# TMDB Service to interact with The Movie Database API
class TMDBService:
    """
    Movie metadata resolver backed by TMDB.

    Every call is independent and may fail with UpstreamUnavailable; callers
    decide whether that is fatal. Safe to share between threads.
    """

    def __init__(self, settings: TMDBSettings, cache_store: Optional[CacheStore] = None):
        self.settings = settings
        self.cache = cache_store or CacheStore(max_size=2000)

    # Internal method to make GET requests to TMDB API
    def _make_request(self, endpoint: str, params: Dict = None) -> Dict:
        """
        Make HTTP request to TMDB API.

        Args:
            endpoint: API endpoint (e.g., "/movie/603")
            params: Query parameters

        Returns:
            JSON response from TMDB

        Raises:
            UpstreamUnavailable: If credentials are missing, the request
                fails or it does not complete within the configured timeout
        """
        if not self.settings.configured:
            raise UpstreamUnavailable("TMDB API credentials not configured")

        params = dict(params or {})
        headers = {"Accept": "application/json"}
        if self.settings.access_token:
            headers["Authorization"] = f"Bearer {self.settings.access_token}"
        else:
            params['api_key'] = self.settings.api_key
        url = f"{self.settings.base_url}{endpoint}"

        try:
            response = requests.get(url, params=params, headers=headers, timeout=self.settings.timeout_seconds)
            response.raise_for_status()
            logger.debug(f"TMDB API request successful: {endpoint}")
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"TMDB API error for {endpoint}: {str(e)}")
            raise UpstreamUnavailable(
                "Error contacting the movie metadata provider",
                details={"endpoint": endpoint}
            )

    def get_movie_details(self, movie_id: str, language: Optional[str] = None) -> Dict:
        """Raw TMDB details for one movie, optionally localized"""
        params = {'language': language} if language else None
        return self._make_request(f"/movie/{movie_id}", params)

    def resolve_title(self, movie_id: str, locale: str) -> Dict:
        """
        Resolve the display metadata of a movie in one locale.
        Successful lookups are cached; failures are never cached.

        Returns:
            {"title", "release_date", "poster_path"}

        Raises:
            UpstreamUnavailable
        """
        cache_key = self.cache.make_key("resolve_title", (str(movie_id), locale))
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        details = self.get_movie_details(movie_id, language=locale)
        metadata = {
            "title": details.get("title") or None,
            "release_date": details.get("release_date") or None,
            "poster_path": details.get("poster_path") or None,
        }
        self.cache.set(cache_key, metadata, TITLE_CACHE_TTL)
        return metadata

    def search_movies(self, query: str, language: Optional[str] = None, page: int = 1) -> Dict:
        """Search movies by title"""
        params = {'query': query, 'page': page}
        if language:
            params['language'] = language
        return self._make_request("/search/movie", params)

    def poster_url(self, poster_path: Optional[str], size: str = "w92") -> Optional[str]:
        """Absolute poster URL for a TMDB poster path"""
        if not poster_path:
            return None
        return f"{self.settings.image_base_url}/{size}{poster_path}"
