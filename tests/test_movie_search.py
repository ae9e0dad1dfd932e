"""
Movie Search Test Suite
=======================
Review-driven movie search: title matching, locale fallback, failure
isolation and ranking.
"""
import pytest

from moviereviews.errors import ValidationError
from moviereviews.services.movie_search_service import MovieSearchService, normalize, title_matches

from conftest import TEST_TMDB_SETTINGS, create_review, create_user


class TestTitleMatching:

    @pytest.mark.parametrize("title, query, expected", [
        ("The Matrix", "matrix", True),
        ("The Matrix Reloaded", "reloaded matrix", True),
        ("Matrix", "the matrix", False),
        ("Fight Club", "matrix", False),
        ("El Club de la Lucha", "lucha club", True),
        (None, "matrix", False),
        ("The Matrix", "", False),
    ])
    def test_title_matches(self, title, query, expected):
        assert title_matches(title, normalize(query)) is expected

    def test_normalize_trims_and_lowercases(self):
        assert normalize("  MaTrIx ") == "matrix"
        assert normalize(None) == ""


@pytest.fixture
def search_service(fake_tmdb):
    return MovieSearchService(fake_tmdb, TEST_TMDB_SETTINGS)


class TestMovieSearch:

    def test_matches_primary_title(self, db_session, alice, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="603")
        create_review(db_session, alice, movie_id="550")
        fake_tmdb.titles.update({
            ("603", "es-ES"): "Matrix",
            ("603", "en-US"): "The Matrix",
            ("550", "es-ES"): "El club de la lucha",
            ("550", "en-US"): "Fight Club",
        })

        movies = search_service.search(db_session, "matrix")

        assert movies == [{
            "movie_id": "603",
            "title": "Matrix",
            "year": "1999",
            "poster": "https://image.tmdb.org/t/p/w92/603.jpg",
            "reviews_count": 1,
        }]

    def test_matches_fallback_title_but_reports_primary(self, db_session, alice, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="550")
        fake_tmdb.titles.update({
            ("550", "es-ES"): "El club de la lucha",
            ("550", "en-US"): "Fight Club",
        })

        movies = search_service.search(db_session, "fight")

        assert [m["title"] for m in movies] == ["El club de la lucha"]

    def test_no_match_is_empty(self, db_session, alice, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="603")
        fake_tmdb.titles.update({("603", "es-ES"): "Matrix", ("603", "en-US"): "The Matrix"})

        assert search_service.search(db_session, "zzzz") == []

    def test_no_reviews_skips_metadata_lookups(self, db_session, fake_tmdb, search_service):
        assert search_service.search(db_session, "matrix") == []
        assert fake_tmdb.calls == []

    def test_failing_movie_does_not_hide_others(self, db_session, alice, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="603")
        create_review(db_session, alice, movie_id="604")
        fake_tmdb.titles.update({
            ("604", "es-ES"): "Matrix Reloaded",
            ("604", "en-US"): "The Matrix Reloaded",
        })
        fake_tmdb.failures.add("603")

        movies = search_service.search(db_session, "matrix")

        assert [m["movie_id"] for m in movies] == ["604"]

    def test_one_failing_locale_still_matches(self, db_session, alice, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="603")
        fake_tmdb.titles[("603", "en-US")] = "The Matrix"
        fake_tmdb.failures.add(("603", "es-ES"))

        movies = search_service.search(db_session, "matrix")

        assert len(movies) == 1
        assert movies[0]["title"] == "The Matrix"

    def test_missing_primary_fields_fall_back(self, db_session, alice, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="603")
        fake_tmdb.titles.update({
            ("603", "es-ES"): {"title": "Matrix", "release_date": None, "poster_path": None},
            ("603", "en-US"): {"title": "The Matrix", "release_date": "1999-03-30", "poster_path": "/en.jpg"},
        })

        movie = search_service.search(db_session, "matrix")[0]

        assert movie["title"] == "Matrix"
        assert movie["year"] == "1999"
        assert movie["poster"].endswith("/w92/en.jpg")

    def test_ranked_by_review_count_ties_keep_order(self, db_session, fake_tmdb, search_service):
        critics = [create_user(db_session, f"critic{i}") for i in range(3)]
        # discovery order: 10 (1 review), 20 (3 reviews), 30 (1 review)
        create_review(db_session, critics[0], movie_id="10", minutes=1)
        for i, critic in enumerate(critics):
            create_review(db_session, critic, movie_id="20", minutes=2 + i)
        create_review(db_session, critics[1], movie_id="30", minutes=9)
        for movie_id in ("10", "20", "30"):
            fake_tmdb.titles[(movie_id, "es-ES")] = f"Star Trek {movie_id}"
            fake_tmdb.titles[(movie_id, "en-US")] = f"Star Trek {movie_id}"

        movies = search_service.search(db_session, "trek star")

        assert [(m["movie_id"], m["reviews_count"]) for m in movies] == [("20", 3), ("10", 1), ("30", 1)]

    def test_hidden_reviews_are_not_counted(self, db_session, alice, bob, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="603", is_visible=False)
        create_review(db_session, alice, movie_id="604")
        create_review(db_session, bob, movie_id="604", is_visible=False)
        for movie_id in ("603", "604"):
            fake_tmdb.titles[(movie_id, "es-ES")] = "Matrix"
            fake_tmdb.titles[(movie_id, "en-US")] = "The Matrix"

        movies = search_service.search(db_session, "matrix")

        assert [(m["movie_id"], m["reviews_count"]) for m in movies] == [("604", 1)]

    def test_limit_truncates(self, db_session, alice, fake_tmdb, search_service):
        for i in range(5):
            movie_id = str(700 + i)
            create_review(db_session, alice, movie_id=movie_id, minutes=i)
            fake_tmdb.titles[(movie_id, "es-ES")] = f"Alien {i}"
            fake_tmdb.titles[(movie_id, "en-US")] = f"Alien {i}"

        movies = search_service.search(db_session, "alien", limit=2)

        assert [m["movie_id"] for m in movies] == ["700", "701"]

    def test_each_movie_resolved_in_both_locales(self, db_session, alice, fake_tmdb, search_service):
        create_review(db_session, alice, movie_id="603")
        fake_tmdb.titles.update({("603", "es-ES"): "Matrix", ("603", "en-US"): "The Matrix"})

        search_service.search(db_session, "matrix")

        assert sorted(fake_tmdb.calls) == [("603", "en-US"), ("603", "es-ES")]

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_is_rejected(self, db_session, search_service, query):
        with pytest.raises(ValidationError):
            search_service.search(db_session, query)


class TestSearchMoviesEndpoint:

    def test_returns_camel_case_movies(self, client, db_session, alice, bob_headers, fake_tmdb):
        create_review(db_session, alice, movie_id="603")
        fake_tmdb.titles.update({("603", "es-ES"): "Matrix", ("603", "en-US"): "The Matrix"})

        response = client.get("/api/reviews/search-movies", params={"query": "Matrix"}, headers=bob_headers)

        assert response.status_code == 200
        assert response.json() == {"movies": [{
            "movieId": "603",
            "title": "Matrix",
            "year": "1999",
            "poster": "https://image.tmdb.org/t/p/w92/603.jpg",
            "reviewsCount": 1,
        }]}

    def test_blank_query_is_bad_request(self, client, bob_headers):
        response = client.get("/api/reviews/search-movies", params={"query": "  "}, headers=bob_headers)

        assert response.status_code == 400
        assert response.json()["details"]["query"] is not None

    def test_upstream_outage_yields_empty_list(self, client, db_session, alice, bob_headers, fake_tmdb):
        create_review(db_session, alice, movie_id="603")
        fake_tmdb.failures.add("603")

        response = client.get("/api/reviews/search-movies", params={"query": "matrix"}, headers=bob_headers)

        assert response.status_code == 200
        assert response.json() == {"movies": []}
