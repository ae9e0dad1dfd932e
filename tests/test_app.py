"""
Application Wiring Test Suite
=============================
Health endpoints, CORS policy and the error payload on framework errors.
"""
import pytest

ALLOWED_ORIGIN = "http://localhost:3000"


class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_reports_metadata_cache(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert set(body["tmdb"]["metadata_cache"]) == {"size", "max_size", "hits", "misses", "hit_rate"}


class TestCors:

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
    def test_preflight_allows_used_methods(self, client, method):
        response = client.options(
            "/api/reviews",
            headers={"Origin": ALLOWED_ORIGIN, "Access-Control-Request-Method": method}
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    def test_preflight_rejects_patch(self, client):
        response = client.options(
            "/api/reviews",
            headers={"Origin": ALLOWED_ORIGIN, "Access-Control-Request-Method": "PATCH"}
        )

        assert response.status_code == 400
        assert "PATCH" not in response.headers.get("access-control-allow-methods", "")

    def test_error_responses_keep_cors_headers(self, client):
        response = client.get("/api/reviews/user", headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert "access-control-expose-headers" not in response.headers

    def test_unknown_origin_gets_no_cors_headers(self, client):
        response = client.get("/api/reviews/user", headers={"Origin": "https://evil.example"})

        assert "access-control-allow-origin" not in response.headers


class TestFrameworkErrors:

    def test_unknown_route_uses_error_payload(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"status": "error", "message": "Not Found", "details": None}
