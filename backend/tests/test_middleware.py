"""Tests for security headers, rate limiting and CORS."""

import pytest
from fastapi.testclient import TestClient

from quote_proxy.config import Settings
from quote_proxy.main import create_app
from quote_proxy.middleware import (
    ALLOWED_HEADERS,
    RATE_LIMIT_MESSAGE,
    SECURITY_HEADERS,
    SlidingWindowRateLimiter,
)


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def app(provider):
    return create_app(Settings(), provider=provider, run_scheduler=False)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


class TestSlidingWindowRateLimiter:
    """Unit tests for the per-key sliding window."""

    def test_allows_up_to_max(self):
        """Test that max_requests hits are accepted and the next is refused."""
        limiter = SlidingWindowRateLimiter(max_requests=3, window=60, clock=FakeMonotonic())
        results = [limiter.hit("1.2.3.4")[0] for _ in range(4)]
        assert results == [True, True, True, False]

    def test_remaining_counts_down(self):
        """Test the remaining allowance reported per hit."""
        limiter = SlidingWindowRateLimiter(max_requests=3, window=60, clock=FakeMonotonic())
        remaining = [limiter.hit("ip")[1] for _ in range(4)]
        assert remaining == [2, 1, 0, 0]

    def test_keys_are_independent(self):
        """Test that each client IP has its own window."""
        limiter = SlidingWindowRateLimiter(max_requests=1, window=60, clock=FakeMonotonic())
        assert limiter.hit("a")[0]
        assert limiter.hit("b")[0]
        assert not limiter.hit("a")[0]

    def test_window_slides(self):
        """Test that old hits expire individually rather than all at once."""
        clock = FakeMonotonic()
        limiter = SlidingWindowRateLimiter(max_requests=2, window=60, clock=clock)
        limiter.hit("ip")
        clock.now += 30
        limiter.hit("ip")
        assert not limiter.hit("ip")[0]

        clock.now += 30  # first hit leaves the window
        assert limiter.hit("ip")[0]
        assert not limiter.hit("ip")[0]

    def test_reset_seconds(self):
        """Test that reset reports time until the oldest hit expires."""
        clock = FakeMonotonic()
        limiter = SlidingWindowRateLimiter(max_requests=2, window=60, clock=clock)
        limiter.hit("ip")
        clock.now += 20
        _, _, reset = limiter.hit("ip")
        assert reset == 40

    def test_rejected_hits_not_recorded(self):
        """Test that refused requests do not extend the block."""
        clock = FakeMonotonic()
        limiter = SlidingWindowRateLimiter(max_requests=1, window=60, clock=clock)
        limiter.hit("ip")
        for _ in range(10):
            clock.now += 5
            limiter.hit("ip")
        clock.now += 10  # 60s after the only accepted hit
        assert limiter.hit("ip")[0]

    def test_prune_drops_idle_keys(self):
        """Test that prune removes keys with no hits inside the window."""
        clock = FakeMonotonic()
        limiter = SlidingWindowRateLimiter(max_requests=5, window=60, clock=clock)
        limiter.hit("old")
        clock.now += 61
        limiter.hit("new")
        limiter.prune()
        assert len(limiter) == 1


class TestSecurityHeaders:
    """Tests for the helmet-style response headers."""

    def test_headers_on_api_route(self, client):
        """Test that every security header is set on API responses."""
        response = client.get("/api/status")
        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value

    def test_headers_on_unknown_route(self, client):
        """Test that headers are also set on 404s outside /api."""
        response = client.get("/nothing-here")
        assert response.status_code == 404
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"


class TestRateLimitMiddleware:
    """Tests for the /api rate limit."""

    def test_101st_request_is_rejected(self, client, provider):
        """Test that requests 1-100 pass and the 101st gets 429."""
        for i in range(100):
            response = client.get("/api/status")
            assert response.status_code == 200, f"request {i + 1} was limited"

        response = client.get("/api/quote", params={"symbol": "AAPL"})
        assert response.status_code == 429
        assert response.text == RATE_LIMIT_MESSAGE
        assert provider.calls == []

    def test_standard_headers(self, client):
        """Test that RateLimit-* headers are present and legacy ones are not."""
        response = client.get("/api/status")
        assert response.headers["RateLimit-Limit"] == "100"
        assert response.headers["RateLimit-Remaining"] == "99"
        assert "RateLimit-Reset" in response.headers
        assert "X-RateLimit-Limit" not in response.headers

    def test_rejection_headers(self, provider):
        """Test that a 429 carries Retry-After and the security headers."""
        limiter = SlidingWindowRateLimiter(max_requests=1)
        client = TestClient(create_app(Settings(), provider=provider, limiter=limiter, run_scheduler=False))
        client.get("/api/status")
        response = client.get("/api/status")
        assert response.status_code == 429
        assert response.headers["RateLimit-Remaining"] == "0"
        assert "Retry-After" in response.headers
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_non_api_paths_not_limited(self, provider):
        """Test that only paths under /api/ count toward the limit."""
        limiter = SlidingWindowRateLimiter(max_requests=1)
        app = create_app(Settings(), provider=provider, limiter=limiter, run_scheduler=False)
        assert app.state.limiter is limiter
        client = TestClient(app)
        for _ in range(3):
            response = client.get("/docs")
            assert response.status_code == 200
            assert "RateLimit-Limit" not in response.headers

        # The single allowance is still unused, so only the second API call is refused
        assert client.get("/api/status").status_code == 200
        assert client.get("/api/status").status_code == 429

    def test_limiter_is_per_app(self, provider):
        """Test that separate apps do not share rate-limit state."""
        first = TestClient(create_app(Settings(), provider=provider, run_scheduler=False))
        second = TestClient(create_app(Settings(), provider=provider, run_scheduler=False))
        first.get("/api/status")
        assert second.get("/api/status").headers["RateLimit-Remaining"] == "99"


class TestCors:
    """Tests for the origin allow-list."""

    @pytest.mark.parametrize(
        "origin",
        ["https://hw-invest.web.app", "https://hw-invest.firebaseapp.com"],
    )
    def test_allowed_origin_reflected(self, client, origin):
        """Test that allow-listed origins are echoed back exactly."""
        response = client.get("/api/status", headers={"Origin": origin})
        assert response.headers["Access-Control-Allow-Origin"] == origin

    @pytest.mark.parametrize(
        "origin",
        ["https://evil.example", "https://hw-invest.web.app.evil.example", "http://hw-invest.web.app"],
    )
    def test_other_origins_omitted(self, client, origin):
        """Test that anything but an exact match gets no allow-origin header."""
        response = client.get("/api/status", headers={"Origin": origin})
        assert "Access-Control-Allow-Origin" not in response.headers

    def test_no_origin_header(self, client):
        """Test a same-origin / non-browser request."""
        response = client.get("/api/status")
        assert "Access-Control-Allow-Origin" not in response.headers

    def test_allow_headers_always_set(self, client):
        """Test that the allowed request headers are always advertised."""
        response = client.get("/api/status", headers={"Origin": "https://evil.example"})
        assert response.headers["Access-Control-Allow-Headers"] == ALLOWED_HEADERS

    @pytest.mark.parametrize(
        "origin",
        ["https://hw-invest.web.app", "https://hw-invest.firebaseapp.com"],
    )
    def test_preflight_from_allowed_origin(self, client, origin):
        """Test that a browser preflight carrying X-API-Key is answered for allowed origins."""
        response = client.options(
            "/api/quote",
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "x-api-key",
            },
        )
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == origin
        assert "x-api-key" in response.headers["Access-Control-Allow-Headers"].lower()
        assert "GET" in response.headers["Access-Control-Allow-Methods"]
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_preflight_from_other_origin(self, client):
        """Test that a preflight from an unlisted origin gets no allow-origin header."""
        response = client.options(
            "/api/quote",
            headers={
                "Origin": "https://evil.example",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.status_code == 400
        assert "Access-Control-Allow-Origin" not in response.headers

    def test_preflight_counts_toward_limit(self, provider):
        """Test that preflights under /api/ are rate limited like any other request."""
        limiter = SlidingWindowRateLimiter(max_requests=1)
        client = TestClient(create_app(Settings(), provider=provider, limiter=limiter, run_scheduler=False))
        headers = {"Origin": "https://hw-invest.web.app", "Access-Control-Request-Method": "GET"}
        assert client.options("/api/quote", headers=headers).status_code == 200
        assert client.options("/api/quote", headers=headers).status_code == 429
