"""
HeartSmiles Backend — Rate Limiter Unit Tests
===============================================

What:  Tests for the fixed-window limiter, its store and identity resolution.
How:   A FakeClock drives window expiry; no sleeping.

Test Strategy:
    ✅ 100 admitted, 101st rejected, exempt path still admitted
    ✅ Window reset after 15 minutes; rejected attempts do not extend it
    ✅ Identities are counted independently
    ✅ Concurrent bursts never admit more than the cap
    ✅ One trusted proxy hop for X-Forwarded-For
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from app.services.rate_limiter import (
    RateLimiter,
    RateWindowStore,
    resolve_client_identity,
)

WINDOW = 15 * 60


@pytest.fixture
def limiter(fake_clock) -> RateLimiter:
    return RateLimiter(
        limit=100,
        window_seconds=WINDOW,
        exempt_paths=("/api/health", "/health"),
        clock=fake_clock,
    )


class TestAdmission:

    def test_hundred_requests_admitted_then_rejected(self, limiter):
        decisions = [limiter.admit("10.0.0.1", "/api/staff") for _ in range(100)]
        assert all(d.allowed for d in decisions)
        assert decisions[0].remaining == 99
        assert decisions[-1].remaining == 0

        rejected = limiter.admit("10.0.0.1", "/api/staff")
        assert rejected.allowed is False
        assert rejected.remaining == 0

    def test_health_path_exempt_after_cap(self, limiter):
        """Health checks are never counted, even for a throttled client."""
        for _ in range(101):
            limiter.admit("10.0.0.1", "/api/staff")

        decision = limiter.admit("10.0.0.1", "/api/health")
        assert decision.allowed is True
        assert decision.exempt is True
        assert limiter.store.get("10.0.0.1").count == 101

    def test_exempt_requests_not_counted(self, limiter):
        for _ in range(150):
            assert limiter.admit("10.0.0.2", "/health").allowed
        assert limiter.store.get("10.0.0.2") is None

    def test_exemption_is_exact_path(self, limiter):
        assert limiter.is_exempt("/api/health") is True
        assert limiter.is_exempt("/api/health/deep") is False
        assert limiter.is_exempt("/api/healthz") is False

    def test_identities_counted_separately(self, limiter):
        for _ in range(100):
            limiter.admit("10.0.0.1", "/api/staff")
        assert limiter.admit("10.0.0.1", "/api/staff").allowed is False
        assert limiter.admit("10.0.0.3", "/api/staff").allowed is True


class TestWindow:

    def test_window_resets_after_expiry(self, limiter, fake_clock):
        for _ in range(101):
            limiter.admit("10.0.0.1", "/api/staff")

        fake_clock.advance(WINDOW)
        decision = limiter.admit("10.0.0.1", "/api/staff")
        assert decision.allowed is True
        assert decision.remaining == 99

    def test_rejections_do_not_extend_window(self, limiter, fake_clock):
        first = limiter.admit("10.0.0.1", "/api/staff")
        for _ in range(120):
            fake_clock.advance(1)
            limiter.admit("10.0.0.1", "/api/staff")

        rejected = limiter.admit("10.0.0.1", "/api/staff")
        assert rejected.allowed is False
        assert rejected.reset_at == first.reset_at

    def test_reset_after_counts_down(self, limiter, fake_clock):
        decision = limiter.admit("10.0.0.1", "/api/staff")
        assert decision.reset_after(fake_clock()) == WINDOW
        fake_clock.advance(60.5)
        assert decision.reset_after(fake_clock()) == WINDOW - 60
        fake_clock.advance(WINDOW)
        assert decision.reset_after(fake_clock()) == 0


class TestConcurrency:

    def test_concurrent_burst_never_exceeds_cap(self, fake_clock):
        """read-compare-increment is atomic per identity."""
        limiter = RateLimiter(limit=50, window_seconds=WINDOW, clock=fake_clock)
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: limiter.admit("burst", "/api/staff"), range(400)))
        assert sum(1 for d in results if d.allowed) == 50
        assert limiter.store.get("burst").count == 400

    def test_store_shared_between_limiters(self, fake_clock):
        store = RateWindowStore()
        first = RateLimiter(limit=1, window_seconds=WINDOW, store=store, clock=fake_clock)
        second = RateLimiter(limit=1, window_seconds=WINDOW, store=store, clock=fake_clock)
        assert first.admit("shared", "/x").allowed is True
        assert second.admit("shared", "/x").allowed is False
        assert len(store) == 1


class TestClientIdentity:

    def test_no_forwarded_header_uses_peer(self):
        assert resolve_client_identity(None, "192.168.1.5") == "192.168.1.5"

    def test_single_hop_uses_rightmost_entry(self):
        """The nearest proxy appended the real client; earlier hops are client-supplied."""
        assert resolve_client_identity("6.6.6.6, 203.0.113.7", "10.0.0.1") == "203.0.113.7"

    def test_single_entry(self):
        assert resolve_client_identity("203.0.113.7", "10.0.0.1") == "203.0.113.7"

    def test_zero_hops_ignores_header(self):
        assert resolve_client_identity("203.0.113.7", "10.0.0.1", trusted_hops=0) == "10.0.0.1"

    def test_blank_header_falls_back(self):
        assert resolve_client_identity(" , ", None) == "unknown"
