"""
Tests for the fixed window rate limiter and client identification.

Time is driven by FakeClock, so window expiry is tested without sleeping.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from intake_gateway.errors import RateLimitExceeded
from intake_gateway.services.rate_limiter import (
    UNKNOWN_CLIENT,
    FixedWindowRateLimiter,
    get_client_id,
)
from tests.helpers import FakeClock


def test_first_n_requests_are_admitted(rate_limiter):
    for i in range(10):
        result = rate_limiter.admit("10.0.0.1")
        assert result.allowed, f"Request {i+1} should be allowed"
        assert result.remaining == 9 - i


def test_request_over_the_limit_is_rejected(rate_limiter, clock):
    for _ in range(10):
        rate_limiter.admit("10.0.0.1")

    clock.advance(60)
    with pytest.raises(RateLimitExceeded) as exc_info:
        rate_limiter.admit("10.0.0.1")

    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after == 240
    assert exc_info.value.limit == 10


def test_rejections_do_not_extend_the_window(rate_limiter, clock):
    for _ in range(10):
        rate_limiter.admit("10.0.0.1")
    for _ in range(5):
        assert not rate_limiter.check("10.0.0.1").allowed

    clock.advance(300)
    assert rate_limiter.check("10.0.0.1").allowed


def test_counter_resets_after_window(rate_limiter, clock):
    for _ in range(10):
        rate_limiter.admit("10.0.0.1")
    assert not rate_limiter.check("10.0.0.1").allowed

    # Expiry is inclusive: at now == expires_at the entry is stale
    clock.advance(300)

    for i in range(10):
        assert rate_limiter.check("10.0.0.1").allowed, f"Request {i+1} after reset"
    assert not rate_limiter.check("10.0.0.1").allowed


def test_window_is_not_extended_by_later_hits(rate_limiter, clock):
    rate_limiter.admit("10.0.0.1")
    clock.advance(299)
    for _ in range(9):
        rate_limiter.admit("10.0.0.1")

    clock.advance(1)
    assert rate_limiter.check("10.0.0.1").remaining == 9


def test_clients_are_counted_separately(rate_limiter):
    for _ in range(10):
        rate_limiter.admit("10.0.0.1")

    assert rate_limiter.check("10.0.0.2").allowed
    assert not rate_limiter.check("10.0.0.1").allowed


def test_concurrent_requests_never_exceed_limit():
    limiter = FixedWindowRateLimiter(window_seconds=300, max_requests=25, clock=FakeClock())
    barrier = threading.Barrier(8)

    def burst(_):
        barrier.wait()
        return [limiter.check("shared").allowed for _ in range(20)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = [allowed for batch in pool.map(burst, range(8)) for allowed in batch]

    assert sum(outcomes) == 25


def test_sweep_expired(rate_limiter, clock):
    rate_limiter.admit("a")
    clock.advance(200)
    rate_limiter.admit("b")
    clock.advance(100)

    assert rate_limiter.sweep_expired() == 1
    assert len(rate_limiter) == 1


def test_entry_cap_sweeps_stale_entries_first(clock):
    limiter = FixedWindowRateLimiter(window_seconds=300, max_requests=2, max_entries=2, clock=clock)
    limiter.admit("a")
    clock.advance(100)
    limiter.admit("b")
    limiter.admit("b")
    clock.advance(250)

    limiter.admit("c")

    assert len(limiter) == 2
    # "b" kept its count; it was still inside its window
    assert not limiter.check("b").allowed


def test_entry_cap_drops_stale_prefix_and_keeps_live_entries(clock):
    limiter = FixedWindowRateLimiter(window_seconds=100, max_requests=1, max_entries=3, clock=clock)
    limiter.admit("a")
    clock.advance(10)
    limiter.admit("b")
    clock.advance(80)
    limiter.admit("c")
    clock.advance(25)  # "a" and "b" are stale, "c" has 75s left

    limiter.admit("d")

    assert len(limiter) == 2
    assert not limiter.check("c").allowed
    assert not limiter.check("d").allowed


def test_entry_cap_evicts_oldest(clock):
    limiter = FixedWindowRateLimiter(window_seconds=300, max_requests=1, max_entries=2, clock=clock)
    limiter.admit("a")
    clock.advance(1)
    limiter.admit("b")
    clock.advance(1)
    limiter.admit("c")

    assert len(limiter) == 2
    # "a" was forgotten and starts a fresh window, "c" is still limited
    assert limiter.check("a").allowed
    assert not limiter.check("c").allowed


def test_reset_entry_moves_to_newest(clock):
    limiter = FixedWindowRateLimiter(window_seconds=10, max_requests=1, max_entries=2, clock=clock)
    limiter.admit("a")
    limiter.admit("b")
    clock.advance(10)
    limiter.admit("a")  # "b" is stale too, but "a" reopens its window

    limiter.admit("c")

    assert len(limiter) == 2
    assert not limiter.check("a").allowed


@pytest.mark.parametrize(
    "kwargs",
    [{"window_seconds": 0}, {"max_requests": 0}, {"max_entries": 0}],
)
def test_rejects_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(**kwargs)


def test_result_headers(rate_limiter):
    headers = rate_limiter.check("10.0.0.1").to_headers()

    assert headers == {"X-Ratelimit-Remaining": "9", "X-Ratelimit-Limit": "10"}


class TestClientId:
    def test_first_forwarded_hop(self):
        headers = {"x-forwarded-for": " 203.0.113.7 , 10.0.0.1", "x-real-ip": "10.0.0.9"}
        assert get_client_id(headers) == "203.0.113.7"

    def test_blank_forwarded_for_falls_back_to_real_ip(self):
        headers = {"x-forwarded-for": " , 10.0.0.1", "x-real-ip": "198.51.100.2"}
        assert get_client_id(headers) == "198.51.100.2"

    def test_real_ip(self):
        assert get_client_id({"x-real-ip": "198.51.100.2"}) == "198.51.100.2"

    @pytest.mark.parametrize("headers", [{}, {"x-forwarded-for": ""}, {"x-real-ip": "  "}])
    def test_unknown(self, headers):
        assert get_client_id(headers) == UNKNOWN_CLIENT
