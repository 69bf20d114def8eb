"""Unit tests for per-client rate limiting."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from ipaspeak.server.ratelimit import RateLimiter, RateLimits


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    """Test fixed-window counting."""

    def test_allows_limit_then_rejects(self) -> None:
        limiter = RateLimiter(3, 60, clock=FakeClock())

        assert [limiter.check("1.2.3.4") for _ in range(4)] == [True, True, True, False]

    def test_window_resets(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(1, 60, clock=clock)
        assert limiter.check("1.2.3.4")
        assert not limiter.check("1.2.3.4")

        clock.now = 61

        assert limiter.check("1.2.3.4")

    def test_identities_are_counted_separately(self) -> None:
        limiter = RateLimiter(1, 60, clock=FakeClock())

        assert limiter.check("1.2.3.4")
        assert not limiter.check("1.2.3.4")
        assert limiter.check("5.6.7.8")

    def test_rejected_attempts_keep_window(self) -> None:
        """Test rejected attempts do not extend the window."""
        clock = FakeClock()
        limiter = RateLimiter(1, 60, clock=clock)
        limiter.check("a")

        clock.now = 59
        assert not limiter.check("a")
        clock.now = 60.5
        assert limiter.check("a")

    def test_retry_after(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(1, 60, clock=clock)
        limiter.check("a")

        clock.now = 20.5

        assert limiter.retry_after("a") == 40
        assert limiter.retry_after("unknown") == 0

    def test_prune_drops_reset_windows(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(5, 60, clock=clock)
        limiter.check("a")
        clock.now = 30
        limiter.check("b")

        clock.now = 61

        assert limiter.prune() == 1
        assert len(limiter) == 1

    @pytest.mark.parametrize("limit,window", [(0, 60), (-1, 60), (1, 0), (1, -5)])
    def test_invalid_configuration(self, limit: int, window: float) -> None:
        with pytest.raises(ValueError):
            RateLimiter(limit, window)


class TestRateLimits:
    """Test the paired synthesis and report limiters."""

    def test_defaults(self) -> None:
        limits = RateLimits.create()

        assert limits.synthesis.limit == 30
        assert limits.report.limit == 5
        assert limits.synthesis.window_seconds == 60.0

    def test_limiters_are_independent(self) -> None:
        limits = RateLimits.create(
            synthesis_per_window=2, report_per_window=1, clock=FakeClock()
        )

        assert limits.report.check("a")
        assert not limits.report.check("a")

        assert limits.synthesis.check("a")
        assert limits.synthesis.check("a")
        assert not limits.synthesis.check("a")
