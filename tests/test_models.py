"""Tests for Pydantic models and settings validation."""
import pytest
from pydantic import ValidationError

from ratekeeper.config import Settings
from ratekeeper.models import CheckRequest, LimiterConfig, RateLimitResult, WindowEntry


class TestLimiterConfig:
    def test_valid(self):
        cfg = LimiterConfig(window_ms=60_000, max_requests=20, message="slow down")
        assert cfg.max_requests == 20
        assert cfg.message == "slow down"

    def test_default_message(self):
        assert LimiterConfig(window_ms=1, max_requests=1).message

    @pytest.mark.parametrize("field", ["window_ms", "max_requests"])
    def test_non_positive_rejected(self, field):
        values = {"window_ms": 1000, "max_requests": 5, field: 0}
        with pytest.raises(ValidationError):
            LimiterConfig(**values)

    def test_frozen(self):
        cfg = LimiterConfig(window_ms=1000, max_requests=5)
        with pytest.raises(ValidationError):
            cfg.max_requests = 10


class TestRateLimitResult:
    def test_retry_after_rounds_up(self):
        result = RateLimitResult(allowed=False, limit=3, remaining=0, reset_at=10_001)
        assert result.retry_after(now_ms=0) == 11
        assert result.retry_after(now_ms=9_000) == 2

    def test_retry_after_never_negative(self):
        result = RateLimitResult(allowed=False, limit=3, remaining=0, reset_at=1_000)
        assert result.retry_after(now_ms=5_000) == 0

    def test_negative_remaining_rejected(self):
        with pytest.raises(ValidationError):
            RateLimitResult(allowed=True, limit=3, remaining=-1, reset_at=0)


def test_window_entry_requires_positive_count():
    with pytest.raises(ValidationError):
        WindowEntry(count=0, reset_at=1)


class TestCheckRequest:
    def test_empty_key_rejected(self):
        with pytest.raises(ValidationError):
            CheckRequest(key="")

    def test_key_too_long(self):
        with pytest.raises(ValidationError):
            CheckRequest(key="x" * 257)


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.limiter_algorithm == "fixed"
        assert s.strict_operations is False
        assert s.max_keys_per_limiter == 10_000

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("RATEKEEPER_CHAT_MAX_REQUESTS", "7")
        monkeypatch.setenv("RATEKEEPER_STRICT_OPERATIONS", "true")
        s = Settings()
        assert s.chat_max_requests == 7
        assert s.strict_operations is True

    def test_non_positive_limit_rejected(self):
        with pytest.raises(ValidationError):
            Settings(stream_max_requests=0)

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            Settings(limiter_algorithm="leaky-bucket")

    def test_sweep_probability_bounds(self):
        with pytest.raises(ValidationError):
            Settings(sweep_probability=1.5)
