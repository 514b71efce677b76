"""Pydantic models: limiter policy, per-key window state, check results."""
import math

from pydantic import BaseModel, ConfigDict, Field

from ratekeeper.config import DEFAULT_MESSAGE


class LimiterConfig(BaseModel):
    """Immutable admission policy bound to one limiter."""

    model_config = ConfigDict(frozen=True)

    window_ms: int = Field(..., gt=0)
    max_requests: int = Field(..., gt=0)
    message: str = DEFAULT_MESSAGE


class WindowEntry(BaseModel):
    count: int = Field(..., ge=1)
    reset_at: int  # epoch ms


class RateLimitResult(BaseModel):
    allowed: bool
    limit: int
    remaining: int = Field(..., ge=0)
    reset_at: int  # epoch ms

    def retry_after(self, now_ms: int) -> int:
        """Seconds until the window resets, rounded up."""
        return max(0, math.ceil((self.reset_at - now_ms) / 1000))


class Usage(BaseModel):
    count: int = Field(..., ge=0)
    limit: int
    remaining: int = Field(..., ge=0)
    reset_at: int | None = None


class CheckRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=256)


class PolicyResponse(BaseModel):
    operation: str
    window_ms: int
    max_requests: int
    message: str


class StatsResponse(BaseModel):
    algorithm: str
    tracked_keys: dict[str, int]
