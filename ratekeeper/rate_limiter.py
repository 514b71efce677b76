"""Per-key request quota limiter (in-memory).

Two admission strategies share one contract (allowed / remaining / reset_at):

* fixed window: a counter per key that starts on the first request and resets
  wholesale ``window_ms`` later. Up to ``2 * max_requests`` calls can land
  across a window boundary.
* sliding window: admission timestamps per key, counted over the trailing
  ``window_ms`` at every check.

State is process-local. Behind N instances the effective limit per key is
``max_requests * N``; a hard global bound needs a shared counter store.
"""
import logging
import random
import threading
from collections import deque
from typing import Callable, Literal

from ratekeeper.config import DEFAULT_MESSAGE
from ratekeeper.models import LimiterConfig, RateLimitResult, Usage, WindowEntry
from ratekeeper.store import Clock, ExpiringStore, now_ms

logger = logging.getLogger(__name__)

Algorithm = Literal["fixed", "sliding"]

DEFAULT_MAX_KEYS = 10_000
DEFAULT_SWEEP_PROBABILITY = 0.01


class WindowTracker:
    """Admission bookkeeping for one policy over one store."""

    def __init__(
        self,
        config: LimiterConfig,
        store: ExpiringStore,
        clock: Clock | None = None,
        sweep_probability: float = DEFAULT_SWEEP_PROBABILITY,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.config = config
        self.store = store
        self._clock = clock or now_ms
        self._sweep_probability = sweep_probability
        self._rng = rng

    def check_limit(self, key: str) -> RateLimitResult:
        raise NotImplementedError

    def get_usage(self, key: str) -> Usage:
        raise NotImplementedError

    def reset(self, key: str) -> None:
        self.store.delete(key)

    def maybe_sweep(self) -> None:
        # amortised purge, no sweeper thread
        if self._sweep_probability and self._rng() < self._sweep_probability:
            purged = self.store.purge_expired()
            if purged:
                logger.debug("Swept %d expired entries", purged)

    def _result(self, allowed: bool, remaining: int, reset_at: int) -> RateLimitResult:
        return RateLimitResult(
            allowed=allowed,
            limit=self.config.max_requests,
            remaining=remaining,
            reset_at=reset_at,
        )


class FixedWindowTracker(WindowTracker):
    def check_limit(self, key: str) -> RateLimitResult:
        cfg = self.config
        now = self._clock()
        entry: WindowEntry | None = self.store.get(key)

        if entry is None or now >= entry.reset_at:
            entry = WindowEntry(count=1, reset_at=now + cfg.window_ms)
            self.store.set(key, entry)
            return self._result(True, cfg.max_requests - 1, entry.reset_at)

        # Denied calls do not consume quota or move the window
        if entry.count >= cfg.max_requests:
            return self._result(False, 0, entry.reset_at)

        entry.count += 1
        self.store.set(key, entry, ttl_ms=entry.reset_at - now)
        return self._result(True, cfg.max_requests - entry.count, entry.reset_at)

    def get_usage(self, key: str) -> Usage:
        cfg = self.config
        entry: WindowEntry | None = self.store.get(key)
        if entry is None or self._clock() >= entry.reset_at:
            return Usage(count=0, limit=cfg.max_requests, remaining=cfg.max_requests)
        return Usage(
            count=entry.count,
            limit=cfg.max_requests,
            remaining=max(0, cfg.max_requests - entry.count),
            reset_at=entry.reset_at,
        )


class SlidingWindowTracker(WindowTracker):
    def check_limit(self, key: str) -> RateLimitResult:
        cfg = self.config
        now = self._clock()
        window_start = now - cfg.window_ms

        dq: deque[int] | None = self.store.get(key)
        if dq is None:
            dq = deque()
        # Drop timestamps outside the window
        while dq and dq[0] <= window_start:
            dq.popleft()

        if len(dq) >= cfg.max_requests:
            return self._result(False, 0, dq[0] + cfg.window_ms)

        dq.append(now)
        self.store.set(key, dq)
        return self._result(True, cfg.max_requests - len(dq), dq[0] + cfg.window_ms)

    def get_usage(self, key: str) -> Usage:
        cfg = self.config
        window_start = self._clock() - cfg.window_ms
        dq: deque[int] | None = self.store.get(key)
        live = [t for t in dq if t > window_start] if dq else []
        if not live:
            return Usage(count=0, limit=cfg.max_requests, remaining=cfg.max_requests)
        return Usage(
            count=len(live),
            limit=cfg.max_requests,
            remaining=max(0, cfg.max_requests - len(live)),
            reset_at=live[0] + cfg.window_ms,
        )


_TRACKERS: dict[str, type[WindowTracker]] = {
    "fixed": FixedWindowTracker,
    "sliding": SlidingWindowTracker,
}


class RateLimiter:
    """One policy bound to one private store.

    All operations are synchronous, do no I/O and are safe to call from
    several threads: each read-modify-write runs under a lock.
    """

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        message: str = DEFAULT_MESSAGE,
        *,
        max_keys: int = DEFAULT_MAX_KEYS,
        algorithm: Algorithm = "fixed",
        clock: Clock | None = None,
        sweep_probability: float = DEFAULT_SWEEP_PROBABILITY,
        rng: Callable[[], float] = random.random,
        name: str | None = None,
    ) -> None:
        if algorithm not in _TRACKERS:
            raise ValueError(f"Unknown limiter algorithm: {algorithm!r}")
        self.config = LimiterConfig(window_ms=window_ms, max_requests=max_requests, message=message)
        self.algorithm = algorithm
        self.name = name or "limiter"
        self._clock = clock or now_ms
        self._store = ExpiringStore(max_keys, ttl_ms=window_ms, clock=self._clock)
        self._tracker = _TRACKERS[algorithm](
            self.config,
            self._store,
            clock=self._clock,
            sweep_probability=sweep_probability,
            rng=rng,
        )
        self._lock = threading.Lock()

    def now(self) -> int:
        """Current time on this limiter's clock, epoch ms."""
        return self._clock()

    @property
    def message(self) -> str:
        return self.config.message

    @property
    def tracked_keys(self) -> int:
        return len(self._store)

    def check_limit(self, key: str) -> RateLimitResult:
        """Admit or deny one operation for ``key`` and update its accounting."""
        with self._lock:
            self._tracker.maybe_sweep()
            result = self._tracker.check_limit(key)
        if not result.allowed:
            logger.debug("Rate limit hit for %s on %s (resets at %d)", key, self.name, result.reset_at)
        return result

    def get_usage(self, key: str) -> Usage:
        """Current accounting for ``key``. Never consumes quota."""
        with self._lock:
            return self._tracker.get_usage(key)

    def reset(self, key: str) -> None:
        with self._lock:
            self._tracker.reset(key)

    def cleanup(self) -> int:
        """Remove expired entries (call periodically)."""
        with self._lock:
            return self._store.purge_expired()

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
