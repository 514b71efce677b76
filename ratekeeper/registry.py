"""Named operations mapped to pre-configured limiters."""
import logging
from enum import Enum
from typing import Iterator, Mapping

from ratekeeper.config import Settings
from ratekeeper.errors import UnknownOperationError
from ratekeeper.models import LimiterConfig
from ratekeeper.rate_limiter import RateLimiter
from ratekeeper.store import Clock

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    CHAT = "chat"
    STREAM = "stream"
    RECOMMENDATIONS = "recommendations"
    PUBLIC = "public"  # generic HTTP requests


class LimiterRegistry:
    """Lookup of the limiter bound to each operation.

    Built once at start-up and handed to request handlers. An unknown name
    either falls back to the default policy (logged) or, with ``strict``,
    raises :class:`UnknownOperationError`.
    """

    def __init__(
        self,
        limiters: Mapping[Operation, RateLimiter],
        *,
        default: Operation = Operation.CHAT,
        strict: bool = False,
    ) -> None:
        missing = set(Operation) - set(limiters)
        if missing:
            raise ValueError(f"No limiter configured for: {', '.join(sorted(op.value for op in missing))}")
        self._limiters = dict(limiters)
        self.default = default
        self.strict = strict

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock | None = None) -> "LimiterRegistry":
        limiters = {}
        for op in Operation:
            limiters[op] = RateLimiter(
                getattr(settings, f"{op.value}_window_ms"),
                getattr(settings, f"{op.value}_max_requests"),
                getattr(settings, f"{op.value}_message"),
                max_keys=settings.max_keys_per_limiter,
                algorithm=settings.limiter_algorithm,
                clock=clock,
                sweep_probability=settings.sweep_probability,
                name=op.value,
            )
        return cls(limiters, strict=settings.strict_operations)

    def get(self, name: "str | Operation", *, strict: bool | None = None) -> RateLimiter:
        """Limiter for ``name``.

        ``strict`` overrides the registry setting for this lookup only.
        """
        try:
            op = Operation(name)
        except ValueError:
            if self.strict if strict is None else strict:
                raise UnknownOperationError(str(name)) from None
            logger.warning("Unknown operation %r, using %s policy", name, self.default.value)
            op = self.default
        return self._limiters[op]

    def policies(self) -> dict[Operation, LimiterConfig]:
        return {op: limiter.config for op, limiter in self._limiters.items()}

    def items(self) -> Iterator[tuple[Operation, RateLimiter]]:
        return iter(self._limiters.items())

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._limiters)

    def __len__(self) -> int:
        return len(self._limiters)

    def cleanup(self) -> int:
        return sum(limiter.cleanup() for limiter in self._limiters.values())

    def reset_all(self) -> None:
        for limiter in self._limiters.values():
            limiter.clear()
