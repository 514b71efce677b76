"""FastAPI dependencies: app-scoped objects, caller keys and quota enforcement."""
from fastapi import Depends, Request, Response

from ratekeeper.config import Settings
from ratekeeper.errors import RateLimitExceeded, rate_limit_headers
from ratekeeper.registry import LimiterRegistry, Operation


def get_registry(request: Request) -> LimiterRegistry:
    return request.app.state.limiters


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def client_ip(request: Request) -> str:
    """Extract the client IP from X-Forwarded-For (set by reverse proxy).

    The service MUST sit behind a proxy that overwrites X-Forwarded-For,
    otherwise callers can pick their own quota key.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimit:
    """Route dependency enforcing one operation's policy per client IP and route."""

    def __init__(self, operation: Operation) -> None:
        self.operation = operation

    def __call__(
        self,
        request: Request,
        response: Response,
        registry: LimiterRegistry = Depends(get_registry),
    ) -> None:
        limiter = registry.get(self.operation)
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        result = limiter.check_limit(f"{client_ip(request)}:{path}")
        if not result.allowed:
            raise RateLimitExceeded(result, limiter.message, now=limiter.now())
        response.headers.update(rate_limit_headers(result))
