"""Quota API: admission checks, usage lookups and policy listing."""
from fastapi import APIRouter, Depends, Path, Query, Response

from ratekeeper.auth import require_service_token
from ratekeeper.dependencies import RateLimit, get_registry
from ratekeeper.errors import RateLimitExceeded, rate_limit_headers
from ratekeeper.models import CheckRequest, PolicyResponse, RateLimitResult, Usage
from ratekeeper.registry import LimiterRegistry, Operation

router = APIRouter(prefix="/v1/limits", tags=["limits"])

_public_limit = Depends(RateLimit(Operation.PUBLIC))


@router.get("", dependencies=[_public_limit])
async def list_policies(registry: LimiterRegistry = Depends(get_registry)) -> list[PolicyResponse]:
    return [
        PolicyResponse(
            operation=op.value,
            window_ms=cfg.window_ms,
            max_requests=cfg.max_requests,
            message=cfg.message,
        )
        for op, cfg in registry.policies().items()
    ]


@router.post("/{operation}/check", dependencies=[Depends(require_service_token)])
async def check(
    body: CheckRequest,
    response: Response,
    operation: str = Path(max_length=64),
    registry: LimiterRegistry = Depends(get_registry),
) -> RateLimitResult:
    """Consume one unit of quota for ``body.key``; 429 once the window is spent.

    Meant for trusted backends checking on behalf of their users, so there is
    no per-IP guard. Set ``service_token`` to require ``X-Service-Token``.
    """
    limiter = registry.get(operation)
    result = limiter.check_limit(body.key)
    if not result.allowed:
        raise RateLimitExceeded(result, limiter.message, now=limiter.now())
    response.headers.update(rate_limit_headers(result))
    return result


@router.get("/{operation}/usage", dependencies=[_public_limit])
async def usage(
    operation: str = Path(max_length=64),
    key: str = Query(min_length=1, max_length=256),
    registry: LimiterRegistry = Depends(get_registry),
) -> Usage:
    return registry.get(operation).get_usage(key)
