"""Admin API router: quota resets, cleanup and stats."""
import logging

from fastapi import APIRouter, Depends, Path

from ratekeeper.auth import require_admin
from ratekeeper.dependencies import get_registry
from ratekeeper.models import StatsResponse
from ratekeeper.registry import LimiterRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.delete("/limits/{operation}/keys/{key:path}")
async def reset_key(
    operation: str = Path(max_length=64),
    key: str = Path(max_length=256),
    registry: LimiterRegistry = Depends(get_registry),
) -> dict:
    registry.get(operation, strict=True).reset(key)
    logger.info("Quota reset for %s on %s", key, operation)
    return {"ok": True}


@router.delete("/limits/{operation}")
async def reset_operation(
    operation: str = Path(max_length=64),
    registry: LimiterRegistry = Depends(get_registry),
) -> dict:
    registry.get(operation, strict=True).clear()
    logger.info("All quotas cleared on %s", operation)
    return {"ok": True}


@router.post("/limits/cleanup")
async def cleanup(registry: LimiterRegistry = Depends(get_registry)) -> dict:
    return {"ok": True, "purged": registry.cleanup()}


@router.get("/stats")
async def stats(registry: LimiterRegistry = Depends(get_registry)) -> StatsResponse:
    algorithms = {limiter.algorithm for _, limiter in registry.items()}
    return StatsResponse(
        algorithm=algorithms.pop() if len(algorithms) == 1 else "mixed",
        tracked_keys={op.value: limiter.tracked_keys for op, limiter in registry.items()},
    )
