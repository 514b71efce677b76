"""Ratekeeper — FastAPI entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from ratekeeper.auth import hash_password
from ratekeeper.config import Settings, get_settings
from ratekeeper.errors import register_exception_handlers
from ratekeeper.registry import LimiterRegistry
from ratekeeper.routers import admin, limits

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def cleanup_loop(registry: LimiterRegistry, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            purged = registry.cleanup()
            if purged:
                logger.info("Purged %d expired quota entries", purged)
        except Exception:
            logger.exception("Cleanup loop iteration failed")


def _log_task_exit(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception():
        logger.error("Cleanup task terminated: %s", task.exception())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    registry: LimiterRegistry = app.state.limiters
    for op, cfg in registry.policies().items():
        logger.info("Policy %s: %d requests / %d ms", op.value, cfg.max_requests, cfg.window_ms)

    cleanup_task = asyncio.create_task(cleanup_loop(registry, settings.cleanup_interval_seconds))
    cleanup_task.add_done_callback(_log_task_exit)
    app.state.cleanup_task = cleanup_task

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass


def create_app(settings: Settings | None = None, registry: LimiterRegistry | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(title="Ratekeeper", lifespan=lifespan)
    app.state.settings = settings
    app.state.limiters = registry or LimiterRegistry.from_settings(settings)
    app.state.admin_password_hash = hash_password(settings.admin_password) if settings.admin_password else None

    register_exception_handlers(app)
    app.include_router(limits.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health(request: Request):
        return {"status": "ok", "operations": len(request.app.state.limiters)}

    return app


app = create_app()
