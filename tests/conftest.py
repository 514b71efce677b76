"""Shared fixtures for the Ratekeeper test suite.

Environment variables MUST be set before any app imports because
main.py builds its module-level app (and reads Settings) at import time.
"""
import os

os.environ.setdefault("RATEKEEPER_ADMIN_USERNAME", "testadmin")
os.environ.setdefault("RATEKEEPER_ADMIN_PASSWORD", "testpassword123")

import httpx
import pytest
import pytest_asyncio

from ratekeeper.config import Settings
from ratekeeper.registry import LimiterRegistry


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        admin_username="testadmin",
        admin_password="testpassword123",
        chat_max_requests=3,
        public_max_requests=5,
        sweep_probability=0.0,
    )


@pytest.fixture
def registry(settings, clock):
    return LimiterRegistry.from_settings(settings, clock=clock)


@pytest_asyncio.fixture
async def client(settings, registry):
    """httpx.AsyncClient using ASGITransport — bypasses lifespan.

    The lifespan only starts the periodic cleanup task, which tests drive
    directly through the admin API instead.
    """
    from main import create_app

    app = create_app(settings=settings, registry=registry)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def admin_auth():
    return ("testadmin", "testpassword123")
