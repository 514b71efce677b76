"""Admin and service authentication.

The admin password is hashed once when the app is built; requests only run
``bcrypt.checkpw`` and do so in the executor.
"""
import asyncio
import secrets

import bcrypt
from fastapi import Depends, Header, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from ratekeeper.config import Settings
from ratekeeper.dependencies import get_app_settings
from ratekeeper.errors import AppError, ErrorType

_basic = HTTPBasic(auto_error=False)


def hash_password(password: str) -> bytes:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt())


async def verify_password(plain: str, hashed: bytes) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, bcrypt.checkpw, plain.encode(), hashed)


def get_admin_password_hash(request: Request) -> bytes | None:
    return request.app.state.admin_password_hash


def _unauthorized(detail: str) -> AppError:
    return AppError(ErrorType.AUTHENTICATION_ERROR, detail, headers={"WWW-Authenticate": "Basic"})


async def require_admin(
    credentials: HTTPBasicCredentials | None = Depends(_basic),
    settings: Settings = Depends(get_app_settings),
    password_hash: bytes | None = Depends(get_admin_password_hash),
) -> str:
    """FastAPI dependency — raises 401 unless valid admin credentials are sent."""
    if password_hash is None:
        raise AppError(ErrorType.SERVICE_UNAVAILABLE, "Admin API disabled: no admin password configured")
    if credentials is None:
        raise _unauthorized("Not authenticated")
    user_ok = secrets.compare_digest(credentials.username.encode(), settings.admin_username.encode())
    password_ok = await verify_password(credentials.password, password_hash)
    if not (user_ok and password_ok):
        raise _unauthorized("Invalid credentials")
    return credentials.username


def require_service_token(
    x_service_token: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Guard for internal quota checks. Open when no service token is configured."""
    if not settings.service_token:
        return
    if x_service_token is None or not secrets.compare_digest(
        x_service_token.encode(), settings.service_token.encode()
    ):
        raise AppError(ErrorType.AUTHENTICATION_ERROR, "Invalid service token")
