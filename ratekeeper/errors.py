"""Application errors and the JSON error envelope returned for them."""
import logging
import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ratekeeper.models import RateLimitResult
from ratekeeper.store import now_ms

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


ERROR_STATUS_CODES: dict[ErrorType, int] = {
    ErrorType.VALIDATION_ERROR: 400,
    ErrorType.BAD_REQUEST: 400,
    ErrorType.AUTHENTICATION_ERROR: 401,
    ErrorType.NOT_FOUND: 404,
    ErrorType.RATE_LIMIT: 429,
    ErrorType.SERVICE_UNAVAILABLE: 503,
    ErrorType.INTERNAL_SERVER_ERROR: 500,
}


class AppError(Exception):
    def __init__(
        self,
        type: ErrorType,
        message: str,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.type = type
        self.message = message
        self.details = details
        self.headers = headers or {}

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES[self.type]


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        # epoch seconds
        "X-RateLimit-Reset": str(math.ceil(result.reset_at / 1000)),
    }


class RateLimitExceeded(AppError):
    """A denied admission, turned into a 429 at the HTTP edge."""

    def __init__(self, result: RateLimitResult, message: str, now: int | None = None) -> None:
        retry_after = result.retry_after(now_ms() if now is None else now)
        headers = rate_limit_headers(result)
        headers["Retry-After"] = str(retry_after)
        super().__init__(
            ErrorType.RATE_LIMIT,
            message,
            details={"limit": result.limit, "reset_at": result.reset_at, "retry_after": retry_after},
            headers=headers,
        )
        self.result = result
        self.retry_after = retry_after


class UnknownOperationError(AppError, KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(ErrorType.NOT_FOUND, f"Unknown operation: {name}", details={"operation": name})
        self.operation = name

    def __str__(self) -> str:
        return self.message


def _request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID") or uuid.uuid4().hex


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    request_id = _request_id(request)
    if exc.status_code >= 500:
        logger.error("%s on %s [%s]: %s", exc.type.value, request.url.path, request_id, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        headers={**exc.headers, "X-Request-ID": request_id},
        content={
            "success": False,
            "error": exc.type.value,
            "message": exc.message,
            "status_code": exc.status_code,
            "details": exc.details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
            "request_id": request_id,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
