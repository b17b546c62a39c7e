import logging
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from .schemas.common.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    status_code_default = 400
    message = "Bad request"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=detail or self.message,
            headers=headers,
        )


class InvalidPhoneError(APIException):
    status_code_default = 400
    message = "Invalid phone number"


class RateLimitedError(APIException):
    status_code_default = 429
    message = "Please wait a bit for another code"

    def __init__(self, retry_after: int):
        super().__init__(headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class CodeNotFoundError(APIException):
    status_code_default = 401
    message = "Unauthorized"


class InvalidCodeError(APIException):
    status_code_default = 401
    message = "Unauthorized"


class AccountLockedError(APIException):
    status_code_default = 403
    message = "Your account has been blocked for security reasons, please retry later."


class InvalidTokenError(APIException):
    status_code_default = 401
    message = "Invalid or expired token"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})


class BundleDecodeError(APIException):
    status_code_default = 400
    message = "Invalid key encoding"


class BundleConflictError(APIException):
    status_code_default = 409
    message = "Keys already uploaded"


class DeviceNotFoundError(APIException):
    status_code_default = 404
    message = "Device not found"


def create_error_response(error_message: str, status_code: int) -> dict:
    """Create a standardized error response"""
    return ErrorResponse(message=error_message, status=status_code).model_dump()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail), exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {field}" if field else "Invalid request"
    return JSONResponse(status_code=400, content=create_error_response(message, 400))


async def pool_timeout_handler(request: Request, exc: PoolTimeoutError) -> JSONResponse:
    logger.warning(f"Database pool exhausted on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=503,
        content=create_error_response("Service temporarily unavailable, please retry", 503),
        headers={"Retry-After": "1"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=create_error_response("Something went wrong", 500))
