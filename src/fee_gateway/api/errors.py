"""API error types and the JSON error envelope."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

_logger = logging.getLogger(__name__)


class APIError(Exception):
    """Error with an HTTP status and a machine-readable code."""

    def __init__(
        self, status_code: int, message: str, code: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


class ValidationError(APIError):
    """Request rejected by business validation."""

    def __init__(self, message: str, details: object | None = None) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, message, "VALIDATION_ERROR")
        self.details = details


class NotFoundError(APIError):
    """Requested resource does not exist."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, message, "NOT_FOUND")


class RateLimitError(APIError):
    """Caller exceeded its request allowance."""

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(
            status.HTTP_429_TOO_MANY_REQUESTS, message, "RATE_LIMIT_EXCEEDED"
        )


def _envelope(
    status_code: int, error: str, message: str, code: str | None, **extra: object
) -> JSONResponse:
    body: dict[str, object] = {"error": error, "message": message, "code": code}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def register_error_handlers(app: FastAPI, *, expose_internal_errors: bool) -> None:
    """Render every error as an ``{error, message, code}`` JSON body."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        first = exc.errors()[0] if exc.errors() else {}
        return _envelope(
            status.HTTP_400_BAD_REQUEST,
            "Validation Error",
            str(first.get("msg", "Invalid request")),
            "VALIDATION_ERROR",
            details=exc.errors(),
        )

    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
        _logger.warning("API error on %s: %s", request.url.path, exc.message)
        extra: dict[str, object] = {}
        if isinstance(exc, ValidationError) and exc.details is not None:
            extra["details"] = exc.details
        return _envelope(
            exc.status_code, type(exc).__name__, exc.message, exc.code, **extra
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _envelope(
                exc.status_code,
                "Not Found",
                "The requested resource was not found",
                "NOT_FOUND",
            )
        _logger.warning("HTTP error on %s: %s", request.url.path, exc.detail)
        return _envelope(exc.status_code, "HTTP Error", str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        _logger.exception("Unhandled error on %s", request.url.path)
        message = str(exc) if expose_internal_errors else "An unexpected error occurred"
        return _envelope(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal Server Error",
            message,
            "INTERNAL_ERROR",
        )
