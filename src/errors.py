"""Application error taxonomy and the JSON error envelope."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error rendered as ``{"error": {"code", "message", "details"}}``."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}


class AuthenticationError(AppError):
    """Missing or invalid credential. The client must re-authenticate."""

    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED


class RequestError(AppError):
    """Malformed request."""

    code = "INVALID_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class RecipeValidationError(AppError):
    """The recipe violates its structural contract. Carries every issue found."""

    code = "VALIDATION_FAILED"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, issues: list, message: str = "Recipe failed validation") -> None:
        super().__init__(message, details=[issue.to_dict() for issue in issues])
        self.issues = issues


class ExtractionFailure(AppError):
    """The extraction capability failed or produced nothing. Safe to retry."""

    code = "EXTRACTION_FAILED"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ImageGenerationFailure(AppError):
    code = "IMAGE_GENERATION_FAILED"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AssetFetchFailure(AppError):
    """An image could not be obtained. Callers continue without an image."""

    code = "IMAGE_FETCH_FAILED"
    status_code = status.HTTP_400_BAD_REQUEST


class AssetCommitFailure(AppError):
    """Durable upload failed. Fatal for the asset only."""

    code = "IMAGE_UPLOAD_FAILED"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AssetCleanupFailure(AppError):
    """Deleting a stale object failed. Logged and recorded, never surfaced."""

    code = "IMAGE_CLEANUP_FAILED"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    error = RequestError("Malformed request", details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    error = AppError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    """Attach the error envelope handlers to the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
