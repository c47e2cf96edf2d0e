"""
Maps the registry error taxonomy onto HTTP responses
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from itam.core.database import translate_db_error
from itam.core.exceptions import (
    AuthenticationFailed,
    DependencyUnavailable,
    ITAMError,
    NotFoundOrForbidden,
    PermissionDenied,
    RetryExhausted,
    UniqueConstraintConflict,
    ValidationFailed,
)
from itam.core.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = "1"


def error_response(exc: ITAMError) -> JSONResponse:
    """Translate a registry error into its HTTP representation"""
    if isinstance(exc, NotFoundOrForbidden):
        # Absent and foreign rows must look identical
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"{exc.resource} not found", "code": NotFoundOrForbidden.code},
        )
    if isinstance(exc, ValidationFailed):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message, "code": exc.code, "issues": [i.to_dict() for i in exc.issues]},
        )
    if isinstance(exc, AuthenticationFailed):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": exc.message, "code": exc.code},
        )
    if isinstance(exc, PermissionDenied):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": exc.message, "code": exc.code},
        )
    if isinstance(exc, UniqueConstraintConflict):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "A record with these values already exists", "code": exc.code},
        )
    if isinstance(exc, DependencyUnavailable):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Service temporarily unavailable, please retry", "code": exc.code, "retryable": True},
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    if isinstance(exc, RetryExhausted):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message, "code": exc.code},
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": exc.code},
    )


async def handle_itam_error(request: Request, exc: ITAMError) -> JSONResponse:
    if isinstance(exc, (DependencyUnavailable, RetryExhausted)):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return error_response(exc)


async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    translated = translate_db_error(exc)
    if translated is not None:
        return await handle_itam_error(request, translated)
    logger.error(f"Unhandled store error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ITAMError, handle_itam_error)
    app.add_exception_handler(SQLAlchemyError, handle_store_error)
