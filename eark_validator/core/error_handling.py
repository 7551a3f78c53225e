"""
Error handling utilities for the validation protocol.

This module provides the service's exception hierarchy, the decorator that maps
it onto HTTP errors for the protocol routes, and the application-wide exception
handlers.
"""
import asyncio
import logging
import time
import uuid
from typing import Callable, TypeVar, ParamSpec
from functools import wraps
from contextvars import ContextVar

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Context variable for request ID tracking across async contexts
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

P = ParamSpec('P')
T = TypeVar('T')


# ============================================================================
# Custom Exceptions
# ============================================================================

class ArchiveValidatorError(Exception):
    """Base exception for validator errors."""
    pass


class InvalidRequestError(ArchiveValidatorError):
    """Missing/duplicate input, unknown operation or unknown session."""
    pass


class UnknownSessionError(InvalidRequestError):
    """No live session matches the provided token."""

    def __init__(self, token: str):
        super().__init__(f"Session with ID '{token}' was not found")
        self.token = token


class BackendUnavailableError(ArchiveValidatorError):
    """The backend validator could not be reached or returned an unparseable body."""
    pass


class ArchiveStorageError(ArchiveValidatorError):
    """Temporary archive could not be written or read."""
    pass


# ============================================================================
# Error Handler Decorator
# ============================================================================

def _to_http_exception(exc: Exception, error_message: str, func_name: str,
                       request_id: str, elapsed: float) -> HTTPException:
    """Translate a service exception into the HTTP error returned to the caller."""
    headers = {"X-Request-ID": request_id}
    if isinstance(exc, InvalidRequestError):
        logger.error(f"[{request_id}] {error_message} - Invalid request after {elapsed:.2f}s: {exc}")
        return HTTPException(status_code=400, detail=str(exc), headers=headers)
    if isinstance(exc, BackendUnavailableError):
        logger.error(f"[{request_id}] {error_message} - Backend unavailable after {elapsed:.2f}s: {exc}")
        return HTTPException(
            status_code=502,
            detail=f"Backend validator unavailable: {str(exc)}",
            headers=headers
        )
    if isinstance(exc, ArchiveStorageError):
        logger.error(f"[{request_id}] {error_message} - Storage error after {elapsed:.2f}s: {exc}")
        return HTTPException(
            status_code=500,
            detail=f"Archive storage error: {str(exc)}",
            headers=headers
        )
    logger.exception(f"[{request_id}] {error_message} - Unexpected error in {func_name} after {elapsed:.2f}s: {exc}")
    return HTTPException(status_code=500, detail=f"{error_message}: {str(exc)}", headers=headers)


def _log_completion(func_name: str, request_id: str, elapsed: float) -> None:
    from eark_validator.core.config import settings
    threshold_ms = settings.RESPONSE_TIME_WARNING_THRESHOLD_MS
    elapsed_ms = elapsed * 1000
    if elapsed_ms > threshold_ms:
        logger.warning(
            f"[{request_id}] SLOW RESPONSE: {func_name} took {elapsed:.2f}s "
            f"({elapsed_ms:.0f}ms > {threshold_ms}ms threshold)"
        )
    else:
        logger.info(f"[{request_id}] Completed {func_name} in {elapsed:.2f}s")


def handle_service_errors(
    error_message: str = "Operation failed"
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to handle errors in protocol operations.

    Converts the validator's exceptions to HTTP exceptions and logs them
    together with the request id and elapsed time. Works with both sync and
    async functions. HTTPExceptions raised by the wrapped function pass through.

    Args:
        error_message: Custom error message prefix

    Returns:
        Decorated function with error handling

    Example:
        @handle_service_errors("Failed to validate archive")
        async def validate(request: ValidateRequest) -> ValidationResponse:
            ...
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            if not request_id_var.get():
                request_id_var.set(str(uuid.uuid4()))

            request_id = request_id_var.get()
            start_time = time.time()

            try:
                logger.info(f"[{request_id}] Starting {func.__name__}")
                result = await func(*args, **kwargs)
                _log_completion(func.__name__, request_id, time.time() - start_time)
                return result
            except HTTPException:
                raise
            except Exception as e:
                raise _to_http_exception(
                    e, error_message, func.__name__, request_id, time.time() - start_time
                ) from e

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            if not request_id_var.get():
                request_id_var.set(str(uuid.uuid4()))

            request_id = request_id_var.get()
            start_time = time.time()

            try:
                logger.info(f"[{request_id}] Starting {func.__name__}")
                result = func(*args, **kwargs)
                _log_completion(func.__name__, request_id, time.time() - start_time)
                return result
            except HTTPException:
                raise
            except Exception as e:
                raise _to_http_exception(
                    e, error_message, func.__name__, request_id, time.time() - start_time
                ) from e

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        else:
            return sync_wrapper  # type: ignore

    return decorator


# ============================================================================
# Application exception handlers
# ============================================================================

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as JSON including the request id."""
    request_id = request_id_var.get()
    headers = dict(exc.headers or {})
    if request_id:
        headers.setdefault("X-Request-ID", request_id)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "request_id": request_id},
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body validation failures as 422 JSON responses."""
    request_id = request_id_var.get()
    logger.warning(f"[{request_id}] Request validation failed on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "request_id": request_id},
        headers={"X-Request-ID": request_id} if request_id else None,
    )
