"""
Request Middleware
Provides request_id injection, timing and global error handling.
"""
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from formconfig.core.exceptions import FormConfigError
from formconfig.core.logging import (
    get_request_id,
    generate_request_id,
    request_id_var,
    request_start_var,
    api_logger,
)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Generates/propagates request_id for tracing
    2. Tracks request timing
    3. Logs request/response summary
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()

        request_id_var.set(request_id)
        request_start_var.set(time.time())

        request.state.request_id = request_id

        # Skip health checks to reduce noise
        path = request.url.path
        if not path.endswith('/health'):
            api_logger.debug(
                f"{request.method} {path}",
                client=request.client.host if request.client else 'unknown',
            )

        try:
            response = await call_next(request)

            response.headers['X-Request-ID'] = request_id

            if not path.endswith('/health'):
                duration = round((time.time() - request_start_var.get()) * 1000, 2)
                log_level = 'info' if response.status_code < 400 else 'warning'
                getattr(api_logger, log_level)(
                    f"{request.method} {path} -> {response.status_code}",
                    duration_ms=duration,
                    status=response.status_code,
                )

            return response

        except Exception as e:
            duration = round((time.time() - request_start_var.get()) * 1000, 2)
            api_logger.error(
                f"{request.method} {path} -> 500 (unhandled)",
                error=e,
                duration_ms=duration,
            )

            return JSONResponse(
                status_code=500,
                content={
                    'detail': 'Internal server error',
                    'request_id': request_id,
                },
                headers={'X-Request-ID': request_id},
            )
        finally:
            request_id_var.set(None)
            request_start_var.set(None)


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', None) or get_request_id() or 'unknown'


async def form_config_exception_handler(request: Request, exc: FormConfigError) -> JSONResponse:
    """
    Handler for domain errors raised by the schema and version layers.
    Maps each error class to its HTTP status and keeps violation details.
    """
    request_id = _request_id(request)
    content = exc.to_dict()
    content['request_id'] = request_id

    api_logger.warning(
        f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}",
        status=exc.status_code,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers={'X-Request-ID': request_id},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.
    Returns safe JSON response with request_id for debugging.
    """
    request_id = _request_id(request)

    api_logger.error(
        f"Unhandled exception in {request.method} {request.url.path}",
        error=exc,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=500,
        content={
            'detail': 'Internal server error',
            'request_id': request_id,
        },
        headers={'X-Request-ID': request_id},
    )


async def http_exception_handler(request: Request, exc) -> JSONResponse:
    """
    Handler for HTTPException - adds request_id to error responses.
    """
    request_id = _request_id(request)

    status_code = getattr(exc, 'status_code', 500)
    detail = getattr(exc, 'detail', 'Unknown error')

    if status_code >= 500:
        api_logger.error(
            f"HTTP {status_code}: {detail}",
            path=str(request.url.path),
            status=status_code,
        )
    elif status_code >= 400:
        api_logger.warning(
            f"HTTP {status_code}: {detail}",
            path=str(request.url.path),
            status=status_code,
        )

    return JSONResponse(
        status_code=status_code,
        content={
            'detail': detail,
            'request_id': request_id,
        },
        headers={'X-Request-ID': request_id},
    )


async def validation_exception_handler(request: Request, exc) -> JSONResponse:
    """
    Handler for RequestValidationError - returns structured validation errors.
    """
    request_id = _request_id(request)

    errors = []
    for error in exc.errors():
        errors.append({
            'field': '.'.join(str(loc) for loc in error.get('loc', [])),
            'message': error.get('msg', 'Validation error'),
            'type': error.get('type', 'value_error'),
        })

    api_logger.warning(
        f"Validation error in {request.method} {request.url.path}",
        errors=errors,
    )

    return JSONResponse(
        status_code=422,
        content={
            'detail': 'Validation error',
            'errors': errors,
            'request_id': request_id,
        },
        headers={'X-Request-ID': request_id},
    )
