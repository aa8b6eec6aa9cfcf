"""Request/response logging middleware for development.

Enabled from main.py only when APP_MODE is dev.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_LOGGER = "api.requests"
REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger(REQUEST_LOGGER)

# Docs and probes
QUIET_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})

# Query parameters whose values never reach the log
MASKED_PARAMS = frozenset({"token", "access_token", "password", "key"})


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    # Reuse a client-supplied id only if it is short and printable
    if 0 < len(incoming) <= 64 and incoming.isprintable():
        return incoming
    return uuid.uuid4().hex[:8]


def _describe(request: Request, request_id: str) -> str:
    line = f"[{request_id}] {request.method} {request.url.path}"
    if request.query_params:
        params = {
            name: "***" if name.lower() in MASKED_PARAMS else value
            for name, value in request.query_params.items()
        }
        line += f" params={params}"
    return line


def _level_for(method: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    # Catalog reads are frequent; writes change sequences
    return logging.DEBUG if method == "GET" else logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request with its id, status and duration.

    The id is echoed in X-Request-ID so a client report can be matched
    with the server log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        request_id = _request_id(request)
        description = _describe(request, request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{description} - ERROR ({time.perf_counter() - started:.3f}s): {e}")
            raise

        elapsed = time.perf_counter() - started
        logger.log(
            _level_for(request.method, response.status_code),
            f"{description} - {response.status_code} ({elapsed:.3f}s)",
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_request_logging(log_level: str = "INFO") -> None:
    """Give the request logger its own handler so lines are not emitted twice."""
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(handler)
