import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from api.routes import poses, sequences
from config import AppMode, get_settings
from db.database import init_db
from fastapi import APIRouter, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from schemas.common import HealthResponse
from services.errors import SequenceBuilderError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Quiet noisy loggers
logging.getLogger("aiosqlite").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown."""
    logger.info(f"Starting Yoga Sequence Builder in {settings.APP_MODE.value} mode...")

    await init_db()

    yield

    logger.info("Shutting down Yoga Sequence Builder...")


app = FastAPI(
    title="Yoga Sequence Builder",
    description="Pose catalog and personal sequence builder",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
)

# Bounds for anything echoed back inside an error payload
ERROR_TEXT_LIMIT = 400
ERROR_ITEMS_LIMIT = 50
ERROR_NESTING_LIMIT = 8


def _safe_text(value: str) -> str:
    # Lone surrogates would crash the JSON encoder
    text = value.encode("utf-8", errors="replace").decode("utf-8")
    return text if len(text) <= ERROR_TEXT_LIMIT else text[:ERROR_TEXT_LIMIT] + "…(truncated)"


def _sanitize_for_json(value: Any, depth: int = 0) -> Any:
    """Copy `value` into something JSON-safe and bounded; validation messages echo user input."""
    if depth > ERROR_NESTING_LIMIT:
        return "<max depth reached>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, bytes):
        return _safe_text(value.decode("utf-8", errors="replace"))
    if isinstance(value, str):
        return _safe_text(value)
    if isinstance(value, dict):
        pairs = list(value.items())[:ERROR_ITEMS_LIMIT]
        return {str(_sanitize_for_json(k, depth + 1)): _sanitize_for_json(v, depth + 1) for k, v in pairs}
    if isinstance(value, (list, tuple, set)):
        items = list(value)
        cleaned = [_sanitize_for_json(v, depth + 1) for v in items[:ERROR_ITEMS_LIMIT]]
        if len(items) > ERROR_ITEMS_LIMIT:
            cleaned.append(f"... ({len(items) - ERROR_ITEMS_LIMIT} more items truncated)")
        return cleaned
    return _safe_text(str(value))


def error_response(
    status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": _sanitize_for_json(details or {}),
            }
        },
    )


def _validation_fields(errors: List[dict]) -> Dict[str, List[str]]:
    """Group validation messages by field name: {"poseId": ["..."]}."""
    fields: Dict[str, List[str]] = {}
    for error in errors:
        # Drop the leading "body"/"query"/"path" segment
        loc = [str(part) for part in error.get("loc", ())[1:]]
        field = ".".join(loc) or "body"
        fields.setdefault(field, []).append(str(error.get("msg", "Invalid value")))
    return fields


@app.exception_handler(SequenceBuilderError)
async def sequence_builder_exception_handler(
    request: Request, exc: SequenceBuilderError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        return error_response(
            status.HTTP_400_BAD_REQUEST, "INVALID_JSON", "Request body is not valid JSON"
        )
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"fields": _validation_fields(errors)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = {
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    }.get(exc.status_code, "HTTP_ERROR")
    response = error_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
    )


# Request logging (development only)
if settings.APP_MODE == AppMode.DEV:
    from middleware.logging import RequestLoggingMiddleware, configure_request_logging
    configure_request_logging(settings.LOG_LEVEL)
    app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - added last so it is the first to see incoming requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Routes live under /api/v1; /api is kept as a deprecated alias
for prefix, deprecated in (("/api/v1", False), ("/api", True)):
    api_router = APIRouter(prefix=prefix, deprecated=deprecated)
    api_router.include_router(poses.router)
    api_router.include_router(sequences.router)
    app.include_router(api_router)


@app.get("/")
async def root():
    return {
        "name": "Yoga Sequence Builder API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(mode=settings.APP_MODE.value)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=(settings.APP_MODE == AppMode.DEV),
    )
