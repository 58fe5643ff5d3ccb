import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortener_app.config import settings
from shortener_app.api.v1 import urls, redirect
from shortener_app.dependencies import get_store
from shortener_app.exceptions import CodeSpaceExhausted, StoreError, StoreUnavailable
from shortener_app.schemas.url import HealthResponse
from shortener_app.store.factory import StoreFactory
from shortener_app.store.strategies import KeyValueStore

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting %s in %s mode on port %s",
        settings.app_name, settings.environment.upper(), settings.port
    )
    yield
    logger.info("Shutting down %s...", settings.app_name)
    StoreFactory.clear_instance()
    get_store.cache_clear()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortening service backed by Redis",
    # Debug mode renders plain-text tracebacks instead of the JSON error handlers
    debug=settings.debug and not settings.is_production,
    lifespan=lifespan,
)


######## Error handlers

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {"error": ...}"""
    detail = "Not found" if exc.detail == "Not Found" else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Bad input is a 400 with a readable message, not FastAPI's default 422"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _validation_message(exc)},
    )


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("Store unavailable for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Service temporarily unavailable. Please try again later."},
    )


@app.exception_handler(CodeSpaceExhausted)
async def code_space_exhausted_handler(request: Request, exc: CodeSpaceExhausted):
    logger.error("Short code allocation failed: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Could not allocate a short code. Please try again later."},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.exception("Store error for %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    if error["type"] == "json_invalid":
        return "Invalid JSON payload"
    if error["type"] == "missing" or (error["type"] == "string_type" and error.get("input") is None):
        return "URL parameter is required"
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    if error["type"] == "string_type":
        return "Invalid URL format"
    return "Invalid request"


######## Health

def _health(store: KeyValueStore) -> dict:
    payload = {
        "status": "ok",
        "message": settings.app_name,
        "store": "connected",
        "environment": settings.environment,
        "port": settings.port,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    try:
        store.ping()
    except StoreError as e:
        # Still answer, but flag the missing store
        payload.update(status="warning", store="disconnected", error=str(e))
    return payload


@app.get("/", response_model=HealthResponse, response_model_exclude_none=True)
def read_root(store: KeyValueStore = Depends(get_store)):
    """Health/status endpoint, reports whether the store is reachable"""
    return _health(store)


@app.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
def health_check(store: KeyValueStore = Depends(get_store)):
    """Health check endpoint"""
    return _health(store)


######## Include routers
app.include_router(urls.router)
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.bind_host, port=settings.port)
