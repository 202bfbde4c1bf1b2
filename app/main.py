"""
VLRBUDDY - Main FastAPI Application

Mirror API for the VLRBuddy esports catalog with:
- Raw collection CRUD over MongoDB
- Catalog views and detail joins with PandaScore fallback
- In-process ingestion scheduler
- Request tracing
- Error handling
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.database import get_mirror_store
from app.core.exceptions import NotFoundError, ValidationError, VLRBuddyError
from app.services.collectors.pandascore import get_pandascore_collector
from app.services.scheduling import get_ingestion_scheduler

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup fails if the mirror is unreachable, or if the scheduler is
    enabled and its first catalog refresh fails.
    """
    logger.info("=" * 60)
    logger.info(f"{settings.app_name} - Esports Catalog Mirror")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug Mode: {settings.debug}")
    logger.info("Starting up...")

    store = get_mirror_store()
    scheduler = None

    try:
        await store.initialize()
        logger.info("✓ Mirror store initialized")

        if settings.SCHEDULER_ENABLED:
            scheduler = get_ingestion_scheduler()
            await scheduler.start()
            logger.info("✓ Ingestion scheduler started")
        else:
            logger.info("Ingestion scheduler disabled (SCHEDULER_ENABLED=false)")

        logger.info("=" * 60)
        logger.info(f"API available at: http://{settings.HOST}:{settings.port}/api")
        logger.info("=" * 60)

    except Exception as e:
        logger.error(f"Failed to initialize services: {e}")
        await store.close()
        raise

    yield

    # Shutdown
    logger.info("Shutting down...")

    if scheduler is not None:
        await scheduler.stop()
        await scheduler.wait_idle()
        logger.info("✓ Scheduler stopped")

    await get_pandascore_collector().close()
    await store.close()
    logger.info("✓ Mirror store closed")

    logger.info("Shutdown complete")


# ============================================================================
# Create FastAPI Application
# ============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Esports catalog mirror and ingestion service",
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)


# ============================================================================
# Middleware
# ============================================================================

class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Add request tracking and timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled error in request {request_id}: {e}")
            raise

        duration = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.4f}s"
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than the configured ceiling."""

    def __init__(self, app, max_body_bytes: int):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"error": "Invalid Content-Length header"},
                )
            if size > self.max_body_bytes:
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={"error": f"Request body exceeds {self.max_body_bytes} bytes"},
                )
        return await call_next(request)


# Add middleware (order matters - last added is outermost)
app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.MAX_BODY_BYTES)
app.add_middleware(RequestTrackingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    """Handle lookups that matched nothing."""
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle invalid bodies and identifiers."""
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Handle request parsing errors (malformed JSON, missing body)."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error["loc"])
        messages.append(f"{location}: {error['msg']}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(messages) or "Invalid request"},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(VLRBuddyError)
async def backend_error_handler(request: Request, exc: VLRBuddyError):
    """Store, upstream and catalog failures."""
    request_id = getattr(request.state, "request_id", None)
    logger.error(f"Request {request_id} failed: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions."""
    request_id = getattr(request.state, "request_id", None)
    logger.error(f"Unhandled exception [{request_id}]: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc) if settings.debug else "Internal Server Error"},
    )


# ============================================================================
# Include Routers
# ============================================================================

API_PREFIX = "/api"

app.include_router(api_router, prefix=API_PREFIX)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "operational",
        "docs": "/docs" if settings.debug else None,
        "health": f"{API_PREFIX}/health",
    }


# ============================================================================
# Run Application
# ============================================================================

def run():
    """Run the FastAPI application."""
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.port,
        reload=settings.RELOAD,
        log_level="debug" if settings.debug else "info",
        access_log=True,
    )


if __name__ == "__main__":
    run()
