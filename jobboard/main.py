"""
Job Board API

Hiring teams publish, edit and remove listings; job seekers browse published
ones. Persistence and identity live in the hosted backend; this service shapes
requests and responses around it.

Error responses share one envelope:
    {"success": false, "errors": [{"msg": ..., "code"?: ..., "field"?: ...}], "requestId": ...}
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from jobboard.core.config import settings
from jobboard.core.exceptions import AppException, BackendRequestError
from jobboard.core.limiter import limiter
from jobboard.core.logging import request_id_var, setup_logging
from jobboard.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from jobboard.dependencies import get_backend_client, shutdown_cache
from jobboard.routers.api_router import api_router
from jobboard.services.backend import BackendClient

setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    - Startup: report whether backend credentials are present (missing ones
      only fail the requests that need them)
    - Shutdown: stop the cache's revalidation workers
    """
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment}, build {settings.build_id})")
    if settings.backend_configured:
        logger.info("✓ Backend credentials present")
    else:
        logger.warning("✗ Backend credentials missing; listing and auth endpoints will fail")

    yield

    logger.info("Shutting down, draining cache workers")
    shutdown_cache()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Job Board - publish, manage and browse job listings",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ============================================================================
# MIDDLEWARE (last added runs first): CORS → Correlation ID → Logging
# ============================================================================
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "X-Process-Time"],
)


# ============================================================================
# ERROR ENVELOPE
# ============================================================================
def error_response(request: Request, status_code: int, errors: List[Dict[str, Any]]) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "errors": errors}
    headers = None
    req_id = request_id_var.get() or getattr(request.state, "request_id", None)
    if req_id:
        content["requestId"] = req_id
        headers = {settings.request_id_header: req_id}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body/query validation failures, reported per field before any backend call."""
    errors = [
        {"field": str(err["loc"][-1]) if err["loc"] else "unknown", "msg": err["msg"]}
        for err in exc.errors()
    ]
    logger.info(f"Rejected {request.method} {request.url.path}: {errors}")
    return error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


@app.exception_handler(BackendRequestError)
async def backend_exception_handler(request: Request, exc: BackendRequestError):
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(level, exc.message, extra={"code": exc.error_code, "backend_status": exc.status})
    return error_response(request, exc.status_code, [{"msg": exc.message, "code": exc.error_code}])


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"{type(exc).__name__}: {exc.message}", extra={"code": exc.error_code})
    return error_response(request, exc.status_code, [{"msg": exc.message, "code": exc.error_code}])


@app.exception_handler(StarletteHTTPException)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: Union[HTTPException, StarletteHTTPException]):
    msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(request, exc.status_code, [{"msg": msg}])


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, [{"msg": "An unexpected server error occurred."}]
    )


app.include_router(api_router, prefix=settings.api_prefix)


# ============================================================================
# OPERATIONAL ENDPOINTS (root level, outside the API prefix)
# ============================================================================
@app.get("/", tags=["Health"])
def root():
    return {
        "message": "Job Board API",
        "version": settings.version,
        "docs": "/docs",
        "api": settings.api_prefix,
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe; does not touch the backend."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "build": settings.build_id,
        "environment": settings.environment,
    }


@app.get("/liveness", tags=["Health"])
def liveness_check():
    return health_check()


@app.get("/readiness", tags=["Health"])
def readiness_check(backend: BackendClient = Depends(get_backend_client)):
    """Ready once the hosted table API answers a one-row read."""
    try:
        backend.ping()
    except BackendRequestError as e:
        logger.error(f"Readiness check failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Backend unreachable")
    return {"status": "ready", "components": {"backend": "connected"}}
