"""
KnowledgeConnect API - Application Entry Point
==============================================
FastAPI application with structured logging, lifespan management,
error handling, and request tracing.
"""
import logging
import sys
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import AuthenticationError, InvalidUpdate, KnowledgeConnectError, ValidationError
from app.core.rate_limit import limiter
from app.db.base import Base
from app.db.session import engine
from app.middleware.prometheus import PrometheusMiddleware, metrics_endpoint

APP_VERSION = "1.0.0"

# Logging Setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("knowledgeconnect")


# Request ID Middleware
class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a unique request ID to every request for tracing."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed:.1f}ms"

        logger.info(
            "%s %s %s -> %s (%.1fms)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response


def _validation_error(exc: RequestValidationError) -> ValidationError:
    """Collapse pydantic errors into the single domain error clients display."""
    errors = exc.errors()
    if any(err.get("type") == "extra_forbidden" for err in errors):
        return InvalidUpdate()
    if not errors:
        return ValidationError("Invalid request")
    first = errors[0]
    field = next((str(part) for part in reversed(first.get("loc", ())) if not isinstance(part, int)), "request")
    if first.get("type") == "missing":
        return ValidationError(f"{field} is required")
    return ValidationError(f"{field}: {first.get('msg', 'invalid value')}")


def _domain_error_response(exc: KnowledgeConnectError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.http_status, content={"error": exc.message}, headers=headers)


# Lifespan Handler
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks using modern lifespan protocol."""
    logger.info("=" * 50)
    logger.info("  KnowledgeConnect API v%s", APP_VERSION)
    logger.info("  Environment: %s", settings.env)
    logger.info("  Database: %s", settings.database_url[:30] + "...")
    logger.info("=" * 50)

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")
    except Exception as exc:
        logger.warning("Database initialization skipped: %s", exc)

    yield  # Application runs here

    logger.info("Application shutting down...")


# App Factory
def create_app() -> FastAPI:
    show_docs = not settings.is_production
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Student knowledge-sharing platform: topics, scheduled meetings, "
            "and meeting membership with capacity limits."
        ),
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods_list,
        allow_headers=settings.cors_allow_headers_list,
    )

    app.add_middleware(GZipMiddleware, minimum_size=1024)

    # Request tracing
    app.add_middleware(RequestIdMiddleware)

    allowed_hosts = (settings.trusted_hosts_list or ["localhost"]) if settings.is_production else ["*"]
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)

    # Custom Security Headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
        return response

    # Global Exception Handlers
    @app.exception_handler(KnowledgeConnectError)
    async def domain_error_handler(request: Request, exc: KnowledgeConnectError):
        return _domain_error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _domain_error_response(_validation_error(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        # In production, do not leak internal error details
        if settings.is_production:
            return JSONResponse(status_code=500, content={"error": "Internal server error"})
        return JSONResponse(status_code=500, content={"error": str(exc)})

    # Routes
    app.include_router(api_router, prefix="/api")

    # Metrics Endpoint
    app.add_middleware(PrometheusMiddleware)
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])

    @app.get("/api/health")
    @limiter.limit(f"{settings.rate_limit_per_minute}/minute")
    def health(request: Request):
        return {
            "status": "ok",
            "message": "Welcome to the KnowledgeConnect",
            "version": APP_VERSION,
            "environment": settings.env,
        }

    return app


app = create_app()
