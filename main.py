"""
FastAPI application entry point.

Registers routers, middleware, and exception handlers.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import Depends, FastAPI
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.routers import limiter, router as auth_router
from portal.apps.content.routers import (
    admin_router,
    documents_router,
    posts_router,
    search_router,
)
from portal.apps.departments.routers import router as departments_router
from portal.config.settings import settings
from portal.db.database import close_db, get_db, init_db
from portal.utils.exception_handlers import (
    base_api_exception_handler,
    general_exception_handler,
    http_exception_handler,
    integrity_error_handler,
    request_validation_exception_handler,
)
from portal.utils.exceptions import BaseAPIException
from portal.utils.logger import get_logger

logger = get_logger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup/shutdown lifecycle events."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} [{settings.ENVIRONMENT}]")
    if settings.AUTO_CREATE_TABLES:
        await init_db()
        logger.info("Database tables ensured")
    yield
    await close_db()
    logger.info("Shutdown complete")


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=f"{settings.COMPANY_NAME} intranet: departments, posts, documents and content approval",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)
app.state.limiter = limiter


# ── Middleware ────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Exception Handlers ────────────────────────────────────────────────────────

app.add_exception_handler(BaseAPIException, base_api_exception_handler)          # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)        # type: ignore[arg-type]
app.add_exception_handler(IntegrityError, integrity_error_handler)                 # type: ignore[arg-type]
app.add_exception_handler(HTTPException, http_exception_handler)                  # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(auth_router)
app.include_router(departments_router)
app.include_router(posts_router)
app.include_router(documents_router)
app.include_router(admin_router)
app.include_router(search_router)


# ── Health ────────────────────────────────────────────────────────────────────

@app.get("/health", tags=["Infra"])
async def health():
    """Liveness check."""
    return {"status": "ok", "version": settings.APP_VERSION}


@app.get("/ready", tags=["Infra"])
async def ready(session: AsyncSession = Depends(get_db)):
    """
    Readiness check: verifies the database is reachable.
    Returns 503 if it is down.
    """
    try:
        await session.execute(text("SELECT 1"))
        checks = {"database": "ok"}
        healthy = True
    except Exception as e:
        logger.error(f"DB health check failed: {e}")
        checks = {"database": f"error: {str(e)[:80]}"}
        healthy = False

    payload = {
        "status": "ready" if healthy else "degraded",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if not healthy:
        return JSONResponse(status_code=503, content=payload)

    return payload
