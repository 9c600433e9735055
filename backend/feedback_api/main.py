"""
FastAPI application entrypoint.

Lifespan:
  • On startup: verify DB connectivity.
  • On shutdown: give in-flight notifications a last grace window,
    then dispose the engine.

Routers:
  • /api/feedback — widget ingestion (public) + owner listing
  • /api/projects — project management for the signed-in owner
  • /api/business-insights — aggregated feedback statistics
  • /api/auth — registration and sign-in
  • /health — shallow liveness probe
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from feedback_api.core.config import settings
from feedback_api.core.cors import ALLOWED_HEADERS, ALLOWED_METHODS, ALLOWED_ORIGINS
from feedback_api.core.database import engine
from feedback_api.routers.auth import router as auth_router
from feedback_api.routers.feedback import router as feedback_router
from feedback_api.routers.insights import router as insights_router
from feedback_api.routers.projects import router as projects_router
from feedback_api.services.notifications import drain_in_flight

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    # Startup — verify DB is reachable
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified ✓")
    except (SQLAlchemyError, OSError):
        logger.warning(
            "Could not reach the database on startup. "
            "The app will start, but requests will fail until the DB is available."
        )

    yield  # ← application runs here

    # Shutdown — background notifications get one more grace window
    pending = await drain_in_flight(settings.NOTIFICATION_GRACE_SECONDS)
    if pending:
        logger.warning("%d notification(s) still pending at shutdown", pending)

    await engine.dispose()
    logger.info("Database engine disposed ✓")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        "Multi-tenant feedback collection — widget ingestion, "
        "project management and business insights."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=ALLOWED_METHODS,
    allow_headers=ALLOWED_HEADERS,
)

# Mount routers
app.include_router(feedback_router, prefix="/api/feedback")
app.include_router(projects_router, prefix="/api/projects")
app.include_router(insights_router, prefix="/api/business-insights")
app.include_router(auth_router, prefix="/api/auth")


# ── Health check ────────────────────────────────────────────
@app.get(
    "/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {"status": "healthy"}
