"""FastAPI application entry point."""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.request_logging import request_logging_middleware
from app.db.session import engine
from app.services import ai_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from app.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="RFP Response API",
    description="RFP ingestion, AI proposal generation, proposal teams and QR lead capture",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter (default limits apply through the middleware)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

register_exception_handlers(app)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)

app.middleware("http")(request_logging_middleware)

# ============================================================================
# Routers
# ============================================================================

from app.routers import (
    analytics,
    auth,
    documents,
    lead_capture,
    profile,
    proposals,
    qr_codes,
    rfp,
    team,
)

API_PREFIX = "/api"

app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(profile.router, prefix=API_PREFIX)
app.include_router(documents.router, prefix=API_PREFIX)
app.include_router(rfp.router, prefix=API_PREFIX)
app.include_router(proposals.router, prefix=API_PREFIX)
app.include_router(team.router, prefix=API_PREFIX)
app.include_router(analytics.router, prefix=API_PREFIX)
app.include_router(qr_codes.router, prefix=API_PREFIX)

# Public QR landing page (unauthenticated)
app.include_router(lead_capture.router, prefix=API_PREFIX)


# ============================================================================
# Health Check & directory
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get(API_PREFIX)
async def api_directory():
    """Top-level endpoint groups and whether the AI provider key is accepted."""
    return {
        "name": app.title,
        "version": settings.VERSION,
        "ai_provider_connected": await ai_service.test_connection(),
        "endpoints": {
            "auth": f"{API_PREFIX}/auth",
            "profile": f"{API_PREFIX}/profile",
            "documents": f"{API_PREFIX}/documents",
            "rfp": f"{API_PREFIX}/rfp",
            "proposals": f"{API_PREFIX}/proposals",
            "team": f"{API_PREFIX}/team",
            "analytics": f"{API_PREFIX}/analytics",
            "qr_codes": f"{API_PREFIX}/qr-codes",
            "lead_capture": f"{API_PREFIX}/lead-capture/{{code}}",
        },
    }
