"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from sqlalchemy import text

from consultdesk.core.config import settings
from consultdesk.db.session import engine

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
        traces_sample_rate=0.1,
        send_default_pii=False,  # Tokens and client emails stay out of Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from consultdesk.core.rate_limit import limiter

# ============================================================================
# Email delivery (transport chosen once from settings)
# ============================================================================

from consultdesk.services.email_transport import build_transport
from consultdesk.services.notifier import Notifier

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="consultdesk",
    description="Appointment confirmation and dashboard reminder service",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.state.notifier = Notifier(build_transport(settings))

# ============================================================================
# Routers
# ============================================================================

# Public confirm/reschedule links (token auth, unauthenticated)
from consultdesk.routers import appointments_public
app.include_router(appointments_public.router)

# Internal endpoints (scheduled/cron jobs - protected by INTERNAL_SECRET)
from consultdesk.routers import internal
app.include_router(internal.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
