"""
FastAPI application entry point.

Run with:
    uvicorn smsroute.main:app --reload --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smsroute.api.v1.sms import router as sms_router
from smsroute.bootstrap import get_factory, get_sender_config_issues
from smsroute.core.config import settings
from smsroute.core.errors import register_error_handlers
from smsroute.core.logging_config import get_logger, setup_logging
from smsroute.core.middleware import RequestLoggingMiddleware

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the sender registry at startup and report config problems."""
    logger.info(
        "Starting %s v%s [%s]",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    get_factory()
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "Routes outbound SMS to pluggable senders by destination country "
        "and number prefix, with ordered failover."
    ),
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS if not settings.CORS_ALLOW_ALL else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)

app.include_router(sms_router)


@app.get("/", tags=["root"])
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs",
    }


@app.get("/health/live", tags=["health"])
async def liveness():
    """Liveness probe — is the process alive?"""
    return {"status": "alive"}


@app.get("/health/ready", tags=["health"])
async def readiness():
    """Readiness probe — reports skipped sender definitions."""
    manager = get_factory().get_manager()
    issues = [i.to_dict() for i in get_sender_config_issues()]
    return {
        "status": "ready" if len(manager) else "degraded",
        "senders": manager.all_names(),
        "sender_config_issues": issues,
    }
