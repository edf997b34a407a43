"""Janitor Admin Back-Office - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.core.config import get_settings
from backoffice.core.env_validation import validate_environment
from backoffice.core.errors import service_error_handler
from backoffice.core.logging import configure_logging
from backoffice.core.supabase import set_supabase_client
from backoffice.routers import (
    auth_router,
    users_router,
    properties_router,
    payments_router,
    services_router,
    providers_router,
    service_requests_router,
    financial_router,
    dashboard_router,
    gdpr_router,
    forms_router,
)
from backoffice.schemas.common import DataProviderError
from backoffice.services.functions import EdgeFunctionError
from backoffice.services.query_cache import get_query_cache

# CRITICAL: Validate environment before proceeding
# This will hard-fail (exit 1) if required configuration is missing
validate_environment()

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"[APP] {settings.app_name} starting")
    yield
    # Shutdown
    get_query_cache().clear()
    set_supabase_client(None)


app = FastAPI(
    title=settings.app_name,
    description="Administration API for the Janitor rental platform: users, listings, payments, services and GDPR tooling over Supabase.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS - Dynamically configured from ALLOWED_ORIGINS environment variable
# In production, wildcard (*) is blocked by env_validation.py
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]

logger.info(f"[APP] CORS configured with origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(DataProviderError, service_error_handler)
app.add_exception_handler(EdgeFunctionError, service_error_handler)

# API v1 routers
app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(users_router, prefix=settings.api_v1_prefix)
app.include_router(properties_router, prefix=settings.api_v1_prefix)
app.include_router(payments_router, prefix=settings.api_v1_prefix)
app.include_router(services_router, prefix=settings.api_v1_prefix)  # service catalog
app.include_router(providers_router, prefix=settings.api_v1_prefix)
app.include_router(service_requests_router, prefix=settings.api_v1_prefix)
app.include_router(financial_router, prefix=settings.api_v1_prefix)
app.include_router(dashboard_router, prefix=settings.api_v1_prefix)
app.include_router(gdpr_router, prefix=settings.api_v1_prefix)  # also serves /audit-logs
app.include_router(forms_router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
    }
