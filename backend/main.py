"""
Main FastAPI application entry point for DocVault.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
import uvicorn

from app.core.config import settings
from app.core.database import init_database, create_tables
from app.core.exceptions import (
    docvault_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)
from app.core.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from app.core.rate_limit import limiter
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler
from app.api.routes import api_router
from app.services.policy_gate import get_policy_gate
from app.services.secret_cipher import get_secret_cipher
from app.utils.exceptions import DocVaultException
from fastapi.exceptions import RequestValidationError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting DocVault application")

    # A missing or malformed ENCRYPTION_KEY must stop the process here
    get_secret_cipher()

    database = init_database()
    await create_tables(database.engine)
    app.state.database = database

    if get_policy_gate().enabled:
        logger.info(f"External policy engine enabled at {settings.POLICY_ENGINE_URL}")
    else:
        logger.info("External policy engine disabled; using local role hierarchy only")

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    await database.dispose()


# Create FastAPI app
app = FastAPI(
    title="DocVault API",
    description="Multi-tenant document management with a role hierarchy and encrypted AI provider keys",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add custom middleware (order matters - first added is outermost)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add exception handlers
app.add_exception_handler(DocVaultException, docvault_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include API routes
app.include_router(api_router, prefix="/api/v1")

# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "DocVault API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
