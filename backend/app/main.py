"""
FastAPI application entry point for the freelance marketplace.

This is the main app that:
- Initializes FastAPI with CORS
- Registers all API routers
- Maps service errors to HTTP responses
- Provides health check endpoint
- Sets up database connection lifecycle
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app import database
# Import API routers
from app.api import jobs, proposals, notifications
from app.services.errors import MarketplaceError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    On startup: Database connection is already handled by engine
    On shutdown: Close database connections gracefully
    """
    # Startup
    logger.info("🚀 Starting Marketplace API...")
    logger.info(f"📊 Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")
    logger.info(f"📧 Email mode: {settings.email_mode}")
    logger.info(f"🔧 Debug mode: {settings.debug}")

    yield

    # Shutdown
    logger.info("👋 Shutting down Marketplace API...")
    await database.engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="Marketplace API",
    description="API for the freelance job marketplace",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
# Set ALLOWED_ORIGINS environment variable with comma-separated domains
allowed_origins = [
    "http://localhost:3000",  # Local development
]

if settings.allowed_origins:
    allowed_origins.extend(origin.strip() for origin in settings.allowed_origins.split(','))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    """Service errors carry their own status code."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Health check endpoint
@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "Marketplace API",
        "version": "1.0.0",
    }


# Root endpoint
@app.get("/")
async def root():
    """API root with basic info."""
    return {
        "message": "Marketplace API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Register API routers
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(proposals.router, prefix="/api/proposals", tags=["proposals"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
