"""Main FastAPI application."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prospect_intel.config import settings
from prospect_intel.database import Base, engine
from prospect_intel import models  # noqa: F401  registers tables on Base.metadata
from prospect_intel.redis_client import close_redis_client
from prospect_intel.routers import ingestion_routes, prospect_routes
from prospect_intel.scheduler import start_scheduler, stop_scheduler

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Prospect Intelligence API",
    description="Multi-source prospect ingestion with multi-pass scanning",
    version="1.0.0",
    redirect_slashes=False
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ingestion_routes.router)
app.include_router(prospect_routes.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "registered_tables": len(Base.metadata.tables),
    }


@app.get("/")
async def root():
    return {
        "message": "Prospect Intelligence API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


@app.on_event("startup")
async def startup_event():
    logger.info("Starting Prospect Intelligence API...")
    logger.info(f"Registered {len(Base.metadata.tables)} SQLAlchemy tables")
    start_scheduler()
    logger.info("Application started successfully!")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Prospect Intelligence API...")
    stop_scheduler()
    await close_redis_client()
    await engine.dispose()
