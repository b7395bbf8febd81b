"""
Run Tracker API

FastAPI application for live GPS run tracking and run history.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from runtracker import __version__
from runtracker.config import settings
from runtracker.db.session import init_db, dispose_engine, AsyncSessionLocal
from runtracker.api.v1.router import api_router
from runtracker.features.runs import SqlRunStore, build_pipeline
from runtracker.features.tracking import TrackingConfig
from runtracker.features.tracking.registry import SessionRegistry


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("Starting Run Tracker API...")
    init_db()
    logger.info("Database initialized")

    config = TrackingConfig.from_settings(settings)
    pipeline = build_pipeline(SqlRunStore(AsyncSessionLocal), config, settings)
    app.state.sessions = SessionRegistry(pipeline, config)

    yield

    # Shutdown
    app.state.sessions.close_all()
    await dispose_engine()
    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="Run Tracker API",
    description="Live GPS run tracking with filtered distance, pace and calories",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "active_sessions": request.app.state.sessions.active_count,
    }
