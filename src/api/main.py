"""
FastAPI Application

Main application entry point with:
- CORS middleware
- Health endpoint
- API routes
- Database and decision-service client lifecycle
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from src.config import get_settings

# Configure root logger BEFORE any other imports
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(levelname)s  %(name)s  %(message)s",
)
# Silence noisy loggers
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import router
from src.storage.database import Database
from src.tom.client import TomClient

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    app.state.database = Database.from_settings(settings)
    app.state.tom_client = TomClient()

    try:
        await app.state.database.init_schema()
        logger.info("Decision log tables created / verified")
    except Exception as exc:
        logger.warning("Database init failed (decisions will not be logged until it recovers): %s", exc)

    if not settings.tom_api_key:
        logger.warning("TOM_API_KEY is not set; decision service calls will be rejected")

    yield

    # Shutdown
    await app.state.tom_client.close()
    await app.state.database.dispose()


app = FastAPI(
    title="Decision Portal API",
    description="Model selection, scenario decisions and decision logging",
    version=VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
    }


# Include API routes
app.include_router(router, prefix="/api")
