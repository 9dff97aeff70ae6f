"""
WorkTrack Portal - Application Entry Point

FastAPI application exposing the portal session and notification inbox.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from .backend import get_backend
from .portal import get_portal_session

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

# The realtime client logs every heartbeat at INFO
logging.getLogger("realtime").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")

    try:
        await get_backend().connect()
    except Exception as e:
        logger.warning(f"Supabase connect failed (will retry on first request): {e}")

    yield

    logger.info("Shutting down...")
    try:
        await get_portal_session().sign_out()
    except Exception as e:
        logger.warning(f"Failed to end portal session during shutdown: {e}")

    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Realtime order sync and notification inbox",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from .web.routes import router as api_router
app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    session = get_portal_session()
    return {
        "status": "healthy",
        "services": {
            "supabase": bool(settings.supabase_url),
            "session_active": session.active,
            "feed_running": bool(session.feed and session.feed.running),
            "pending_events": session.feed.pending if session.feed else 0,
        }
    }


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "worktrack.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
