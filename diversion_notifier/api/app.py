"""
FastAPI application exposing liveness and poller status
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger

from diversion_notifier import __version__
from diversion_notifier.config.settings import Settings
from diversion_notifier.core.poller import CommitPoller
from diversion_notifier.core.scheduler import JobScheduler


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_app(settings: Settings, poller: Optional[CommitPoller] = None,
               scheduler: Optional[JobScheduler] = None) -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title="Diversion Commit Notifier",
        description="Health and status endpoints for the commit notifier",
        version=__version__
    )

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        """Root endpoint"""
        return "Discord bot is running!"

    @app.get("/health")
    async def health():
        """Liveness check for deployment platforms"""
        return {
            "status": "healthy",
            "timestamp": _now()
        }

    @app.get("/status")
    async def status():
        """Poller state and scheduled jobs"""
        return {
            "repository": settings.DIVERSION_REPO_NAME,
            "last_seen_commit": poller.state.commit_id if poller else None,
            "last_outcome": poller.last_outcome.value if poller and poller.last_outcome else None,
            "last_polled_at": (
                poller.last_polled_at.isoformat() if poller and poller.last_polled_at else None
            ),
            "poll_interval_minutes": settings.POLL_INTERVAL_MINUTES,
            "jobs": scheduler.get_jobs() if scheduler else [],
            "timestamp": _now()
        }

    @app.get("/config")
    async def get_config():
        """Get current configuration (masked)"""
        return {
            "config": settings.mask_secrets(),
            "timestamp": _now()
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Global exception handler"""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}")

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if settings.DEBUG_MODE else "An error occurred",
                "timestamp": _now()
            }
        )

    return app
