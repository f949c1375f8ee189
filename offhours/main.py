"""
Off-hours notice bot - Main Application Entry Point

Answers WhatsApp chats outside business hours and broadcasts the off-hours
notice to group chats once a day, using FastAPI, APScheduler and SQLite.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from offhours.api.admin import router as admin_router
from offhours.api.webhook import router as webhook_router
from offhours.config.settings import get_settings
from offhours.infrastructure.database import DatabaseSession, init_database
from offhours.infrastructure.scheduler import get_scheduler, start_scheduler, stop_scheduler
from offhours.infrastructure.whitelist_store import load_whitelist
from offhours.usecases.runtime import get_runtime, reset_runtime

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting off-hours bot...")

    logger.info("Initializing database...")
    await init_database()

    runtime = get_runtime()
    async with DatabaseSession() as session:
        runtime.whitelist.load(await load_whitelist(session))
    logger.info(f"Loaded whitelist with {len(runtime.whitelist)} groups")

    await start_scheduler()

    # The broadcast cycle is armed when the bridge reports the connection open
    runtime.connection.request_session()

    logger.info("Application startup complete!")
    logger.info(f"Timezone: {settings.timezone}")
    logger.info(f"Service hours: {settings.open_hour:02d}:00-{settings.close_hour:02d}:00")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await stop_scheduler()
    await runtime.shutdown()
    reset_runtime()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Off-hours Bot",
    description="Off-hours auto-replies and daily group notices for WhatsApp",
    version="1.0.0",
    lifespan=lifespan
)

# Register routers
app.include_router(webhook_router, tags=["Webhooks"])
app.include_router(admin_router, tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Off-hours Bot",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "messages": "/webhook/messages",
            "connection": "/webhook/connection",
            "qr": "/qr",
            "groups": "/groups",
            "whitelist": "/whitelist",
            "health": "/health"
        }
    }


@app.get("/scheduler/status")
async def scheduler_status():
    """Get broadcast phase and pending jobs."""
    scheduler = get_scheduler()
    runtime = get_runtime()

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "next_run": str(job.next_run_time) if job.next_run_time else None
        })

    return {
        "running": scheduler.running,
        "phase": runtime.broadcaster.phase.value,
        "jobs_count": len(jobs),
        "jobs": jobs
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "offhours.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug
    )
