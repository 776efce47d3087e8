"""FastAPI application for daily water usage tracking.

Users register to get an API key, report usage readings with it, and an
admin views everyone's latest reading. A background task rolls each user's
reading into history once a day.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from water_tracker.config import get_settings
from water_tracker.routes import accounts as accounts_routes
from water_tracker.routes import health, usage
from water_tracker.services import accounts, database, scheduler
from water_tracker.services.errors import WaterTrackerError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifespan context manager for startup and shutdown events.

    Handles:
    - Startup: Initialise MongoDB, ensure indexes and the admin account,
      launch the rollover scheduler
    - Shutdown: Stop the scheduler and close the MongoDB connection

    Args:
        fastapi_app: FastAPI application instance.

    Yields:
        Control back to FastAPI during application lifetime.
    """
    # Startup
    logger.info("Starting water usage tracking service...")

    # Load app
    _ = fastapi_app

    # Load settings
    _ = get_settings()

    try:
        # Initialise database connection
        database.get_client()
        logger.info("MongoDB connection initialised")

        # Ensure database indexes exist
        database.ensure_indexes()
        logger.info("Database indexes verified")

        accounts.ensure_admin_exists()

        logger.info("Application startup complete")

    except Exception as e:
        logger.error("Failed to initialise application: %s", e, exc_info=True)
        raise

    scheduler_task = asyncio.create_task(scheduler.run_rollover_scheduler())
    logger.info("Rollover scheduler launched")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    scheduler_task.cancel()
    try:
        await scheduler_task
    except asyncio.CancelledError:
        logger.info("Rollover scheduler stopped")

    try:
        database.close_client()
        logger.info("MongoDB connection closed")
    except Exception as e:
        logger.error("Error during shutdown: %s", e, exc_info=True)

    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Water Usage Tracker",
    description="API for reporting daily water usage and rolling it into history",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(WaterTrackerError)
async def water_tracker_error_handler(request: Request, exc: WaterTrackerError):
    """Turn service errors into JSON responses with their own status code.

    Args:
        request: FastAPI request object.
        exc: Service exception that was raised.

    Returns:
        JSON response with the error message.
    """
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s for %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions globally.

    Args:
        request: FastAPI request object.
        exc: Exception that was raised.

    Returns:
        JSON response with error details.
    """
    logger.error(
        "Unhandled exception for %s %s: %s",
        request.method,
        request.url,
        exc,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": str(exc),
        },
    )


# Register routers
app.include_router(health.router)
app.include_router(accounts_routes.router)
app.include_router(usage.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information.

    Returns:
        Dictionary with API details and links.
    """
    return {
        "service": "Water Usage Tracker",
        "version": "0.1.0",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "readiness": "/health/ready",
            "register": "POST /register",
            "login": "POST /login",
            "update_usage": "GET /update_water_usage?apikey=&new_usage=",
            "user_dashboard": "GET /user_dashboard?username=",
            "admin_dashboard": "GET /admin_dashboard",
            "rollover": "POST /usage/rollover",
            "docs": "/docs",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
