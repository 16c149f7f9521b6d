"""Main FastAPI application for the rain nowcast service."""

import asyncio
import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rain_nowcast.api.endpoints import router as nowcast_router
from rain_nowcast.config import HOST, PORT, DEBUG
from rain_nowcast.logging_config import configure_logging
from rain_nowcast.radar.client import RainViewerClient
from rain_nowcast.radar.geolocation import LocationResolver
from rain_nowcast.radar.sampler import TileSampler
from rain_nowcast.radar.service import ForecastService
from rain_nowcast.scheduler import ForecastUpdateTask

configure_logging()
logger = logging.getLogger(__name__)


def create_update_task() -> ForecastUpdateTask:
    """Wire the radar client, sampler and forecast service together."""
    client = RainViewerClient()
    service = ForecastService(TileSampler(client))
    return ForecastUpdateTask(client, service, LocationResolver())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    update_task: ForecastUpdateTask = app.state.update_task
    background_task = None
    try:
        logger.info("Starting Rain Nowcast Service")
        background_task = asyncio.create_task(update_task.start_background_updates())
        yield
    except Exception as e:
        logger.error(f"Startup error: {e}")
        logger.error(traceback.format_exc())
        raise
    finally:
        logger.info("Shutting down Rain Nowcast Service")
        update_task.stop()
        if background_task:
            background_task.cancel()
            try:
                await background_task
            except asyncio.CancelledError:
                logger.info("Background task cancelled successfully")
        await update_task.client.aclose()


def create_app(update_task: Optional[ForecastUpdateTask] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        update_task: Update task to serve (creates default if None)

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Rain Nowcast Service",
        description="Short-term precipitation forecast sampled from RainViewer radar tiles",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )
    app.state.update_task = update_task or create_update_task()

    # Rendering layer is a separate browser app
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(nowcast_router)

    @app.get("/api", tags=["root"])
    async def api_info() -> dict:
        """API information endpoint.

        Returns:
            Basic service information
        """
        return {
            "message": "Rain Nowcast Service",
            "docs": "/docs",
            "redoc": "/redoc",
            "nowcast": "/nowcast",
            "frames": "/nowcast/frames",
            "health": "/nowcast/health"
        }

    return app


# Create app instance for uvicorn
app = create_app()


def main() -> None:
    """Main entry point for the application."""
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        log_level="info" if not DEBUG else "debug"
    )


if __name__ == "__main__":
    main()
