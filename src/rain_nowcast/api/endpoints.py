"""API endpoints for the rain nowcast."""

import logging
import zoneinfo
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request

from rain_nowcast.config import (
    DEFAULT_CITY, DEFAULT_LAT, DEFAULT_LNG, RADAR_ZOOM,
    REFRESH_INTERVAL_MINUTES, FRAME_INTERVAL_MINUTES
)
from rain_nowcast.radar.client import tile_url_template
from rain_nowcast.radar.models import ErrorResponse, FrameInfo, FramesResponse, NowcastResponse
from rain_nowcast.radar.service import describe
from rain_nowcast.scheduler import CycleOutcome, ForecastUpdateTask

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/nowcast", tags=["nowcast"])


def get_update_task(request: Request) -> ForecastUpdateTask:
    """Get the update task attached to the application."""
    return request.app.state.update_task


@router.get("/", response_model=NowcastResponse, responses={503: {"model": ErrorResponse}})
async def get_nowcast(request: Request) -> NowcastResponse:
    """Get the current precipitation nowcast for the configured location.

    Raises:
        HTTPException: 503 until the first prediction has been published
    """
    store = get_update_task(request).store
    if store.prediction is None or store.location is None:
        raise HTTPException(
            status_code=503,
            detail=store.advisory or "Nowcast is not available yet. Please try again in a few moments."
        )

    prediction = store.prediction
    return NowcastResponse(
        location=store.location,
        headline=describe(prediction),
        max_intensity_label=prediction.max_intensity.label,
        advisory=store.advisory,
        last_updated=store.last_updated,
        prediction=prediction
    )


@router.get("/frames", response_model=FramesResponse, responses={503: {"model": ErrorResponse}})
async def get_frames(request: Request) -> FramesResponse:
    """Get every radar frame of the current catalog for map animation.

    Raises:
        HTTPException: 503 until the first catalog has been loaded
    """
    store = get_update_task(request).store
    catalog = store.catalog
    if catalog is None:
        raise HTTPException(status_code=503, detail="Radar frames are not available yet.")

    try:
        tz = zoneinfo.ZoneInfo(store.timezone)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Unknown timezone '{store.timezone}', using UTC: {e}")
        tz = timezone.utc

    past_count = len(catalog.past_frames)
    frames = [
        FrameInfo(
            path=frame.path,
            time=frame.time,
            local_time=datetime.fromtimestamp(frame.time, tz).strftime("%H:%M"),
            is_forecast=index >= past_count,
            tile_url_template=tile_url_template(catalog.tile_host, frame.path)
        )
        for index, frame in enumerate(catalog.all_frames)
    ]
    return FramesResponse(timezone=str(tz), frames=frames)


@router.post("/refresh", responses={409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}})
async def refresh_nowcast(request: Request) -> dict:
    """Run a forecast cycle now.

    Raises:
        HTTPException: 409 if a cycle is already running, 502 if it failed
    """
    outcome = await get_update_task(request).run_cycle()

    if outcome is CycleOutcome.SKIPPED:
        raise HTTPException(status_code=409, detail="A forecast update is already running.")
    if outcome is CycleOutcome.FAILED:
        raise HTTPException(status_code=502, detail="Radar service temporarily unavailable")

    logger.info(f"Manual refresh finished: {outcome.value}")
    return {"message": "Nowcast refreshed", "outcome": outcome.value}


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Returns:
        Health status response
    """
    store = get_update_task(request).store
    return {
        "status": "healthy",
        "service": "rain-nowcast",
        "has_prediction": store.prediction is not None,
        "last_updated": store.last_updated
    }


@router.get("/info")
async def get_service_info() -> dict:
    """Get service information.

    Returns:
        Service information including default location and features
    """
    return {
        "service": "Rain Nowcast Service",
        "version": "0.1.0",
        "default_location": {
            "city": DEFAULT_CITY,
            "latitude": DEFAULT_LAT,
            "longitude": DEFAULT_LNG
        },
        "zoom": RADAR_ZOOM,
        "frame_interval_minutes": FRAME_INTERVAL_MINUTES,
        "refresh_interval_minutes": REFRESH_INTERVAL_MINUTES,
        "features": [
            "Precipitation nowcast sampled from radar tiles",
            "Frame list for radar map animation"
        ],
        "data_source": "RainViewer public API"
    }
