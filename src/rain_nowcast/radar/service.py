"""Forecast aggregation over radar frames."""

import asyncio
import logging
import time
from typing import List, Optional

from rain_nowcast.config import (
    RADAR_ZOOM, TILE_SIZE, FRAME_INTERVAL_MINUTES,
    NOW_TOLERANCE_MINUTES, FETCH_CONCURRENTLY
)
from rain_nowcast.radar.classifier import ColorThresholds, DEFAULT_THRESHOLDS, classify_sample, max_intensity
from rain_nowcast.radar.client import tile_url_template, render_tile_url
from rain_nowcast.radar.models import (
    FrameCatalog, IntensityLevel, Location, PixelSample,
    Prediction, RadarFrame, TimeSlot
)
from rain_nowcast.radar.projection import tile_coordinate, fractional_pixel
from rain_nowcast.radar.sampler import TileSampler

logger = logging.getLogger(__name__)


class ForecastError(Exception):
    """Raised when a forecast pass cannot produce a prediction."""
    pass


class ForecastService:
    """Service turning a frame catalog into a Prediction for one location."""

    def __init__(
        self,
        sampler: TileSampler,
        zoom: int = RADAR_ZOOM,
        concurrent: bool = FETCH_CONCURRENTLY,
        thresholds: ColorThresholds = DEFAULT_THRESHOLDS
    ):
        """Initialize the forecast service.

        Args:
            sampler: Tile sampler used for every frame
            zoom: Tile zoom level used for sampling
            concurrent: Fetch all frames at once instead of one by one
            thresholds: Color calibration for the classifier
        """
        self.sampler = sampler
        self.zoom = zoom
        self.concurrent = concurrent
        self.thresholds = thresholds

    async def compute_forecast(
        self,
        location: Location,
        catalog: FrameCatalog,
        now: Optional[float] = None
    ) -> Prediction:
        """Sample every frame at the location and summarize the result.

        Analyzes the most recent past frame followed by all forecast frames.

        Args:
            location: Point to forecast for
            catalog: Frames currently available
            now: Reference unix time (defaults to the current time)

        Returns:
            Prediction built from the timeline

        Raises:
            ForecastError: If the catalog has no frames to analyze
        """
        now = time.time() if now is None else now
        frames = self.frames_to_analyze(catalog)
        if not frames:
            raise ForecastError("Catalog contains no radar frames")

        tile = tile_coordinate(location.lat, location.lng, self.zoom)
        px, py = fractional_pixel(location.lat, location.lng, self.zoom, TILE_SIZE)
        urls = [render_tile_url(tile_url_template(catalog.tile_host, frame.path), tile) for frame in frames]

        logger.info(
            f"Analyzing {len(frames)} frames at tile {tile.zoom}/{tile.x}/{tile.y} "
            f"pixel ({px}, {py}) for lat={location.lat}, lng={location.lng}"
        )

        samples = await self._sample_all(urls, px, py)
        return self._build_prediction(frames, samples, now)

    @staticmethod
    def frames_to_analyze(catalog: FrameCatalog) -> List[RadarFrame]:
        """Latest observed frame followed by all forecast frames."""
        return [*catalog.past_frames[-1:], *catalog.forecast_frames]

    async def _sample_all(self, urls: List[str], px: int, py: int) -> List[PixelSample]:
        """Sample every tile, returning results in the order of urls."""
        if self.concurrent:
            # gather keeps results in argument order regardless of completion
            return list(await asyncio.gather(*(self.sampler.sample(url, px, py) for url in urls)))

        samples = []
        for url in urls:
            samples.append(await self.sampler.sample(url, px, py))
        return samples

    def _build_prediction(
        self,
        frames: List[RadarFrame],
        samples: List[PixelSample],
        now: float
    ) -> Prediction:
        """Fold samples into the timeline and summary, in frame order."""
        timeline: List[TimeSlot] = []
        start_time: Optional[int] = None
        rain_frame_count = 0

        for frame, sample in zip(frames, samples):
            intensity = classify_sample(sample, self.thresholds)
            timeline.append(TimeSlot(time=frame.time, intensity=intensity, label=time_label(frame.time, now)))

            if intensity is not IntensityLevel.NONE:
                rain_frame_count += 1
                # First wet future frame wins
                if start_time is None and frame.time > now:
                    start_time = frame.time

        prediction = Prediction(
            is_raining_now=timeline[0].intensity is not IntensityLevel.NONE,
            will_rain_soon=start_time is not None,
            start_time=start_time,
            # Counts wet frames, gaps included; not a contiguous run length
            duration_minutes=rain_frame_count * FRAME_INTERVAL_MINUTES,
            max_intensity=max_intensity(slot.intensity for slot in timeline),
            rain_frame_count=rain_frame_count,
            timeline=timeline,
            generated_at=int(now)
        )
        logger.info(
            f"Prediction: raining_now={prediction.is_raining_now}, "
            f"will_rain_soon={prediction.will_rain_soon}, max={prediction.max_intensity.value}, "
            f"wet_frames={rain_frame_count}/{len(timeline)}"
        )
        return prediction


def time_label(frame_time: float, now: float) -> str:
    """Label a frame 'Now' or with its signed minute offset such as '+40m'."""
    offset_seconds = frame_time - now
    if abs(offset_seconds) <= NOW_TOLERANCE_MINUTES * 60:
        return "Now"
    return f"{round(offset_seconds / 60):+d}m"


def describe(prediction: Prediction, now: Optional[float] = None) -> str:
    """Headline text for a prediction."""
    now = time.time() if now is None else now
    if prediction.is_raining_now:
        return "Raining now"
    if prediction.will_rain_soon and prediction.start_time is not None:
        minutes = max(0, round((prediction.start_time - now) / 60))
        return f"Rain expected in {minutes} min"
    return "No rain expected"
