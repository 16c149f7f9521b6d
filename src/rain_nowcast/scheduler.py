"""Periodic forecast updates and the current prediction."""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional

from rain_nowcast.config import REFRESH_INTERVAL_MINUTES
from rain_nowcast.radar.client import CatalogUnavailableError, RainViewerClient
from rain_nowcast.radar.geolocation import LocationResolver
from rain_nowcast.radar.models import FrameCatalog, Location, Prediction
from rain_nowcast.radar.service import ForecastError, ForecastService

logger = logging.getLogger(__name__)

CATALOG_ADVISORY = "Radar data could not be loaded. Retrying on the next update."


class CycleOutcome(str, Enum):
    PUBLISHED = "published"
    SKIPPED = "skipped"
    STALE = "stale"
    FAILED = "failed"


class PredictionStore:
    """Holds the latest published prediction.

    Each pass takes a generation number before it starts; a result is only
    published if no newer generation has been published already.
    """

    def __init__(self):
        self._generation = 0
        self._published_generation = 0
        self.location: Optional[Location] = None
        self.timezone: str = "UTC"
        self.location_advisory: Optional[str] = None
        self.catalog_advisory: Optional[str] = None
        self.catalog: Optional[FrameCatalog] = None
        self.prediction: Optional[Prediction] = None
        self.last_updated: Optional[int] = None

    @property
    def advisory(self) -> Optional[str]:
        advisories = [a for a in (self.catalog_advisory, self.location_advisory) if a]
        return " ".join(advisories) or None

    def next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def publish(self, generation: int, catalog: FrameCatalog, prediction: Prediction) -> bool:
        """Replace catalog and prediction together if generation is newest."""
        if generation <= self._published_generation:
            logger.info(f"Discarding stale prediction from generation {generation}")
            return False
        self._published_generation = generation
        self.catalog = catalog
        self.prediction = prediction
        self.catalog_advisory = None
        self.last_updated = int(time.time())
        return True


class ForecastUpdateTask:
    """Runs forecast cycles on a timer.

    Overlap policy is skip: a trigger that fires while a cycle is in
    flight does nothing.
    """

    def __init__(
        self,
        client: RainViewerClient,
        service: ForecastService,
        resolver: LocationResolver,
        store: Optional[PredictionStore] = None,
        interval_minutes: float = REFRESH_INTERVAL_MINUTES
    ):
        self.client = client
        self.service = service
        self.resolver = resolver
        self.store = store or PredictionStore()
        self.interval_minutes = interval_minutes
        self.running = False
        self._in_flight = False

    def resolve_location(self) -> Location:
        """Resolve and remember the location and its timezone."""
        location, advisory = self.resolver.resolve()
        self.store.location = location
        self.store.location_advisory = advisory
        self.store.timezone = self.resolver.get_timezone(location.lat, location.lng)
        return location

    async def start_background_updates(self):
        """Run a cycle every interval until stopped; the first one resolves the location."""
        self.running = True
        logger.info(f"Starting forecast updates every {self.interval_minutes} minutes")

        while self.running:
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Unexpected error in forecast cycle: {e}")
            await asyncio.sleep(self.interval_minutes * 60)

    async def run_cycle(self) -> CycleOutcome:
        """Fetch the catalog, compute a forecast and publish it."""
        if self._in_flight:
            logger.info("Forecast cycle already running, skipping")
            return CycleOutcome.SKIPPED

        self._in_flight = True
        generation = self.store.next_generation()
        try:
            location = self.store.location
            if location is None:
                location = await asyncio.to_thread(self.resolve_location)
            catalog = await self.client.fetch_frame_catalog()
            prediction = await self.service.compute_forecast(location, catalog)
        except CatalogUnavailableError as e:
            logger.error(f"Catalog unavailable, keeping previous prediction: {e}")
            self.store.catalog_advisory = CATALOG_ADVISORY
            return CycleOutcome.FAILED
        except ForecastError as e:
            logger.error(f"Forecast pass failed, keeping previous prediction: {e}")
            return CycleOutcome.FAILED
        finally:
            self._in_flight = False

        if self.store.publish(generation, catalog, prediction):
            logger.info(f"Published prediction generation {generation}")
            return CycleOutcome.PUBLISHED
        return CycleOutcome.STALE

    def stop(self):
        """Stop the background update task."""
        self.running = False
        logger.info("Stopping forecast updates")
