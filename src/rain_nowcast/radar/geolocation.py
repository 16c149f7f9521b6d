"""Location resolution and timezone lookup for the nowcast."""

import logging
from typing import Optional, Tuple

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.geocoders import Nominatim
from timezonefinder import TimezoneFinder

from rain_nowcast.config import (
    DEFAULT_LAT, DEFAULT_LNG, DEFAULT_CITY, GEOCODING_USER_AGENT,
    LOCATION_LAT, LOCATION_LNG, LOCATION_QUERY
)
from rain_nowcast.radar.models import Location

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = Location(lat=DEFAULT_LAT, lng=DEFAULT_LNG, name=DEFAULT_CITY)


class LocationResolver:
    """Resolves the nowcast location, falling back to a default point.

    Explicit coordinates take precedence over a place query. Any failure
    gives the default location plus an advisory message instead of an error.
    """

    def __init__(
        self,
        lat: Optional[float] = LOCATION_LAT,
        lng: Optional[float] = LOCATION_LNG,
        query: Optional[str] = LOCATION_QUERY,
        fallback: Location = DEFAULT_LOCATION
    ):
        """Initialize the resolver.

        Args:
            lat: Configured latitude
            lng: Configured longitude
            query: Place name to geocode when no coordinates are configured
            fallback: Location used when resolution fails
        """
        self.lat = lat
        self.lng = lng
        self.query = query
        self.fallback = fallback
        self.geolocator = Nominatim(user_agent=GEOCODING_USER_AGENT)
        self._tf: Optional[TimezoneFinder] = None

    def resolve(self) -> Tuple[Location, Optional[str]]:
        """Resolve the location to forecast for.

        Returns:
            Tuple of (location, advisory); advisory is None on success
        """
        if self.lat is not None and self.lng is not None:
            try:
                location = Location(lat=self.lat, lng=self.lng)
                logger.info(f"Using configured coordinates ({location.lat}, {location.lng})")
                return location, None
            except ValueError as e:
                logger.warning(f"Configured coordinates are invalid: {e}")
                return self._fallback("Configured coordinates are invalid.")

        if self.query:
            return self._geocode(self.query)

        return self._fallback("No location configured.")

    def _geocode(self, query: str) -> Tuple[Location, Optional[str]]:
        try:
            logger.info(f"Geocoding location: {query}")
            result = self.geolocator.geocode(query)
        except (GeocoderUnavailable, GeocoderTimedOut) as e:
            logger.warning(f"Geocoding service unavailable for '{query}': {e}")
            return self._fallback("Location service unavailable.")
        except GeocoderServiceError as e:
            logger.warning(f"Geocoding failed for '{query}': {e}")
            return self._fallback("Location service unavailable.")

        if not result:
            logger.warning(f"Location '{query}' not found")
            return self._fallback(f"Location '{query}' not found.")

        location = Location(lat=result.latitude, lng=result.longitude, name=query)
        logger.info(f"Geocoded '{query}' to ({location.lat}, {location.lng})")
        return location, None

    def _fallback(self, reason: str) -> Tuple[Location, str]:
        advisory = f"{reason} Using {self.fallback.name or 'the default location'} as reference."
        logger.warning(advisory)
        return self.fallback, advisory

    def get_timezone(self, lat: float, lng: float) -> str:
        """Get timezone for coordinates.

        Returns:
            Timezone string (e.g., "Europe/Madrid") or "UTC" if not found
        """
        try:
            # Loaded on first use; the lookup data is large
            if self._tf is None:
                self._tf = TimezoneFinder(in_memory=True)
            timezone = self._tf.timezone_at(lng=lng, lat=lat)

            if timezone:
                logger.info(f"Found timezone '{timezone}' for ({lat}, {lng})")
                return timezone
            logger.warning(f"No timezone found for ({lat}, {lng}), defaulting to UTC")
            return "UTC"

        except ValueError as e:
            logger.error(f"Error getting timezone for ({lat}, {lng}): {e}")
            return "UTC"
