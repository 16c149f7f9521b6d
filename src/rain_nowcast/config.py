"""Configuration settings for the rain nowcast service."""

import os
from typing import Final, Optional
from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else None


# RainViewer API
CATALOG_URL: Final[str] = "https://api.rainviewer.com/public/weather-maps.json"
USER_AGENT: Final[str] = "RainNowcast/0.1 (user@example.com)"
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# Tile layout (256px tiles, color scheme 1, smoothing 1 + snow 1)
TILE_SIZE: Final[int] = 256
TILE_COLOR_SCHEME: Final[int] = 1
TILE_OPTIONS: Final[str] = "1_1"
RADAR_ZOOM: Final[int] = 9

# Frame cadence of the provider
FRAME_INTERVAL_MINUTES: Final[int] = 10
NOW_TOLERANCE_MINUTES: Final[int] = 5

# Default location (Barcelona)
DEFAULT_LAT: Final[float] = 41.38
DEFAULT_LNG: Final[float] = 2.17
DEFAULT_CITY: Final[str] = "Barcelona"

# Location overrides
LOCATION_LAT: Optional[float] = _optional_float("LOCATION_LAT")
LOCATION_LNG: Optional[float] = _optional_float("LOCATION_LNG")
LOCATION_QUERY: Optional[str] = os.getenv("LOCATION_QUERY") or None
GEOCODING_USER_AGENT: str = os.getenv("GEOCODING_USER_AGENT", "rain-nowcast")

# Server configuration
HOST: str = os.getenv("HOST", "127.0.0.1")
PORT: int = int(os.getenv("PORT", "8000"))
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Update cycle
REFRESH_INTERVAL_MINUTES: int = int(os.getenv("REFRESH_INTERVAL_MINUTES", "5"))
FETCH_CONCURRENTLY: bool = os.getenv("FETCH_CONCURRENTLY", "true").lower() == "true"

# Color scale calibration for RainViewer scheme 1
THRESHOLD_ALPHA_MIN: int = int(os.getenv("THRESHOLD_ALPHA_MIN", "10"))
THRESHOLD_HEAVY_RED_MIN: int = int(os.getenv("THRESHOLD_HEAVY_RED_MIN", "180"))
THRESHOLD_HEAVY_GREEN_MAX: int = int(os.getenv("THRESHOLD_HEAVY_GREEN_MAX", "100"))
THRESHOLD_MODERATE_GREEN_MIN: int = int(os.getenv("THRESHOLD_MODERATE_GREEN_MIN", "150"))
THRESHOLD_MODERATE_BLUE_MAX: int = int(os.getenv("THRESHOLD_MODERATE_BLUE_MAX", "100"))
THRESHOLD_LIGHT_GREEN_MIN: int = int(os.getenv("THRESHOLD_LIGHT_GREEN_MIN", "100"))
THRESHOLD_LIGHT_BLUE_MIN: int = int(os.getenv("THRESHOLD_LIGHT_BLUE_MIN", "150"))
