"""Data models for the radar nowcast."""

from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IntensityLevel(str, Enum):
    """Precipitation intensity, ordered from dry to torrential."""

    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    TORRENTIAL = "torrential"

    @property
    def rank(self) -> int:
        return _INTENSITY_ORDER.index(self)

    @property
    def label(self) -> str:
        return _INTENSITY_LABELS[self]

    def __lt__(self, other):
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank >= other.rank


_INTENSITY_ORDER = list(IntensityLevel)
_INTENSITY_LABELS = {
    IntensityLevel.NONE: "No rain",
    IntensityLevel.LIGHT: "Light",
    IntensityLevel.MODERATE: "Moderate",
    IntensityLevel.HEAVY: "Heavy",
    IntensityLevel.TORRENTIAL: "Torrential",
}


class PixelSample(NamedTuple):
    """RGBA channel values of one tile pixel."""
    r: int
    g: int
    b: int
    a: int


class Location(BaseModel):
    """Point of interest for the nowcast."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    name: Optional[str] = Field(None, description="Place name if known")


class TileCoordinate(BaseModel):
    """Slippy-map tile containing a point at a given zoom."""
    model_config = ConfigDict(frozen=True)

    x: int = Field(..., description="Tile column")
    y: int = Field(..., description="Tile row")
    zoom: int = Field(..., description="Zoom level")


class RadarFrame(BaseModel):
    """One rendered radar snapshot, past or forecast."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Opaque frame identifier used in tile URLs")
    time: int = Field(..., description="Frame time as unix timestamp (seconds)")

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value):
        return str(value)


class FrameCatalog(BaseModel):
    """Radar frames currently published by the provider."""
    model_config = ConfigDict(frozen=True)

    past_frames: List[RadarFrame] = Field(default_factory=list, description="Observed frames, oldest first")
    forecast_frames: List[RadarFrame] = Field(default_factory=list, description="Nowcast frames, oldest first")
    tile_host: str = Field(..., description="Base URL of the tile server")
    generated: Optional[int] = Field(None, description="Catalog generation time")

    @property
    def all_frames(self) -> List[RadarFrame]:
        return [*self.past_frames, *self.forecast_frames]


class TimeSlot(BaseModel):
    """One sampled point on the forecast timeline."""
    model_config = ConfigDict(frozen=True)

    time: int = Field(..., description="Frame time as unix timestamp (seconds)")
    intensity: IntensityLevel = Field(..., description="Classified intensity at the location")
    label: str = Field(..., description="'Now' or signed minute offset such as '+40m'")


class Prediction(BaseModel):
    """Forecast summary derived from one timeline."""
    model_config = ConfigDict(frozen=True)

    is_raining_now: bool = Field(..., description="Most recent observation is wet")
    will_rain_soon: bool = Field(..., description="A future frame is wet")
    start_time: Optional[int] = Field(None, description="Time of the first wet future frame")
    duration_minutes: Optional[int] = Field(None, description="Wet frames times frame interval (approximate)")
    max_intensity: IntensityLevel = Field(..., description="Highest intensity on the timeline")
    rain_frame_count: int = Field(0, description="Number of wet frames on the timeline")
    timeline: List[TimeSlot] = Field(..., description="One slot per analyzed frame, ascending in time")
    generated_at: int = Field(..., description="Reference 'now' used for labels, unix seconds")


# Raw RainViewer payload

class RainViewerRadar(BaseModel):
    """Radar section of the weather-maps.json response."""
    past: List[RadarFrame] = Field(default_factory=list, description="Observed frames")
    nowcast: List[RadarFrame] = Field(default_factory=list, description="Forecast frames")


class RainViewerMaps(BaseModel):
    """Raw response from the RainViewer weather-maps endpoint."""
    host: str = Field(..., description="Tile host")
    generated: Optional[int] = Field(None, description="Generation timestamp")
    radar: RainViewerRadar = Field(..., description="Radar frames")


# API responses

class NowcastResponse(BaseModel):
    """Current prediction for the configured location."""
    location: Location = Field(..., description="Location the prediction is for")
    headline: str = Field(..., description="Short human-readable summary")
    max_intensity_label: str = Field(..., description="Display label of the maximum intensity")
    advisory: Optional[str] = Field(None, description="Non-fatal advisory, if any")
    last_updated: int = Field(..., description="When the prediction was published, unix seconds")
    prediction: Prediction = Field(..., description="Forecast details")


class FrameInfo(BaseModel):
    """Frame entry for map animation consumers."""
    path: str = Field(..., description="Frame identifier")
    time: int = Field(..., description="Frame time, unix seconds")
    local_time: str = Field(..., description="Frame clock time at the location (HH:MM)")
    is_forecast: bool = Field(..., description="True for nowcast frames")
    tile_url_template: str = Field(..., description="Tile URL with {z}/{x}/{y} placeholders")


class FramesResponse(BaseModel):
    """All frames of the current catalog."""
    timezone: str = Field(..., description="Timezone used for local times")
    frames: List[FrameInfo] = Field(..., description="Past frames followed by forecast frames")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
