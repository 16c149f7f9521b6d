"""Map radar tile colors to precipitation intensity."""

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

from rain_nowcast.config import (
    THRESHOLD_ALPHA_MIN, THRESHOLD_HEAVY_RED_MIN, THRESHOLD_HEAVY_GREEN_MAX,
    THRESHOLD_MODERATE_GREEN_MIN, THRESHOLD_MODERATE_BLUE_MAX,
    THRESHOLD_LIGHT_GREEN_MIN, THRESHOLD_LIGHT_BLUE_MIN
)
from rain_nowcast.radar.models import IntensityLevel, PixelSample


class ColorThresholds(BaseModel):
    """Channel thresholds calibrated against one provider color scheme.

    Changing provider or color scheme means recalibrating these values,
    the classification rules stay the same.
    """
    model_config = ConfigDict(frozen=True)

    alpha_min: int = Field(THRESHOLD_ALPHA_MIN, description="Below this alpha the pixel is empty")
    heavy_red_min: int = Field(THRESHOLD_HEAVY_RED_MIN, description="Red above this with low green is heavy")
    heavy_green_max: int = Field(THRESHOLD_HEAVY_GREEN_MAX, description="Green below this with high red is heavy")
    moderate_green_min: int = Field(THRESHOLD_MODERATE_GREEN_MIN, description="Green above this with high red is moderate")
    moderate_blue_max: int = Field(THRESHOLD_MODERATE_BLUE_MAX, description="Blue below this for moderate")
    light_green_min: int = Field(THRESHOLD_LIGHT_GREEN_MIN, description="Green above this is light")
    light_blue_min: int = Field(THRESHOLD_LIGHT_BLUE_MIN, description="Blue above this is light")


DEFAULT_THRESHOLDS = ColorThresholds()


def classify(r: int, g: int, b: int, a: int, thresholds: ColorThresholds = DEFAULT_THRESHOLDS) -> IntensityLevel:
    """Classify one RGBA pixel.

    Never returns TORRENTIAL; that level is only reachable through future
    calibration.
    """
    t = thresholds
    if a < t.alpha_min:
        return IntensityLevel.NONE

    if r > t.heavy_red_min and g < t.heavy_green_max:
        return IntensityLevel.HEAVY
    if r > t.heavy_red_min and g > t.moderate_green_min and b < t.moderate_blue_max:
        return IntensityLevel.MODERATE
    if g > t.light_green_min or b > t.light_blue_min:
        return IntensityLevel.LIGHT

    return IntensityLevel.NONE


def classify_sample(sample: PixelSample, thresholds: ColorThresholds = DEFAULT_THRESHOLDS) -> IntensityLevel:
    return classify(sample.r, sample.g, sample.b, sample.a, thresholds)


def max_intensity(levels: Iterable[IntensityLevel]) -> IntensityLevel:
    """Highest level by the intensity order, NONE for an empty sequence."""
    return max(levels, default=IntensityLevel.NONE)
