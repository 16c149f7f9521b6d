"""Unit tests for forecast aggregation."""

import asyncio

import httpx
import pytest

from rain_nowcast.radar.models import FrameCatalog, IntensityLevel, PixelSample, RadarFrame
from rain_nowcast.radar.sampler import TileSampler
from rain_nowcast.radar.service import ForecastError, ForecastService, describe, time_label

from conftest import (
    HOST, LIGHT_BLUE, NOW, RED, TRANSPARENT, YELLOW,
    make_client, tile_handler
)


def run_forecast(handler, location, catalog, concurrent=True, now=NOW):
    async def run():
        async with make_client(handler) as client:
            service = ForecastService(TileSampler(client), concurrent=concurrent)
            return await service.compute_forecast(location, catalog, now=now)
    return asyncio.run(run())


class FakeSampler:
    """Sampler returning scripted pixels, finishing in reverse order."""

    def __init__(self, samples_by_path):
        self.samples_by_path = samples_by_path
        self.requested = []

    async def sample(self, tile_url, px, py):
        path = tile_url.split("/")[5]
        self.requested.append(path)
        # Later frames finish first
        await asyncio.sleep(0.01 * (len(self.samples_by_path) - len(self.requested)))
        return self.samples_by_path[path]


class TestComputeForecast:
    """Test ForecastService.compute_forecast."""

    @pytest.mark.parametrize("concurrent", [True, False])
    def test_rain_starting_soon(self, location, catalog, concurrent):
        handler = tile_handler({"A": TRANSPARENT, "B": LIGHT_BLUE, "C": RED})
        prediction = run_forecast(handler, location, catalog, concurrent=concurrent)

        assert prediction.is_raining_now is False
        assert prediction.will_rain_soon is True
        assert prediction.start_time == NOW + 600
        assert prediction.rain_frame_count == 2
        assert prediction.duration_minutes == 20
        assert prediction.max_intensity is IntensityLevel.HEAVY
        assert len(prediction.timeline) == 3
        assert [slot.time for slot in prediction.timeline] == [NOW - 600, NOW + 600, NOW + 1200]
        assert [slot.intensity for slot in prediction.timeline] == [
            IntensityLevel.NONE, IntensityLevel.LIGHT, IntensityLevel.HEAVY
        ]
        assert [slot.label for slot in prediction.timeline] == ["-10m", "+10m", "+20m"]
        assert prediction.generated_at == NOW

    def test_all_transparent(self, location, catalog):
        handler = tile_handler({"A": TRANSPARENT, "B": TRANSPARENT, "C": TRANSPARENT})
        prediction = run_forecast(handler, location, catalog)

        assert prediction.max_intensity is IntensityLevel.NONE
        assert prediction.duration_minutes == 0
        assert prediction.will_rain_soon is False
        assert prediction.is_raining_now is False
        assert prediction.start_time is None

    def test_failed_tile_counts_as_dry(self, location, catalog):
        handler = tile_handler({"A": RED, "C": RED}, failing_paths={"B"})
        prediction = run_forecast(handler, location, catalog)

        assert len(prediction.timeline) == 3
        assert prediction.timeline[1].intensity is IntensityLevel.NONE
        assert prediction.start_time == NOW + 1200
        assert prediction.rain_frame_count == 2

    def test_unusable_frame_path_counts_as_dry(self, location):
        catalog = FrameCatalog(
            past_frames=[RadarFrame(path="A", time=NOW - 600)],
            forecast_frames=[RadarFrame(path="B\x01", time=NOW + 600)],
            tile_host=HOST
        )
        prediction = run_forecast(tile_handler({"A": RED}), location, catalog)

        assert len(prediction.timeline) == 2
        assert prediction.timeline[1].intensity is IntensityLevel.NONE
        assert prediction.is_raining_now is True
        assert prediction.will_rain_soon is False

    def test_raining_now(self, location, catalog):
        handler = tile_handler({"A": YELLOW, "B": TRANSPARENT, "C": TRANSPARENT})
        prediction = run_forecast(handler, location, catalog)

        assert prediction.is_raining_now is True
        assert prediction.will_rain_soon is False
        assert prediction.start_time is None
        assert prediction.max_intensity is IntensityLevel.MODERATE
        assert prediction.duration_minutes == 10

    def test_first_wet_future_frame_wins(self, location):
        catalog = FrameCatalog(
            past_frames=[RadarFrame(path="A", time=NOW - 600)],
            forecast_frames=[
                RadarFrame(path="B", time=NOW + 600),
                RadarFrame(path="C", time=NOW + 1200),
                RadarFrame(path="D", time=NOW + 1800),
                RadarFrame(path="E", time=NOW + 2400),
            ],
            tile_host=HOST
        )
        handler = tile_handler({"A": RED, "B": TRANSPARENT, "C": LIGHT_BLUE, "D": TRANSPARENT, "E": RED})
        prediction = run_forecast(handler, location, catalog)

        # Past frame is wet but not in the future; gap after C does not move the start
        assert prediction.start_time == NOW + 1200
        # Non-contiguous wet frames all count
        assert prediction.rain_frame_count == 3
        assert prediction.duration_minutes == 30

    def test_only_latest_past_frame_analyzed(self, location, catalog):
        requested = []
        colors = {"P1": RED, "A": TRANSPARENT, "B": TRANSPARENT, "C": TRANSPARENT}

        def handler(request):
            requested.append(request.url.path.split("/")[3])
            return tile_handler(colors)(request)

        prediction = run_forecast(handler, location, catalog, concurrent=False)

        assert requested == ["A", "B", "C"]
        assert prediction.is_raining_now is False

    def test_requests_tile_of_location(self, location, catalog):
        urls = []

        def handler(request):
            urls.append(str(request.url))
            return tile_handler({"A": TRANSPARENT, "B": TRANSPARENT, "C": TRANSPARENT})(request)

        run_forecast(handler, location, catalog, concurrent=False)
        assert urls[0] == f"{HOST}/v2/radar/A/256/9/259/191/1/1_1.png"

    def test_no_past_frames(self, location):
        catalog = FrameCatalog(
            forecast_frames=[RadarFrame(path="B", time=NOW + 600)],
            tile_host=HOST
        )
        prediction = run_forecast(tile_handler({"B": LIGHT_BLUE}), location, catalog)

        assert len(prediction.timeline) == 1
        # Index 0 is a forecast frame here, so it also counts as raining now
        assert prediction.is_raining_now is True
        assert prediction.start_time == NOW + 600

    def test_empty_catalog(self, location):
        catalog = FrameCatalog(tile_host=HOST)
        with pytest.raises(ForecastError):
            run_forecast(tile_handler({}), location, catalog)

    def test_folding_follows_frame_order_not_completion(self, location, catalog):
        sampler = FakeSampler({
            "A": PixelSample(0, 0, 0, 0),
            "B": PixelSample(0, 150, 220, 255),
            "C": PixelSample(230, 30, 30, 255),
        })
        service = ForecastService(sampler, concurrent=True)
        prediction = asyncio.run(service.compute_forecast(location, catalog, now=NOW))

        assert [slot.time for slot in prediction.timeline] == [NOW - 600, NOW + 600, NOW + 1200]
        assert prediction.start_time == NOW + 600
        assert prediction.max_intensity is IntensityLevel.HEAVY


class TestTimeLabel:
    """Test time_label."""

    def test_now_within_tolerance(self):
        assert time_label(NOW, NOW) == "Now"
        assert time_label(NOW - 300, NOW) == "Now"
        assert time_label(NOW + 240, NOW) == "Now"

    def test_offsets(self):
        assert time_label(NOW + 2400, NOW) == "+40m"
        assert time_label(NOW - 600, NOW) == "-10m"
        assert time_label(NOW + 330, NOW) == "+6m"


class TestDescribe:
    """Test describe."""

    def test_headlines(self, location, catalog):
        dry = run_forecast(tile_handler({"A": TRANSPARENT, "B": TRANSPARENT, "C": TRANSPARENT}), location, catalog)
        soon = run_forecast(tile_handler({"A": TRANSPARENT, "B": LIGHT_BLUE, "C": RED}), location, catalog)
        wet = run_forecast(tile_handler({"A": RED, "B": RED, "C": RED}), location, catalog)

        assert describe(dry, now=NOW) == "No rain expected"
        assert describe(soon, now=NOW) == "Rain expected in 10 min"
        assert describe(wet, now=NOW) == "Raining now"
