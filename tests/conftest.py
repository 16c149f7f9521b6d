"""Shared fixtures for radar nowcast tests."""

import io

import httpx
import pytest
from PIL import Image

from rain_nowcast.radar.client import RainViewerClient
from rain_nowcast.radar.models import FrameCatalog, Location, RadarFrame

NOW = 1_700_000_000
HOST = "https://tilecache.rainviewer.com"

TRANSPARENT = (0, 0, 0, 0)
LIGHT_BLUE = (0, 150, 220, 255)
YELLOW = (255, 200, 0, 255)
RED = (230, 30, 30, 255)


def png_bytes(color, size=256) -> bytes:
    """Encode a single-color RGBA tile."""
    buffer = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_client(handler) -> RainViewerClient:
    """Radar client whose HTTP traffic is answered by handler."""
    return RainViewerClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def tile_handler(colors_by_path, failing_paths=()):
    """Mock transport handler serving one solid tile per frame path."""
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.split("/")[3]
        if path in failing_paths:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, content=png_bytes(colors_by_path[path]))
    return handler


@pytest.fixture
def location():
    return Location(lat=41.38, lng=2.17, name="Barcelona")


@pytest.fixture
def catalog():
    return FrameCatalog(
        past_frames=[
            RadarFrame(path="P1", time=NOW - 1200),
            RadarFrame(path="A", time=NOW - 600),
        ],
        forecast_frames=[
            RadarFrame(path="B", time=NOW + 600),
            RadarFrame(path="C", time=NOW + 1200),
        ],
        tile_host=HOST,
        generated=NOW - 60
    )
