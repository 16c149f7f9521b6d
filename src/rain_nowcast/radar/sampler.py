"""Read single pixels from rendered radar tiles."""

import io
import logging

import httpx
from PIL import Image, UnidentifiedImageError

from rain_nowcast.config import TILE_SIZE
from rain_nowcast.radar.client import RainViewerClient
from rain_nowcast.radar.models import PixelSample

logger = logging.getLogger(__name__)

# Returned when a tile cannot be read; classifies as no precipitation
TRANSPARENT_PIXEL = PixelSample(0, 0, 0, 0)


class TileSampler:
    """Best-effort pixel reader for radar tiles.

    Sampling never raises: a failed download, an undecodable image or a
    pixel outside the tile all give TRANSPARENT_PIXEL.
    """

    def __init__(self, client: RainViewerClient, tile_size: int = TILE_SIZE):
        self.client = client
        self.tile_size = tile_size

    async def sample(self, tile_url: str, px: int, py: int) -> PixelSample:
        """Fetch a tile and read the pixel at (px, py)."""
        try:
            content = await self.client.fetch_tile(tile_url)
        except httpx.HTTPStatusError as e:
            logger.warning(f"Tile request failed with status {e.response.status_code}: {tile_url}")
            return TRANSPARENT_PIXEL
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Tile request failed for {tile_url!r}: {e}")
            return TRANSPARENT_PIXEL

        try:
            return self.read_pixel(content, px, py)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Could not decode tile {tile_url}: {e}")
            return TRANSPARENT_PIXEL
        except IndexError:
            logger.warning(f"Pixel ({px}, {py}) outside tile {tile_url}")
            return TRANSPARENT_PIXEL

    def read_pixel(self, content: bytes, px: int, py: int) -> PixelSample:
        """Decode tile bytes onto a transparent tile-sized buffer and read one pixel.

        Raises:
            UnidentifiedImageError: If the bytes are not an image
            IndexError: If the pixel lies outside the buffer
        """
        if not (0 <= px < self.tile_size and 0 <= py < self.tile_size):
            raise IndexError(f"pixel ({px}, {py}) outside {self.tile_size}px tile")

        with Image.open(io.BytesIO(content)) as image:
            tile = image.convert("RGBA")

        # Smaller images leave the rest of the buffer transparent
        buffer = Image.new("RGBA", (self.tile_size, self.tile_size), (0, 0, 0, 0))
        buffer.paste(tile, (0, 0))
        return PixelSample(*buffer.getpixel((px, py)))
