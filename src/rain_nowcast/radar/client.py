"""HTTP client for the RainViewer radar API."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from rain_nowcast.config import (
    CATALOG_URL, USER_AGENT, HTTP_TIMEOUT_SECONDS,
    TILE_SIZE, TILE_COLOR_SCHEME, TILE_OPTIONS
)
from rain_nowcast.radar.models import FrameCatalog, RainViewerMaps, TileCoordinate

logger = logging.getLogger(__name__)


class CatalogUnavailableError(Exception):
    """Raised when the radar frame catalog cannot be fetched or parsed."""
    pass


def tile_url_template(host: str, frame_path: str) -> str:
    """Build the tile URL template for one frame.

    Args:
        host: Tile host from the catalog
        frame_path: Frame path from the catalog

    Returns:
        URL with {z}, {x} and {y} placeholders
    """
    return f"{host}/v2/radar/{frame_path}/{TILE_SIZE}/{{z}}/{{x}}/{{y}}/{TILE_COLOR_SCHEME}/{TILE_OPTIONS}.png"


def render_tile_url(template: str, tile: TileCoordinate) -> str:
    """Substitute a tile coordinate into a tile URL template."""
    return (
        template
        .replace("{z}", str(tile.zoom))
        .replace("{x}", str(tile.x))
        .replace("{y}", str(tile.y))
    )


class RainViewerClient:
    """Async client for the RainViewer frame catalog and radar tiles."""

    def __init__(
        self,
        catalog_url: str = CATALOG_URL,
        user_agent: str = USER_AGENT,
        client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the radar client.

        Args:
            catalog_url: URL of the weather-maps catalog
            user_agent: User-Agent header for API requests
            client: Preconfigured HTTP client (creates default if None)
        """
        self.catalog_url = catalog_url
        self.user_agent = user_agent
        self.client = client or httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=HTTP_TIMEOUT_SECONDS
        )

    async def fetch_frame_catalog(self) -> FrameCatalog:
        """Fetch the frames currently available for tiles.

        Frames are kept in the order the provider lists them (oldest first).

        Returns:
            FrameCatalog with past and forecast frames and the tile host

        Raises:
            CatalogUnavailableError: If the request fails or the payload is invalid
        """
        logger.info(f"Fetching radar frame catalog from {self.catalog_url}")

        try:
            response = await self.client.get(self.catalog_url)
            response.raise_for_status()
            maps = RainViewerMaps.model_validate(response.json())

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from RainViewer API: {e.response.status_code}")
            raise CatalogUnavailableError(f"Catalog request failed with status {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Request error to RainViewer API: {e}")
            raise CatalogUnavailableError(f"Catalog request failed: {e}") from e
        except ValidationError as e:
            logger.error(f"Invalid catalog format: {e}")
            raise CatalogUnavailableError("Invalid catalog format") from e
        except ValueError as e:
            logger.error(f"Catalog is not valid JSON: {e}")
            raise CatalogUnavailableError("Catalog is not valid JSON") from e

        catalog = FrameCatalog(
            past_frames=maps.radar.past,
            forecast_frames=maps.radar.nowcast,
            tile_host=maps.host,
            generated=maps.generated
        )
        logger.info(
            f"Fetched catalog with {len(catalog.past_frames)} past and "
            f"{len(catalog.forecast_frames)} forecast frames"
        )
        return catalog

    async def fetch_tile(self, url: str) -> bytes:
        """Download one rendered radar tile.

        Raises:
            httpx.HTTPError: If the request fails
        """
        response = await self.client.get(url)
        response.raise_for_status()
        return response.content

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
