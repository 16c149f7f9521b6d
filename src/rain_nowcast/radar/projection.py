"""Web Mercator projection from coordinates to slippy-map tiles and pixels."""

import math
from typing import Tuple

from rain_nowcast.config import TILE_SIZE
from rain_nowcast.radar.models import TileCoordinate


def world_coordinate(lat: float, lng: float, zoom: int) -> Tuple[float, float]:
    """Return the position of a point in tile units at the given zoom.

    The integer part is the tile index, the fractional part the position
    inside that tile. Latitude is not validated; results beyond the
    Mercator limit (about 85.05 degrees) are meaningless.

    Args:
        lat: Latitude in decimal degrees
        lng: Longitude in decimal degrees
        zoom: Zoom level

    Returns:
        Tuple of (world_x, world_y) as floats
    """
    n = 2.0 ** zoom
    lat_rad = lat * math.pi / 180
    world_x = (lng + 180) / 360 * n
    world_y = (1 - math.log(math.tan(lat_rad) + 1 / math.cos(lat_rad)) / math.pi) / 2 * n
    return world_x, world_y


def tile_coordinate(lat: float, lng: float, zoom: int) -> TileCoordinate:
    """Get the tile containing a point."""
    world_x, world_y = world_coordinate(lat, lng, zoom)
    return TileCoordinate(x=math.floor(world_x), y=math.floor(world_y), zoom=zoom)


def fractional_pixel(lat: float, lng: float, zoom: int, tile_size: int = TILE_SIZE) -> Tuple[int, int]:
    """Get the pixel of a point inside the tile returned by tile_coordinate.

    Returns:
        Tuple of (px, py), each in [0, tile_size)
    """
    world_x, world_y = world_coordinate(lat, lng, zoom)
    px = math.floor((world_x - math.floor(world_x)) * tile_size)
    py = math.floor((world_y - math.floor(world_y)) * tile_size)
    # Float rounding can land exactly on tile_size
    return min(px, tile_size - 1), min(py, tile_size - 1)
