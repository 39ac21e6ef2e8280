"""
Geometry helpers for positions and great-circle distances.

This module provides the Position value type, the Haversine distance used
to rank vehicles by nearness, and a bounding box helper built on Shapely
for framing a set of positions on a map.
"""

from typing import Iterable, NamedTuple, Tuple
import math

from shapely.geometry import MultiPoint

# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


class Position(NamedTuple):
    """Represents a geographic position with latitude and longitude."""

    latitude: float
    longitude: float


def haversine_distance(
    lat1: float, lon1: float, lat2: float, lon2: float
) -> float:
    """
    Calculate the Haversine distance between two lat/lon points.

    Args:
        lat1: Latitude of the first point in decimal degrees
        lon1: Longitude of the first point in decimal degrees
        lat2: Latitude of the second point in decimal degrees
        lon2: Longitude of the second point in decimal degrees

    Returns:
        Great-circle distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2) - math.radians(lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a slightly above 1.0 near antipodal points
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def position_distance(pos1: Position, pos2: Position) -> float:
    """Haversine distance in kilometers between two Position objects."""
    return haversine_distance(
        pos1.latitude, pos1.longitude, pos2.latitude, pos2.longitude
    )


def calculate_bbox(
    positions: Iterable[Position], buffer: float = 0.0
) -> Tuple[float, float, float, float]:
    """
    Calculate the bounding box of a set of positions, optionally with a buffer.

    Args:
        positions: Positions to enclose
        buffer: Buffer distance in kilometers (default: 0.0)

    Returns:
        Tuple of (south, west, north, east) in decimal degrees

    Raises:
        ValueError: If positions is empty
    """
    points = [(pos.longitude, pos.latitude) for pos in positions]
    if not points:
        raise ValueError("At least one position is required to compute a bounding box")

    west, south, east, north = MultiPoint(points).bounds

    if buffer == 0.0:
        return (south, west, north, east)

    # Convert buffer from km to approximate degrees
    # 1 degree latitude ≈ 111 km, longitude shrinks with latitude
    avg_lat = (south + north) / 2
    lat_buffer = buffer / 111.0
    lon_buffer = buffer / (111.0 * max(abs(math.cos(math.radians(avg_lat))), 1e-6))

    return (
        max(-90.0, south - lat_buffer),
        max(-180.0, west - lon_buffer),
        min(90.0, north + lat_buffer),
        min(180.0, east + lon_buffer),
    )
