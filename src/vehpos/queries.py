#!/usr/bin/env python3
"""
Query coordinate sources: built-in targets, LAT,LON strings and GPX files.
"""

from typing import List, TextIO
import logging

import gpxpy
import gpxpy.gpx

from .exceptions import QueryParseError
from .geometry import Position

logger = logging.getLogger(__name__)

# Target coordinates searched when no queries are given
DEFAULT_QUERIES: List[Position] = [
    Position(34.544909, -102.100843),
    Position(32.345544, -99.123124),
    Position(33.234235, -100.214124),
    Position(35.195739, -95.348899),
    Position(31.895839, -97.789573),
    Position(32.895839, -101.789573),
    Position(34.115839, -100.225732),
    Position(32.335839, -99.992232),
    Position(33.535339, -94.792232),
    Position(32.234235, -100.222222),
]


def validate_position(latitude: float, longitude: float) -> Position:
    """
    Check that a coordinate pair lies within valid degree ranges.

    Raises:
        QueryParseError: If latitude is outside [-90, 90] or longitude outside [-180, 180]
    """
    if not -90.0 <= latitude <= 90.0:
        raise QueryParseError(f"Latitude {latitude} is outside [-90, 90]")
    if not -180.0 <= longitude <= 180.0:
        raise QueryParseError(f"Longitude {longitude} is outside [-180, 180]")
    return Position(latitude=latitude, longitude=longitude)


def parse_query(text: str) -> Position:
    """
    Parse a "LAT,LON" string into a Position.

    Args:
        text: Comma separated latitude and longitude in decimal degrees

    Returns:
        Position for the query

    Raises:
        QueryParseError: If the text is not two numbers or is out of range
    """
    parts = text.split(",")
    if len(parts) != 2:
        raise QueryParseError(f"Expected LAT,LON but got {text!r}")

    try:
        latitude = float(parts[0])
        longitude = float(parts[1])
    except ValueError:
        raise QueryParseError(f"Non-numeric coordinate in {text!r}") from None

    return validate_position(latitude, longitude)


def queries_from_gpx(file_input: TextIO) -> List[Position]:
    """
    Read query positions from GPX data.

    Waypoints come first, then track points, then route points, each in
    document order.

    Args:
        file_input: File-like object containing GPX data

    Returns:
        List of query positions (may be empty)

    Raises:
        gpxpy.gpx.GPXException: If GPX data is malformed.
        QueryParseError: If a point has out-of-range coordinates.
    """
    gpx_data = gpxpy.parse(file_input)

    positions = [
        validate_position(point.latitude, point.longitude)
        for point in gpx_data.waypoints
    ]

    for track in gpx_data.tracks:
        for segment in track.segments:
            for point in segment.points:
                positions.append(validate_position(point.latitude, point.longitude))

    for route in gpx_data.routes:
        for point in route.points:
            positions.append(validate_position(point.latitude, point.longitude))

    logger.debug(f"Parsed {len(positions)} query points from GPX data")
    return positions


def queries_from_file(filename: str) -> List[Position]:
    """
    Load query positions from a GPX file.

    Raises:
        FileNotFoundError: If file doesn't exist.
        PermissionError: If file can't be read.
        gpxpy.gpx.GPXException: If GPX file is malformed.
    """
    logger.debug(f"Reading GPX query file: {filename}")
    with open(filename, "r", encoding="utf-8") as f:
        return queries_from_gpx(f)
