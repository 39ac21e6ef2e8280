#!/usr/bin/env python3
"""
Vehpos - Nearest vehicle lookup over binary vehicle position dumps.

This package decodes fixed-layout position records into an immutable store
and finds the nearest vehicle to batches of query coordinates using
Haversine distance on a thread pool.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vehpos")
except PackageNotFoundError:
    __version__ = "0+local"

# Import main classes for public API
from .config import VehposConfig
from .exceptions import MalformedRecordError, QueryParseError, VehposError
from .geometry import EARTH_RADIUS_KM, Position, haversine_distance
from .nearest import QueryResult, find_batch, find_nearest
from .record_store import (
    RECORD_SIZE,
    PositionRecord,
    RecordStore,
    decode_record,
    decode_store,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "MalformedRecordError",
    "Position",
    "PositionRecord",
    "QueryParseError",
    "QueryResult",
    "RECORD_SIZE",
    "RecordStore",
    "VehposConfig",
    "VehposError",
    "decode_record",
    "decode_store",
    "find_batch",
    "find_nearest",
    "haversine_distance",
]
