#!/usr/bin/env python3
"""
Brute-force nearest vehicle search.

Every query scans every record in the store. Queries in a batch run on a
thread pool, and each query's scan can itself be split into chunks whose
local minima are reduced into the overall nearest record.
"""

from concurrent.futures import Executor, ThreadPoolExecutor
import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .geometry import Position, haversine_distance
from .record_store import PositionRecord, RecordStore

DEFAULT_CHUNK_SIZE = 4096

Match = Tuple[PositionRecord, float]


class QueryResult(NamedTuple):
    """Nearest record for one query, or None when the store is empty."""

    query: Position
    record: Optional[PositionRecord]
    distance_km: Optional[float]

    @property
    def found(self) -> bool:
        return self.record is not None


def _distance(latitude: float, longitude: float, record: PositionRecord) -> float:
    """Haversine distance to a record; non-finite coordinates rank last."""
    if not (
        math.isfinite(latitude)
        and math.isfinite(longitude)
        and math.isfinite(record.latitude)
        and math.isfinite(record.longitude)
    ):
        return math.inf
    return haversine_distance(latitude, longitude, record.latitude, record.longitude)


def _scan(
    records: Sequence[PositionRecord], latitude: float, longitude: float
) -> Optional[Match]:
    """Return the nearest record of a sequence and its distance.

    Ties keep the earliest record, since only a strictly smaller distance
    replaces the current best. A record with a NaN or infinite coordinate is
    only returned when no record has finite coordinates.
    """
    best: Optional[PositionRecord] = None
    best_distance = math.inf
    for record in records:
        distance = _distance(latitude, longitude, record)
        if best is None or distance < best_distance:
            best = record
            best_distance = distance

    if best is None:
        return None
    return best, best_distance


def _reduce(matches: Sequence[Optional[Match]]) -> Optional[Match]:
    """Combine per-chunk minima, preferring earlier chunks on ties."""
    best: Optional[Match] = None
    for match in matches:
        if match is None:
            continue
        if best is None or match[1] < best[1]:
            best = match
    return best


def _check_positive(name: str, value: Optional[int]) -> None:
    if value is not None and value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")


def nearest_with_distance(
    store: RecordStore,
    latitude: float,
    longitude: float,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    executor: Optional[Executor] = None,
) -> Optional[Match]:
    """
    Find the nearest record to a point together with its distance.

    Args:
        store: Record store to search
        latitude: Query latitude in decimal degrees
        longitude: Query longitude in decimal degrees
        chunk_size: Number of records per parallel scan chunk
        executor: Optional executor for scanning chunks concurrently.
                  If None, the records are scanned in a single loop.

    Returns:
        Tuple of (record, distance_km), or None if the store is empty
    """
    _check_positive("chunk_size", chunk_size)

    records = store.records
    if not records:
        return None

    if executor is None or len(records) <= chunk_size:
        return _scan(records, latitude, longitude)

    futures = [
        executor.submit(_scan, records[start : start + chunk_size], latitude, longitude)
        for start in range(0, len(records), chunk_size)
    ]
    return _reduce([future.result() for future in futures])


def find_nearest(
    store: RecordStore,
    latitude: float,
    longitude: float,
    *,
    scan_workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    executor: Optional[Executor] = None,
) -> Optional[PositionRecord]:
    """
    Find the record nearest to a point by Haversine distance.

    Args:
        store: Record store to search
        latitude: Query latitude in decimal degrees
        longitude: Query longitude in decimal degrees
        scan_workers: Threads used to scan record chunks when no executor is given
        chunk_size: Number of records per scan chunk
        executor: Optional executor to scan chunks on; takes precedence over scan_workers

    Returns:
        The nearest PositionRecord, or None if the store is empty
    """
    _check_positive("scan_workers", scan_workers)

    if executor is None and scan_workers > 1:
        with ThreadPoolExecutor(max_workers=scan_workers) as scan_pool:
            match = nearest_with_distance(
                store, latitude, longitude, chunk_size=chunk_size, executor=scan_pool
            )
    else:
        match = nearest_with_distance(
            store, latitude, longitude, chunk_size=chunk_size, executor=executor
        )

    return match[0] if match is not None else None


def _evaluate(
    store: RecordStore,
    query: Position,
    chunk_size: int,
    scan_pool: Optional[Executor],
) -> QueryResult:
    match = nearest_with_distance(
        store,
        query.latitude,
        query.longitude,
        chunk_size=chunk_size,
        executor=scan_pool,
    )
    if match is None:
        return QueryResult(query=query, record=None, distance_km=None)
    return QueryResult(query=query, record=match[0], distance_km=match[1])


def _run_batch(
    store: RecordStore,
    queries: List[Position],
    workers: Optional[int],
    chunk_size: int,
    scan_pool: Optional[Executor],
) -> List[QueryResult]:
    if workers == 1:
        return [_evaluate(store, query, chunk_size, scan_pool) for query in queries]

    results: List[Optional[QueryResult]] = [None] * len(queries)
    with ThreadPoolExecutor(max_workers=workers) as query_pool:
        futures = {
            query_pool.submit(_evaluate, store, query, chunk_size, scan_pool): index
            for index, query in enumerate(queries)
        }
        for future, index in futures.items():
            # Each query owns one slot, so completion order cannot reorder output
            results[index] = future.result()

    return results  # type: ignore[return-value]


def find_batch(
    store: RecordStore,
    queries: Sequence[Tuple[float, float]],
    *,
    workers: Optional[int] = None,
    scan_workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> List[QueryResult]:
    """
    Find the nearest record for every query in a batch.

    Queries are evaluated concurrently on a thread pool, and each query's
    record scan runs on a separate pool when scan_workers > 1. The i-th
    result always belongs to the i-th query.

    Args:
        store: Record store to search
        queries: Sequence of (latitude, longitude) pairs in decimal degrees
        workers: Query threads; None uses the executor default, 1 runs sequentially
        scan_workers: Threads shared by all per-query record scans
        chunk_size: Number of records per scan chunk

    Returns:
        List of QueryResult in input order

    Raises:
        ValueError: If workers, scan_workers or chunk_size is less than 1
    """
    _check_positive("workers", workers)
    _check_positive("scan_workers", scan_workers)
    _check_positive("chunk_size", chunk_size)

    positions = [Position(float(lat), float(lon)) for lat, lon in queries]
    if not positions:
        return []

    if scan_workers > 1:
        with ThreadPoolExecutor(max_workers=scan_workers) as scan_pool:
            return _run_batch(store, positions, workers, chunk_size, scan_pool)

    return _run_batch(store, positions, workers, chunk_size, None)
