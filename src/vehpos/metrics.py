"""
Module for collecting and logging metrics for a nearest vehicle search.
"""

import logging
from typing import List, NamedTuple, Optional

from .nearest import QueryResult
from .record_store import RecordStore

logger = logging.getLogger(__name__)


class SearchMetrics(NamedTuple):
    """Container for search metrics data."""

    record_count: int
    query_count: int
    matched_count: int
    unmatched_count: int
    distinct_vehicles: int
    max_distance_km: Optional[float]
    mean_distance_km: Optional[float]
    read_ms: float
    search_ms: float

    @property
    def total_ms(self) -> float:
        return self.read_ms + self.search_ms


def collect_metrics(
    store: RecordStore,
    results: List[QueryResult],
    read_ms: float = 0.0,
    search_ms: float = 0.0,
) -> SearchMetrics:
    """
    Collect metrics from a completed batch search.

    Args:
        store: The searched record store
        results: Batch results in query order
        read_ms: Time spent reading and decoding the data file
        search_ms: Time spent searching

    Returns:
        SearchMetrics summarizing the run
    """
    distances = [r.distance_km for r in results if r.distance_km is not None]
    registrations = {r.record.registration for r in results if r.record is not None}

    return SearchMetrics(
        record_count=len(store),
        query_count=len(results),
        matched_count=len(distances),
        unmatched_count=len(results) - len(distances),
        distinct_vehicles=len(registrations),
        max_distance_km=max(distances) if distances else None,
        mean_distance_km=sum(distances) / len(distances) if distances else None,
        read_ms=read_ms,
        search_ms=search_ms,
    )


def log_metrics(metrics: SearchMetrics, enabled: bool) -> None:
    """
    Log detailed metrics at debug level.

    Args:
        metrics: SearchMetrics to log
        enabled: Whether metrics output was requested
    """
    if not enabled:
        return

    logger.debug("=== VEHPOS_METRICS ===")
    logger.debug(f"records_loaded={metrics.record_count}")
    logger.debug(f"queries={metrics.query_count}")
    logger.debug(f"matched={metrics.matched_count}")
    logger.debug(f"unmatched={metrics.unmatched_count}")
    logger.debug(f"distinct_vehicles={metrics.distinct_vehicles}")
    if metrics.max_distance_km is not None:
        logger.debug(f"max_distance_km={metrics.max_distance_km:.3f}")
    if metrics.mean_distance_km is not None:
        logger.debug(f"mean_distance_km={metrics.mean_distance_km:.3f}")
    logger.debug(f"read_ms={metrics.read_ms:.3f}")
    logger.debug(f"search_ms={metrics.search_ms:.3f}")
    logger.debug(f"total_ms={metrics.total_ms:.3f}")
    logger.debug("=== END_VEHPOS_METRICS ===")
