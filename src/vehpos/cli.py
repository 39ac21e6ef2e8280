#!/usr/bin/env python3
"""
Nearest Vehicle Lookup Tool
This script loads a binary dump of vehicle positions, finds the nearest
vehicle to each query coordinate by Haversine distance, and reports the
matches along with read and search timings. It can also generate an
interactive HTML map of the matches.
"""

from typing import List, Optional
import webbrowser
import argparse
import logging
import time
import sys
import os
from gpxpy import gpx

from . import __version__
from . import visualization
from .config import VehposConfig
from .exceptions import VehposError
from .file_utils import (
    DEFAULT_DATA_FILENAME,
    generate_output_filename,
    read_data_file,
    resolve_data_path,
)
from .geometry import Position
from .metrics import collect_metrics, log_metrics
from .nearest import DEFAULT_CHUNK_SIZE, QueryResult, find_batch
from .queries import DEFAULT_QUERIES, parse_query, queries_from_file
from .record_store import RecordStore, decode_store

# Configure logging
logger = logging.getLogger("vehpos")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Nearest vehicle lookup over a binary position dump",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "filename",
        type=str,
        nargs="?",
        default=DEFAULT_DATA_FILENAME,
        help=f"Vehicle position data file (default: {DEFAULT_DATA_FILENAME})",
    )
    parser.add_argument(
        "--query",
        dest="queries",
        type=str,
        action="append",
        default=[],
        metavar="LAT,LON",
        help="Query coordinate; may be repeated (default: built-in target list)",
    )
    parser.add_argument(
        "--queries-gpx",
        type=str,
        default=None,
        metavar="FILE",
        help="GPX file whose waypoints, track points and route points are queried",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads evaluating queries concurrently (default: executor default)",
    )
    parser.add_argument(
        "--scan-workers",
        type=int,
        default=1,
        help="Threads scanning record chunks within each query (default: 1)",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help=f"Records per scan chunk (default: {DEFAULT_CHUNK_SIZE})",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Disable all concurrency (same results, single thread)",
    )
    parser.add_argument(
        "--map",
        action="store_true",
        help="Write an interactive HTML map of the queries and nearest vehicles",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output HTML map file (default: auto-generated based on input filename)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Don't automatically open the HTML map in browser",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vehpos {__version__}",
    )
    return parser


def setup_logging(args: argparse.Namespace) -> None:
    """Setup logging configuration."""
    level = getattr(logging, args.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def collect_queries(args: argparse.Namespace) -> List[Position]:
    """
    Gather query positions from --query and --queries-gpx, in that order.

    Falls back to the built-in target list when neither is given.

    Raises:
        QueryParseError: If a query is malformed or out of range
        OSError: If the GPX file can't be read
        gpxpy.gpx.GPXException: If the GPX file is malformed
    """
    queries = [parse_query(text) for text in args.queries]
    if args.queries_gpx is not None:
        queries.extend(queries_from_file(args.queries_gpx))

    if not args.queries and args.queries_gpx is None:
        logger.debug(f"No queries given, using {len(DEFAULT_QUERIES)} built-in targets")
        return list(DEFAULT_QUERIES)

    return queries


def load_store(filename: str) -> RecordStore:
    """Resolve, read and decode a position dump."""
    path = resolve_data_path(filename)
    store = decode_store(read_data_file(path))
    logger.info(f"Loaded {len(store)} vehicles from {path}")
    return store


def format_result(result: QueryResult) -> str:
    """Format one query result as a console line."""
    query = result.query
    if result.record is None:
        return f"No vehicle found near ({query.latitude}, {query.longitude})"
    return (
        f"The nearest vehicle to ({query.latitude}, {query.longitude}) is "
        f"{result.record.registration} ({result.distance_km:.2f} km)"
    )


def remove_reserved_file(filename: str) -> None:
    """Delete an output file reserved for a map that was never written."""
    try:
        os.remove(filename)
        logger.debug(f"Removed unused output file {filename}")
    except OSError as e:
        logger.warning(f"Could not remove unused output file {filename}: {e}")


def open_file_in_browser(filename: str) -> None:
    """
    Open the specified file in the default browser.

    Args:
        filename: Path to the file to open
    """
    abs_path = os.path.abspath(filename)
    try:
        webbrowser.open(f"file://{abs_path}")
        logger.debug(f"Opening {abs_path} in your default browser...")
    except webbrowser.Error as e:
        logger.warning(f"Could not automatically open browser: {e}")
        logger.warning(f"Please manually open {abs_path}")


def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments, loads the data file, finds the nearest
    vehicle to every query and reports the results.
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    setup_logging(args)
    config = VehposConfig.from_args(args)

    try:
        queries = collect_queries(args)
    except (VehposError, OSError, gpx.GPXException) as e:
        logger.error(f"Error : {e}")
        sys.exit(1)
    logger.info(f"Searching for {len(queries)} queries")

    read_ms = 0.0
    search_ms = 0.0
    failed = False
    try:
        start = time.perf_counter()
        store = load_store(args.filename)
        read_ms = (time.perf_counter() - start) * 1000
        print(f"Data file read execution time : {read_ms:.3f} ms")

        start = time.perf_counter()
        results = find_batch(
            store,
            queries,
            workers=config.workers,
            scan_workers=config.scan_workers,
            chunk_size=config.chunk_size,
        )
        search_ms = (time.perf_counter() - start) * 1000

        for result in results:
            print(format_result(result))
        print(f"Closest execution time : {search_ms:.3f} ms")
    except (VehposError, OSError, ValueError) as e:
        logger.error(f"Error : {e}")
        failed = True
    finally:
        print(f"Total execution time : {read_ms + search_ms:.3f} ms")

    if failed:
        sys.exit(1)

    metrics = collect_metrics(store, results, read_ms, search_ms)
    log_metrics(metrics, config.metrics)

    if not config.map:
        return

    reserved_filename = None
    try:
        if args.output is not None:
            output_filename = args.output
        else:
            output_filename = reserved_filename = generate_output_filename(
                resolve_data_path(args.filename)
            )
        visualization.create_results_map(results, output_filename, metrics)
    except (RuntimeError, ValueError, OSError) as e:
        logger.error(f"Failed to create map: {e}")
        if reserved_filename is not None:
            remove_reserved_file(reserved_filename)
        sys.exit(1)
    print(f"Map written to {output_filename}")

    if config.open_browser:
        open_file_in_browser(output_filename)


if __name__ == "__main__":
    main()
