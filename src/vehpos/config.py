import argparse
from dataclasses import dataclass
from typing import Optional

from .nearest import DEFAULT_CHUNK_SIZE


@dataclass
class VehposConfig:
    """Configuration for the vehpos CLI."""

    workers: Optional[int] = None
    scan_workers: int = 1
    chunk_size: int = DEFAULT_CHUNK_SIZE
    log_level: str = "WARNING"
    metrics: bool = False
    map: bool = False
    open_browser: bool = True

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "VehposConfig":
        """Build a configuration from parsed command-line arguments."""
        if args.sequential:
            workers, scan_workers = 1, 1
        else:
            workers, scan_workers = args.workers, args.scan_workers

        return cls(
            workers=workers,
            scan_workers=scan_workers,
            chunk_size=args.chunk_size,
            log_level=args.log_level,
            metrics=args.metrics,
            map=args.map,
            open_browser=not args.no_open,
        )
