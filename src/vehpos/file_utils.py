#!/usr/bin/env python3
"""
File utilities for locating and reading position dumps and naming map output.
"""

import os
import logging

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILENAME = "VehiclePositions.dat"

# Give up on numbered map names after this many attempts
MAX_OUTPUT_ATTEMPTS = 180


def resolve_data_path(filename: str = DEFAULT_DATA_FILENAME) -> str:
    """
    Resolve a data file name to an absolute path.

    Relative names are taken relative to the current working directory.
    """
    if os.path.isabs(filename):
        return filename
    return os.path.join(os.getcwd(), filename)


def read_data_file(path: str) -> bytes:
    """
    Read a whole position dump into memory.

    Raises:
        FileNotFoundError: If file doesn't exist.
        PermissionError: If file can't be read.
        IsADirectoryError: If path names a directory.
    """
    logger.debug(f"Reading data file: {path}")
    with open(path, "rb") as f:
        data = f.read()
    logger.debug(f"Read {len(data)} bytes from {path}")
    return data


def generate_output_filename(input_filename: str) -> str:
    """
    Generates an output HTML filename and reserves it by creating an empty file.

    Strategy:
    1. If input ends with .dat (case-insensitive), drop it
    2. Append " map.html"
    3. If file exists, try " (1).html", " (2).html", etc.
    4. Stop after MAX_OUTPUT_ATTEMPTS numbered attempts
    5. Use exclusive open (`open(path, 'x')`) to avoid race conditions and reserve the name.

    Args:
        input_filename: Path to the input data file

    Returns:
        Safe output filename that has been created as an empty file to reserve its name

    Raises:
        RuntimeError: If no available filename is found
        ValueError: If a filename cannot be created (e.g., due to permissions or an invalid name)
    """
    input_dir = os.path.dirname(input_filename)
    input_base = os.path.basename(input_filename)

    if input_base.lower().endswith(".dat"):
        base_name = input_base[:-4]
    else:
        base_name = input_base

    base_output = base_name + " map"

    candidates = [os.path.join(input_dir, base_output + ".html")]
    candidates.extend(
        os.path.join(input_dir, f"{base_output} ({i}).html")
        for i in range(1, MAX_OUTPUT_ATTEMPTS + 1)
    )

    for candidate in candidates:
        try:
            with open(candidate, "x"):
                pass
            return candidate
        except FileExistsError:
            continue
        except OSError as e:
            logger.error(f"Cannot create file {candidate}: {e}")
            raise ValueError(f"Cannot create file: {e}") from e

    logger.error(
        f"Could not find an available filename after {MAX_OUTPUT_ATTEMPTS} attempts. "
        f"Please clean up your output directory or specify --output explicitly."
    )
    raise RuntimeError(
        f"No available filename found after {MAX_OUTPUT_ATTEMPTS} attempts"
    )
