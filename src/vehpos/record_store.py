#!/usr/bin/env python3
"""
Fixed-layout decoder for vehicle position dumps.

A dump is a headerless stream of 26-byte little-endian records:

    offset  size  field
    0       10    registration (ASCII, padded)
    10      4     latitude (float32)
    14      4     longitude (float32)
    18      8     recorded_at (uint64 epoch)

The record count is derived from the buffer length alone, so trailing bytes
shorter than one record are ignored.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union
import collections.abc
import string
import struct

from .exceptions import MalformedRecordError
from .geometry import Position

RECORD_FORMAT = struct.Struct("<10sffQ")
RECORD_SIZE = RECORD_FORMAT.size  # 26
REGISTRATION_LENGTH = 10

# Characters stripped from both ends of the registration field
_PADDING = string.whitespace + "\x00"

Buffer = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class PositionRecord:
    """One vehicle's last known fix."""

    registration: str
    latitude: float
    longitude: float
    recorded_at: int

    @property
    def position(self) -> Position:
        return Position(latitude=self.latitude, longitude=self.longitude)


class RecordStore(collections.abc.Mapping):
    """
    Immutable mapping from registration to PositionRecord.

    The store is built once by decode_store() and never changes afterwards,
    so any number of threads may read it concurrently without locking.
    """

    __slots__ = ("_records", "_snapshot")

    def __init__(self, records: Optional[Mapping[str, PositionRecord]] = None):
        """Initializes a RecordStore from a registration-keyed mapping.

        Args:
            records: Mapping of registration to record. It is copied, so later
                changes to the argument do not leak into the store.
        """
        self._records: Mapping[str, PositionRecord] = MappingProxyType(
            dict(records or {})
        )
        self._snapshot: Tuple[PositionRecord, ...] = tuple(self._records.values())

    @classmethod
    def empty(cls) -> "RecordStore":
        return cls()

    @property
    def records(self) -> Tuple[PositionRecord, ...]:
        """All records in store iteration order."""
        return self._snapshot

    def __getitem__(self, registration: str) -> PositionRecord:
        return self._records[registration]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"RecordStore({len(self)} records)"


def decode_record(data: Buffer, index: int) -> Optional[PositionRecord]:
    """
    Decode the index-th record of a buffer.

    Args:
        data: Raw dump bytes
        index: Zero-based record index

    Returns:
        The decoded record, or None if its registration is blank after trimming

    Raises:
        MalformedRecordError: If the record window lies outside the buffer
    """
    offset = index * RECORD_SIZE
    if index < 0 or offset + RECORD_SIZE > len(data):
        raise MalformedRecordError(
            f"Record {index} at offset {offset} exceeds buffer of {len(data)} bytes",
            index=index,
            offset=offset,
            buffer_length=len(data),
        )

    raw_registration, latitude, longitude, recorded_at = RECORD_FORMAT.unpack_from(
        data, offset
    )
    registration = raw_registration.decode("ascii", errors="replace").strip(_PADDING)
    if not registration:
        return None

    return PositionRecord(
        registration=registration,
        latitude=latitude,
        longitude=longitude,
        recorded_at=recorded_at,
    )


def decode_store(data: Buffer) -> RecordStore:
    """
    Decode a full dump into a RecordStore.

    Records with a blank registration are skipped. When a registration occurs
    more than once, the later record replaces the earlier one.

    Args:
        data: Raw dump bytes

    Returns:
        RecordStore holding the last record seen for each registration

    Raises:
        MalformedRecordError: If a record window would exceed the buffer
    """
    record_count = len(data) // RECORD_SIZE

    records: Dict[str, PositionRecord] = {}
    for index in range(record_count):
        record = decode_record(data, index)
        if record is None:
            continue
        # Last write wins on duplicate registrations
        records[record.registration] = record

    return RecordStore(records)
