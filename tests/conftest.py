import struct

import pytest

RECORD = struct.Struct("<10sffQ")


def pack_record(registration, latitude, longitude, recorded_at=0):
    """Encode one 26-byte record; str registrations are space padded."""
    if isinstance(registration, str):
        registration = registration.encode("ascii").ljust(10, b" ")
    return RECORD.pack(registration, latitude, longitude, recorded_at)


def pack_records(rows):
    return b"".join(pack_record(*row) for row in rows)


@pytest.fixture
def dump():
    """Build a binary dump from (registration, lat, lon[, recorded_at]) rows."""
    return pack_records
