"""Exception hierarchy for vehpos."""


class VehposError(Exception):
    """Base exception for all vehpos errors."""


class MalformedRecordError(VehposError):
    """A record window would read past the end of the buffer."""

    def __init__(self, message: str, *, index: int, offset: int, buffer_length: int):
        self.index = index
        self.offset = offset
        self.buffer_length = buffer_length
        super().__init__(message)


class QueryParseError(VehposError, ValueError):
    """Query coordinates could not be parsed or are out of range."""
