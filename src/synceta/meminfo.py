"""Dirty page-cache counter read from /proc/meminfo.

Reads the whole file on every call; /proc files report their size as 0, so
the file is read until EOF rather than by a stat-sized buffer.
"""

from pathlib import Path
from typing import Protocol

DEFAULT_MEMINFO_PATH = Path("/proc/meminfo")

# Units the kernel appends to meminfo values ("kB" is KiB)
_UNIT_BYTES = {
    "": 1,
    "b": 1,
    "kb": 1024,
    "mb": 1024 * 1024,
    "gb": 1024 * 1024 * 1024,
}


class MetricSourceError(Exception):
    """The dirty-bytes counter could not be obtained."""


class SourceUnavailable(MetricSourceError):
    """The counter's backing file could not be read."""


class MetricParseError(MetricSourceError):
    """The counter's backing file held data that could not be parsed."""


class MetricSource(Protocol):
    """Point-in-time reader of outstanding unflushed bytes."""

    def current_dirty_bytes(self) -> int: ...


def read_whole_file(path: Path) -> bytes:
    """Read a file to EOF.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    with open(path, "rb") as f:
        return f.read()


def parse_meminfo_field(data: bytes, field: str) -> int:
    """Return the value of a meminfo field in bytes.

    Lines look like ``Dirty:            1234 kB``.

    Raises:
        MetricParseError: If the field is missing, not a non-negative
            integer, or carries an unknown unit.
    """
    text = data.decode("ascii", errors="replace")
    for line in text.splitlines():
        name, sep, rest = line.partition(":")
        if not sep or name.strip() != field:
            continue

        parts = rest.split()
        if not parts:
            raise MetricParseError(f"{field}: no value")
        try:
            value = int(parts[0])
        except ValueError:
            raise MetricParseError(f"{field}: not an integer: {parts[0]!r}") from None
        if value < 0:
            raise MetricParseError(f"{field}: negative value {value}")

        unit = parts[1].lower() if len(parts) > 1 else ""
        if unit not in _UNIT_BYTES:
            raise MetricParseError(f"{field}: unknown unit {parts[1]!r}")
        return value * _UNIT_BYTES[unit]

    raise MetricParseError(f"{field}: field not found")


class MeminfoSource:
    """MetricSource backed by a meminfo-format file."""

    def __init__(self, path: Path | str = DEFAULT_MEMINFO_PATH, field: str = "Dirty") -> None:
        self.path = Path(path)
        self.field = field

    def __repr__(self) -> str:
        return f"MeminfoSource(path={str(self.path)!r}, field={self.field!r})"

    def current_dirty_bytes(self) -> int:
        """Return the current dirty byte count.

        Raises:
            SourceUnavailable: If the file cannot be read.
            MetricParseError: If the field cannot be parsed.
        """
        try:
            data = read_whole_file(self.path)
        except OSError as e:
            raise SourceUnavailable(f"Cannot read {self.path}: {e}") from e
        return parse_meminfo_field(data, self.field)
