"""
memavail.errors
AUTHOR: carter-vin

Error hierarchy

Every failure is fatal for the calculation in progress:
- no partial results
- no default substitution
- the CLI reports the message and exits non-zero
"""

from __future__ import annotations


class MemAvailableError(RuntimeError):
    """Base class for every calculation failure"""


class SnapshotReadError(MemAvailableError):
    """A snapshot source could not be opened, read or closed"""


class MeminfoParseError(MemAvailableError):
    """A meminfo line did not match `<key>: <digits> kB`"""


class ZoneParseError(MemAvailableError):
    """A zoneinfo field was malformed, duplicated, or out of order"""


class ZoneCardinalityError(MemAvailableError):
    """Zones disagree on the length of their protection array"""


class MissingKeyError(MemAvailableError):
    """A required meminfo key is absent"""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key '{key}' not found in meminfo")
        self.key = key


class PageSizeError(MemAvailableError):
    """The host page size could not be determined"""
