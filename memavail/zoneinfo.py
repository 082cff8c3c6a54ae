"""
memavail.zoneinfo
AUTHOR: carter-vin

Zone parser for /proc/zoneinfo

Each zone block starts with `Node <N>, zone <name>` and must carry exactly one
`high`, `managed` and `protection: (...)` line before the next header or the
end of input. Unrecognized lines are ignored so newer kernels still parse.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from memavail.errors import ZoneParseError
from memavail.sources import PROC_ZONEINFO, lines_or_read

ZONE_HEADER_RE = re.compile(r"^(Node\s+\d+,\s+zone\s+.+)$", re.ASCII)
NODE_ID_RE = re.compile(r"^Node\s+(\d+),\s+zone\s+(.*?)\s*$", re.ASCII)

# field name -> pattern capturing the raw value
_FIELD_PATTERNS = {
    "high_wmark_pages": re.compile(r"^\s+high\s+(\d+)\s*$", re.ASCII),
    "managed_pages": re.compile(r"^\s+managed\s+(\d+)\s*$", re.ASCII),
    "lowmem_reserve": re.compile(r"^\s+protection:\s+\(([0-9, ]+)\)\s*$", re.ASCII),
}


@dataclass(frozen=True)
class ZoneRecord:
    """
    One sealed zone of one NUMA node

    - high_wmark_pages, managed_pages: pages
    - lowmem_reserve: protection array, one entry per zone index
    """

    node_id: int
    header: str
    high_wmark_pages: int
    managed_pages: int
    lowmem_reserve: tuple[int, ...]

    @property
    def name(self) -> str:
        match = NODE_ID_RE.match(self.header)
        return match.group(2) if match else self.header


# node id -> zones in encounter order
AllZones = dict[int, list[ZoneRecord]]


@dataclass
class _ZoneAccumulator:
    header: str
    values: dict[str, str] = field(default_factory=dict)

    def set(self, key: str, value: str) -> None:
        if key in self.values:
            raise ZoneParseError(f"Got Zone key='{key}' for the second time")
        self.values[key] = value

    def seal(self) -> ZoneRecord:
        for key in _FIELD_PATTERNS:
            if key not in self.values:
                raise ZoneParseError(f"Zone parsing is incomplete; missing key='{key}'")

        items = self.values["lowmem_reserve"].split(", ")
        # trailing empty fields are dropped: "(0, 0, )" is two entries
        while items and items[-1] == "":
            items.pop()

        reserve: list[int] = []
        for item in items:
            if not (item.isascii() and item.isdigit()):
                raise ZoneParseError(f"Invalid value for 'lowmem_reserve': {item}")
            reserve.append(int(item))

        match = NODE_ID_RE.match(self.header)
        if match is None:
            raise ZoneParseError(f"Unable to parse the zone header: {self.header}")

        return ZoneRecord(
            node_id=int(match.group(1)),
            header=self.header,
            high_wmark_pages=int(self.values["high_wmark_pages"]),
            managed_pages=int(self.values["managed_pages"]),
            lowmem_reserve=tuple(reserve),
        )


def _append(all_zones: AllZones, zone: _ZoneAccumulator) -> None:
    record = zone.seal()
    all_zones.setdefault(record.node_id, []).append(record)


def parse_zoneinfo(lines: Optional[Sequence[str]] = None) -> AllZones:
    """
    Parse zoneinfo lines into {node_id: [ZoneRecord, ...]}

    Reads /proc/zoneinfo when lines is None.
    """
    all_zones: AllZones = {}
    zone: _ZoneAccumulator | None = None

    for line in lines_or_read(lines, PROC_ZONEINFO):
        line = line.rstrip("\r\n")

        header = ZONE_HEADER_RE.match(line)
        if header is not None:
            if zone is not None:
                _append(all_zones, zone)
            zone = _ZoneAccumulator(header=header.group(1))
            continue

        for key, pattern in _FIELD_PATTERNS.items():
            match = pattern.match(line)
            if match is None:
                continue
            if zone is None:
                raise ZoneParseError(
                    f"Got Zone key='{key}' before we encountered a Zone start"
                )
            zone.set(key, match.group(1))
            break

    if zone is None:
        raise ZoneParseError("No zone found in '/proc/zoneinfo'")
    _append(all_zones, zone)

    return all_zones
