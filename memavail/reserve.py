"""
memavail.reserve
AUTHOR: carter-vin

Zone reserve accounting

- calculate_totalreserve_pages: kernel totalreserve_pages from parsed zones
  https://github.com/torvalds/linux/blob/6aa303defb7454a2520c4ddcdf6b081f62a15890/mm/page_alloc.c#L6559
- get_wmark_low_in_pages: sum of every zone's "low" watermark, scanned
  directly from the raw lines
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Sequence

from memavail.errors import ZoneCardinalityError, ZoneParseError
from memavail.sources import PROC_ZONEINFO, lines_or_read
from memavail.zoneinfo import AllZones, ZoneRecord

_ZONE_START_RE = re.compile(r"^Node\s+\d+,\s+zone\s+", re.ASCII)
_LOW_RE = re.compile(r"^\s+low\s+(\d+)\s*$", re.ASCII)


def get_max_nr_zones(all_zones: AllZones) -> int:
    """
    MAX_NR_ZONES as seen through the protection array length

    Every zone must agree; 0 when there are no zones at all.
    """
    max_nr_zones: int | None = None
    for node_zones in all_zones.values():
        for zone in node_zones:
            count = len(zone.lowmem_reserve)
            if max_nr_zones is None:
                max_nr_zones = count
            if count != max_nr_zones:
                raise ZoneCardinalityError(
                    f"Got different count for MAX_NR_ZONES: {count} "
                    f"(expected {max_nr_zones}) in '{zone.header}'"
                )
    return max_nr_zones or 0


def zone_reserve_pages(zone: ZoneRecord, index: int, max_nr_zones: int) -> int:
    """
    Pages the kernel holds back in one zone

    high watermark + largest protection entry from `index` upward,
    capped at the zone's managed pages
    """
    reserve = 0
    for j in range(index, max_nr_zones):
        if zone.lowmem_reserve[j] > reserve:
            reserve = zone.lowmem_reserve[j]

    # the high watermark counts as reserved
    reserve += zone.high_wmark_pages

    if reserve > zone.managed_pages:
        reserve = zone.managed_pages
    return reserve


def calculate_totalreserve_pages(
    all_zones: AllZones,
    *,
    max_nr_zones: Optional[int] = None,
    on_zone: Optional[Callable[[ZoneRecord, int], None]] = None,
) -> int:
    """
    Sum of zone_reserve_pages over every node, in pages

    Per node, zone indexes are walked from 0 and the walk stops at the first
    index with no zone. The kernel iterates all MAX_NR_ZONES slots, but the
    missing ones contribute nothing and the totals match.

    on_zone(zone, reserve_pages) is called for every counted zone.
    """
    if max_nr_zones is None:
        max_nr_zones = get_max_nr_zones(all_zones)

    total = 0
    for node_id in sorted(all_zones):
        node_zones = all_zones[node_id]
        for i in range(max_nr_zones):
            if i >= len(node_zones):
                break
            zone = node_zones[i]
            reserve = zone_reserve_pages(zone, i, max_nr_zones)
            if on_zone is not None:
                on_zone(zone, reserve)
            total += reserve

    return total


def get_wmark_low_in_pages(lines: Optional[Sequence[str]] = None) -> int:
    """
    Sum of the "low" watermark over every zone, in pages

    Reads /proc/zoneinfo when lines is None.
    """
    got_zone_header = False
    got_low = False
    wmark_low = 0

    for line in lines_or_read(lines, PROC_ZONEINFO):
        line = line.rstrip("\r\n")

        if _ZONE_START_RE.match(line):
            got_zone_header = True
            got_low = False
            continue

        match = _LOW_RE.match(line)
        if match is None:
            continue
        if not got_zone_header:
            raise ZoneParseError("Got 'low' before we encountered a 'zone' start")
        if got_low:
            raise ZoneParseError("Got 'low' for the second time")
        got_low = True
        wmark_low += int(match.group(1))

    return wmark_low
