"""
memavail.calculate
AUTHOR: carter-vin

MemAvailable estimate for kernels before 3.14

Kernel commits:
  https://git.kernel.org/cgit/linux/kernel/git/torvalds/linux.git/commit/?id=34e431b0ae398fc54ea69ff85ec700722c9da773
  https://github.com/torvalds/linux/commit/84ad5802a33a4964a49b8f7d24d80a214a096b19

All values are in kB unless the name says pages.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from fractions import Fraction
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Sequence

from memavail.errors import PageSizeError
from memavail.logging import emit_event
from memavail.meminfo import get_value, parse_meminfo
from memavail.reserve import (
    calculate_totalreserve_pages,
    get_max_nr_zones,
    get_wmark_low_in_pages,
)
from memavail.sources import PROC_ZONEINFO, lines_or_read
from memavail.zoneinfo import ZoneRecord, parse_zoneinfo


@dataclass(frozen=True)
class CalcConfig:
    """
    Calculation options

    - legacy_watermark: subtract the summed low watermark from MemFree instead
      of totalreserve_pages (pre-84ad5802 kernels)
    - verbose_trace: emit trace events for every intermediate value
    """

    legacy_watermark: bool = False
    verbose_trace: bool = False


@dataclass(frozen=True)
class AvailabilityResult:
    """
    Estimate plus the meminfo it was derived from

    Unpacks as the pair (mem_available_kb, meminfo).
    """

    mem_available_kb: int
    meminfo: Mapping[str, int]
    totalreserve_kb: int = 0
    wmark_low_kb: int = 0
    page_size: int = 0
    legacy_watermark: bool = False
    zones: tuple[ZoneRecord, ...] = field(default=(), repr=False)

    def __iter__(self) -> Iterator[Any]:
        yield self.mem_available_kb
        yield self.meminfo


def get_page_size() -> int:
    """
    Bytes per page as reported by the host
    """
    try:
        page_size = os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError) as e:
        raise PageSizeError(f"Unable to determine the memory 'pagesize': {e}") from e

    if page_size <= 0:
        raise PageSizeError(f"Unable to determine the memory 'pagesize': got {page_size}")
    return page_size


def round_half_up(value: Fraction | int) -> int:
    return math.floor(value + Fraction(1, 2))


def pages_to_kb(pages: int, page_size: int) -> int:
    return round_half_up(Fraction(pages * page_size, 1024))


def calculate(
    meminfo_lines: Optional[Sequence[str]] = None,
    zoneinfo_lines: Optional[Sequence[str]] = None,
    *,
    config: Optional[CalcConfig] = None,
    page_size: Optional[int] = None,
) -> AvailabilityResult:
    """
    Estimate memory available for new applications without swapping

    meminfo_lines / zoneinfo_lines replace /proc/meminfo and /proc/zoneinfo
    when given. page_size defaults to the host value.

    Raises a MemAvailableError subclass on any malformed or missing input.
    """
    if config is None:
        config = CalcConfig()

    def trace(event_type: str, **fields: Any) -> None:
        if config.verbose_trace:
            emit_event(event_type, **fields)

    trace("calc_start", legacy_watermark=config.legacy_watermark)

    # Read once; both zone scans see the same snapshot
    zoneinfo_lines = lines_or_read(zoneinfo_lines, PROC_ZONEINFO)

    all_zones = parse_zoneinfo(zoneinfo_lines)
    max_nr_zones = get_max_nr_zones(all_zones)
    trace("max_nr_zones", max_nr_zones=max_nr_zones)

    def on_zone(zone: ZoneRecord, reserve_pages: int) -> None:
        trace("zone_reserve", zone=zone.header, reserve_pages=reserve_pages)

    totalreserve_pages = calculate_totalreserve_pages(
        all_zones, max_nr_zones=max_nr_zones, on_zone=on_zone
    )

    if page_size is None:
        page_size = get_page_size()

    totalreserve_kb = pages_to_kb(totalreserve_pages, page_size)
    trace("pages_to_kb", label="totalreserve_pages", pages=totalreserve_pages, kb=totalreserve_kb)

    wmark_low_pages = get_wmark_low_in_pages(zoneinfo_lines)
    wmark_low_kb = pages_to_kb(wmark_low_pages, page_size)
    trace("pages_to_kb", label="wmark_low", pages=wmark_low_pages, kb=wmark_low_kb)

    meminfo = parse_meminfo(meminfo_lines)

    memfree = get_value(meminfo, "MemFree")
    trace("meminfo_value", key="MemFree", kb=memfree)

    if config.legacy_watermark:
        available: Fraction | int = memfree - wmark_low_kb
    else:
        available = memfree - totalreserve_kb

    # Not all the page cache can be freed: half of it, or the low watermark
    # worth of it, stays.
    active_file = get_value(meminfo, "Active(file)")
    inactive_file = get_value(meminfo, "Inactive(file)")
    trace("meminfo_value", key="Active(file)", kb=active_file)
    trace("meminfo_value", key="Inactive(file)", kb=inactive_file)

    pagecache = active_file + inactive_file
    pagecache_kept = min(Fraction(pagecache, 2), wmark_low_kb)
    available += round_half_up(pagecache - pagecache_kept)

    # Part of the reclaimable slab is in use and cannot be freed
    slab_reclaimable = get_value(meminfo, "SReclaimable")
    trace("meminfo_value", key="SReclaimable", kb=slab_reclaimable)

    available += slab_reclaimable - min(Fraction(slab_reclaimable, 2), wmark_low_kb)

    if available < 0:
        available = 0
    mem_available_kb = round_half_up(available)

    trace("mem_available", kb=mem_available_kb, legacy_watermark=config.legacy_watermark)

    return AvailabilityResult(
        mem_available_kb=mem_available_kb,
        meminfo=MappingProxyType(meminfo),
        totalreserve_kb=totalreserve_kb,
        wmark_low_kb=wmark_low_kb,
        page_size=page_size,
        legacy_watermark=config.legacy_watermark,
        zones=tuple(zone for node_id in sorted(all_zones) for zone in all_zones[node_id]),
    )
