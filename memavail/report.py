"""
memavail.report
AUTHOR: carter-vin

free(1)-style report built on top of the MemAvailable estimate

Design goals:
- Explicit structure (no accidental serialization via __dict__)
- Missing meminfo counters become None ("N/A") instead of failing
- Deterministic ordering of rows and columns
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from memavail.calculate import AvailabilityResult

REPORT_SCHEMA_VERSION = "1"

MEM_COLUMNS = ("total", "used", "free", "anonymous", "kernel", "caches", "others")
SWAP_COLUMNS = ("total", "used", "free")
EXTENDED_ROWS = (
    "Buffers",
    "Cached",
    "SwapCached",
    "Shmem",
    "AnonPages",
    "Mapped",
    "Unevict+Mlocked",
    "Dirty+Writeback",
    "NFS+Bounce",
)
EXTENDED_CACHE_ROWS = ("Active(file)", "Inactive(file)", "SReclaimable")


def _sum(meminfo: Mapping[str, int], *keys: str) -> int | None:
    """
    Sum of counters, None if any is missing
    """
    total = 0
    for key in keys:
        value = meminfo.get(key)
        if value is None:
            return None
        total += value
    return total


def _sub(value: int | None, *others: int | None) -> int | None:
    if value is None or any(other is None for other in others):
        return None
    return value - sum(others)


@dataclass(frozen=True)
class FreeReport:
    """
    All report cells in kB

    - mem, swap: column name -> value
    - avail: "used"/"free" for the -/+ avail line
    - extended, extended_caches: row label -> value
    """

    mem: dict[str, int | None]
    avail: dict[str, int | None]
    swap: dict[str, int | None]
    extended: dict[str, int | None]
    extended_caches: dict[str, int | None]
    mem_available_kb: int
    legacy_watermark: bool
    page_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "mem_available_kb": self.mem_available_kb,
            "mem": dict(self.mem),
            "avail": dict(self.avail),
            "swap": dict(self.swap),
            "extended": dict(self.extended),
            "extended_caches": dict(self.extended_caches),
            "meta": {
                "schema_version": REPORT_SCHEMA_VERSION,
                "legacy_watermark": self.legacy_watermark,
                "page_size": self.page_size,
            },
        }


def build_report(result: AvailabilityResult) -> FreeReport:
    """
    Assemble a FreeReport from a calculation result
    """
    meminfo = result.meminfo
    avail_kb = result.mem_available_kb

    total = meminfo.get("MemTotal")
    free = meminfo.get("MemFree")
    anonymous = _sum(meminfo, "Active(anon)", "Inactive(anon)")
    kernel = _sum(meminfo, "SUnreclaim", "PageTables", "KernelStack")
    caches = _sum(meminfo, "Active(file)", "Inactive(file)", "SReclaimable")

    mem = {
        "total": total,
        "used": _sub(total, free),
        "free": free,
        "anonymous": anonymous,
        "kernel": kernel,
        "caches": caches,
        "others": _sub(total, free, anonymous, kernel, caches),
    }

    avail = {
        "used": _sub(total, avail_kb),
        "free": avail_kb,
    }

    swap_total = meminfo.get("SwapTotal")
    swap_free = meminfo.get("SwapFree")
    swap = {
        "total": swap_total,
        "used": _sub(swap_total, swap_free),
        "free": swap_free,
    }

    extended = {
        "Buffers": meminfo.get("Buffers"),
        "Cached": meminfo.get("Cached"),
        "SwapCached": meminfo.get("SwapCached"),
        "Shmem": meminfo.get("Shmem"),
        "AnonPages": meminfo.get("AnonPages"),
        "Mapped": meminfo.get("Mapped"),
        "Unevict+Mlocked": _sum(meminfo, "Unevictable", "Mlocked"),
        "Dirty+Writeback": _sum(meminfo, "Dirty", "Writeback", "WritebackTmp"),
        "NFS+Bounce": _sum(meminfo, "NFS_Unstable", "Bounce"),
    }

    extended_caches = {key: meminfo.get(key) for key in EXTENDED_CACHE_ROWS}

    return FreeReport(
        mem=mem,
        avail=avail,
        swap=swap,
        extended=extended,
        extended_caches=extended_caches,
        mem_available_kb=avail_kb,
        legacy_watermark=result.legacy_watermark,
        page_size=result.page_size,
    )


def report_to_json(report: FreeReport) -> str:
    """
    Serialize a FreeReport

    Rules:
    - sort_keys=True ensures stable key order
    - separators remove whitespace to avoid formatting drift
    """
    return json.dumps(
        report.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
