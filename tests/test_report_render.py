"""
Contract tests for the free-style report and its renderers
"""

import json
from pathlib import Path

import pytest

from memavail.calculate import calculate
from memavail.render import get_renderer
from memavail.render.base import SCALE_MB, RenderOptions
from memavail.report import MEM_COLUMNS, REPORT_SCHEMA_VERSION, build_report

FIXTURES = Path(__file__).parent / "fixtures"


def _result(drop: tuple[str, ...] = ()):
    meminfo = [
        line
        for line in (FIXTURES / "meminfo").read_text(encoding="utf-8").splitlines()
        if line.split(":")[0] not in drop
    ]
    zoneinfo = (FIXTURES / "zoneinfo").read_text(encoding="utf-8").splitlines()
    return calculate(meminfo, zoneinfo, page_size=4096)


def test_report_rows() -> None:
    """
    Mem, avail and swap cells follow the free wrapper formulas
    """
    report = build_report(_result())

    assert report.mem == {
        "total": 16311364,
        "used": 15278652,
        "free": 1032712,
        "anonymous": 4100000,
        "kernel": 276000,
        "caches": 8500000,
        "others": 2402652,
    }
    assert report.avail == {"used": 16311364 - 9414652, "free": 9414652}
    assert report.swap == {"total": 8388604, "used": 88604, "free": 8300000}
    assert report.extended["Unevict+Mlocked"] == 64000
    assert report.extended["Dirty+Writeback"] == 1200
    assert report.extended["NFS+Bounce"] == 0
    assert report.extended_caches == {
        "Active(file)": 3500000,
        "Inactive(file)": 4400000,
        "SReclaimable": 600000,
    }


def test_missing_display_keys_become_none() -> None:
    """
    Absent counters only blank their own cells
    """
    report = build_report(_result(drop=("SwapTotal", "Bounce")))

    assert report.swap == {"total": None, "used": None, "free": 8300000}
    assert report.extended["NFS+Bounce"] is None
    assert report.mem["total"] == 16311364


def test_text_render_default_kb() -> None:
    """
    Default layout matches the free wrapper columns
    """
    text = get_renderer("text").render(build_report(_result()), options=RenderOptions())
    lines = text.splitlines()

    assert lines[0] == ("%-7s" + " %10s" * 7) % ("", *MEM_COLUMNS)
    assert lines[1] == ("%-7s" + " %10s" * 7) % (
        "Mem:", 16311364, 15278652, 1032712, 4100000, 276000, 8500000, 2402652
    )
    assert lines[2] == "%-18s %10s %10s" % ("  -/+ avail", 6896712, 9414652)
    assert lines[3] == "%-7s %10s %10s %10s" % ("Swap:", 8388604, 88604, 8300000)
    assert len(lines) == 4


def test_text_render_megabytes_floor() -> None:
    """
    Scaled values are floored
    """
    text = get_renderer("text").render(build_report(_result()), options=RenderOptions(scale=SCALE_MB))

    assert text.splitlines()[1].split()[1] == "15929"


def test_text_render_percent() -> None:
    """
    Percent mode keeps totals raw
    """
    text = get_renderer("text").render(
        build_report(_result(drop=("SwapTotal",))), options=RenderOptions(show_percent=True)
    )
    mem_cells = text.splitlines()[1].split()
    avail_cells = text.splitlines()[2].split()
    swap_cells = text.splitlines()[3].split()

    assert mem_cells[1] == "16311364"
    assert mem_cells[3] == "6%"
    assert avail_cells[-1] == "58%"
    assert swap_cells == ["Swap:", "N/A", "N/A", "-"]


def test_text_render_extended() -> None:
    """
    Extended sections follow a blank line each
    """
    text = get_renderer("text").render(
        build_report(_result()), options=RenderOptions(show_extended=True)
    )
    lines = text.splitlines()

    assert lines[4] == ""
    assert lines[5] == "Extended memory usage info:"
    assert lines[6] == "%-18s %10s" % ("  Buffers", 412340)
    assert "Extended caches info:" in lines
    assert lines[-1] == "%-18s %10s" % ("  SReclaimable", 600000)


def test_json_render() -> None:
    """
    JSON output carries kB rows and calculation metadata
    """
    payload = json.loads(get_renderer("json").render(build_report(_result()), options=RenderOptions()))

    assert payload["mem_available_kb"] == 9414652
    assert payload["mem"]["others"] == 2402652
    assert payload["meta"] == {
        "schema_version": REPORT_SCHEMA_VERSION,
        "legacy_watermark": False,
        "page_size": 4096,
    }


def test_unknown_renderer() -> None:
    """
    Unknown renderer names raise ValueError
    """
    with pytest.raises(ValueError, match="unknown renderer"):
        get_renderer("yaml")
