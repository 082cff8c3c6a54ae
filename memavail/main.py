"""
memavail.main
------------
AUTHOR: carter-vin

CLI entrypoint

Key contract:
- `memavail free` prints a free(1)-style report using the MemAvailable estimate
- `memavail available` prints only the estimate in kB
- any calculation failure exits 1 with the error on stderr
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path

import typer

from memavail import __version__
from memavail.calculate import AvailabilityResult, CalcConfig, calculate
from memavail.errors import MemAvailableError
from memavail.logging import emit_event
from memavail.render import get_renderer, renderer_names
from memavail.render.base import SCALE_BYTES, SCALE_GB, SCALE_KB, SCALE_MB, RenderOptions
from memavail.render.utils import format_table
from memavail.report import build_report
from memavail.reserve import calculate_totalreserve_pages, get_max_nr_zones, get_wmark_low_in_pages
from memavail.sources import PROC_ZONEINFO, lines_or_read, read_lines
from memavail.zoneinfo import ZoneRecord, parse_zoneinfo

app = typer.Typer(
    add_completion=False,
    help="memavail: MemAvailable estimate and memory report for older Linux kernels",
)


def _load(path: str | None) -> list[str] | None:
    if not path:
        return None
    return read_lines(Path(path))


def _fail(e: MemAvailableError) -> typer.Exit:
    """
    Surface a calculation failure and build the non-zero exit
    """
    emit_event("calc_failed", error_type=type(e).__name__, message=str(e))
    typer.echo(f"ERROR: {e}", err=True)
    return typer.Exit(code=1)


def _run(
    meminfo_path: str | None,
    zoneinfo_path: str | None,
    legacy: bool,
    debug: bool,
) -> AvailabilityResult:
    config = CalcConfig(legacy_watermark=legacy, verbose_trace=debug)
    try:
        return calculate(_load(meminfo_path), _load(zoneinfo_path), config=config)
    except MemAvailableError as e:
        raise _fail(e) from e


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Print a hint when no subcommand is given
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: memavail --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print version & runtime env
    """
    typer.echo(f"memavail v{__version__}")
    typer.echo(f"python={sys.version.split()[0]}")
    typer.echo(f"os={platform.system()} {platform.release()}")
    typer.echo(f"machine={platform.machine()}")


@app.command("free")
def free(
    in_bytes: bool = typer.Option(False, "--bytes", "-b", help="Show output in bytes."),
    in_kb: bool = typer.Option(False, "--kilo", "-k", help="Show output in KB (default)."),
    in_mb: bool = typer.Option(False, "--mega", "-m", help="Show output in MB."),
    in_gb: bool = typer.Option(False, "--giga", "-g", help="Show output in GB."),
    percent: bool = typer.Option(False, "--percent", "-p", help="Show output in percentage."),
    extended: bool = typer.Option(
        False, "--extended", "-e", help="Show extended memory usage info."
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        help="Output format: text or json.",
    ),
    legacy: bool = typer.Option(
        False,
        "--legacy",
        envvar="MEMAVAIL_LEGACY",
        help="Subtract the low watermark instead of totalreserve_pages.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        envvar="MEMAVAIL_DEBUG",
        help="Trace intermediate values as JSON events on stderr.",
    ),
    meminfo: str | None = typer.Option(
        None,
        "--meminfo",
        envvar="MEMAVAIL_MEMINFO",
        help="Read meminfo from this file instead of /proc/meminfo.",
    ),
    zoneinfo: str | None = typer.Option(
        None,
        "--zoneinfo",
        envvar="MEMAVAIL_ZONEINFO",
        help="Read zoneinfo from this file instead of /proc/zoneinfo.",
    ),
) -> None:
    """
    Print memory usage like free(1), with "-/+ avail" from MemAvailable
    """
    try:
        renderer = get_renderer(output_format)
    except ValueError:
        raise typer.BadParameter(f"--format must be one of: {', '.join(renderer_names())}") from None

    # -g beats -m beats -b; kB when none is given
    scale = SCALE_KB
    if in_bytes:
        scale = SCALE_BYTES
    if in_mb:
        scale = SCALE_MB
    if in_gb:
        scale = SCALE_GB

    result = _run(meminfo, zoneinfo, legacy, debug)
    options = RenderOptions(scale=scale, show_percent=percent, show_extended=extended)
    typer.echo(renderer.render(build_report(result), options=options))


@app.command("available")
def available(
    legacy: bool = typer.Option(
        False,
        "--legacy",
        envvar="MEMAVAIL_LEGACY",
        help="Subtract the low watermark instead of totalreserve_pages.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        envvar="MEMAVAIL_DEBUG",
        help="Trace intermediate values as JSON events on stderr.",
    ),
    meminfo: str | None = typer.Option(
        None,
        "--meminfo",
        envvar="MEMAVAIL_MEMINFO",
        help="Read meminfo from this file instead of /proc/meminfo.",
    ),
    zoneinfo: str | None = typer.Option(
        None,
        "--zoneinfo",
        envvar="MEMAVAIL_ZONEINFO",
        help="Read zoneinfo from this file instead of /proc/zoneinfo.",
    ),
) -> None:
    """
    Print the MemAvailable estimate in kB
    """
    result = _run(meminfo, zoneinfo, legacy, debug)
    typer.echo(str(result.mem_available_kb))


@app.command("zones")
def zones(
    zoneinfo: str | None = typer.Option(
        None,
        "--zoneinfo",
        envvar="MEMAVAIL_ZONEINFO",
        help="Read zoneinfo from this file instead of /proc/zoneinfo.",
    ),
) -> None:
    """
    Print parsed zones with their reserved pages
    """
    counted: list[tuple[ZoneRecord, int]] = []

    def _on_zone(zone: ZoneRecord, reserve_pages: int) -> None:
        counted.append((zone, reserve_pages))

    try:
        lines = lines_or_read(_load(zoneinfo), PROC_ZONEINFO)
        all_zones = parse_zoneinfo(lines)
        max_nr_zones = get_max_nr_zones(all_zones)
        totalreserve_pages = calculate_totalreserve_pages(
            all_zones, max_nr_zones=max_nr_zones, on_zone=_on_zone
        )
        wmark_low_pages = get_wmark_low_in_pages(lines)
    except MemAvailableError as e:
        raise _fail(e) from e

    # counted zones are a prefix of each node's zone list
    reserves: dict[int, list[int]] = {}
    for zone, reserve_pages in counted:
        reserves.setdefault(zone.node_id, []).append(reserve_pages)

    rows = [["NODE", "ZONE", "HIGH", "MANAGED", "PROTECTION", "RESERVE"]]
    for node_id in sorted(all_zones):
        node_reserves = reserves.get(node_id, [])
        for index, zone in enumerate(all_zones[node_id]):
            reserve = node_reserves[index] if index < len(node_reserves) else None
            rows.append(
                [
                    str(zone.node_id),
                    zone.name,
                    str(zone.high_wmark_pages),
                    str(zone.managed_pages),
                    ",".join(str(v) for v in zone.lowmem_reserve),
                    str(reserve) if reserve is not None else "-",
                ]
            )

    typer.echo(format_table(rows))
    typer.echo("")
    typer.echo(f"max_nr_zones: {max_nr_zones}")
    typer.echo(f"totalreserve_pages: {totalreserve_pages}")
    typer.echo(f"wmark_low_pages: {wmark_low_pages}")


if __name__ == "__main__":
    app()
