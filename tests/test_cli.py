"""
Contract tests for the memavail CLI
"""

from pathlib import Path

from typer.testing import CliRunner

from memavail.calculate import CalcConfig, calculate
from memavail.main import app

FIXTURES = Path(__file__).parent / "fixtures"
MEMINFO = str(FIXTURES / "meminfo")
ZONEINFO = str(FIXTURES / "zoneinfo")


def _expected(legacy: bool = False) -> int:
    meminfo = (FIXTURES / "meminfo").read_text(encoding="utf-8").splitlines()
    zoneinfo = (FIXTURES / "zoneinfo").read_text(encoding="utf-8").splitlines()
    return calculate(meminfo, zoneinfo, config=CalcConfig(legacy_watermark=legacy)).mem_available_kb


def test_available_prints_estimate() -> None:
    """
    available prints only the kB estimate
    """
    runner = CliRunner()

    result = runner.invoke(app, ["available", "--meminfo", MEMINFO, "--zoneinfo", ZONEINFO])

    assert result.exit_code == 0
    assert result.stdout.strip() == str(_expected())


def test_available_legacy_from_env() -> None:
    """
    MEMAVAIL_LEGACY switches the calculation mode
    """
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["available", "--meminfo", MEMINFO, "--zoneinfo", ZONEINFO],
        env={"MEMAVAIL_LEGACY": "1"},
    )

    assert result.exit_code == 0
    assert result.stdout.strip() == str(_expected(legacy=True))


def test_free_text_report() -> None:
    """
    free prints the Mem, avail and Swap lines
    """
    runner = CliRunner()

    result = runner.invoke(app, ["free", "-e", "--meminfo", MEMINFO, "--zoneinfo", ZONEINFO])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[1].startswith("Mem:")
    assert lines[2].split()[-1] == str(_expected())
    assert lines[3].startswith("Swap:")
    assert "Extended caches info:" in lines


def test_free_scale_flag_precedence() -> None:
    """
    -g takes precedence over -m
    """
    runner = CliRunner()

    result = runner.invoke(app, ["free", "-m", "-g", "--meminfo", MEMINFO, "--zoneinfo", ZONEINFO])

    assert result.exit_code == 0
    assert result.stdout.splitlines()[1].split()[1] == "15"


def test_free_json_format() -> None:
    """
    --format json emits a single JSON object
    """
    runner = CliRunner()

    result = runner.invoke(
        app, ["free", "--format", "json", "--meminfo", MEMINFO, "--zoneinfo", ZONEINFO]
    )

    assert result.exit_code == 0
    assert result.stdout.startswith("{")
    assert f'"mem_available_kb":{_expected()}' in result.stdout


def test_free_rejects_unknown_format() -> None:
    """
    Unknown formats are usage errors
    """
    runner = CliRunner()

    result = runner.invoke(app, ["free", "--format", "yaml", "--meminfo", MEMINFO, "--zoneinfo", ZONEINFO])

    assert result.exit_code == 2


def test_parse_failure_exits_non_zero(tmp_path: Path) -> None:
    """
    Calculation errors exit 1 and print the message
    """
    bad = tmp_path / "meminfo"
    bad.write_text("MemFree: 12MB\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(app, ["available", "--meminfo", str(bad), "--zoneinfo", ZONEINFO])

    assert result.exit_code == 1
    assert "ERROR: Unable to parse a line" in result.output
    assert "calc_failed" in result.output


def test_missing_snapshot_file(tmp_path: Path) -> None:
    """
    An unreadable snapshot path exits 1
    """
    runner = CliRunner()

    result = runner.invoke(
        app, ["free", "--meminfo", str(tmp_path / "absent"), "--zoneinfo", ZONEINFO]
    )

    assert result.exit_code == 1
    assert "ERROR: open(" in result.output


def test_zones_table() -> None:
    """
    zones lists every zone with its reserve and the totals
    """
    runner = CliRunner()

    result = runner.invoke(app, ["zones", "--zoneinfo", ZONEINFO])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0].split() == ["NODE", "ZONE", "HIGH", "MANAGED", "PROTECTION", "RESERVE"]
    assert lines[2].split() == ["0", "DMA32", "894", "746000", "0,0,12787,12787", "13681"]
    assert "totalreserve_pages: 21449" in lines
    assert "wmark_low_pages: 4033" in lines


def test_no_command_prints_hint() -> None:
    """
    Root invocation without a subcommand prints a hint
    """
    runner = CliRunner()

    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "memavail --help" in result.stdout


def test_version() -> None:
    """
    version prints the tool version
    """
    runner = CliRunner()

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.stdout.startswith("memavail v")


def test_undecodable_snapshot_exits_non_zero(tmp_path: Path) -> None:
    """
    A snapshot that is not UTF-8 is reported like any other read failure
    """
    bad = tmp_path / "meminfo"
    bad.write_bytes(b"\xff\xfe: 1 kB\n")
    runner = CliRunner()

    result = runner.invoke(app, ["available", "--meminfo", str(bad), "--zoneinfo", ZONEINFO])

    assert result.exit_code == 1
    assert "ERROR: read(" in result.output
    assert "not valid UTF-8" in result.output
    assert "calc_failed" in result.output


def test_zones_marks_uncounted_zones(tmp_path: Path) -> None:
    """
    Zones past MAX_NR_ZONES on a node show no reserve
    """
    path = tmp_path / "zoneinfo"
    path.write_text(
        "\n".join(
            [
                "Node 0, zone DMA",
                "        low      1",
                "        high     2",
                "        managed  10",
                "        protection: (5)",
                "Node 0, zone Normal",
                "        low      3",
                "        high     4",
                "        managed  10",
                "        protection: (0)",
                "Node 1, zone Normal",
                "        low      5",
                "        high     6",
                "        managed  10",
                "        protection: (1)",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    runner = CliRunner()

    result = runner.invoke(app, ["zones", "--zoneinfo", str(path)])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[1].split() == ["0", "DMA", "2", "10", "5", "7"]
    assert lines[2].split() == ["0", "Normal", "4", "10", "0", "-"]
    assert lines[3].split() == ["1", "Normal", "6", "10", "1", "7"]
    assert "totalreserve_pages: 14" in lines
    assert "wmark_low_pages: 9" in lines
