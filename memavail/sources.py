"""
memavail.sources
AUTHOR: carter-vin

Snapshot acquisition
- Linux /proc pseudo-files by default
- whole-file read per call, no partial reads, no retry
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from memavail.errors import SnapshotReadError

PROC_MEMINFO = Path("/proc/meminfo")
PROC_ZONEINFO = Path("/proc/zoneinfo")


def read_lines(path: Path) -> list[str]:
    """
    Read every line of a snapshot file

    Failure semantics:
    - any OSError on open, read or close raises SnapshotReadError naming the path
    - undecodable content raises SnapshotReadError as well
    """
    try:
        handle = path.open(encoding="utf-8")
    except OSError as e:
        raise SnapshotReadError(f"open('{path}'): {e.strerror or e}") from e

    try:
        with handle:
            contents = handle.read()
    except OSError as e:
        raise SnapshotReadError(f"read('{path}'): {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise SnapshotReadError(f"read('{path}'): not valid UTF-8: {e.reason}") from e

    return contents.splitlines()


def lines_or_read(lines: Optional[Sequence[str]], default_path: Path) -> Sequence[str]:
    """
    Use caller supplied lines, otherwise read the default pseudo-file
    """
    if lines is not None:
        return lines
    return read_lines(default_path)
