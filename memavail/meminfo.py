"""
memavail.meminfo
AUTHOR: carter-vin

Meminfo parser
- global memory counters from /proc/meminfo, values in kB
- strict: every line except HugePages_* must be `<key>: <digits> kB`
"""

from __future__ import annotations

import re
from typing import Mapping, Optional, Sequence

from memavail.errors import MeminfoParseError, MissingKeyError
from memavail.sources import PROC_MEMINFO, lines_or_read

# HugePages_* counters carry no unit and are not needed downstream
SKIP_PREFIX = "HugePages_"

_LINE_RE = re.compile(r"^([^:]+):\s+(\d+)\s+kB\s*$", re.ASCII)


def parse_meminfo(lines: Optional[Sequence[str]] = None) -> dict[str, int]:
    """
    Parse meminfo lines into {counter name: kB}

    Reads /proc/meminfo when lines is None.
    Duplicate keys: last occurrence wins.
    """
    values: dict[str, int] = {}
    for line in lines_or_read(lines, PROC_MEMINFO):
        line = line.rstrip("\r\n")
        if line.startswith(SKIP_PREFIX):
            continue
        match = _LINE_RE.match(line)
        if match is None:
            raise MeminfoParseError(f"Unable to parse a line in '/proc/meminfo': {line}")
        values[match.group(1).strip()] = int(match.group(2))
    return values


def get_value(meminfo: Mapping[str, int], key: str) -> int:
    """
    Fetch a counter or fail naming the key
    """
    value = meminfo.get(key)
    if value is None:
        raise MissingKeyError(key)
    return value
