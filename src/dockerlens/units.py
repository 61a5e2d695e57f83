"""
Unit parsing and formatting helpers for docker CLI output.

`docker stats` mixes binary ("1.5GiB") and decimal ("12.3MB") units in the
same table, so both families are recognised:
  - KiB, MiB, GiB, TiB, PiB, EiB -> 1024 ** n
  - KB, MB, GB, TB, PB, EB       -> 1000 ** n
  - "B" or no unit               -> bytes

None from parse_size means "could not parse", which is different from 0.
"""

import math
import re
from dataclasses import dataclass
from typing import Optional

_PERCENT_RE = re.compile(r"-?\d+(\.\d+)?")
_SIZE_RE = re.compile(r"^([\d.]+)([a-zA-Z]+)?$")
_WHITESPACE_RE = re.compile(r"\s+")

BINARY_UNITS = {"kib": 1, "mib": 2, "gib": 3, "tib": 4, "pib": 5, "eib": 6}
DECIMAL_UNITS = {"kb": 1, "mb": 2, "gb": 3, "tb": 4, "pb": 5, "eb": 6}
DISPLAY_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


@dataclass
class MemoryUsage:
    used: Optional[float] = None
    limit: Optional[float] = None
    percent: Optional[float] = None


@dataclass
class NetworkUsage:
    rx: float = 0.0
    tx: float = 0.0


def parse_percent(text: Optional[str]) -> float:
    """Return the first decimal number found in `text`, or 0.0."""
    match = _PERCENT_RE.search(text or "")
    if not match:
        return 0.0
    return float(match.group(0))


def parse_size(text: Optional[str]) -> Optional[float]:
    normalized = _WHITESPACE_RE.sub("", text or "")
    if not normalized:
        return None

    match = _SIZE_RE.match(normalized)
    if not match:
        return None

    try:
        value = float(match.group(1))
    except ValueError:
        # "1.2.3" passes the character class but is not a number
        return None
    if not math.isfinite(value):
        return None

    unit = (match.group(2) or "B").lower()
    if unit == "b":
        return value
    if unit in BINARY_UNITS:
        return value * 1024 ** BINARY_UNITS[unit]
    if unit in DECIMAL_UNITS:
        return value * 1000 ** DECIMAL_UNITS[unit]
    return None


def _split_pair(text: Optional[str]):
    parts = [part.strip() for part in (text or "").split("/")]
    first = parts[0] if len(parts) > 0 else ""
    second = parts[1] if len(parts) > 1 else ""
    return first, second


def parse_memory_usage(text: Optional[str]) -> MemoryUsage:
    """Parse "used / limit" from the MEM USAGE / LIMIT column."""
    used_raw, limit_raw = _split_pair(text)
    if not used_raw or not limit_raw:
        return MemoryUsage()

    used = parse_size(used_raw)
    limit = parse_size(limit_raw)
    if used is None or limit is None or limit <= 0:
        return MemoryUsage(used=used, limit=limit, percent=None)

    return MemoryUsage(used=used, limit=limit, percent=used / limit * 100)


def parse_network_usage(text: Optional[str]) -> NetworkUsage:
    """Parse "rx / tx" from the NET I/O column. Unparseable sides count as 0."""
    rx_raw, tx_raw = _split_pair(text)
    rx = parse_size(rx_raw)
    tx = parse_size(tx_raw)
    return NetworkUsage(rx=rx if rx is not None else 0.0, tx=tx if tx is not None else 0.0)


def format_bytes(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value) or value <= 0:
        return "0 B"

    unit_index = 0
    while value >= 1024 and unit_index < len(DISPLAY_UNITS) - 1:
        value /= 1024
        unit_index += 1

    if value >= 100:
        digits = 0
    elif value >= 10:
        digits = 1
    else:
        digits = 2
    return f"{value:.{digits}f} {DISPLAY_UNITS[unit_index]}"
