"""
Table parsers for raw docker CLI output.

Each parser takes the full text of one command (header line + data lines)
and returns typed records. The same command may print tab-separated
columns (`--format "table {{.ID}}\t..."`) or human-aligned columns padded
with spaces, so every row is split on tabs first and on runs of two or
more spaces otherwise.

Error Handling:
  - Empty or header-only output -> []
  - Missing columns -> "--" (text), None (memory), 0 (cpu/network)
  - A row that fails to map is logged and skipped; other rows survive
  - Any unexpected failure in a public parser is logged and returns its default
"""

import functools
import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional

from .model import (
    ComposeInfo,
    ContainerInfo,
    DockerSnapshot,
    ImageInfo,
    SourceKind,
    StatInfo,
)
from .units import parse_memory_usage, parse_network_usage, parse_percent

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"\r?\n")
_SPACED_COLUMNS_RE = re.compile(r"\s{2,}")
COLUMN_JOIN = "  "


def parse_safe(default_return: Any = None) -> Callable:
    """
    Decorator for parser entry points that must never raise.

    Catches exceptions, logs them, and returns `default_return` so that one
    bad command output cannot break a whole refresh.

    Usage:
        @parse_safe(default_return=[])
        def parse_containers(raw: str) -> List[ContainerInfo]:
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Parse failed in {func.__name__}: {e}", exc_info=True)
                if isinstance(default_return, list):
                    return []
                return default_return
        return wrapper
    return decorator


def split_columns(line: str) -> List[str]:
    tab_parts = [part.strip() for part in line.split("\t")]
    tab_parts = [part for part in tab_parts if part]
    if len(tab_parts) > 1:
        return tab_parts

    parts = [part.strip() for part in _SPACED_COLUMNS_RE.split(line)]
    return [part for part in parts if part]


def split_table_rows(raw: Optional[str]) -> List[List[str]]:
    lines = [line.strip() for line in _LINE_RE.split(raw or "")]
    lines = [line for line in lines if line]
    if len(lines) <= 1:
        return []

    rows = []
    for line in lines[1:]:
        parts = split_columns(line)
        if parts:
            rows.append(parts)
    return rows


def first_meaningful_line(raw: Optional[str]) -> Optional[str]:
    for line in _LINE_RE.split(raw or ""):
        line = line.strip()
        if line:
            return line
    return None


def _column(parts: List[str], index: int, default: str = "--") -> str:
    return parts[index] if index < len(parts) else default


def _rest(parts: List[str], start: int) -> str:
    return COLUMN_JOIN.join(parts[start:]) or "--"


def _map_rows(raw: Optional[str], mapper: Callable[[List[str]], Any]) -> list:
    records = []
    for parts in split_table_rows(raw):
        try:
            records.append(mapper(parts))
        except Exception as e:
            logger.warning(f"Skipping malformed row {parts!r}: {e}")
    return records


def _container_row(parts: List[str]) -> ContainerInfo:
    return ContainerInfo(
        id=_column(parts, 0),
        name=_column(parts, 1),
        status=_column(parts, 2),
        ports=_rest(parts, 3),
    )


def _image_row(parts: List[str]) -> ImageInfo:
    return ImageInfo(
        repository=_column(parts, 0),
        tag=_column(parts, 1),
        id=_column(parts, 2),
        size=_rest(parts, 3),
    )


def _stat_row(parts: List[str]) -> StatInfo:
    cpu_text = _column(parts, 1, "0%")
    mem_usage_text = _column(parts, 2)
    net_io_text = _rest(parts, 3)
    memory = parse_memory_usage(mem_usage_text)
    network = parse_network_usage(net_io_text)
    return StatInfo(
        name=_column(parts, 0),
        cpu_percent=parse_percent(cpu_text),
        cpu_text=cpu_text,
        mem_usage_text=mem_usage_text,
        mem_used_bytes=memory.used,
        mem_limit_bytes=memory.limit,
        mem_usage_percent=memory.percent,
        net_io_text=net_io_text,
        net_rx_bytes=network.rx,
        net_tx_bytes=network.tx,
    )


def _compose_row(parts: List[str]) -> ComposeInfo:
    return ComposeInfo(
        name=_column(parts, 0),
        status=_column(parts, 1),
        config_files=_rest(parts, 2),
    )


@parse_safe(default_return=[])
def parse_containers(raw: Optional[str]) -> List[ContainerInfo]:
    return _map_rows(raw, _container_row)


@parse_safe(default_return=[])
def parse_images(raw: Optional[str]) -> List[ImageInfo]:
    return _map_rows(raw, _image_row)


@parse_safe(default_return=[])
def parse_stats(raw: Optional[str]) -> List[StatInfo]:
    return _map_rows(raw, _stat_row)


@parse_safe(default_return=[])
def parse_compose(raw: Optional[str]) -> List[ComposeInfo]:
    return _map_rows(raw, _compose_row)


SOURCE_PARSERS: Dict[SourceKind, Callable[[Optional[str]], list]] = {
    SourceKind.CONTAINERS: parse_containers,
    SourceKind.IMAGES: parse_images,
    SourceKind.STATS: parse_stats,
    SourceKind.COMPOSE: parse_compose,
}


def parse_source(kind: SourceKind, raw: Optional[str]) -> list:
    return SOURCE_PARSERS[SourceKind(kind)](raw)


def build_snapshot(
    raw_by_kind: Mapping[SourceKind, Optional[str]],
    previous: Optional[DockerSnapshot] = None,
) -> DockerSnapshot:
    """
    Parse every supplied source into a new snapshot.

    Kinds missing from `raw_by_kind` keep the record list of `previous`.
    The returned snapshot is always a new object.
    """
    snapshot = previous if previous is not None else DockerSnapshot()
    for kind, raw in raw_by_kind.items():
        snapshot = snapshot.with_source(kind, parse_source(kind, raw))
    if snapshot is previous:
        snapshot = DockerSnapshot(
            containers=list(previous.containers),
            images=list(previous.images),
            stats=list(previous.stats),
            compose=list(previous.compose),
        )
    return snapshot
