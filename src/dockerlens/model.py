"""
Data models for dockerlens.

This module defines the dataclasses that flow between the parsers, the
aggregator, the selection resolver and the rank engine:
  - ContainerInfo / ImageInfo / StatInfo / ComposeInfo: one parsed table row
  - DockerSnapshot: one generation of all four record kinds
  - ResourceSummary: derived dashboard totals (never hand-edited)
  - FilterState, Selection, SelectionEntry: UI selection state

Key Fields:
  - Identity: ContainerInfo.id, ImageInfo.id, StatInfo.name, ComposeInfo.name
  - Text fields default to "--" when the column is absent
  - Memory numbers are Optional (unknown), network numbers default to 0 (no traffic)

DockerSnapshot is frozen: a refresh builds a new snapshot instead of
patching lists in place, so readers never see two refreshes mixed inside
one record kind.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

NOT_MEASURED = "Not measured"


class SourceKind(str, Enum):
    CONTAINERS = "containers"
    IMAGES = "images"
    STATS = "stats"
    COMPOSE = "compose"


class PanelTab(str, Enum):
    CONTAINERS = "containers"
    IMAGES = "images"
    STATS = "stats"
    COMPOSE = "compose"


class SelectionKind(str, Enum):
    CONTAINER = "container"
    IMAGE = "image"
    STAT = "stat"
    COMPOSE = "compose"


class StatusFilter(str, Enum):
    ALL = "all"
    RUNNING = "running"
    EXITED = "exited"


def is_container_running(status: str) -> bool:
    """Classify a `docker ps` status column ("Up 2 hours", "running", ...)."""
    normalized = (status or "").lower()
    return "up" in normalized or "running" in normalized


@dataclass
class ContainerInfo:
    id: str
    name: str
    status: str
    ports: str = "--"

    @property
    def is_running(self) -> bool:
        return is_container_running(self.status)


@dataclass
class ImageInfo:
    repository: str
    tag: str
    id: str
    size: str = "--"


@dataclass
class StatInfo:
    name: str
    cpu_percent: float = 0.0
    cpu_text: str = "0%"
    mem_usage_text: str = "--"
    mem_used_bytes: Optional[float] = None
    mem_limit_bytes: Optional[float] = None
    mem_usage_percent: Optional[float] = None
    net_io_text: str = "--"
    net_rx_bytes: float = 0.0
    net_tx_bytes: float = 0.0

    @property
    def net_total_bytes(self) -> float:
        return self.net_rx_bytes + self.net_tx_bytes


@dataclass
class ComposeInfo:
    name: str
    status: str
    config_files: str = "--"


@dataclass(frozen=True)
class DockerSnapshot:
    containers: List[ContainerInfo] = field(default_factory=list)
    images: List[ImageInfo] = field(default_factory=list)
    stats: List[StatInfo] = field(default_factory=list)
    compose: List[ComposeInfo] = field(default_factory=list)

    def records(self, kind: SourceKind) -> list:
        return getattr(self, SourceKind(kind).value)

    def with_source(self, kind: SourceKind, records: list) -> "DockerSnapshot":
        """Return a new snapshot with one record kind replaced wholesale."""
        return replace(self, **{SourceKind(kind).value: list(records)})


@dataclass
class ResourceSummary:
    total_containers: int = 0
    running_containers: int = 0
    total_images: int = 0
    compose_projects: int = 0
    total_cpu_percent: float = 0.0
    avg_cpu_percent: float = 0.0
    total_mem_usage_percent: Optional[float] = None
    mem_usage_text: str = NOT_MEASURED
    net_rx_text: str = NOT_MEASURED
    net_tx_text: str = NOT_MEASURED


@dataclass
class FilterState:
    search: str = ""
    status: StatusFilter = StatusFilter.ALL

    @property
    def normalized_search(self) -> str:
        return (self.search or "").strip().lower()


@dataclass(frozen=True)
class Selection:
    kind: SelectionKind
    key: str


@dataclass
class SelectionEntry:
    kind: SelectionKind
    key: str
    title: str
    subtitle: str
    target: Optional[str] = None
