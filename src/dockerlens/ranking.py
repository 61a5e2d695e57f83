"""
Top-N resource ranking with row reconciliation.

The "resource ranking" card shows the N containers using the most CPU,
memory or network. It refreshes every few seconds, and rows are animated,
so instead of redrawing the list the engine emits a diff keyed by
container name:

  - ADD:    name newly visible (enter transition)
  - UPDATE: name still visible; value, level and tooltip change in place
  - REMOVE: name no longer visible; the row is marked exiting, not dropped,
            so the renderer can play an exit transition

How the ops are drawn (terminal, HTML, ...) is up to the consumer.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .model import StatInfo

logger = logging.getLogger(__name__)

TOP_N_OPTIONS = (3, 5, 10)
OK_THRESHOLD = 60.0
WARN_THRESHOLD = 85.0


def is_valid_top_n(value) -> bool:
    # bool is an int subclass and 5.0 == 5, neither may slice the ranking
    return isinstance(value, int) and not isinstance(value, bool) and value in TOP_N_OPTIONS


class SortDimension(str, Enum):
    CPU = "cpu"
    MEM = "mem"
    NET = "net"


class UsageLevel(str, Enum):
    OK = "ok"
    WARN = "warn"
    DANGER = "danger"


class RowOpType(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass
class RankedItem:
    stat: StatInfo
    percent: float
    label: str
    level: UsageLevel
    tooltip: str

    @property
    def name(self) -> str:
        return self.stat.name


@dataclass
class RankedView:
    items: List[RankedItem]
    dimension: SortDimension
    top_n: int
    total_count: int

    @property
    def names(self) -> List[str]:
        return [item.name for item in self.items]

    @property
    def hidden_count(self) -> int:
        return max(0, self.total_count - len(self.items))


@dataclass
class RowOp:
    op: RowOpType
    name: str
    item: Optional[RankedItem] = None
    index: Optional[int] = None


@dataclass
class DisplayRow:
    item: RankedItem
    exiting: bool = False


def sort_value(stat: StatInfo, dimension: SortDimension) -> float:
    if dimension == SortDimension.MEM:
        return stat.mem_usage_percent if stat.mem_usage_percent is not None else 0.0
    if dimension == SortDimension.NET:
        return stat.net_total_bytes
    return stat.cpu_percent


def sort_stats(stats: Sequence[StatInfo], dimension: SortDimension) -> List[StatInfo]:
    """Stable descending sort; ties keep their input order."""
    dimension = SortDimension(dimension)
    return sorted(stats, key=lambda s: sort_value(s, dimension), reverse=True)


def dedupe_stats(stats: Sequence[StatInfo]) -> List[StatInfo]:
    """Keep only the last row for each name, at that row's position."""
    last_index = {stat.name: i for i, stat in enumerate(stats)}
    return [stat for i, stat in enumerate(stats) if last_index[stat.name] == i]


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def _mem_percent_text(stat: StatInfo) -> str:
    if stat.mem_usage_percent is None:
        return "--"
    return f"{stat.mem_usage_percent:.1f}%"


def build_tooltip(stat: StatInfo) -> str:
    return f"CPU: {stat.cpu_text} | MEM: {stat.mem_usage_text} ({_mem_percent_text(stat)}) | NET: {stat.net_io_text}"


def build_label(stat: StatInfo, dimension: SortDimension) -> str:
    if dimension == SortDimension.MEM:
        used = stat.mem_usage_text.split("/")[0].strip() or "--"
        return f"{used} ({_mem_percent_text(stat)})"
    if dimension == SortDimension.NET:
        return stat.net_io_text
    return stat.cpu_text


class RankEngine:
    """Ranks stats and keeps the displayed rows in sync across refreshes."""

    def __init__(self, ok_threshold: float = OK_THRESHOLD, warn_threshold: float = WARN_THRESHOLD):
        self.ok_threshold = ok_threshold
        self.warn_threshold = warn_threshold
        self._rows: Dict[str, DisplayRow] = {}

    def classify(self, percent: float, dimension: SortDimension) -> UsageLevel:
        if dimension == SortDimension.NET:
            return UsageLevel.OK
        if percent >= self.warn_threshold:
            return UsageLevel.DANGER
        if percent >= self.ok_threshold:
            return UsageLevel.WARN
        return UsageLevel.OK

    def rank(
        self,
        stats: Sequence[StatInfo],
        dimension: Union[SortDimension, str] = SortDimension.CPU,
        top_n: int = 5,
    ) -> RankedView:
        dimension = SortDimension(dimension)
        if not is_valid_top_n(top_n):
            raise ValueError(f"top_n must be one of {TOP_N_OPTIONS}, got {top_n!r}")

        unique = dedupe_stats(stats)
        visible = sort_stats(unique, dimension)[:top_n]

        # Net bars are relative to the busiest visible container
        max_net = max((s.net_total_bytes for s in visible), default=0.0)

        items = []
        for stat in visible:
            if dimension == SortDimension.NET:
                percent = stat.net_total_bytes / max_net * 100 if max_net > 0 else 0.0
            else:
                percent = _clamp_percent(sort_value(stat, dimension))
            items.append(RankedItem(
                stat=stat,
                percent=percent,
                label=build_label(stat, dimension),
                level=self.classify(percent, dimension),
                tooltip=build_tooltip(stat),
            ))

        return RankedView(items=items, dimension=dimension, top_n=top_n, total_count=len(unique))

    def reconcile(self, view: RankedView) -> List[RowOp]:
        # Rows flagged on the previous pass have had their exit transition
        for name in [n for n, row in self._rows.items() if row.exiting]:
            del self._rows[name]

        visible_names = set(view.names)
        ops = []
        for name, row in self._rows.items():
            if name not in visible_names:
                row.exiting = True
                ops.append(RowOp(op=RowOpType.REMOVE, name=name, item=row.item))

        for index, item in enumerate(view.items):
            row = self._rows.get(item.name)
            if row is not None:
                row.item = item
                ops.append(RowOp(op=RowOpType.UPDATE, name=item.name, item=item, index=index))
            else:
                self._rows[item.name] = DisplayRow(item=item)
                ops.append(RowOp(op=RowOpType.ADD, name=item.name, item=item, index=index))

        counts = Counter(op.op.value for op in ops)
        logger.debug(f"Reconciled ranking: {dict(counts)}")
        return ops

    def refresh(
        self,
        stats: Sequence[StatInfo],
        dimension: Union[SortDimension, str] = SortDimension.CPU,
        top_n: int = 5,
    ) -> Tuple[RankedView, List[RowOp]]:
        view = self.rank(stats, dimension, top_n)
        return view, self.reconcile(view)

    def complete_exit(self, name: str) -> None:
        """Drop an exiting row once its exit transition has finished."""
        row = self._rows.get(name)
        if row is not None and row.exiting:
            del self._rows[name]

    @property
    def displayed_names(self) -> List[str]:
        return list(self._rows)

    def is_exiting(self, name: str) -> bool:
        row = self._rows.get(name)
        return row is not None and row.exiting

    def reset(self) -> None:
        self._rows.clear()
