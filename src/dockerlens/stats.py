"""
Dashboard aggregation for dockerlens.

This module turns one DockerSnapshot into the ResourceSummary shown on the
dashboard cards.

Features:
- Container / image / compose counts
- Running container count (same classifier as the display filters)
- Total and average CPU
- Weighted memory usage across all containers
- Humanized memory and network totals

Memory usage is weighted: sum(used) / sum(limit). Averaging the per-container
percentages would let a 100 MiB container count as much as a 16 GiB one.
"""

import logging

from .model import (
    NOT_MEASURED,
    DockerSnapshot,
    ResourceSummary,
)
from .units import format_bytes

logger = logging.getLogger(__name__)


class SummaryAggregator:
    """Computes ResourceSummary from the full (unfiltered) record sets."""

    @staticmethod
    def build(snapshot: DockerSnapshot) -> ResourceSummary:
        containers = snapshot.containers
        stats = snapshot.stats

        running = sum(1 for c in containers if c.is_running)

        total_cpu = sum(s.cpu_percent for s in stats)
        avg_cpu = total_cpu / len(stats) if stats else 0.0

        total_mem_used = sum(s.mem_used_bytes or 0 for s in stats)
        total_mem_limit = sum(s.mem_limit_bytes or 0 for s in stats)
        total_mem_percent = (
            total_mem_used / total_mem_limit * 100 if total_mem_limit > 0 else None
        )

        total_rx = sum(s.net_rx_bytes for s in stats)
        total_tx = sum(s.net_tx_bytes for s in stats)

        if total_mem_limit > 0:
            mem_text = f"{format_bytes(total_mem_used)} / {format_bytes(total_mem_limit)}"
        else:
            mem_text = NOT_MEASURED

        summary = ResourceSummary(
            total_containers=len(containers),
            running_containers=running,
            total_images=len(snapshot.images),
            compose_projects=len(snapshot.compose),
            total_cpu_percent=total_cpu,
            avg_cpu_percent=avg_cpu,
            total_mem_usage_percent=total_mem_percent,
            mem_usage_text=mem_text,
            net_rx_text=format_bytes(total_rx) if total_rx > 0 else NOT_MEASURED,
            net_tx_text=format_bytes(total_tx) if total_tx > 0 else NOT_MEASURED,
        )
        logger.debug(
            f"Summary: {summary.running_containers}/{summary.total_containers} running, "
            f"cpu={summary.total_cpu_percent:.1f}%"
        )
        return summary


def build_summary(snapshot: DockerSnapshot) -> ResourceSummary:
    return SummaryAggregator.build(snapshot)
