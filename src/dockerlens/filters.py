"""
Display filters shared by the list views and the selection resolver.

One predicate per view; the selection resolver must use the same one the
list uses, otherwise a selected row could be invisible or vice versa.
"""

from typing import List

from .cache import RunningSetCache
from .model import (
    ComposeInfo,
    ContainerInfo,
    DockerSnapshot,
    FilterState,
    ImageInfo,
    PanelTab,
    StatInfo,
    StatusFilter,
)


def _matches(search: str, *fields: str) -> bool:
    if not search:
        return True
    return any(search in (value or "").lower() for value in fields)


def filter_containers(
    items: List[ContainerInfo], filters: FilterState, cache: RunningSetCache
) -> List[ContainerInfo]:
    running_ids = cache.ensure(items)
    search = filters.normalized_search
    status = StatusFilter(filters.status)

    res = []
    for item in items:
        if not _matches(search, item.name, item.id, item.status, item.ports):
            continue
        if status == StatusFilter.RUNNING and item.id not in running_ids:
            continue
        if status == StatusFilter.EXITED and item.id in running_ids:
            continue
        res.append(item)
    return res


def filter_images(items: List[ImageInfo], filters: FilterState) -> List[ImageInfo]:
    search = filters.normalized_search
    return [i for i in items if _matches(search, i.repository, i.tag, i.id)]


def filter_stats(items: List[StatInfo], filters: FilterState) -> List[StatInfo]:
    search = filters.normalized_search
    return [i for i in items if _matches(search, i.name)]


def filter_compose(items: List[ComposeInfo], filters: FilterState) -> List[ComposeInfo]:
    search = filters.normalized_search
    return [i for i in items if _matches(search, i.name, i.status, i.config_files)]


def filter_view(
    tab: PanelTab, snapshot: DockerSnapshot, filters: FilterState, cache: RunningSetCache
) -> list:
    tab = PanelTab(tab)
    if tab == PanelTab.CONTAINERS:
        return filter_containers(snapshot.containers, filters, cache)
    if tab == PanelTab.IMAGES:
        return filter_images(snapshot.images, filters)
    if tab == PanelTab.STATS:
        return filter_stats(snapshot.stats, filters)
    return filter_compose(snapshot.compose, filters)
