"""
Selection resolution and the docker action catalog.

Maps (active tab, snapshot, filters, previous selection) to:
  - the list of selectable entries for the tab
  - a normalized selection (kept if still visible, else the first entry)
  - a validated action target, or None when the action must be disabled

Action targets are passed to `docker` as command arguments by the
dispatcher, so image ids are normalized to a strict character allow-list.
None is never an error: it means "disable the action".
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union

from .cache import RunningSetCache
from .filters import filter_compose, filter_containers, filter_images, filter_stats
from .model import (
    ComposeInfo,
    ContainerInfo,
    DockerSnapshot,
    FilterState,
    ImageInfo,
    PanelTab,
    Selection,
    SelectionEntry,
    SelectionKind,
    StatInfo,
)

logger = logging.getLogger(__name__)

_DIGEST_PREFIX_RE = re.compile(r"^(sha256|sha384|sha512):")
_UNSAFE_TARGET_CHARS_RE = re.compile(r"[^a-zA-Z0-9._-]")


class DockerAction(str, Enum):
    RUN = "run"
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    LOGS = "logs"
    RM = "rm"
    RMI = "rmi"


class ActionRisk(str, Enum):
    SAFE = "safe"
    DANGER = "danger"


@dataclass(frozen=True)
class ActionMeta:
    action: DockerAction
    label: str
    risk: ActionRisk
    require_target: bool
    support_kinds: FrozenSet[SelectionKind]


@dataclass
class ActionState:
    disabled: bool
    reason: Optional[str]
    target: Optional[str]


_IMAGE_ONLY = frozenset({SelectionKind.IMAGE})
_CONTAINER_ONLY = frozenset({SelectionKind.CONTAINER})

ACTION_CATALOG: Dict[DockerAction, ActionMeta] = {
    meta.action: meta
    for meta in (
        ActionMeta(DockerAction.RUN, "Run image", ActionRisk.SAFE, True, _IMAGE_ONLY),
        ActionMeta(DockerAction.START, "Start", ActionRisk.SAFE, True, _CONTAINER_ONLY),
        ActionMeta(DockerAction.STOP, "Stop", ActionRisk.SAFE, True, _CONTAINER_ONLY),
        ActionMeta(DockerAction.RESTART, "Restart", ActionRisk.SAFE, True, _CONTAINER_ONLY),
        ActionMeta(DockerAction.LOGS, "Logs", ActionRisk.SAFE, True, _CONTAINER_ONLY),
        ActionMeta(DockerAction.RM, "Remove container", ActionRisk.DANGER, True, _CONTAINER_ONLY),
        ActionMeta(DockerAction.RMI, "Remove image", ActionRisk.DANGER, True, _IMAGE_ONLY),
    )
}

SAFE_ACTIONS = [a for a, meta in ACTION_CATALOG.items() if meta.risk == ActionRisk.SAFE]
DANGER_ACTIONS = [a for a, meta in ACTION_CATALOG.items() if meta.risk == ActionRisk.DANGER]

_TAB_KINDS = {
    PanelTab.CONTAINERS: SelectionKind.CONTAINER,
    PanelTab.IMAGES: SelectionKind.IMAGE,
    PanelTab.STATS: SelectionKind.STAT,
    PanelTab.COMPOSE: SelectionKind.COMPOSE,
}


def get_action_meta(action: Union[DockerAction, str]) -> Optional[ActionMeta]:
    try:
        return ACTION_CATALOG.get(DockerAction(action))
    except ValueError:
        return None


def get_action_label(action: Union[DockerAction, str]) -> str:
    meta = get_action_meta(action)
    if meta is None:
        return str(getattr(action, "value", action))
    return meta.label


def is_danger_action(action: Union[DockerAction, str]) -> bool:
    meta = get_action_meta(action)
    return meta is not None and meta.risk == ActionRisk.DANGER


def resolve_action_state(
    action: Union[DockerAction, str],
    selection_kind: Optional[SelectionKind],
    target: Optional[str],
    pending_action: Optional[str] = None,
) -> ActionState:
    """Decide whether an action button is enabled, and why not."""
    meta = get_action_meta(action)
    if meta is None:
        return ActionState(disabled=True, reason="Unsupported action", target=target)

    if pending_action is not None:
        return ActionState(disabled=True, reason="A command is already running", target=target)

    if selection_kind is None or selection_kind not in meta.support_kinds:
        return ActionState(disabled=True, reason="Selection does not support this action", target=target)

    if meta.require_target and not target:
        return ActionState(disabled=True, reason="Invalid target", target=target)

    return ActionState(disabled=False, reason=None, target=target)


def normalize_image_target(raw_id: Optional[str]) -> Optional[str]:
    """Strip a digest prefix ("sha256:") and anything outside [A-Za-z0-9._-]."""
    trimmed = (raw_id or "").strip()
    if not trimmed or trimmed == "--":
        return None

    normalized = _DIGEST_PREFIX_RE.sub("", trimmed, count=1)
    normalized = _UNSAFE_TARGET_CHARS_RE.sub("", normalized)
    return normalized or None


def kind_for_tab(tab: PanelTab) -> SelectionKind:
    return _TAB_KINDS[PanelTab(tab)]


def _container_entry(item: ContainerInfo) -> SelectionEntry:
    return SelectionEntry(
        kind=SelectionKind.CONTAINER,
        key=item.id,
        title=item.name,
        subtitle=item.status,
        target=item.name,
    )


def _image_entry(item: ImageInfo) -> SelectionEntry:
    return SelectionEntry(
        kind=SelectionKind.IMAGE,
        key=item.id,
        title=f"{item.repository}:{item.tag}",
        subtitle=f"{item.size} · {item.id}",
        target=normalize_image_target(item.id),
    )


def _stat_entry(item: StatInfo) -> SelectionEntry:
    return SelectionEntry(
        kind=SelectionKind.STAT,
        key=item.name,
        title=item.name,
        subtitle=f"CPU {item.cpu_text} · MEM {item.mem_usage_text}",
    )


def _compose_entry(item: ComposeInfo) -> SelectionEntry:
    return SelectionEntry(
        kind=SelectionKind.COMPOSE,
        key=item.name,
        title=item.name,
        subtitle=item.status,
    )


class SelectionResolver:
    """Resolves entries, selections and action targets for one tab at a time."""

    def __init__(self, cache: Optional[RunningSetCache] = None):
        self.cache = cache if cache is not None else RunningSetCache()

    def get_entries(
        self, tab: PanelTab, snapshot: DockerSnapshot, filters: FilterState
    ) -> List[SelectionEntry]:
        tab = PanelTab(tab)
        if tab == PanelTab.CONTAINERS:
            return [_container_entry(c) for c in filter_containers(snapshot.containers, filters, self.cache)]
        if tab == PanelTab.IMAGES:
            return [_image_entry(i) for i in filter_images(snapshot.images, filters)]
        if tab == PanelTab.STATS:
            return [_stat_entry(s) for s in filter_stats(snapshot.stats, filters)]
        return [_compose_entry(c) for c in filter_compose(snapshot.compose, filters)]

    def normalize_selection(
        self,
        tab: PanelTab,
        snapshot: DockerSnapshot,
        filters: FilterState,
        previous: Optional[Selection],
    ) -> Optional[Selection]:
        entries = self.get_entries(tab, snapshot, filters)
        if not entries:
            return None

        kind = kind_for_tab(tab)
        if previous is not None and previous.kind == kind and any(e.key == previous.key for e in entries):
            return previous
        return Selection(kind=kind, key=entries[0].key)

    def find_entry(
        self,
        tab: PanelTab,
        snapshot: DockerSnapshot,
        filters: FilterState,
        selection: Optional[Selection],
    ) -> Optional[SelectionEntry]:
        if selection is None:
            return None
        for entry in self.get_entries(tab, snapshot, filters):
            if entry.kind == selection.kind and entry.key == selection.key:
                return entry
        return None

    def resolve_action_target(
        self,
        action: Union[DockerAction, str],
        tab: PanelTab,
        snapshot: DockerSnapshot,
        filters: FilterState,
        selection: Optional[Selection],
    ) -> Optional[str]:
        meta = get_action_meta(action)
        if meta is None:
            logger.debug(f"No target for unknown action {action!r}")
            return None

        entry = self.find_entry(tab, snapshot, filters, selection)
        if entry is None:
            return None
        if entry.kind not in meta.support_kinds:
            return None
        return entry.target
