"""
Application state management.

StateManager owns everything that outlives a single refresh:
  - the current DockerSnapshot and its ResourceSummary
  - the active tab, filters and selection
  - the RunningSetCache used by container filtering
  - the RankEngine and its displayed rows

Snapshot Swap Pattern:
  1. An external refresh loop hands in raw command output (update_source)
     or a prebuilt snapshot (apply_snapshot)
  2. A new DockerSnapshot is built off to the side; the old one is untouched
  3. The new snapshot, its summary and the normalized selection are assigned
     under the lock, and the version is incremented
  4. Readers detect the version change and re-render

Thread Safety:
  - All state access is protected by self._lock (RLock for reentrant locking)
  - The only other thread is the search debouncer's timer
"""

import logging
import threading
from typing import List, Optional, Tuple, Union

from .cache import RunningSetCache
from .config import AppConfig, config_manager
from .debounce import Debouncer
from .filters import filter_view
from .model import (
    DockerSnapshot,
    FilterState,
    PanelTab,
    ResourceSummary,
    Selection,
    SelectionEntry,
    SourceKind,
    StatusFilter,
)
from .parser import parse_source
from .ranking import TOP_N_OPTIONS, RankedView, RankEngine, RowOp, SortDimension, is_valid_top_n
from .selection import (
    ActionState,
    DockerAction,
    SelectionResolver,
    kind_for_tab,
    resolve_action_state,
)
from .stats import build_summary

logger = logging.getLogger(__name__)


class StateManager:
    """Thread-safe state manager."""

    def __init__(self, config: Optional[AppConfig] = None, clock=None, timer_factory=threading.Timer):
        config = config or config_manager.get_config()
        self._lock = threading.RLock()  # Use RLock for reentrant locking
        self._version = 0

        self._snapshot = DockerSnapshot()
        self._summary = ResourceSummary()
        self._tab = PanelTab.CONTAINERS
        self._filters = FilterState()
        self._selection: Optional[Selection] = None

        cache_kwargs = {'ttl': config.cache.running_ttl_seconds}
        if clock is not None:
            cache_kwargs['clock'] = clock
        self.running_cache = RunningSetCache(**cache_kwargs)
        self.resolver = SelectionResolver(self.running_cache)

        self.rank_engine = RankEngine(config.chart.ok_threshold, config.chart.warn_threshold)
        self._sort_by = SortDimension(config.chart.sort_by)
        self._top_n = config.chart.top_n

        self._search_debouncer = Debouncer(
            self.set_filter_text,
            config.filters.search_debounce_ms / 1000.0,
            timer_factory=timer_factory,
        )

    def get_version(self) -> int:
        with self._lock:
            return self._version

    def _inc_version(self):
        # Assumes lock is held
        self._version += 1

    def _normalize_selection_unlocked(self) -> None:
        self._selection = self.resolver.normalize_selection(
            self._tab, self._snapshot, self._filters, self._selection
        )

    # --- snapshot ---

    def apply_snapshot(self, snapshot: DockerSnapshot) -> None:
        summary = build_summary(snapshot)
        with self._lock:
            self._snapshot = snapshot
            self._summary = summary
            self._normalize_selection_unlocked()
            self._inc_version()
            logger.debug(f"Snapshot applied (version {self._version})")

    def update_source(self, kind: SourceKind, raw: Optional[str]) -> None:
        """Replace one record kind from the raw output of its command."""
        records = parse_source(kind, raw)
        with self._lock:
            snapshot = self._snapshot.with_source(kind, records)
            self.apply_snapshot(snapshot)

    def get_snapshot(self) -> DockerSnapshot:
        with self._lock:
            return self._snapshot

    def get_summary(self) -> ResourceSummary:
        with self._lock:
            return self._summary

    def invalidate_running_cache(self) -> None:
        """Force container status to be reclassified on the next filter pass."""
        with self._lock:
            self.running_cache.clear()
            self._normalize_selection_unlocked()
            self._inc_version()

    # --- tab / filters ---

    def get_tab(self) -> PanelTab:
        with self._lock:
            return self._tab

    def set_tab(self, tab: Union[PanelTab, str]) -> None:
        self._search_debouncer.cancel()
        with self._lock:
            self._tab = PanelTab(tab)
            self._filters = FilterState(search="", status=self._filters.status)
            self._selection = None
            self._normalize_selection_unlocked()
            self._inc_version()

    def get_filters(self) -> FilterState:
        with self._lock:
            return FilterState(search=self._filters.search, status=self._filters.status)

    def set_filter_text(self, text: str) -> None:
        with self._lock:
            self._filters = FilterState(search=text, status=self._filters.status)
            self._normalize_selection_unlocked()
            self._inc_version()

    def schedule_filter_text(self, text: str) -> None:
        """Debounced set_filter_text for search-as-you-type."""
        self._search_debouncer(text)

    def cancel_pending_filter(self) -> None:
        self._search_debouncer.cancel()

    @property
    def has_pending_filter(self) -> bool:
        return self._search_debouncer.pending

    def set_status_filter(self, status: Union[StatusFilter, str]) -> None:
        with self._lock:
            self._filters = FilterState(search=self._filters.search, status=StatusFilter(status))
            self._normalize_selection_unlocked()
            self._inc_version()

    def get_visible_items(self) -> list:
        with self._lock:
            return filter_view(self._tab, self._snapshot, self._filters, self.running_cache)

    # --- selection ---

    def get_entries(self) -> List[SelectionEntry]:
        with self._lock:
            return self.resolver.get_entries(self._tab, self._snapshot, self._filters)

    def get_selection(self) -> Optional[Selection]:
        with self._lock:
            return self._selection

    def get_selected_entry(self) -> Optional[SelectionEntry]:
        with self._lock:
            return self.resolver.find_entry(self._tab, self._snapshot, self._filters, self._selection)

    def select(self, key: str) -> bool:
        """Select the entry with `key`; returns False if it is not visible."""
        with self._lock:
            if not any(e.key == key for e in self.get_entries()):
                return False
            self._selection = Selection(kind=kind_for_tab(self._tab), key=key)
            self._inc_version()
            return True

    def move_selection(self, delta: int) -> None:
        with self._lock:
            entries = self.get_entries()
            if not entries:
                if self._selection is not None:
                    self._selection = None
                    self._inc_version()
                return

            keys = [e.key for e in entries]
            current = keys.index(self._selection.key) if self._selection and self._selection.key in keys else 0
            new_idx = max(0, min(current + delta, len(keys) - 1))
            if self._selection is None or new_idx != current:
                self._selection = Selection(kind=entries[new_idx].kind, key=keys[new_idx])
                self._inc_version()

    def resolve_action_target(self, action: Union[DockerAction, str]) -> Optional[str]:
        with self._lock:
            return self.resolver.resolve_action_target(
                action, self._tab, self._snapshot, self._filters, self._selection
            )

    def get_action_state(self, action: Union[DockerAction, str], pending_action: Optional[str] = None) -> ActionState:
        with self._lock:
            kind = self._selection.kind if self._selection else None
            target = self.resolve_action_target(action)
            return resolve_action_state(action, kind, target, pending_action)

    # --- ranking chart ---

    def get_sort_by(self) -> SortDimension:
        with self._lock:
            return self._sort_by

    def set_sort_by(self, sort_by: Union[SortDimension, str]) -> None:
        with self._lock:
            self._sort_by = SortDimension(sort_by)
            self._inc_version()

    def cycle_sort_by(self) -> SortDimension:
        with self._lock:
            modes = list(SortDimension)
            self._sort_by = modes[(modes.index(self._sort_by) + 1) % len(modes)]
            self._inc_version()
            return self._sort_by

    def get_top_n(self) -> int:
        with self._lock:
            return self._top_n

    def set_top_n(self, top_n: int) -> None:
        if not is_valid_top_n(top_n):
            raise ValueError(f"top_n must be one of {TOP_N_OPTIONS}, got {top_n!r}")
        with self._lock:
            self._top_n = top_n
            self._inc_version()

    def refresh_chart(self) -> Tuple[RankedView, List[RowOp]]:
        with self._lock:
            return self.rank_engine.refresh(self._snapshot.stats, self._sort_by, self._top_n)
