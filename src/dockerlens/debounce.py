"""
Debounce helper for search input.

Rapid keystrokes only trigger one recomputation: each call restarts the
delay window and only the last call runs. cancel() may be called at any
time (e.g. when the view is closed) and never runs the pending call.

Every scheduled call carries a generation number. A timer whose callback
was already waiting when a newer call (or cancel) came in finds its
generation outdated and does nothing.
"""

import threading
from functools import partial
from typing import Any, Callable, Optional, Tuple


class Debouncer:
    def __init__(self, fn: Callable[..., Any], delay: float, timer_factory: Callable = threading.Timer):
        self.fn = fn
        self.delay = delay
        self._timer_factory = timer_factory
        self._timer = None
        self._pending_args: Optional[Tuple[Any, ...]] = None
        self._generation = 0
        self._lock = threading.Lock()

    def __call__(self, *args: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending_args = args
            self._timer = self._timer_factory(self.delay, partial(self._fire, self._generation))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            args = self._pending_args
            self._timer = None
            self._pending_args = None
        if args is not None:
            self.fn(*args)

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = None
            self._pending_args = None

    def flush(self) -> None:
        """Run the pending call now instead of waiting for the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            generation = self._generation
        self._fire(generation)
