"""Debounced phase recomputation.

Phases are recomputed from project data whenever it changes, but not
while a drag gesture is active. Ordinary changes wait a short debounce;
the end of a drag waits a longer one so the final drop settles first.

The scheduler is polled rather than threaded: callers invoke ``poll()``
from their event loop and pass a clock for deterministic tests.
"""

import logging
import time
from typing import Any, Callable, Optional

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules

logger = logging.getLogger(__name__)


class PhaseRecomputeScheduler:
    """
    Debounces calls to a phase recompute function.

    Example:
        >>> scheduler = PhaseRecomputeScheduler(refresh_phases)
        >>> scheduler.notify_change()
        >>> scheduler.poll()   # runs refresh_phases once 0.3 s have passed
    """

    def __init__(
        self,
        recompute: Callable[[], Any],
        rules: SchedulingRules = DEFAULT_RULES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.recompute = recompute
        self.rules = rules
        self.clock = clock
        self.is_dragging = False
        self._due_at: Optional[float] = None
        self.runs = 0
        self.last_result: Any = None

    @property
    def pending(self) -> bool:
        """True if a recompute is waiting for its debounce to elapse."""
        return self._due_at is not None

    def _schedule(self, delay: float) -> None:
        # Each change pushes the deadline out; a pending later deadline is kept
        self._due_at = max(self._due_at or 0, self.clock() + delay)

    def notify_change(self) -> None:
        """Record a data change. Ignored for scheduling purposes while dragging."""
        if self.is_dragging:
            return
        self._schedule(self.rules.recompute_debounce_seconds)

    def start_drag(self) -> None:
        """Suspend recomputation for the duration of a drag gesture."""
        self.is_dragging = True
        self._due_at = None

    def end_drag(self) -> None:
        """Resume after a drag, using the longer post-drag debounce."""
        self.is_dragging = False
        self._schedule(self.rules.drag_recompute_debounce_seconds)

    def poll(self) -> bool:
        """Run the recompute if its debounce has elapsed. Returns True if it ran."""
        if self.is_dragging or self._due_at is None:
            return False
        if self.clock() < self._due_at:
            return False
        self._due_at = None
        self.last_result = self.recompute()
        self.runs += 1
        logger.debug(f"Recomputed phases (run {self.runs})")
        return True

    def flush(self) -> bool:
        """Run a pending recompute immediately, unless a drag is active."""
        if self.is_dragging or self._due_at is None:
            return False
        self._due_at = self.clock()
        return self.poll()
