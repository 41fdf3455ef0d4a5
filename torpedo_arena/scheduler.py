"""
Deterministic timer queue driven by the simulation clock.

Every delayed or periodic action in the arena (robot course changes, firing,
torpedo bay reloads, torpedo timeouts, player respawn) is a timer in one
Scheduler. The simulation advances the clock once per tick and the due
callbacks run before the rest of the tick.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

# Tolerance for clock drift from summing fixed float steps
_CLOCK_EPSILON = 1e-9


@dataclass(eq=False)
class TimerHandle:
    """A scheduled callback. Returned by the schedule methods, used to cancel."""

    due: float
    callback: Callable[[], None]
    interval: Optional[float] = None  # set for repeating timers
    owner: Any = None
    cancelled: bool = False

    @property
    def repeating(self) -> bool:
        return self.interval is not None


@dataclass
class Scheduler:
    """Priority queue of timers ordered by due time, then scheduling order."""

    now: float = 0.0
    _queue: List[Tuple[float, int, TimerHandle]] = field(default_factory=list)
    _counter: Any = field(default_factory=itertools.count)
    _by_owner: Dict[Any, Set[TimerHandle]] = field(default_factory=dict)

    def schedule_once(self, delay: float, callback: Callable[[], None], owner: Any = None) -> TimerHandle:
        """Run callback once, delay seconds from now."""
        if delay < 0:
            raise ValueError(f"delay must not be negative: {delay}")
        handle = TimerHandle(due=self.now + delay, callback=callback, owner=owner)
        self._push(handle)
        return handle

    def schedule_repeating(self, interval: float, callback: Callable[[], None], owner: Any = None) -> TimerHandle:
        """Run callback every interval seconds, first run one interval from now."""
        if interval <= 0:
            raise ValueError(f"interval must be positive: {interval}")
        handle = TimerHandle(due=self.now + interval, callback=callback, interval=interval, owner=owner)
        self._push(handle)
        return handle

    def cancel(self, handle: TimerHandle):
        """Cancel a timer. Cancelling twice is harmless."""
        handle.cancelled = True
        self._forget(handle)

    def cancel_owner(self, owner: Any) -> int:
        """Cancel every pending timer registered for owner. Returns how many."""
        handles = self._by_owner.pop(owner, set())
        for handle in handles:
            handle.cancelled = True
        if handles:
            logger.debug(f"Cancelled {len(handles)} timers for {owner!r}")
        return len(handles)

    def clear(self):
        """Drop every timer without running it."""
        for _, _, handle in self._queue:
            handle.cancelled = True
        self._queue.clear()
        self._by_owner.clear()

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, dt: float) -> int:
        """
        Move the clock forward and fire every timer that has come due.

        Callbacks run in due-time order. A callback may schedule new timers;
        those fire in this same call if they come due within the window.
        Returns the number of callbacks run.
        """
        target = self.now + dt
        fired = 0

        while self._queue and self._queue[0][0] <= target + _CLOCK_EPSILON:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue

            if handle.repeating:
                # Re-arm from the due time so the period does not drift
                handle.due += handle.interval
                heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
            else:
                self._forget(handle)

            # Callbacks see the clock at their own due time
            self.now = max(self.now, min(due, target))
            handle.callback()
            fired += 1

        self.now = target
        return fired

    def _push(self, handle: TimerHandle):
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        if handle.owner is not None:
            self._by_owner.setdefault(handle.owner, set()).add(handle)

    def _forget(self, handle: TimerHandle):
        if handle.owner is None:
            return
        owned = self._by_owner.get(handle.owner)
        if owned is not None:
            owned.discard(handle)
            if not owned:
                del self._by_owner[handle.owner]
