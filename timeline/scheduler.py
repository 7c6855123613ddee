# timeline/scheduler.py
import heapq
import itertools
import logging
from typing import Callable

class Timer:
    """Handle for one delayed callback; cancel() makes it a no-op."""
    __slots__ = ("due", "callback", "label", "cancelled", "fired")

    def __init__(self, due: float, callback: Callable[[], None], label: str = ""):
        self.due = due
        self.callback = callback
        self.label = label
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self):
        self.cancelled = True

    def __repr__(self):
        return f"Timer({self.label!r}, due={self.due:.1f}, pending={self.pending})"

class Scheduler:
    """Advances time (ms) and fires one-shot timers in due order.
    The app loop feeds it frame deltas; tests feed it exact amounts.
    """
    def __init__(self):
        self.time = 0.0
        self._seq = itertools.count()
        self._heap: list[tuple[float, int, Timer]] = []

    def schedule(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> Timer:
        t = Timer(self.time + max(0.0, float(delay_ms)), callback, label)
        heapq.heappush(self._heap, (t.due, next(self._seq), t))
        return t

    def advance(self, dt_ms: float) -> int:
        self.time += max(0.0, float(dt_ms))
        fired = 0
        while self._heap and self._heap[0][0] <= self.time:
            _, _, t = heapq.heappop(self._heap)
            if t.cancelled:
                continue
            t.fired = True
            fired += 1
            logging.debug("timer fired: %s at t=%.1f", t.label, self.time)
            t.callback()
        return fired

    def pending(self) -> list[Timer]:
        return sorted((t for _, _, t in self._heap if t.pending), key=lambda t: t.due)

    def cancel_all(self):
        for _, _, t in self._heap:
            t.cancel()
        self._heap.clear()
