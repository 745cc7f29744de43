"""Cancel-and-reschedule debouncing for rapid filter input."""

from __future__ import annotations

import threading
from functools import partial
from typing import Any, Callable, Optional

__all__ = ["DEFAULT_DELAY", "Debouncer"]

DEFAULT_DELAY = 0.3


class Debouncer:
    """Runs ``callback`` once input has been quiet for ``delay`` seconds.

    At most one call is pending; each ``trigger`` cancels it and schedules a
    fresh one with the latest arguments. Timers carry the generation they were
    scheduled for, so a timer that fires after being superseded does nothing.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        delay: float = DEFAULT_DELAY,
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        self._callback = callback
        self._delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: Optional[Any] = None
        self._pending: Optional[tuple] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = (args, kwargs)
            self._timer = self._timer_factory(self._delay, partial(self._fire, self._generation))
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None

    def flush(self) -> None:
        """Run the pending call immediately, if there is one."""
        with self._lock:
            self._cancel_timer()
            pending, self._pending = self._pending, None
        self._run(pending)

    def _cancel_timer(self) -> None:
        # Caller holds the lock.
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            pending, self._pending, self._timer = self._pending, None, None
        self._run(pending)

    def _run(self, pending: Optional[tuple]) -> None:
        if pending is None:
            return
        args, kwargs = pending
        self._callback(*args, **kwargs)
