"""Clocks driving the scheduler.

The engine needs two services from its environment: a recurring tick and a
way to run a callback "soon", after the current synchronous work is done.
``AsyncioClock`` provides both on an asyncio event loop. ``ManualClock``
lets tests decide exactly when ticks and deliveries happen.
"""

import asyncio
from collections import deque
from typing import Callable, Optional, Protocol

from recordwatch.core.exceptions import ClockUnavailableError


class TickHandle:
    """Handle for a recurring tick subscription."""

    def __init__(self, on_cancel: Optional[Callable[["TickHandle"], None]] = None) -> None:
        self._cancelled = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel(self)


class Clock(Protocol):
    """Timer services consumed by the observation engine."""

    def on_tick(self, callback: Callable[[], object]) -> TickHandle:
        """Call ``callback`` on every tick until the handle is cancelled."""
        ...

    def schedule_soon(self, callback: Callable[[], object]) -> None:
        """Call ``callback`` once, after the current synchronous work."""
        ...


class _LoopTimer(TickHandle):
    """Recurring ``call_later`` chain on one event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], object],
    ) -> None:
        super().__init__()
        self.loop = loop
        self._interval = interval
        self._callback = callback
        self._timer: Optional[asyncio.TimerHandle] = None

    def start(self) -> None:
        self._timer = self.loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self.cancelled:
            return
        try:
            self._callback()
        finally:
            if not self.cancelled:
                self.start()

    def cancel(self) -> None:
        super().cancel()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioClock:
    """Clock backed by an asyncio event loop.

    Without an explicit loop, the running loop is picked up when the first
    tick subscription is made.

    Args:
        interval: Seconds between two ticks.
        loop: Optional event loop to schedule on.
    """

    def __init__(
        self,
        interval: float,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval}")
        self.interval = interval
        self._loop = loop
        self._timer: Optional[_LoopTimer] = None

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            pass
        if self._timer is not None and not self._timer.cancelled:
            return self._timer.loop
        raise ClockUnavailableError(
            "No running event loop; pass one to AsyncioClock or observe from a coroutine"
        )

    def on_tick(self, callback: Callable[[], object]) -> TickHandle:
        timer = _LoopTimer(self._resolve_loop(), self.interval, callback)
        timer.start()
        self._timer = timer
        return timer

    def schedule_soon(self, callback: Callable[[], object]) -> None:
        self._resolve_loop().call_soon(callback)


class ManualClock:
    """Clock advanced explicitly, for tests and synchronous embedding.

    Example:
        clock = ManualClock()
        engine = ObservationEngine(clock=clock)
        engine.observe(record, handler)
        record["a"] = 1
        clock.step()  # one tick, then deliver
    """

    def __init__(self) -> None:
        self._tick_callbacks: list[Callable[[], object]] = []
        self._handles: list[TickHandle] = []
        self._soon: deque[Callable[[], object]] = deque()
        self.ticks = 0

    @property
    def active(self) -> bool:
        """Whether any tick subscription is live."""
        return bool(self._tick_callbacks)

    @property
    def pending_soon(self) -> int:
        return len(self._soon)

    def on_tick(self, callback: Callable[[], object]) -> TickHandle:
        handle = TickHandle(on_cancel=self._remove)
        self._tick_callbacks.append(callback)
        self._handles.append(handle)
        return handle

    def _remove(self, handle: TickHandle) -> None:
        index = self._handles.index(handle)
        del self._handles[index]
        del self._tick_callbacks[index]

    def schedule_soon(self, callback: Callable[[], object]) -> None:
        self._soon.append(callback)

    def advance(self, ticks: int = 1) -> None:
        """Fire ``ticks`` ticks without running soon-callbacks."""
        for _ in range(ticks):
            self.ticks += 1
            for callback in list(self._tick_callbacks):
                callback()

    def run_soon(self) -> int:
        """Run queued soon-callbacks, including ones queued while running.

        Returns:
            Number of callbacks run.
        """
        count = 0
        while self._soon:
            callback = self._soon.popleft()
            callback()
            count += 1
        return count

    def step(self, ticks: int = 1) -> None:
        """Fire ticks, running soon-callbacks after each one."""
        for _ in range(ticks):
            self.advance()
            self.run_soon()
