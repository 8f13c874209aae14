import asyncio
import itertools
from typing import Any, Callable, Dict, Optional, Protocol, Tuple


class FrameClock(Protocol):
    """Host-provided frame-complete notification."""

    def add_frame_callback(self, callback: Callable[[], None]) -> int: ...

    def remove_frame_callback(self, callback_id: int) -> None: ...


class AsyncioFrameClock:
    """
    Frame clock for headless runs: a "frame" completes on the next turn of
    the asyncio loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._ids = itertools.count(1)
        self._handles: Dict[int, asyncio.Handle] = {}

    def add_frame_callback(self, callback: Callable[[], None]) -> int:
        loop = self._loop or asyncio.get_running_loop()
        callback_id = next(self._ids)

        def run():
            self._handles.pop(callback_id, None)
            callback()

        self._handles[callback_id] = loop.call_soon(run)
        return callback_id

    def remove_frame_callback(self, callback_id: int) -> None:
        handle = self._handles.pop(callback_id, None)
        if handle is not None:
            handle.cancel()


class AfterPaintFrameClock:
    """
    Frame clock driven by the "after-paint" signal of a toolkit clock such as
    ``Gdk.FrameClock``. Each callback is connected for one frame and that
    frame is requested. Until ``clock_provider`` returns a clock (the window
    is not realized yet) callbacks go to ``fallback``.
    """

    def __init__(
        self,
        clock_provider: Callable[[], Any],
        fallback: FrameClock,
        paint_phase: Any = None,
    ):
        self._clock_provider = clock_provider
        self._fallback = fallback
        self._paint_phase = paint_phase
        self._ids = itertools.count(1)
        # callback id -> (clock or None for the fallback, handler or fallback id)
        self._pending: Dict[int, Tuple[Any, int]] = {}

    def add_frame_callback(self, callback: Callable[[], None]) -> int:
        callback_id = next(self._ids)
        clock = self._clock_provider()
        if clock is None:

            def run():
                self._pending.pop(callback_id, None)
                callback()

            self._pending[callback_id] = (None, self._fallback.add_frame_callback(run))
            return callback_id

        def on_after_paint(*_):
            entry = self._pending.pop(callback_id, None)
            if entry is None:
                return
            clock.disconnect(entry[1])
            callback()

        self._pending[callback_id] = (clock, clock.connect("after-paint", on_after_paint))
        if self._paint_phase is not None:
            clock.request_phase(self._paint_phase)
        return callback_id

    def remove_frame_callback(self, callback_id: int) -> None:
        entry = self._pending.pop(callback_id, None)
        if entry is None:
            return
        clock, handler_id = entry
        if clock is None:
            self._fallback.remove_frame_callback(handler_id)
        else:
            clock.disconnect(handler_id)

class OneShotContinuation:
    """
    Schedules at most one callback on the next frame-complete notification.

    Scheduling again cancels the previous, unfired callback; ``cancel`` is
    called on teardown.
    """

    def __init__(self, clock: FrameClock, logger: Any):
        self._clock = clock
        self.logger = logger
        self._callback_id = 0

    @property
    def pending(self) -> bool:
        return self._callback_id != 0

    def schedule(self, callback: Callable[[], None]) -> None:
        self.cancel()

        def fire():
            self._callback_id = 0
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Frame continuation failed: {e}", exc_info=True)

        self._callback_id = self._clock.add_frame_callback(fire)

    def cancel(self) -> None:
        if self._callback_id:
            self._clock.remove_frame_callback(self._callback_id)
            self._callback_id = 0
