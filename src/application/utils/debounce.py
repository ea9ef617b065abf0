import asyncio
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class DebouncedValue(Generic[T]):
    """
    A value that only settles after ``delay_ms`` of no new input.

    ``set`` restarts the timer on every call, so a burst of updates
    propagates just the last one. ``set_now`` settles immediately. Must be
    used from inside a running event loop.
    """

    def __init__(
        self,
        value: T,
        delay_ms: int,
        on_change: Callable[[T], None] | None = None,
    ) -> None:
        self._value = value
        self._delay = delay_ms / 1000
        self._on_change = on_change
        self._timer: asyncio.TimerHandle | None = None
        self._closed = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def set(self, value: T) -> None:
        self._check_open()
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._commit, value)

    def set_now(self, value: T) -> None:
        self._check_open()
        self.cancel()
        self._commit(value)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self) -> None:
        self.cancel()
        self._closed = True

    def _commit(self, value: T) -> None:
        self._timer = None
        if value == self._value:
            return
        self._value = value
        if self._on_change is not None:
            self._on_change(value)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("DebouncedValue has been closed.")
