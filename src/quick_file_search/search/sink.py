import asyncio
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class DebouncedSink(Generic[T]):
    """
    Buffers values and commits the latest one at most once per interval.

    Bursts of pushes inside one interval are coalesced into a single commit.
    ``current`` always returns the latest pushed value, committed or not.
    """

    def __init__(
        self,
        commit: Callable[[T], None],
        initial: T,
        interval: float = 0.02,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._commit = commit
        self._interval = interval
        self._loop = loop
        self._current = initial
        self._committed = initial
        self._timer: asyncio.TimerHandle | None = None

    @property
    def current(self) -> T:
        return self._current

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def push(self, value: T) -> None:
        self._current = value
        if self._timer is not None:
            return
        if self._interval <= 0:
            self.flush()
            return
        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(self._interval, self.flush)

    def flush(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._current != self._committed:
            self._committed = self._current
            self._commit(self._current)

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
