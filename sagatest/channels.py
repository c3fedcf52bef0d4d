"""Buffered channels and input pattern matching."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Mapping
from typing import Any


class _End:
    __slots__ = ()

    def __repr__(self) -> str:
        return "END"


END: Any = _End()
"""Sentinel input: terminates a plain ``take`` and closes channels."""

Listener = Callable[[Any], Any]
Unsubscribe = Callable[[], None]


def input_type(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("type")
    return getattr(value, "type", None)


def matches(pattern: Any, value: Any) -> bool:
    """Return True when ``value`` satisfies a take pattern."""
    if value is END:
        return True
    if pattern is None or pattern == "*":
        return True
    if isinstance(pattern, str):
        return input_type(value) == pattern
    if isinstance(pattern, (list, tuple)):
        return any(matches(item, value) for item in pattern)
    return bool(pattern(value))


class Channel:
    """FIFO channel shared between tasks.

    A bounded channel keeps the newest ``buffer_size`` values and drops the
    oldest one on overflow.
    """

    def __init__(self, buffer_size: int | None = None) -> None:
        self._buffer: deque[Any] = deque(maxlen=buffer_size)
        self._takers: deque[asyncio.Future[Any]] = deque()
        self.closed = False

    def put(self, value: Any) -> bool:
        """Buffer ``value`` or hand it to a waiting taker; True in the latter case."""
        if self.closed:
            return False
        if value is END:
            self.close()
            return False
        while self._takers:
            taker = self._takers.popleft()
            if not taker.done():
                taker.set_result(value)
                return True
        self._buffer.append(value)
        return False

    def take(self) -> asyncio.Future[Any]:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        if self._buffer:
            future.set_result(self._buffer.popleft())
        elif self.closed:
            future.set_result(END)
        else:
            self._takers.append(future)
        return future

    def close(self) -> None:
        self.closed = True
        while self._takers:
            taker = self._takers.popleft()
            if not taker.done():
                taker.set_result(END)

    def __len__(self) -> int:
        return len(self._buffer)

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self._buffer)} buffered"
        return f"Channel({state})"


class InputChannel:
    """The runtime's single subscription to the environment's published inputs.

    Each input is handed to every pending taker whose pattern it matches, in
    registration order, and copied into every matching action channel.
    """

    def __init__(self, subscribe: Callable[[Listener], Unsubscribe]) -> None:
        self._takers: list[tuple[Any, asyncio.Future[Any]]] = []
        self._forwards: list[tuple[Any, Channel]] = []
        self._unsubscribe = subscribe(self._on_input)

    def take(self, pattern: Any) -> asyncio.Future[Any]:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._takers.append((pattern, future))
        return future

    def open_channel(self, pattern: Any, buffer_size: int | None = None) -> Channel:
        channel = Channel(buffer_size)
        self._forwards.append((pattern, channel))
        return channel

    def close(self) -> None:
        self._unsubscribe()
        self._takers.clear()
        for _, channel in self._forwards:
            channel.close()
        self._forwards.clear()

    def _on_input(self, value: Any) -> bool:
        taken = False
        for pattern, channel in list(self._forwards):
            if matches(pattern, value) and channel.put(value):
                taken = True
        self._forwards = [entry for entry in self._forwards if not entry[1].closed]

        takers, self._takers = self._takers, []
        for pattern, future in takers:
            if future.done():
                continue
            if matches(pattern, value):
                future.set_result(value)
                taken = True
            else:
                self._takers.append((pattern, future))
        return taken


__all__ = ["Channel", "END", "InputChannel", "input_type", "matches"]
