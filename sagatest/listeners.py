"""Subscriber registry and queue of inputs not yet delivered to the process."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any

from sagatest.channels import Listener, Unsubscribe


class ListenerBus:
    """Delivers injected inputs to subscribers.

    Inputs injected while the process is blocked on a take are published
    immediately. Otherwise they are queued, and one queued input is released
    on the tick after each new take is observed. Once a published input has
    been taken the process is no longer blocked, even though it only resumes
    on a later tick, so inputs injected in between are queued in order.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._queue: deque[Any] = deque()
        self.blocked_on_input = False

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if subscribed:
                subscribed = False
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, value: Any) -> bool:
        """Send ``value`` to every listener; report whether any of them took it."""
        taken = False
        for listener in list(self._listeners):
            if listener(value):
                taken = True
        return taken

    def enqueue(self, value: Any) -> None:
        self._queue.append(value)

    def inject(self, value: Any) -> None:
        if self.blocked_on_input and not self._queue:
            self._deliver(value)
        else:
            self.enqueue(value)

    def drain_one(self) -> None:
        if self._queue:
            self._deliver(self._queue.popleft())

    def _deliver(self, value: Any) -> None:
        if self.publish(value):
            self.blocked_on_input = False

    def input_requested(self) -> None:
        """Called when a take is observed: mark blocked and release one queued input."""
        self.blocked_on_input = True
        asyncio.get_running_loop().call_soon(self.drain_one)

    @property
    def queued(self) -> tuple[Any, ...]:
        return tuple(self._queue)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


__all__ = ["ListenerBus"]
