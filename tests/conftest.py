"""
Shared fixtures for sagatest tests.

Provides a recording environment that the runtime can be pointed at directly,
without going through the harness, plus a helper that lets the event loop
run pending callbacks.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest


class RecordingEnvironment:
    """Environment stub that records published values and monitor events."""

    def __init__(self, state: Any = None) -> None:
        self.state = state
        self.listeners: list[Callable[[Any], None]] = []
        self.published: list[Any] = []
        self.events: list[tuple[Any, ...]] = []
        self.publish_result: Any = None
        self.monitor = self

    def subscribe(self, listener: Callable[[Any], Any]) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def publish(self, value: Any) -> Any:
        self.published.append(value)
        for listener in list(self.listeners):
            listener(value)
        return self.publish_result

    def get_state(self) -> Any:
        return self.state

    def effect_emitted(self, effect_id: int, effect: Any) -> None:
        self.events.append(("emitted", effect_id, effect))

    def effect_resolved(self, effect_id: int, value: Any) -> None:
        self.events.append(("resolved", effect_id, value))

    def effect_failed(self, effect_id: int, error: BaseException) -> None:
        self.events.append(("failed", effect_id, error))

    def effect_cancelled(self, effect_id: int) -> None:
        self.events.append(("cancelled", effect_id))

    def emitted(self) -> list[Any]:
        return [event[2] for event in self.events if event[0] == "emitted"]


@pytest.fixture
def env() -> RecordingEnvironment:
    return RecordingEnvironment()


@pytest.fixture
def flush() -> Callable[[], Awaitable[None]]:
    """Return a coroutine function that runs the loop for a handful of ticks."""

    async def _flush(ticks: int = 10) -> None:
        for _ in range(ticks):
            await asyncio.sleep(0)

    return _flush
