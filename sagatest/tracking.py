"""Bookkeeping for forked child tasks and raw asynchronous results."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any


class TaskTracker:
    """Correlates fork effects with the child tasks they resolve to.

    The monitor reports every effect's resolution the same way, so resolutions
    whose effect id was never registered as a fork are ignored here.
    """

    def __init__(self, on_child_spawned: Callable[[Any], None] | None = None) -> None:
        self._pending_forks: dict[int, Any] = {}
        self._children: list[Any] = []
        self._async_results: list[asyncio.Future[Any]] = []
        self._on_child_spawned = on_child_spawned

    def on_fork_requested(self, effect_id: int, descriptor: Any) -> None:
        self._pending_forks[effect_id] = descriptor

    def on_fork_resolved(self, effect_id: int, result: Any) -> bool:
        if self._pending_forks.pop(effect_id, None) is None:
            return False
        self._children.append(result)
        if self._on_child_spawned is not None:
            self._on_child_spawned(result)
        return True

    def on_fork_failed(self, effect_id: int) -> None:
        self._pending_forks.pop(effect_id, None)

    def track_async_result(self, future: asyncio.Future[Any]) -> None:
        self._async_results.append(future)

    @property
    def children(self) -> tuple[Any, ...]:
        return tuple(self._children)

    @property
    def pending_fork_count(self) -> int:
        return len(self._pending_forks)

    def pending_work(self) -> list[asyncio.Future[Any]]:
        """Completion signals the drain has to wait for, raw results first."""
        return [*self._async_results, *(child.done for child in self._children)]


__all__ = ["TaskTracker"]
