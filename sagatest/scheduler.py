"""Drain-and-timeout arbitration deciding when a saga run is over.

States: RUNNING -> DRAINING -> (SETTLED | TIMED_OUT) -> STOPPED.

A drain pass lets the saga run until it goes idle, waits for every
outstanding child task and raw asynchronous result, then lets it go idle
again. A child spawned while a pass is in flight marks the scheduler dirty and
the drain runs another pass with the larger pending set; raw results yielded
mid-pass only join that set. Going idle is bounded by max_quiesce_rounds, so a
saga that never stops emitting effects is still cancelled. The timeout is one
deadline shared by all passes; a pass that hits it ends the drain.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from enum import Enum
from typing import Any

from sagatest.tracking import TaskTracker

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TICKS = 5
DEFAULT_MAX_QUIESCE_ROUNDS = 50


class SchedulerState(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    SETTLED = "settled"
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"


class CompletionScheduler:
    def __init__(
        self,
        tracker: TaskTracker,
        *,
        idle_ticks: int = DEFAULT_IDLE_TICKS,
        max_quiesce_rounds: int = DEFAULT_MAX_QUIESCE_ROUNDS,
    ) -> None:
        if idle_ticks < 1:
            raise ValueError(f"idle_ticks must be >= 1, got {idle_ticks!r}")
        if max_quiesce_rounds < 1:
            raise ValueError(f"max_quiesce_rounds must be >= 1, got {max_quiesce_rounds!r}")
        self._tracker = tracker
        self.idle_ticks = idle_ticks
        self.max_quiesce_rounds = max_quiesce_rounds
        self.dirty = False
        self.state = SchedulerState.RUNNING
        self.drain_passes = 0
        self._activity = 0

    def child_spawned(self, task: Any = None) -> None:
        self.dirty = True

    def note_activity(self) -> None:
        self._activity += 1

    async def drain(self, timeout_ms: float) -> bool:
        """Drain until a pass registers no new work; return whether it timed out."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000 if timeout_ms > 0 else None
        while True:
            self.state = SchedulerState.DRAINING
            self.drain_passes += 1
            self.dirty = False

            settled = await self._quiesce(deadline)
            if settled:
                settled = await self._wait(self._tracker.pending_work(), deadline)
            if settled:
                settled = await self._quiesce(deadline)

            if not settled:
                self.state = SchedulerState.TIMED_OUT
                return True
            if self.dirty:
                logger.debug("new work registered during drain pass %d", self.drain_passes)
                continue
            self.state = SchedulerState.SETTLED
            return False

    async def _quiesce(self, deadline: float | None) -> bool:
        """Yield to the loop until ``idle_ticks`` pass with no new effects.

        Gives up waiting for idleness after ``max_quiesce_rounds`` busy rounds.
        """
        loop = asyncio.get_running_loop()
        for _ in range(self.max_quiesce_rounds):
            seen = self._activity
            for _ in range(self.idle_ticks):
                await asyncio.sleep(0)
            if self._activity == seen:
                return True
            if deadline is not None and loop.time() >= deadline:
                return False
        logger.debug("saga still emitting effects after %d rounds", self.max_quiesce_rounds)
        return True

    async def _wait(self, pending: list[asyncio.Future[Any]], deadline: float | None) -> bool:
        if not pending:
            return True
        timeout = None
        if deadline is not None:
            timeout = max(0.0, deadline - asyncio.get_running_loop().time())
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        return not not_done

    async def stop(
        self,
        process: Any,
        completion: Awaitable[Any],
        timeout_ms: float,
        *,
        warn_on_timeout: bool = True,
    ) -> Any:
        """Drain, cancel ``process``, and return what ``completion`` settles with."""
        timed_out = await self.drain(timeout_ms)
        if timed_out and warn_on_timeout:
            logger.warning("Saga exceeded async timeout of %sms", timeout_ms)
        await asyncio.sleep(0)
        process.cancel()
        try:
            return await completion
        finally:
            self.state = SchedulerState.STOPPED


__all__ = [
    "CompletionScheduler",
    "DEFAULT_IDLE_TICKS",
    "DEFAULT_MAX_QUIESCE_ROUNDS",
    "SchedulerState",
]
