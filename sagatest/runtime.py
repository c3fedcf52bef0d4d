"""Asyncio engine that drives saga generators.

Every yielded value goes through :meth:`SagaRuntime._run_effect`, which
assigns it an id and reports it to ``environment.monitor`` before and after
resolution. Resolution rules per effect type live in ``_resolve``.

Tasks never raise through their ``done`` future: it always resolves to an
``Ok``/``Err`` result, so unobserved failures do not leak out of the loop.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from collections.abc import Callable
from typing import Any, Protocol

from loguru import logger

from sagatest.channels import END, InputChannel, Listener, Unsubscribe
from sagatest.effects import (
    ActionChannelEffect,
    CallEffect,
    CancelEffect,
    CpsEffect,
    ForkEffect,
    JoinEffect,
    PutEffect,
    RaceEffect,
    SelectEffect,
    TakeEffect,
)
from sagatest.errors import TaskCancelledError
from sagatest.result import Err, Ok, Result

_log = logger.bind(component="runtime")


class EffectMonitor(Protocol):
    def effect_emitted(self, effect_id: int, effect: Any) -> None: ...

    def effect_resolved(self, effect_id: int, value: Any) -> None: ...

    def effect_failed(self, effect_id: int, error: BaseException) -> None: ...

    def effect_cancelled(self, effect_id: int) -> None: ...


class Environment(Protocol):
    monitor: EffectMonitor | None

    def subscribe(self, listener: Listener) -> Unsubscribe: ...

    def publish(self, value: Any) -> Any: ...

    def get_state(self) -> Any: ...


class _Terminate(Exception):
    """A plain take received END; the process ends normally."""


class SagaTask:
    """Handle for a running process or forked child."""

    def __init__(self, name: str, *, parent: SagaTask | None = None, detached: bool = False):
        self.name = name
        self.parent = parent
        self.detached = detached
        self.done: asyncio.Future[Result[Any]] = asyncio.get_running_loop().create_future()
        self._runner: asyncio.Task[None] | None = None
        self._children: list[SagaTask] = []
        self._cancelled = False
        self._abort_error: Exception | None = None

    def is_running(self) -> bool:
        return not self.done.done()

    def is_cancelled(self) -> bool:
        return self._cancelled

    def result(self) -> Any:
        if self.done.done():
            return self.done.result().ok()
        return None

    def error(self) -> Exception | None:
        if self.done.done() and not self._cancelled:
            return self.done.result().err()
        return None

    def cancel(self) -> None:
        """Cancel the task and its attached children. No-op once finished."""
        if self.done.done() or self._cancelled:
            return
        self._cancelled = True
        if self._runner is not None:
            self._runner.cancel()

    def _abort(self, error: Exception) -> None:
        if self.done.done() or self._abort_error is not None:
            return
        self._abort_error = error
        if self._runner is not None:
            self._runner.cancel()

    def __repr__(self) -> str:
        if self._cancelled:
            state = "cancelled"
        elif self.done.done():
            state = "failed" if self.done.result().is_err() else "done"
        else:
            state = "running"
        return f"SagaTask({self.name!r}, {state})"


class SagaRuntime:
    """Runs processes against one environment."""

    def __init__(self, environment: Environment) -> None:
        self._env = environment
        self._monitor = getattr(environment, "monitor", None)
        self._inputs = InputChannel(environment.subscribe)
        self._effect_ids = itertools.count(1)

    def run(self, process: Any, *args: Any, **kwargs: Any) -> SagaTask:
        """Start ``process`` (a generator function or generator) as a root task."""
        if inspect.isgenerator(process):
            name = process.__name__
            return self._start(lambda: process, name=name)
        name = getattr(process, "__name__", repr(process))
        return self._start(lambda: process(*args, **kwargs), name=name)

    def close(self) -> None:
        """Stop listening to the environment's inputs."""
        self._inputs.close()

    def _start(
        self,
        body: Callable[[], Any],
        *,
        name: str,
        parent: SagaTask | None = None,
        detached: bool = False,
    ) -> SagaTask:
        task = SagaTask(name, parent=parent, detached=detached)
        if parent is not None and not detached:
            parent._children.append(task)
        runner = asyncio.ensure_future(self._run_task(task, body))
        runner.add_done_callback(lambda _: self._runner_finished(task))
        task._runner = runner
        _log.debug("task {} started", name)
        return task

    async def _run_task(self, task: SagaTask, body: Callable[[], Any]) -> None:
        try:
            value = await self._settle(body(), task)
            await self._wait_children(task)
        except asyncio.CancelledError:
            self._cancel_children(task)
            if task._abort_error is not None:
                self._finish(task, Err(task._abort_error))
            else:
                task._cancelled = True
                self._finish(task, Err(TaskCancelledError(f"task {task.name!r} was cancelled")))
            raise
        except Exception as exc:
            self._cancel_children(task)
            self._finish(task, Err(exc))
        else:
            self._finish(task, Ok(value))

    def _runner_finished(self, task: SagaTask) -> None:
        # Cancelled before its first step: _run_task never ran.
        if not task.done.done():
            task._cancelled = True
            self._finish(task, Err(TaskCancelledError(f"task {task.name!r} was cancelled")))

    def _finish(self, task: SagaTask, outcome: Result[Any]) -> None:
        if task.done.done():
            return
        task.done.set_result(outcome)
        error = outcome.err()
        if error is None or task._cancelled:
            _log.debug("task {} finished ({})", task.name, "cancelled" if task._cancelled else "ok")
            return
        if task.parent is not None and not task.detached:
            task.parent._abort(error)
        elif task.detached:
            _log.error("detached task {} failed: {!r}", task.name, error)

    async def _wait_children(self, task: SagaTask) -> None:
        while True:
            pending = [child.done for child in task._children if child.is_running()]
            if not pending:
                return
            await asyncio.wait(pending)

    def _cancel_children(self, task: SagaTask) -> None:
        for child in task._children:
            child.cancel()

    async def _settle(self, result: Any, task: SagaTask) -> Any:
        if inspect.isgenerator(result):
            return await self._drive(result, task)
        if inspect.isawaitable(result):
            return await result
        return result

    async def _drive(self, gen: Any, task: SagaTask) -> Any:
        value: Any = None
        error: Exception | None = None
        try:
            while True:
                try:
                    if error is not None:
                        effect = gen.throw(error)
                    else:
                        effect = gen.send(value)
                except StopIteration as stop:
                    return stop.value
                value, error = None, None
                try:
                    value = await self._run_effect(effect, task)
                except _Terminate:
                    return None
                except Exception as exc:
                    error = exc
        finally:
            gen.close()

    async def _run_effect(self, effect: Any, task: SagaTask) -> Any:
        effect_id = next(self._effect_ids)
        if inspect.isawaitable(effect) and not isinstance(effect, asyncio.Future):
            effect = asyncio.ensure_future(effect)
        self._notify("effect_emitted", effect_id, effect)
        _log.debug("effect {} emitted by {}: {!r}", effect_id, task.name, effect)
        try:
            value = await self._resolve(effect, task)
        except asyncio.CancelledError:
            self._notify("effect_cancelled", effect_id)
            raise
        except _Terminate:
            self._notify("effect_resolved", effect_id, END)
            raise
        except Exception as exc:
            self._notify("effect_failed", effect_id, exc)
            _log.debug("effect {} failed: {!r}", effect_id, exc)
            raise
        self._notify("effect_resolved", effect_id, value)
        return value

    def _notify(self, event: str, *args: Any) -> None:
        callback = getattr(self._monitor, event, None)
        if callback is not None:
            callback(*args)

    async def _resolve(self, effect: Any, task: SagaTask) -> Any:
        if isinstance(effect, asyncio.Future):
            return await effect
        if isinstance(effect, TakeEffect):
            return await self._take(effect)
        if isinstance(effect, PutEffect):
            return await self._put(effect)
        if isinstance(effect, RaceEffect):
            return await self._race(effect, task)
        if isinstance(effect, CallEffect):
            result = effect.bound()(*effect.args, **effect.kwargs)
            return await self._settle(result, task)
        if isinstance(effect, CpsEffect):
            return await self._cps(effect)
        if isinstance(effect, ForkEffect):
            return await self._fork(effect, task)
        if isinstance(effect, SelectEffect):
            state = self._env.get_state()
            if effect.selector is None:
                return state
            return effect.selector(state, *effect.args)
        if isinstance(effect, ActionChannelEffect):
            return self._inputs.open_channel(effect.pattern, effect.buffer_size)
        if isinstance(effect, JoinEffect):
            return await self._join(effect)
        if isinstance(effect, CancelEffect):
            return await self._cancel(effect, task)
        return effect

    async def _take(self, effect: TakeEffect) -> Any:
        if effect.channel is not None:
            future = effect.channel.take()
        else:
            future = self._inputs.take(effect.pattern)
        value = await future
        if value is END and not effect.maybe:
            raise _Terminate()
        return value

    async def _put(self, effect: PutEffect) -> Any:
        if effect.channel is not None:
            effect.channel.put(effect.action)
            return effect.action
        result = self._env.publish(effect.action)
        if effect.resolve and inspect.isawaitable(result):
            return await result
        return result

    async def _race(self, effect: RaceEffect, task: SagaTask) -> Any:
        branches = effect.branches()
        runners = [
            (key, asyncio.ensure_future(self._run_effect(branch, task)))
            for key, branch in branches
        ]
        try:
            done, _ = await asyncio.wait(
                [runner for _, runner in runners],
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for _, runner in runners:
                if not runner.done():
                    runner.cancel()

        winner_key, winner = next((key, runner) for key, runner in runners if runner in done)
        for _, runner in runners:
            # Losing branches that finished in the same tick are discarded.
            if runner is not winner and runner in done and not runner.cancelled():
                runner.exception()
        value = winner.result()
        if isinstance(effect.effects, tuple):
            return [value if index == winner_key else None for index in range(len(branches))]
        return {winner_key: value}

    async def _cps(self, effect: CpsEffect) -> Any:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def callback(error: BaseException | None = None, result: Any = None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

        effect.bound()(*effect.args, callback, **effect.kwargs)
        return await future

    async def _fork(self, effect: ForkEffect, task: SagaTask) -> SagaTask:
        fn = effect.bound()
        child = self._start(
            lambda: fn(*effect.args, **effect.kwargs),
            name=getattr(fn, "__name__", repr(fn)),
            parent=task,
            detached=effect.detached,
        )
        # Let the child run up to its first suspension before the parent resumes.
        await asyncio.sleep(0)
        return child

    async def _join(self, effect: JoinEffect) -> Any:
        target = effect.task
        if not isinstance(target, SagaTask):
            raise TypeError(f"join expects a SagaTask, got {type(target).__name__}")
        outcome = await asyncio.shield(target.done)
        return outcome.unwrap()

    async def _cancel(self, effect: CancelEffect, task: SagaTask) -> None:
        target = task if effect.task is None else effect.task
        if not isinstance(target, SagaTask):
            raise TypeError(f"cancel expects a SagaTask, got {type(target).__name__}")
        target.cancel()
        if target is task:
            await asyncio.sleep(0)


def run_saga(process: Any, environment: Environment, *args: Any, **kwargs: Any) -> SagaTask:
    """Run ``process`` against ``environment``. Requires a running event loop."""
    return SagaRuntime(environment).run(process, *args, **kwargs)


__all__ = ["EffectMonitor", "Environment", "SagaRuntime", "SagaTask", "run_saga"]
