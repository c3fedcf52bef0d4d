"""Chainable harness for asserting the effects a saga produces.

Example::

    def fetch_user(user_id):
        user = yield call(api.get_user, user_id)
        yield put({"type": "USER_LOADED", "user": user})

    async def test_fetch_user():
        await (
            expect_saga(fetch_user, 42)
            .call(api.get_user, 42)
            .put({"type": "USER_LOADED", "user": USER})
            .run()
        )

Expectations are unordered: each one only asserts that a matching effect of
its category was yielded at some point during the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from sagatest import effects
from sagatest.channels import Listener, Unsubscribe
from sagatest.classification import EffectCategory, classify
from sagatest.config import HarnessConfig
from sagatest.errors import HarnessStateError, SagaTestError
from sagatest.expectations import ExpectationLedger
from sagatest.listeners import ListenerBus
from sagatest.runtime import SagaRuntime, SagaTask
from sagatest.scheduler import CompletionScheduler
from sagatest.store import EffectStores
from sagatest.tracking import TaskTracker

logger = logging.getLogger(__name__)


class _EffectRegistrar:
    """Declares an expectation built by ``factory``; returns the harness for chaining."""

    def __init__(
        self,
        harness: SagaExpectation,
        label: str,
        category: EffectCategory,
        factory: Callable[..., Any],
    ) -> None:
        self._harness = harness
        self._label = label
        self._category = category
        self._factory = factory

    def __call__(self, *args: Any, **kwargs: Any) -> SagaExpectation:
        self._harness._expect(self._label, self._category, self._factory(*args, **kwargs))
        return self._harness

    def __repr__(self) -> str:
        return f"<expectation registrar {self._label}>"


class _HarnessMonitor:
    def __init__(self, harness: SagaExpectation) -> None:
        self._harness = harness

    def effect_emitted(self, effect_id: int, effect: Any) -> None:
        self._harness._store_effect(effect_id, effect)

    def effect_resolved(self, effect_id: int, value: Any) -> None:
        self._harness._tracker.on_fork_resolved(effect_id, value)

    def effect_failed(self, effect_id: int, error: BaseException) -> None:
        self._harness._tracker.on_fork_failed(effect_id)

    def effect_cancelled(self, effect_id: int) -> None:
        self._harness._tracker.on_fork_failed(effect_id)


class SagaExpectation:
    """Runs one saga against a simulated environment and checks its effects.

    One instance drives exactly one run.
    """

    def __init__(
        self,
        process: Any,
        args: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
        *,
        config: HarnessConfig | None = None,
    ) -> None:
        self._process = process
        self._args = tuple(args)
        self._kwargs = dict(kwargs or {})
        self._config = config if config is not None else HarnessConfig.from_env()

        self._stores = EffectStores()
        self._ledger = ExpectationLedger()
        self._bus = ListenerBus()
        self._tracker = TaskTracker(on_child_spawned=self._on_child_spawned)
        self._scheduler = CompletionScheduler(self._tracker)
        self._state: Any = None
        self._runtime: SagaRuntime | None = None
        self._task: SagaTask | None = None
        self._completion: asyncio.Future[BaseException | None] | None = None
        self.monitor = _HarnessMonitor(self)

        self.take = _EffectRegistrar(self, "take", EffectCategory.WAIT_FOR_INPUT, effects.take)
        self.take.maybe = _EffectRegistrar(
            self, "take.maybe", EffectCategory.WAIT_FOR_INPUT, effects.take_maybe
        )
        self.put = _EffectRegistrar(self, "put", EffectCategory.DISPATCH, effects.put)
        self.put.resolve = _EffectRegistrar(
            self, "put.resolve", EffectCategory.DISPATCH, effects.put_resolve
        )
        self.race = _EffectRegistrar(self, "race", EffectCategory.RACE, effects.race)
        self.call = _EffectRegistrar(self, "call", EffectCategory.INVOKE, effects.call)
        self.apply = _EffectRegistrar(self, "apply", EffectCategory.INVOKE, effects.apply)
        self.cps = _EffectRegistrar(
            self, "cps", EffectCategory.CALLBACK_STYLE_INVOKE, effects.cps
        )
        self.fork = _EffectRegistrar(self, "fork", EffectCategory.FORK, effects.fork)
        self.spawn = _EffectRegistrar(self, "spawn", EffectCategory.FORK, effects.spawn)
        self.select = _EffectRegistrar(self, "select", EffectCategory.QUERY, effects.select)
        self.action_channel = _EffectRegistrar(
            self, "action_channel", EffectCategory.ACQUIRE_CHANNEL, effects.action_channel
        )

    # Environment seen by the runtime.

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._bus.subscribe(listener)

    def publish(self, value: Any) -> None:
        self._bus.publish(value)

    def get_state(self) -> Any:
        return self._state

    # Test-authoring surface.

    def with_state(self, state: Any) -> SagaExpectation:
        self._state = state
        return self

    def with_config(self, config: HarnessConfig) -> SagaExpectation:
        if not isinstance(config, HarnessConfig):
            raise TypeError(f"config must be HarnessConfig, got {type(config).__name__}")
        self._config = config
        return self

    def dispatch(self, action: Any) -> SagaExpectation:
        """Inject an input: delivered now if the saga is blocked on a take, else queued."""
        self._bus.inject(action)
        return self

    def start(self) -> SagaExpectation:
        """Start the saga. Must be called with a running event loop."""
        if self._task is not None:
            raise HarnessStateError("saga was already started")
        self._runtime = SagaRuntime(self)
        self._task = self._runtime.run(self._process, *self._args, **self._kwargs)
        self._completion = asyncio.ensure_future(self._complete(self._task))
        return self

    async def stop(self, timeout: float | None = None) -> None:
        """Drain outstanding work, cancel the saga, and raise any failure.

        ``timeout`` is in milliseconds; values <= 0 wait without limit.
        """
        if self._task is None or self._completion is None or self._runtime is None:
            raise HarnessStateError("stop() called before start()")
        timeout_ms = self._config.timeout_ms if timeout is None else timeout
        self._scheduler.idle_ticks = self._config.idle_ticks
        try:
            error = await self._scheduler.stop(
                self._task,
                self._completion,
                timeout_ms,
                warn_on_timeout=self._config.warn_on_timeout,
            )
        finally:
            self._runtime.close()
        if error is not None:
            raise error

    async def run(self, timeout: float | None = None) -> None:
        self.start()
        await self.stop(timeout)

    def run_sync(self, timeout: float | None = None) -> None:
        """Run from synchronous code in a fresh event loop."""
        asyncio.run(self.run(timeout))

    @property
    def task(self) -> SagaTask | None:
        return self._task

    @property
    def expectations(self) -> ExpectationLedger:
        return self._ledger

    def recorded(self, category: EffectCategory) -> tuple[Any, ...]:
        """Effects of ``category`` recorded so far and not yet matched."""
        return self._stores.snapshot(category)

    # Internals.

    def _expect(self, label: str, category: EffectCategory, expected: Any) -> None:
        if self._task is not None:
            raise HarnessStateError(f"cannot add a {label} expectation after start()")
        self._ledger.add(label, expected, category)

    def _on_child_spawned(self, task: Any) -> None:
        self._scheduler.child_spawned(task)

    def _store_effect(self, effect_id: int, effect: Any) -> None:
        category = classify(effect)
        self._stores.record(category, effect)
        self._scheduler.note_activity()

        if category is EffectCategory.FORK:
            self._tracker.on_fork_requested(effect_id, effect)
        elif category is EffectCategory.RAW_ASYNC_RESULT:
            self._tracker.track_async_result(effect)

        if category is EffectCategory.WAIT_FOR_INPUT:
            self._bus.input_requested()
        else:
            self._bus.blocked_on_input = False

    async def _complete(self, task: SagaTask) -> BaseException | None:
        # Failures are returned rather than raised so they surface only through stop().
        outcome = await task.done
        error = None if task.is_cancelled() else outcome.err()
        if error is not None:
            logger.debug("saga %s failed: %r", task.name, error)
            return error
        try:
            self._ledger.check(self._stores)
        except SagaTestError as exc:
            return exc
        return None


def expect_saga(process: Any, *args: Any, **kwargs: Any) -> SagaExpectation:
    """Build a harness for ``process(*args, **kwargs)``."""
    return SagaExpectation(process, args, kwargs)


__all__ = ["SagaExpectation", "expect_saga"]
