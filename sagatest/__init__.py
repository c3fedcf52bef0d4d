"""
sagatest - effect-level testing for generator-based sagas.

A saga is a generator function that talks to its environment only by
yielding effect descriptors. ``expect_saga`` runs one against a simulated
environment, records every effect, and checks declared expectations once
the run has drained.

Example:
    >>> from sagatest import call, expect_saga, put, take
    >>>
    >>> def greeter():
    ...     action = yield take("HELLO")
    ...     yield put({"type": "GREETED", "name": action["name"]})
    >>>
    >>> async def test_greeter():
    ...     await (
    ...         expect_saga(greeter)
    ...         .put({"type": "GREETED", "name": "Ada"})
    ...         .dispatch({"type": "HELLO", "name": "Ada"})
    ...         .run()
    ...     )

Runtime tracing goes through loguru and is disabled by default; turn it on
with ``loguru.logger.enable("sagatest")``.
"""

from loguru import logger

from sagatest.channels import END, Channel
from sagatest.classification import EffectCategory, classify
from sagatest.config import DEFAULT_TIMEOUT_MS, HarnessConfig
from sagatest.effects import (
    ActionChannelEffect,
    CallEffect,
    CancelEffect,
    CpsEffect,
    EffectBase,
    ForkEffect,
    JoinEffect,
    PutEffect,
    RaceEffect,
    SelectEffect,
    TakeEffect,
    action_channel,
    apply,
    call,
    cancel,
    cps,
    delay,
    fork,
    join,
    put,
    put_resolve,
    race,
    select,
    spawn,
    take,
    take_maybe,
)
from sagatest.errors import (
    HarnessStateError,
    SagaTestError,
    TaskCancelledError,
    UnmetExpectationError,
)
from sagatest.harness import SagaExpectation, expect_saga
from sagatest.result import Err, Ok, Result
from sagatest.runtime import EffectMonitor, Environment, SagaRuntime, SagaTask, run_saga
from sagatest.serialize import serialize_effect

logger.disable("sagatest")

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "END",
    # Effects
    "ActionChannelEffect",
    "CallEffect",
    "CancelEffect",
    "CpsEffect",
    "EffectBase",
    "ForkEffect",
    "JoinEffect",
    "PutEffect",
    "RaceEffect",
    "SelectEffect",
    "TakeEffect",
    "action_channel",
    "apply",
    "call",
    "cancel",
    "cps",
    "delay",
    "fork",
    "join",
    "put",
    "put_resolve",
    "race",
    "select",
    "spawn",
    "take",
    "take_maybe",
    # Harness
    "Channel",
    "EffectCategory",
    "EffectMonitor",
    "Environment",
    "HarnessConfig",
    "SagaExpectation",
    "SagaRuntime",
    "SagaTask",
    "classify",
    "expect_saga",
    "run_saga",
    "serialize_effect",
    # Results and errors
    "Err",
    "HarnessStateError",
    "Ok",
    "Result",
    "SagaTestError",
    "TaskCancelledError",
    "UnmetExpectationError",
]
