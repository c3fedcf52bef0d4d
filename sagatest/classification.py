"""Effect classification.

Predicates are checked in a fixed priority order, so a value that satisfies
more than one of them (an awaitable effect object, for instance) always lands
in the same category.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any

from sagatest.effects import (
    ActionChannelEffect,
    CallEffect,
    CpsEffect,
    ForkEffect,
    PutEffect,
    RaceEffect,
    SelectEffect,
    TakeEffect,
)


class EffectCategory(str, Enum):
    RAW_ASYNC_RESULT = "promise"
    WAIT_FOR_INPUT = "take"
    DISPATCH = "put"
    RACE = "race"
    INVOKE = "call"
    CALLBACK_STYLE_INVOKE = "cps"
    FORK = "fork"
    QUERY = "select"
    ACQUIRE_CHANNEL = "actionChannel"
    UNCLASSIFIED = "none"


def is_raw_async_result(effect: Any) -> bool:
    return inspect.isawaitable(effect)


_PREDICATES: tuple[tuple[EffectCategory, Callable[[Any], bool]], ...] = (
    (EffectCategory.RAW_ASYNC_RESULT, is_raw_async_result),
    (EffectCategory.WAIT_FOR_INPUT, lambda effect: isinstance(effect, TakeEffect)),
    (EffectCategory.DISPATCH, lambda effect: isinstance(effect, PutEffect)),
    (EffectCategory.RACE, lambda effect: isinstance(effect, RaceEffect)),
    (EffectCategory.INVOKE, lambda effect: isinstance(effect, CallEffect)),
    (EffectCategory.CALLBACK_STYLE_INVOKE, lambda effect: isinstance(effect, CpsEffect)),
    (EffectCategory.FORK, lambda effect: isinstance(effect, ForkEffect)),
    (EffectCategory.QUERY, lambda effect: isinstance(effect, SelectEffect)),
    (EffectCategory.ACQUIRE_CHANNEL, lambda effect: isinstance(effect, ActionChannelEffect)),
)


def classify(effect: Any) -> EffectCategory:
    """Map an effect value to its category. Total and side-effect free."""
    for category, predicate in _PREDICATES:
        if predicate(effect):
            return category
    return EffectCategory.UNCLASSIFIED


__all__ = ["EffectCategory", "classify", "is_raw_async_result"]
