"""Function invocation effects."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from frozendict import frozendict

from ._validators import split_callable
from .base import EffectBase, capture_creation_site


@dataclass(frozen=True)
class CallEffect(EffectBase):
    """Invoke ``fn`` and resume with its (awaited) result."""

    context: Any
    fn: Callable[..., Any] | str
    args: tuple[Any, ...] = ()
    kwargs: frozendict = field(default_factory=frozendict)

    def bound(self) -> Callable[..., Any]:
        return _bind(self.context, self.fn)


@dataclass(frozen=True)
class CpsEffect(EffectBase):
    """Invoke a callback-style ``fn``; it receives ``callback(error, result)`` last."""

    context: Any
    fn: Callable[..., Any] | str
    args: tuple[Any, ...] = ()
    kwargs: frozendict = field(default_factory=frozendict)

    def bound(self) -> Callable[..., Any]:
        return _bind(self.context, self.fn)


def _bind(context: Any, fn: Callable[..., Any] | str) -> Callable[..., Any]:
    if isinstance(fn, str):
        return getattr(context, fn)
    return fn


def call(fn: Any, *args: Any, **kwargs: Any) -> CallEffect:
    context, target = split_callable(fn, name="call fn")
    return CallEffect(
        context=context,
        fn=target,
        args=tuple(args),
        kwargs=frozendict(kwargs),
        created_at=capture_creation_site(),
    )


def apply(context: Any, fn: Any, args: tuple[Any, ...] | list[Any] = ()) -> CallEffect:
    """``call`` with an explicit context object and a positional argument list."""
    context, target = split_callable((context, fn), name="apply fn")
    return CallEffect(
        context=context,
        fn=target,
        args=tuple(args),
        created_at=capture_creation_site(),
    )


def cps(fn: Any, *args: Any, **kwargs: Any) -> CpsEffect:
    context, target = split_callable(fn, name="cps fn")
    return CpsEffect(
        context=context,
        fn=target,
        args=tuple(args),
        kwargs=frozendict(kwargs),
        created_at=capture_creation_site(),
    )


__all__ = ["CallEffect", "CpsEffect", "apply", "call", "cps"]
