"""Child task effects: fork/spawn, join, and cancel."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from frozendict import frozendict

from ._validators import split_callable
from .base import EffectBase, capture_creation_site


@dataclass(frozen=True)
class ForkEffect(EffectBase):
    """Start ``fn`` as a child task and resume immediately with its task handle.

    Attached children (``detached=False``) keep their parent alive until they
    finish, propagate their errors to it, and are cancelled with it.
    """

    context: Any
    fn: Callable[..., Any] | str
    args: tuple[Any, ...] = ()
    kwargs: frozendict = field(default_factory=frozendict)
    detached: bool = False

    def bound(self) -> Callable[..., Any]:
        if isinstance(self.fn, str):
            return getattr(self.context, self.fn)
        return self.fn


@dataclass(frozen=True)
class JoinEffect(EffectBase):
    """Wait for a task and resume with its result."""

    task: Any


@dataclass(frozen=True)
class CancelEffect(EffectBase):
    """Cancel ``task``, or the running task itself when ``task`` is None."""

    task: Any = None


def fork(fn: Any, *args: Any, **kwargs: Any) -> ForkEffect:
    context, target = split_callable(fn, name="fork fn")
    return ForkEffect(
        context=context,
        fn=target,
        args=tuple(args),
        kwargs=frozendict(kwargs),
        created_at=capture_creation_site(),
    )


def spawn(fn: Any, *args: Any, **kwargs: Any) -> ForkEffect:
    """Like :func:`fork`, but the child is detached from its parent."""
    context, target = split_callable(fn, name="spawn fn")
    return ForkEffect(
        context=context,
        fn=target,
        args=tuple(args),
        kwargs=frozendict(kwargs),
        detached=True,
        created_at=capture_creation_site(),
    )


def join(task: Any) -> JoinEffect:
    return JoinEffect(task=task, created_at=capture_creation_site())


def cancel(task: Any = None) -> CancelEffect:
    return CancelEffect(task=task, created_at=capture_creation_site())


__all__ = ["CancelEffect", "ForkEffect", "JoinEffect", "cancel", "fork", "join", "spawn"]
