"""Input/output effects: waiting for inputs, dispatching, and buffering channels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sagatest.channels import Channel

from ._validators import ensure_optional_positive_int, normalize_pattern
from .base import EffectBase, capture_creation_site


@dataclass(frozen=True)
class TakeEffect(EffectBase):
    """Block until an input matching ``pattern`` (or a value on ``channel``) arrives."""

    pattern: Any = None
    channel: Channel | None = None
    maybe: bool = False


@dataclass(frozen=True)
class PutEffect(EffectBase):
    """Dispatch ``action`` to the environment, or to ``channel`` when given."""

    action: Any
    channel: Channel | None = None
    resolve: bool = False


@dataclass(frozen=True)
class ActionChannelEffect(EffectBase):
    """Open a buffered channel fed by every published input matching ``pattern``."""

    pattern: Any = None
    buffer_size: int | None = None


def _take(pattern_or_channel: Any, *, maybe: bool) -> TakeEffect:
    if isinstance(pattern_or_channel, Channel):
        return TakeEffect(
            channel=pattern_or_channel,
            maybe=maybe,
            created_at=capture_creation_site(3),
        )
    return TakeEffect(
        pattern=normalize_pattern(pattern_or_channel),
        maybe=maybe,
        created_at=capture_creation_site(3),
    )


def take(pattern_or_channel: Any = None) -> TakeEffect:
    return _take(pattern_or_channel, maybe=False)


def take_maybe(pattern_or_channel: Any = None) -> TakeEffect:
    """Like :func:`take`, but hands ``END`` to the process instead of terminating it."""
    return _take(pattern_or_channel, maybe=True)


def put(action: Any, channel: Channel | None = None) -> PutEffect:
    if channel is not None and not isinstance(channel, Channel):
        raise TypeError(f"channel must be Channel or None, got {type(channel).__name__}")
    return PutEffect(action=action, channel=channel, created_at=capture_creation_site())


def put_resolve(action: Any, channel: Channel | None = None) -> PutEffect:
    """Dispatch and wait for the dispatch result when it is awaitable."""
    if channel is not None and not isinstance(channel, Channel):
        raise TypeError(f"channel must be Channel or None, got {type(channel).__name__}")
    return PutEffect(
        action=action,
        channel=channel,
        resolve=True,
        created_at=capture_creation_site(),
    )


def action_channel(pattern: Any = None, buffer_size: int | None = None) -> ActionChannelEffect:
    ensure_optional_positive_int(buffer_size, name="buffer_size")
    return ActionChannelEffect(
        pattern=normalize_pattern(pattern),
        buffer_size=buffer_size,
        created_at=capture_creation_site(),
    )


__all__ = [
    "ActionChannelEffect",
    "PutEffect",
    "TakeEffect",
    "action_channel",
    "put",
    "put_resolve",
    "take",
    "take_maybe",
]
