"""Effect descriptors yielded by saga processes."""

from .base import CreationSite, EffectBase
from .call import CallEffect, CpsEffect, apply, call, cps
from .fork import CancelEffect, ForkEffect, JoinEffect, cancel, fork, join, spawn
from .io import (
    ActionChannelEffect,
    PutEffect,
    TakeEffect,
    action_channel,
    put,
    put_resolve,
    take,
    take_maybe,
)
from .race import RaceEffect, race
from .select import SelectEffect, select
from .time import delay

__all__ = [
    "ActionChannelEffect",
    "CallEffect",
    "CancelEffect",
    "CpsEffect",
    "CreationSite",
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
]
