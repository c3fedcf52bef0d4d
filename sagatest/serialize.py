"""One-line renderings of effects for diagnostics."""

from __future__ import annotations

from typing import Any

from sagatest.channels import Channel
from sagatest.classification import EffectCategory, classify
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


def _callable_name(fn: Any) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


def _render_args(args: tuple[Any, ...], kwargs: Any = None) -> str:
    parts = [repr(arg) for arg in args]
    if kwargs:
        parts.extend(f"{key}={value!r}" for key, value in kwargs.items())
    return ", ".join(parts)


def _render_target(context: Any, fn: Any) -> str:
    if isinstance(fn, str):
        return f"{type(context).__name__}.{fn}"
    return _callable_name(fn)


def render_pattern(pattern: Any) -> str:
    if pattern is None or pattern == "*":
        return "*"
    if isinstance(pattern, str):
        return repr(pattern)
    if isinstance(pattern, tuple):
        return "[" + ", ".join(render_pattern(item) for item in pattern) + "]"
    if isinstance(pattern, Channel):
        return repr(pattern)
    return _callable_name(pattern)


def _render(effect: Any) -> str:
    if isinstance(effect, TakeEffect):
        target = effect.channel if effect.channel is not None else effect.pattern
        return render_pattern(target)
    if isinstance(effect, PutEffect):
        rendered = repr(effect.action)
        if effect.channel is not None:
            rendered += f" -> {effect.channel!r}"
        return rendered
    if isinstance(effect, (CallEffect, CpsEffect, ForkEffect)):
        target = _render_target(effect.context, effect.fn)
        return f"{target}({_render_args(effect.args, effect.kwargs)})"
    if isinstance(effect, SelectEffect):
        if effect.selector is None:
            return "state"
        extra = "".join(f", {arg!r}" for arg in effect.args)
        return f"{_callable_name(effect.selector)}(state{extra})"
    if isinstance(effect, ActionChannelEffect):
        size = "" if effect.buffer_size is None else f", buffer_size={effect.buffer_size}"
        return f"{render_pattern(effect.pattern)}{size}"
    if isinstance(effect, RaceEffect):
        rendered = (f"{key}: {serialize_effect(branch)}" for key, branch in effect.branches())
        return "{" + ", ".join(rendered) + "}"
    return repr(effect)


def effect_label(effect: Any, category: EffectCategory) -> str:
    if isinstance(effect, TakeEffect) and effect.maybe:
        return "take.maybe"
    if isinstance(effect, PutEffect) and effect.resolve:
        return "put.resolve"
    if isinstance(effect, ForkEffect) and effect.detached:
        return "spawn"
    return category.value


def serialize_effect(effect: Any, category: EffectCategory | None = None) -> str:
    """Render ``effect`` as ``<label>: <details>``."""
    if category is None:
        category = classify(effect)
    return f"{effect_label(effect, category)}: {_render(effect)}"


__all__ = ["effect_label", "render_pattern", "serialize_effect"]
