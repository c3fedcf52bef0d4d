from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ._validators import ensure_optional_callable
from .base import EffectBase, capture_creation_site


@dataclass(frozen=True)
class SelectEffect(EffectBase):
    """Query the environment state, optionally through ``selector(state, *args)``."""

    selector: Callable[..., Any] | None = None
    args: tuple[Any, ...] = ()


def select(selector: Callable[..., Any] | None = None, *args: Any) -> SelectEffect:
    ensure_optional_callable(selector, name="selector")
    return SelectEffect(selector=selector, args=tuple(args), created_at=capture_creation_site())


__all__ = ["SelectEffect", "select"]
