from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from frozendict import frozendict

from .base import EffectBase, capture_creation_site


@dataclass(frozen=True)
class RaceEffect(EffectBase):
    """Run every branch concurrently; the first to resolve wins."""

    effects: frozendict | tuple[Any, ...]

    def branches(self) -> list[tuple[Any, Any]]:
        if isinstance(self.effects, frozendict):
            return list(self.effects.items())
        return list(enumerate(self.effects))


def _validate_race_items(effects: Any) -> frozendict | tuple[Any, ...]:
    if isinstance(effects, Mapping):
        normalized: frozendict | tuple[Any, ...] = frozendict(effects)
    elif isinstance(effects, (list, tuple)):
        normalized = tuple(effects)
    else:
        raise TypeError(
            f"race expects a mapping or a sequence of effects, got {type(effects).__name__}"
        )
    if not normalized:
        raise ValueError("race requires at least one effect")
    return normalized


def race(effects: Mapping[str, Any] | list[Any] | tuple[Any, ...]) -> RaceEffect:
    return RaceEffect(effects=_validate_race_items(effects), created_at=capture_creation_site())


__all__ = ["RaceEffect", "race"]
