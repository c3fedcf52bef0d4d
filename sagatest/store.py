"""Per-category multisets of observed effects."""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterator
from typing import Any

from sagatest.classification import EffectCategory

EqualityPredicate = Callable[[Any, Any], bool]


class EffectMultiset:
    """Insertion-ordered bag; equal values may occur several times."""

    def __init__(self, equals: EqualityPredicate = operator.eq) -> None:
        self._items: list[Any] = []
        self._equals = equals

    def add(self, effect: Any) -> None:
        self._items.append(effect)

    def delete(self, expected: Any) -> bool:
        """Remove the first occurrence equal to ``expected``; report success."""
        for index, item in enumerate(self._items):
            if self._equals(expected, item):
                del self._items[index]
                return True
        return False

    def values(self) -> tuple[Any, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._items))


class UnmatchableEffectStore(EffectMultiset):
    """Store for unclassified effects: kept for diagnostics, never matched."""

    def delete(self, expected: Any) -> bool:
        return False


class EffectStores:
    """One store per category, created fresh for each harness."""

    def __init__(self, equals: EqualityPredicate = operator.eq) -> None:
        self._stores: dict[EffectCategory, EffectMultiset] = {
            category: EffectMultiset(equals) for category in EffectCategory
        }
        self._stores[EffectCategory.UNCLASSIFIED] = UnmatchableEffectStore()

    def __getitem__(self, category: EffectCategory) -> EffectMultiset:
        return self._stores[category]

    def record(self, category: EffectCategory, effect: Any) -> None:
        self._stores[category].add(effect)

    def attempt_remove(self, category: EffectCategory, expected: Any) -> bool:
        return self._stores[category].delete(expected)

    def snapshot(self, category: EffectCategory) -> tuple[Any, ...]:
        return self._stores[category].values()


__all__ = ["EffectMultiset", "EffectStores", "EqualityPredicate", "UnmatchableEffectStore"]
