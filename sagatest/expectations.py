"""Declared effect expectations and their one-shot check."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sagatest.classification import EffectCategory
from sagatest.errors import UnmetExpectationError
from sagatest.serialize import serialize_effect
from sagatest.store import EffectStores


@dataclass(frozen=True)
class Expectation:
    label: str
    expected: Any
    category: EffectCategory


def _creation_suffix(effect: Any) -> str:
    site = getattr(effect, "created_at", None)
    return f"  ({site.format()})" if site is not None else ""


def report_actual_effects(actual: tuple[Any, ...], category: EffectCategory) -> str:
    if not actual:
        return ""
    rendered = (
        f"{index}. {serialize_effect(effect, category)}{_creation_suffix(effect)}"
        for index, effect in enumerate(actual, start=1)
    )
    return "\nActual:\n------\n" + "\n".join(rendered) + "\n"


class ExpectationLedger:
    """Ordered expectations, checked once against the recorded effects.

    The check fails fast: the first expectation without a matching recorded
    effect raises, and later expectations are not consulted.
    """

    def __init__(self) -> None:
        self._expectations: list[Expectation] = []
        self._checked = False

    def add(self, label: str, expected: Any, category: EffectCategory) -> None:
        if self._checked:
            raise RuntimeError("expectations were already checked")
        self._expectations.append(Expectation(label=label, expected=expected, category=category))

    def __len__(self) -> int:
        return len(self._expectations)

    @property
    def expectations(self) -> tuple[Expectation, ...]:
        return tuple(self._expectations)

    def check(self, stores: EffectStores) -> None:
        if self._checked:
            raise RuntimeError("expectations were already checked")
        self._checked = True

        for expectation in self._expectations:
            if stores.attempt_remove(expectation.category, expectation.expected):
                continue
            actual = stores.snapshot(expectation.category)
            message = (
                f"\n{expectation.label} expectation unmet:"
                f"\n\nExpected\n--------\n"
                f"{serialize_effect(expectation.expected, expectation.category)}\n"
                f"{report_actual_effects(actual, expectation.category)}"
            )
            raise UnmetExpectationError(
                message,
                label=expectation.label,
                category=expectation.category,
                expected=expectation.expected,
                actual=actual,
            )


__all__ = ["Expectation", "ExpectationLedger", "report_actual_effects"]
