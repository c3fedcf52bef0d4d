from __future__ import annotations

from typing import Any


class SagaTestError(AssertionError):
    """Base class for failures reported by a saga test run."""


class UnmetExpectationError(SagaTestError):
    """Raised when a declared effect expectation was never observed.

    Carries the expectation label, the expected effect, and the effects that
    were recorded for the same category but left unmatched.
    """

    def __init__(
        self,
        message: str,
        *,
        label: str,
        category: Any,
        expected: Any,
        actual: tuple[Any, ...],
    ) -> None:
        self.label = label
        self.category = category
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class HarnessStateError(RuntimeError):
    """Raised when the harness lifecycle is driven out of order."""


class TaskCancelledError(Exception):
    """Outcome of a task that was cancelled before it finished."""


__all__ = [
    "HarnessStateError",
    "SagaTestError",
    "TaskCancelledError",
    "UnmetExpectationError",
]
