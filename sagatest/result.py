"""Outcome of a finished saga task: ``Ok(value)`` or ``Err(error)``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Result(Generic[T]):
    __slots__ = ()

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def ok(self) -> T | None:
        """The task's return value, or ``None`` if it failed or was cancelled."""
        return self.value if isinstance(self, Ok) else None

    def err(self) -> BaseException | None:
        return self.error if isinstance(self, Err) else None

    def unwrap(self) -> T:
        """Return the task's value, raising its error instead if it has one."""
        if isinstance(self, Err):
            raise self.error
        return self.value


@dataclass(frozen=True)
class Ok(Result[T]):
    value: T


@dataclass(frozen=True)
class Err(Result[Any]):
    error: BaseException


__all__ = ["Err", "Ok", "Result"]
