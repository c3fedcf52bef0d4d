"""Runtime validators for effect attribute type checking."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


def _type_name(value: object) -> str:
    return type(value).__name__


def ensure_callable(value: object, *, name: str) -> None:
    if not callable(value):
        raise TypeError(f"{name} must be callable, got {_type_name(value)}")


def ensure_optional_callable(value: object | None, *, name: str) -> None:
    if value is not None and not callable(value):
        raise TypeError(f"{name} must be callable or None, got {_type_name(value)}")


def ensure_optional_positive_int(value: object | None, *, name: str) -> None:
    if value is None:
        return
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"{name} must be a positive int or None, got {value!r}")


def split_callable(target: Any, *, name: str) -> tuple[Any, Callable[..., Any] | str]:
    """Split ``fn`` or ``(context, fn)`` / ``(context, "method")`` into its parts."""
    if isinstance(target, tuple):
        if len(target) != 2:
            raise TypeError(f"{name} must be a callable or a (context, fn) pair")
        context, fn = target
        if isinstance(fn, str):
            if not callable(getattr(context, fn, None)):
                raise TypeError(f"{name}: {_type_name(context)} has no callable {fn!r}")
            return context, fn
        ensure_callable(fn, name=name)
        return context, fn
    ensure_callable(target, name=name)
    return None, target


def normalize_pattern(pattern: Any, *, name: str = "pattern") -> Any:
    """Validate a take pattern, converting list patterns into tuples."""
    if pattern is None or isinstance(pattern, str) or callable(pattern):
        return pattern
    if isinstance(pattern, (list, tuple)):
        return tuple(normalize_pattern(item, name=name) for item in pattern)
    raise TypeError(
        f"{name} must be None, '*', a string, a predicate or a list of those, "
        f"got {_type_name(pattern)}"
    )


__all__ = [
    "ensure_callable",
    "ensure_optional_callable",
    "ensure_optional_positive_int",
    "normalize_pattern",
    "split_callable",
]
