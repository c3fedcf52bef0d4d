from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any


def delay(ms: float, value: Any = None) -> Coroutine[Any, Any, Any]:
    """Sleep for ``ms`` milliseconds, then resume with ``value``.

    This is a raw awaitable rather than an effect descriptor, so the harness
    drain waits for it like any other yielded awaitable.
    """
    if ms < 0:
        raise ValueError(f"delay must be >= 0 ms, got {ms!r}")
    return asyncio.sleep(ms / 1000, value)


__all__ = ["delay"]
