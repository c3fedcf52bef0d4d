"""Harness configuration.

Defaults can be overridden per process through environment variables:

    SAGATEST_TIMEOUT_MS        default drain timeout in milliseconds (250)
    SAGATEST_WARN_ON_TIMEOUT   "0"/"false"/"no" silences the timeout warning
    SAGATEST_IDLE_TICKS        loop ticks without new effects before a drain
                               treats the saga as idle (5)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from sagatest.scheduler import DEFAULT_IDLE_TICKS

DEFAULT_TIMEOUT_MS = 250

TIMEOUT_ENV_KEY = "SAGATEST_TIMEOUT_MS"
WARN_ON_TIMEOUT_ENV_KEY = "SAGATEST_WARN_ON_TIMEOUT"
IDLE_TICKS_ENV_KEY = "SAGATEST_IDLE_TICKS"

_FALSE_VALUES = ("0", "false", "no", "off")


def _parse_number(raw: str) -> float:
    try:
        return int(raw)
    except ValueError:
        return float(raw)


@dataclass(frozen=True)
class HarnessConfig:
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    warn_on_timeout: bool = True
    idle_ticks: int = DEFAULT_IDLE_TICKS

    def __post_init__(self) -> None:
        if not isinstance(self.timeout_ms, int | float) or isinstance(self.timeout_ms, bool):
            raise TypeError(
                f"timeout_ms must be int or float, got {type(self.timeout_ms).__name__}"
            )
        if not isinstance(self.idle_ticks, int) or self.idle_ticks < 1:
            raise ValueError(f"idle_ticks must be a positive int, got {self.idle_ticks!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HarnessConfig:
        env = os.environ if environ is None else environ
        raw_timeout = env.get(TIMEOUT_ENV_KEY, "").strip()
        timeout_ms: float = DEFAULT_TIMEOUT_MS
        if raw_timeout:
            try:
                timeout_ms = _parse_number(raw_timeout)
            except ValueError as exc:
                raise ValueError(
                    f"{TIMEOUT_ENV_KEY} must be a number of milliseconds, got {raw_timeout!r}"
                ) from exc
        warn = env.get(WARN_ON_TIMEOUT_ENV_KEY, "").strip().lower() not in _FALSE_VALUES
        raw_ticks = env.get(IDLE_TICKS_ENV_KEY, "").strip()
        idle_ticks = DEFAULT_IDLE_TICKS
        if raw_ticks:
            try:
                idle_ticks = int(raw_ticks)
            except ValueError as exc:
                raise ValueError(
                    f"{IDLE_TICKS_ENV_KEY} must be an integer, got {raw_ticks!r}"
                ) from exc
        return cls(timeout_ms=timeout_ms, warn_on_timeout=warn, idle_ticks=idle_ticks)


__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "HarnessConfig",
    "IDLE_TICKS_ENV_KEY",
    "TIMEOUT_ENV_KEY",
    "WARN_ON_TIMEOUT_ENV_KEY",
]
