"""Base class for effect descriptors.

Effects are frozen dataclasses. Two effects are equal when their compared
fields are equal; ``created_at`` is bookkeeping only and never takes part in
equality, so an expectation built in a test matches the effect a process
yields from elsewhere.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CreationSite:
    filename: str
    line: int
    function: str

    def format(self) -> str:
        """Format as 'basename:line in function'."""
        return f"{os.path.basename(self.filename)}:{self.line} in {self.function}"


def capture_creation_site(skip_frames: int = 2) -> CreationSite | None:
    try:
        frame = sys._getframe(skip_frames)
    except ValueError:
        return None
    return CreationSite(
        filename=frame.f_code.co_filename,
        line=frame.f_lineno,
        function=frame.f_code.co_name,
    )


@dataclass(frozen=True)
class EffectBase:
    created_at: CreationSite | None = field(
        default=None, compare=False, repr=False, kw_only=True
    )


__all__ = ["CreationSite", "EffectBase", "capture_creation_site"]
