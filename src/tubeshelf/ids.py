"""Identifier and clock capabilities shared by the state and share layers."""

from __future__ import annotations

import random
import time
import uuid
from typing import Callable

IdFactory = Callable[[str], str]
Clock = Callable[[], int]


def new_id(prefix: str = "id") -> str:
    """Return a collision-resistant identifier such as ``pl_<uuid4>``.

    Args:
        prefix: Entity prefix placed before the underscore separator.

    Returns:
        str: Identifier starting with ``prefix + "_"``.
    """

    try:
        token = str(uuid.uuid4())
    except NotImplementedError:
        # No OS randomness source; fall back to timestamp plus PRNG bits.
        token = f"{now_ms():x}_{random.getrandbits(52):x}"
    return f"{prefix}_{token}"


def now_ms() -> int:
    """Return the current Unix time in whole milliseconds."""

    return time.time_ns() // 1_000_000


__all__ = ["Clock", "IdFactory", "new_id", "now_ms"]
