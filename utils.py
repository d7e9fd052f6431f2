from __future__ import annotations

import random
from typing import Any, Dict


def clamp_float(v: float, lo: float, hi: float) -> float:
    """Clamp a float value into the inclusive range [lo, hi]."""
    return lo if v < lo else hi if v > hi else v


def clamp01(v: float) -> float:
    return clamp_float(v, 0.0, 1.0)


def random_range(rng: random.Random, lo: float, hi: float) -> float:
    """Uniform float in [lo, hi]; tolerates lo > hi by swapping."""
    if lo > hi:
        lo, hi = hi, lo
    return rng.uniform(lo, hi)


def random_int_inclusive(rng: random.Random, lo: int, hi: int) -> int:
    """Uniform integer in [lo, hi]; an inverted range collapses to lo."""
    if hi < lo:
        return lo
    return rng.randint(lo, hi)


def deep_get(d: Dict[str, Any], path: str, default: Any) -> Any:
    """Get a nested value from a dict using a dotted path.

    Args:
        d: Source dictionary.
        path: Dot-separated key path (e.g. "generator.chunk_height").
        default: Value to return if any path segment is missing.

    Returns:
        The found value or default.
    """
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur
