"""
core.rng
Deterministic RNG helpers that do NOT rely on Python's built-in hash().

Every random draw in the game (hunt/gather rolls, "random" survivor targets,
generated ids) comes from a Random built here, so a run replays exactly from
its base seed.
"""

from __future__ import annotations

import hashlib
import json
import random
from typing import Any


def stable_int_seed(*parts: Any, salt: str = "wasteland-survivor") -> int:
    """Return a stable 32-bit seed for arbitrary JSON-ish inputs.

    SHA-256 over a canonical JSON dump, so the value is identical across
    processes and platforms (unlike hash()).
    """
    payload = json.dumps(parts, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)
    digest = hashlib.sha256(f"{salt}|{payload}".encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big", signed=False)


def rng_from(*parts: Any, base_seed: int) -> random.Random:
    """Create a Random instance from (base_seed + parts)."""
    return random.Random(stable_int_seed(base_seed, *parts))
