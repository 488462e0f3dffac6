"""
core.outcomes
Hunt and water-gathering resolution.

Both calculators take an explicit Random so a seeded run is reproducible.
Yield curve: base + (max - base) * success, scaled by companion bonus and
difficulty; success >= 0.8 adds a flat bonus, success < 0.2 yields nothing.
"""

from __future__ import annotations

import math
import random
from typing import Dict, Tuple

from .state import GatherResult, HuntResult, Survivor, clamp

HUNT_BASE_FOOD = 3
HUNT_MAX_FOOD = 8
GATHER_BASE_WATER = 2
GATHER_MAX_WATER = 6

GREAT_SUCCESS = 0.8
FAILURE = 0.2
GREAT_BONUS = 2

# health cost bands (inclusive) per tier
HEALTH_BANDS: Dict[str, Tuple[int, int]] = {
    "great": (-6, -3),
    "fair": (-10, -5),
    "fail": (-15, -8),
}

FAST_REACTION_MS = 250
SLOW_REACTION_MS = 1250


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def success_tier(success: float) -> str:
    if success >= GREAT_SUCCESS:
        return "great"
    if success < FAILURE:
        return "fail"
    return "fair"


def health_cost(tier: str, rng: random.Random) -> int:
    lo, hi = HEALTH_BANDS[tier]
    return rng.randint(lo, hi)


def hunting_success_from_reaction(reaction_ms: float) -> float:
    """Map a mini-game reaction time onto the 0..1 success signal."""
    span = SLOW_REACTION_MS - FAST_REACTION_MS
    return clamp((SLOW_REACTION_MS - float(reaction_ms)) / span, 0.0, 1.0)


def can_hunt(s: Survivor) -> bool:
    return s.health > 0 and "Broken Limb" not in s.statuses


def calculate_hunting_outcome(
    hunter: Survivor,
    success: float,
    rng: random.Random,
    yield_multiplier: float = 1.0,
) -> HuntResult:
    success = clamp(float(success), 0.0, 1.0)
    bonus = 0.0
    if hunter.companion is not None and hunter.companion.bonuses is not None:
        bonus = float(hunter.companion.bonuses.hunting_yield)

    raw = HUNT_BASE_FOOD + (HUNT_MAX_FOOD - HUNT_BASE_FOOD) * success
    food = _round_half_up(raw * (1 + bonus / 100.0) * float(yield_multiplier))
    tier = success_tier(success)
    if tier == "great":
        food += GREAT_BONUS
    elif tier == "fail":
        food = 0
    food = max(0, food)
    hp = health_cost(tier, rng)

    name = hunter.name
    if tier == "great":
        text = f"{name} struck fast and true, bringing back {food} food."
    elif tier == "fair":
        text = f"{name} tracked the prey for hours and returned with {food} food."
    else:
        text = f"{name} hesitated and the prey escaped. They returned empty-handed."
    if bonus > 0 and food > 0:
        text += f" {hunter.companion.name} helped flush out the game."
    text += f" (Health {hp})"

    return HuntResult(hunter_id=hunter.id, food_gained=food, health_change=hp, outcome_text=text)


def calculate_gather_water_outcome(
    gatherer: Survivor,
    rng: random.Random,
    yield_multiplier: float = 1.0,
) -> GatherResult:
    chance = 0.0
    if gatherer.companion is not None and gatherer.companion.bonuses is not None:
        chance = float(gatherer.companion.bonuses.gathering_success_chance)

    roll = rng.random()
    success = min(1.0, roll * (1 + chance / 100.0))

    raw = GATHER_BASE_WATER + (GATHER_MAX_WATER - GATHER_BASE_WATER) * success
    water = _round_half_up(raw * float(yield_multiplier))
    tier = success_tier(success)
    if tier == "great":
        water += GREAT_BONUS
    elif tier == "fail":
        water = 0
    water = max(0, water)
    hp = health_cost(tier, rng)

    name = gatherer.name
    if tier == "great":
        text = f"{name} found a clean spring and hauled back {water} water."
    elif tier == "fair":
        text = f"{name} searched hard and gathered {water} water."
    else:
        text = f"{name} searched everywhere but found no water, returning exhausted and thirsty."
    if chance > 0 and water > 0:
        text += f" {gatherer.companion.name} sniffed out the source."
    text += f" (Health {hp})"

    return GatherResult(gatherer_id=gatherer.id, water_gained=water, health_change=hp, outcome_text=text)
