"""
core.effects
Survival rules:
- passive per-status health drift (applied once per day)
- daily food/water consumption
- game-over detection

All functions are pure; they never touch status sets.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .state import MAX_HEALTH, Survivor, clamp


# health delta per day, per status
STATUS_HEALTH_EFFECTS: Dict[str, int] = {
    "Malnourished": -2,
    "Injured (Bleeding)": -3,
    "Fever": -4,
    "Infected Wound": -5,
    "Hypothermia": -3,
    "Heatstroke": -3,
    "Poisoned": -4,
    "Sick": -2,
}

COMPANION_BOND = "Companion Bond"
COMPANION_BOND_HEAL = 5
FEVER_MAX_HEALTH = 85

# extra water per day, per status
EXTRA_WATER_STATUSES = ("Dehydrated", "Heatstroke")

FOOD_OUT = "You ran out of food!"
WATER_OUT = "You ran out of water!"
ALL_DEAD = "All survivors have perished."


@dataclass(frozen=True)
class Consumption:
    food_consumed: int
    water_consumed: int


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def has_bond(s: Survivor) -> bool:
    return COMPANION_BOND in s.statuses and s.companion is not None


def max_health_for(s: Survivor) -> int:
    return FEVER_MAX_HEALTH if "Fever" in s.statuses else MAX_HEALTH


def daily_health_delta(s: Survivor) -> float:
    delta: float = sum(STATUS_HEALTH_EFFECTS.get(tag, 0) for tag in s.statuses)
    if has_bond(s):
        delta += COMPANION_BOND_HEAL
    if s.companion is not None and s.companion.bonuses is not None:
        delta += float(s.companion.bonuses.healing_rate)
    return delta


def apply_daily_status_effects(survivors: Iterable[Survivor]) -> Tuple[Survivor, ...]:
    """One tick of passive status damage/healing for every living survivor."""
    out = []
    for s in survivors:
        if s.health <= 0:
            out.append(s)
            continue
        health = _round_half_up(s.health + daily_health_delta(s))
        out.append(replace(s, health=int(clamp(health, 0, max_health_for(s)))))
    return tuple(out)


def survivor_rates(s: Survivor) -> Tuple[float, float]:
    """(food, water) a single living survivor uses per day."""
    food = 1.0
    water = 1.0 + sum(1.0 for tag in EXTRA_WATER_STATUSES if tag in s.statuses)
    if has_bond(s):
        food *= 2
        water *= 2
    return food, water


def calculate_daily_consumption(survivors: Iterable[Survivor], rate: float = 1.0) -> Consumption:
    food = 0.0
    water = 0.0
    for s in survivors:
        if s.health <= 0:
            continue
        f, w = survivor_rates(s)
        food += f
        water += w
    return Consumption(
        food_consumed=max(0, _round_half_up(food * float(rate))),
        water_consumed=max(0, _round_half_up(water * float(rate))),
    )


def check_game_over(food: int, water: int, survivors: Sequence[Survivor]) -> Optional[str]:
    """First terminal reason, or None. Food before water before party."""
    if food <= 0:
        return FOOD_OUT
    if water <= 0:
        return WATER_OUT
    if not any(s.health > 0 for s in survivors):
        return ALL_DEAD
    return None
