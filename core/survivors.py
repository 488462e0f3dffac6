"""
core.survivors
Interpreter for SurvivorChange batches.

Changes run in list order and each one sees the roster as left by the
previous ones. Nothing here raises for gameplay reasons: a change that can't
apply (full roster, unknown target, companion already present) is skipped
and logged.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from .state import (
    ALL_NEGATIVE,
    MAX_HEALTH,
    NEGATIVE_STATUSES,
    PLAYER_ID,
    POPULATION_CAP,
    Survivor,
    SurvivorChange,
    clamp,
    new_companion_id,
    new_survivor_id,
)

logger = logging.getLogger(__name__)

BLEEDING = "Injured (Bleeding)"
BLEEDING_HIT = 5
NEW_SURVIVOR_HEALTH = 80


def resolve_targets(roster: Sequence[Survivor], target: str, rng: random.Random) -> List[int]:
    """Indices into roster that a change addresses."""
    if target == PLAYER_ID:
        return [i for i, s in enumerate(roster) if s.id == PLAYER_ID]
    living = [i for i, s in enumerate(roster) if s.health > 0]
    if target == "random":
        return [rng.choice(living)] if living else []
    if target == "all":
        return living
    return [i for i, s in enumerate(roster) if s.id == target or s.name == target]


def _spawn(roster: Sequence[Survivor], change: SurvivorChange, rng: random.Random) -> Survivor:
    base = NEW_SURVIVOR_HEALTH if change.health is None else change.health
    health = clamp(int(base), 0, MAX_HEALTH)
    if change.health_change:
        health = clamp(health + int(change.health_change), 0, MAX_HEALTH)
    statuses: List[str] = []
    for tag in change.statuses:
        if tag not in statuses:
            statuses.append(tag)
    return Survivor(
        id=new_survivor_id(rng, taken=[s.id for s in roster]),
        name=change.name or "New Survivor",
        health=int(health),
        statuses=tuple(statuses),
        companion=None,
    )


def _apply_to(s: Survivor, change: SurvivorChange, rng: random.Random) -> Survivor:
    health = s.health + int(change.health_change or 0)
    statuses = list(s.statuses)

    if change.add_status and change.add_status not in statuses:
        statuses.append(change.add_status)
        if change.add_status == BLEEDING:
            health -= BLEEDING_HIT

    if change.remove_status == ALL_NEGATIVE:
        statuses = [t for t in statuses if t not in NEGATIVE_STATUSES]
    elif change.remove_status:
        statuses = [t for t in statuses if t != change.remove_status]

    companion = s.companion
    if change.add_companion is not None:
        if companion is None:
            companion = change.add_companion
            if not companion.id:
                companion = replace(companion, id=new_companion_id(rng))
        else:
            logger.warning("%s already has a companion; ignoring %r", s.name, change.add_companion.name)
    if change.remove_companion and companion is not None:
        companion = None

    return replace(
        s,
        health=int(clamp(health, 0, MAX_HEALTH)),
        statuses=tuple(statuses),
        companion=companion,
    )


def apply_survivor_changes(
    survivors: Iterable[Survivor],
    changes: Iterable[SurvivorChange],
    rng: random.Random,
    *,
    population_cap: int = POPULATION_CAP,
) -> Tuple[Survivor, ...]:
    """Apply changes in order and return the new roster (input untouched)."""
    roster = list(survivors)
    for change in changes:
        if change.new:
            # cap counts the whole roster, dead included
            if len(roster) >= population_cap:
                logger.warning("Roster full (%d); not adding %r", population_cap, change.name)
                continue
            roster.append(_spawn(roster, change, rng))
            continue

        targets = resolve_targets(roster, change.target, rng)
        if not targets:
            logger.debug("No survivor matches target %r", change.target)
        for i in targets:
            if roster[i].health <= 0:
                continue
            roster[i] = _apply_to(roster[i], change, rng)
    return tuple(roster)
