"""engine.pipeline

Core day flow (headless).

Responsibilities:
- Resolve the day's input (choice / hunt / gather) into resource + party changes
- Pause for companion naming when a companion was just acquired
- Apply daily consumption + status effects, detect game over, advance the day
- Fold event-generator results (success or failure) into the snapshot

Every transition is a pure function returning (new_state, log). A rejected
input returns the same state object and a log with a "rejected" reason.

This layer is UI-agnostic.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from core.effects import apply_daily_status_effects, calculate_daily_consumption, check_game_over
from core.rng import rng_from
from core.state import (
    CompanionNamingInfo,
    ControlStatus,
    EventHistoryEntry,
    GameChoice,
    GameState,
    GatherResult,
    HuntResult,
    Survivor,
    SurvivorChange,
    default_start_state,
    state_from_mapping,
)
from core.survivors import apply_survivor_changes

from content.providers.base import EventRequest
from content.schemas import GameEvent

from .config import EngineConfig

logger = logging.getLogger(__name__)

Log = Dict[str, Any]

FALLBACK_CHOICE = GameChoice(
    id="continue",
    action="Continue...",
    outcome="You acknowledge the situation and prepare for what comes next.",
)

WAIT_CHOICE = GameChoice(
    id="continue_error",
    action="Hunker down and wait...",
    outcome="You cautiously wait, conserving energy.",
)

SILENT_EVENT = "An eerie silence hangs in the air."
FAILED_EVENT = "Radio interference blocks the signal. Unable to get a clear situation report."


def new_game(config: EngineConfig) -> GameState:
    return default_start_state(theme=config.theme, mode=config.mode)


def _blocked(state: GameState) -> Optional[str]:
    if state.is_game_over:
        return "game over"
    if state.is_loading:
        return "waiting for event"
    if state.is_naming_companion:
        return "naming companion"
    return None


def _rejected(state: GameState, kind: str, reason: str) -> Tuple[GameState, Log]:
    logger.info("Rejected %s on day %d: %s", kind, state.day, reason)
    return state, {"day": int(state.day), "input": kind, "rejected": reason}


def _resources(food: int, water: int) -> Dict[str, int]:
    return {"food": int(food), "water": int(water)}


def detect_new_companion(
    before: Sequence[Survivor], after: Sequence[Survivor]
) -> Optional[CompanionNamingInfo]:
    """First survivor holding a companion it didn't hold before."""
    previous = {s.id: s for s in before}
    for s in after:
        old = previous.get(s.id)
        if s.companion is not None and (old is None or old.companion is None):
            return CompanionNamingInfo(survivor_id=s.id, companion=s.companion)
    return None


def _end_game(
    state: GameState,
    reason: str,
    *,
    food: int,
    water: int,
    survivors: Tuple[Survivor, ...],
    start: Tuple[int, int],
    log: Log,
) -> Tuple[GameState, Log]:
    new_state = replace(
        state,
        food=food,
        water=water,
        survivors=survivors,
        food_change=food - start[0],
        water_change=water - start[1],
        status=ControlStatus.game_over(reason),
        event_text=f"Day {state.day}: The struggle ends... {reason}",
        current_choices=None,
    )
    log["game_over"] = reason
    log["after"] = _resources(food, water)
    return new_state, log


def _close_day(
    state: GameState,
    *,
    food: int,
    water: int,
    survivors: Tuple[Survivor, ...],
    start: Tuple[int, int],
    config: EngineConfig,
    log: Log,
) -> Tuple[GameState, Log]:
    """Consumption -> status effects -> game-over check -> next day."""
    used = calculate_daily_consumption(survivors, rate=config.mode.consumption_rate)
    food = max(0, food - used.food_consumed)
    water = max(0, water - used.water_consumed)
    survivors = apply_daily_status_effects(survivors)
    log["consumption"] = {"food": used.food_consumed, "water": used.water_consumed}

    reason = check_game_over(food, water, survivors)
    if reason:
        return _end_game(state, reason, food=food, water=water, survivors=survivors, start=start, log=log)

    history = state.event_history
    if state.event_text:
        entry = EventHistoryEntry(day=state.day, description=state.event_text, outcome=state.last_outcome)
        history = ((entry,) + tuple(history))[: max(0, int(config.max_history))]

    new_state = replace(
        state,
        day=state.day + 1,
        food=food,
        water=water,
        survivors=survivors,
        food_change=food - start[0],
        water_change=water - start[1],
        status=ControlStatus.loading(),
        current_choices=None,
        error=None,
        hunt_performed_today=False,
        gather_performed_today=False,
        event_history=history,
    )
    log["after"] = _resources(food, water)
    log["next_day"] = new_state.day
    return new_state, log


def _resolve_day(
    state: GameState,
    *,
    kind: str,
    food: int,
    water: int,
    survivors: Tuple[Survivor, ...],
    outcome: str,
    config: EngineConfig,
    hunted: bool = False,
    gathered: bool = False,
) -> Tuple[GameState, Log]:
    start = (state.food, state.water)
    log: Log = {
        "day": int(state.day),
        "input": kind,
        "before": _resources(*start),
        "after_effects": _resources(food, water),
    }
    base = replace(
        state,
        last_outcome=outcome,
        current_choices=None,
        error=None,
        hunt_performed_today=state.hunt_performed_today or hunted,
        gather_performed_today=state.gather_performed_today or gathered,
    )

    # 1) new companion: wait for a name before the day closes
    info = detect_new_companion(state.survivors, survivors)
    if info is not None:
        new_state = replace(
            base,
            food=food,
            water=water,
            survivors=survivors,
            food_change=food - start[0],
            water_change=water - start[1],
            status=ControlStatus.naming_companion(info),
        )
        log["naming_companion"] = info.survivor_id
        log["after"] = _resources(food, water)
        return new_state, log

    # 2) the input itself may end the run
    reason = check_game_over(food, water, survivors)
    if reason:
        return _end_game(base, reason, food=food, water=water, survivors=survivors, start=start, log=log)

    # 3) consumption + status effects + advance
    return _close_day(base, food=food, water=water, survivors=survivors, start=start, config=config, log=log)


# =========================
# Player inputs
# =========================


def apply_choice(*, state: GameState, choice: GameChoice, config: EngineConfig) -> Tuple[GameState, Log]:
    """Resolve the day with one of the offered choices."""
    reason = _blocked(state)
    if reason:
        return _rejected(state, "choice", reason)

    rng = rng_from("choice", int(state.day), choice.id or choice.action, base_seed=int(config.base_seed))
    food = max(0, state.food - choice.cost.food + choice.effects.food)
    water = max(0, state.water - choice.cost.water + choice.effects.water)
    survivors = apply_survivor_changes(
        state.survivors,
        choice.effects.survivor_changes,
        rng,
        population_cap=int(config.population_cap),
    )
    outcome = choice.outcome or f"You chose: {choice.action}"
    new_state, log = _resolve_day(
        state, kind="choice", food=food, water=water, survivors=survivors, outcome=outcome, config=config
    )
    log["choice"] = choice.id or choice.action
    return new_state, log


def _resolve_action(
    state: GameState,
    *,
    kind: str,
    actor_id: str,
    food_gained: int,
    water_gained: int,
    health_change: int,
    outcome: str,
    config: EngineConfig,
) -> Tuple[GameState, Log]:
    reason = _blocked(state)
    if reason:
        return _rejected(state, kind, reason)
    # day advance clears these; only a loaded save can arrive with them set
    if kind == "hunt" and state.hunt_performed_today:
        return _rejected(state, kind, "already hunted today")
    if kind == "gather" and state.gather_performed_today:
        return _rejected(state, kind, "already gathered today")

    actor = state.survivor(actor_id)
    if actor is None or not actor.is_alive:
        # roster may have changed since the UI offered this action
        logger.warning("Ignoring %s by unknown or dead survivor %r", kind, actor_id)
        return _rejected(state, kind, "unknown or dead survivor")

    rng = rng_from(kind, int(state.day), actor.id, base_seed=int(config.base_seed))
    survivors = apply_survivor_changes(
        state.survivors,
        [SurvivorChange(target=actor.id, health_change=int(health_change))],
        rng,
        population_cap=int(config.population_cap),
    )
    new_state, log = _resolve_day(
        state,
        kind=kind,
        food=max(0, state.food + int(food_gained)),
        water=max(0, state.water + int(water_gained)),
        survivors=survivors,
        outcome=outcome,
        config=config,
        hunted=kind == "hunt",
        gathered=kind == "gather",
    )
    log["actor"] = actor.id
    return new_state, log


def resolve_hunt(*, state: GameState, result: HuntResult, config: EngineConfig) -> Tuple[GameState, Log]:
    return _resolve_action(
        state,
        kind="hunt",
        actor_id=result.hunter_id,
        food_gained=result.food_gained,
        water_gained=0,
        health_change=result.health_change,
        outcome=result.outcome_text,
        config=config,
    )


def resolve_gather(*, state: GameState, result: GatherResult, config: EngineConfig) -> Tuple[GameState, Log]:
    return _resolve_action(
        state,
        kind="gather",
        actor_id=result.gatherer_id,
        food_gained=0,
        water_gained=result.water_gained,
        health_change=result.health_change,
        outcome=result.outcome_text,
        config=config,
    )


def _pending_naming(state: GameState, kind: str) -> Tuple[Optional[CompanionNamingInfo], Optional[str]]:
    if state.is_game_over:
        return None, "game over"
    info = state.companion_to_name_info
    if info is None:
        logger.warning("%s received with no companion waiting for a name", kind)
        return None, "no companion pending"
    return info, None


def _day_start(state: GameState) -> Tuple[int, int]:
    # naming committed food_change = food - start, so the day's start is recoverable
    return state.food - state.food_change, state.water - state.water_change


def finish_naming_companion(
    *, state: GameState, survivor_id: str, new_name: str, config: EngineConfig
) -> Tuple[GameState, Log]:
    """Name the pending companion, then close the day that acquired it."""
    info, reason = _pending_naming(state, "naming")
    if info is None:
        return _rejected(state, "naming", reason or "no companion pending")
    if survivor_id != info.survivor_id:
        logger.warning("Naming for %r but companion belongs to %r", survivor_id, info.survivor_id)
        return _rejected(state, "naming", "mismatched survivor")

    final_name = (new_name or "").strip() or info.companion.name
    survivors = tuple(
        replace(s, companion=replace(s.companion, name=final_name))
        if s.id == info.survivor_id and s.companion is not None
        else s
        for s in state.survivors
    )
    base = replace(
        state,
        survivors=survivors,
        status=ControlStatus.playing(),
        last_outcome=f"{state.last_outcome} You named the new companion '{final_name}'.".strip(),
    )
    log: Log = {"day": int(state.day), "input": "naming", "companion": final_name}
    return _close_day(
        base, food=state.food, water=state.water, survivors=survivors, start=_day_start(state), config=config, log=log
    )


def skip_naming_companion(*, state: GameState, config: EngineConfig) -> Tuple[GameState, Log]:
    """Keep the companion's default name and close the day."""
    info, reason = _pending_naming(state, "skip naming")
    if info is None:
        return _rejected(state, "skip_naming", reason or "no companion pending")

    kind = info.companion.type or "new arrival"
    base = replace(
        state,
        status=ControlStatus.playing(),
        last_outcome=f"{state.last_outcome} You decided not to name the {kind} for now.".strip(),
    )
    log: Log = {"day": int(state.day), "input": "skip_naming", "companion": info.companion.name}
    return _close_day(
        base,
        food=state.food,
        water=state.water,
        survivors=state.survivors,
        start=_day_start(state),
        config=config,
        log=log,
    )


# =========================
# Event boundary
# =========================


def event_request_for(state: GameState, config: EngineConfig) -> EventRequest:
    return EventRequest(
        day=int(state.day),
        food=int(state.food),
        water=int(state.water),
        survivors=tuple(state.survivors),
        theme=state.theme,
        previous_day_outcome=state.last_outcome if state.day > 1 else "",
        tone=config.mode.tone,
    )


def begin_event_fetch(state: GameState) -> GameState:
    if not state.is_loading:
        return state
    text = "Establishing contact..." if state.day == 1 else f"Planning for Day {state.day}..."
    return replace(state, event_text=text, error=None, current_choices=None)


def event_loaded(state: GameState, event: GameEvent) -> GameState:
    if not state.is_loading:
        logger.warning("Dropping event for day %d: game is not waiting for one", state.day)
        return state
    choices = tuple(event.choices) or (FALLBACK_CHOICE,)
    return replace(
        state,
        status=ControlStatus.playing(),
        event_text=event.description or SILENT_EVENT,
        current_choices=choices,
        error=None,
    )


def event_failed(state: GameState, message: str) -> GameState:
    if not state.is_loading:
        return state
    return replace(
        state,
        status=ControlStatus.playing(),
        event_text=FAILED_EVENT,
        current_choices=(WAIT_CHOICE,),
        error=message or "Failed to fetch event data.",
    )


def reset_game(state: GameState, config: EngineConfig) -> GameState:
    """Fresh run with the same theme."""
    return default_start_state(theme=state.theme, mode=config.mode)


def load_game_state(loaded: Union[GameState, Mapping[str, Any]]) -> GameState:
    """Replace the snapshot wholesale, from a GameState or a saved dict."""
    state = loaded if isinstance(loaded, GameState) else state_from_mapping(loaded)
    return replace(state, error=None)
