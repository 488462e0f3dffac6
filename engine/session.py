"""engine.session

One running game: the current snapshot plus everything that talks to it.

All transitions go through GameSession under a single lock, so a late event
response can never interleave with a player input. The UI only calls the
methods here; it never builds GameState by hand.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from core.outcomes import calculate_gather_water_outcome, calculate_hunting_outcome, can_hunt
from core.rng import rng_from
from core.state import GameChoice, GameState, GatherResult, HuntResult

from content.errors import ErrorType, GameError
from content.providers.base import EventProvider

from .config import EngineConfig
from .logging import make_run_export
from .pipeline import (
    apply_choice,
    begin_event_fetch,
    event_failed,
    event_loaded,
    event_request_for,
    finish_naming_companion,
    load_game_state,
    new_game,
    reset_game,
    resolve_gather,
    resolve_hunt,
    skip_naming_companion,
)
from .saves import SaveManager

logger = logging.getLogger(__name__)


# -------------------------
# Actions
# -------------------------


@dataclass(frozen=True)
class ApplyChoice:
    choice: GameChoice


@dataclass(frozen=True)
class ResolveHunt:
    result: HuntResult


@dataclass(frozen=True)
class ResolveGather:
    result: GatherResult


@dataclass(frozen=True)
class FinishNamingCompanion:
    survivor_id: str
    new_name: str


@dataclass(frozen=True)
class SkipNamingCompanion:
    pass


Action = Union[ApplyChoice, ResolveHunt, ResolveGather, FinishNamingCompanion, SkipNamingCompanion]


@dataclass
class GameSession:
    config: EngineConfig = field(default_factory=EngineConfig)
    provider: Optional[EventProvider] = None
    saves: Optional[SaveManager] = None
    autosave: bool = False

    state: GameState = field(init=False)
    initial_state: GameState = field(init=False)
    logs: List[Dict[str, Any]] = field(init=False, default_factory=list)

    _lock: Any = field(init=False, repr=False, default_factory=threading.RLock)
    _fetching: bool = field(init=False, repr=False, default=False)
    _generation: int = field(init=False, repr=False, default=0)

    def __post_init__(self) -> None:
        self.state = new_game(self.config)
        self.initial_state = self.state

    # -------------------------
    # Inputs
    # -------------------------

    def can_act(self) -> bool:
        s = self.state
        return not (s.is_loading or s.is_naming_companion or s.is_game_over)

    def dispatch(self, action: Action) -> GameState:
        with self._lock:
            cfg = self.config
            if isinstance(action, ApplyChoice):
                new_state, log = apply_choice(state=self.state, choice=action.choice, config=cfg)
            elif isinstance(action, ResolveHunt):
                new_state, log = resolve_hunt(state=self.state, result=action.result, config=cfg)
            elif isinstance(action, ResolveGather):
                new_state, log = resolve_gather(state=self.state, result=action.result, config=cfg)
            elif isinstance(action, FinishNamingCompanion):
                new_state, log = finish_naming_companion(
                    state=self.state, survivor_id=action.survivor_id, new_name=action.new_name, config=cfg
                )
            elif isinstance(action, SkipNamingCompanion):
                new_state, log = skip_naming_companion(state=self.state, config=cfg)
            else:
                raise TypeError(f"Unknown action: {action!r}")

            self.logs.append(log)
            advanced = new_state.day != self.state.day
            self.state = new_state
            if advanced and self.autosave and self.saves is not None:
                try:
                    self.saves.autosave(new_state, self.config.mode.key)
                except OSError:
                    logger.exception("Autosave failed on day %d", new_state.day)
            return new_state

    def choose(self, choice_id: str) -> GameState:
        """Pick one of the offered choices by id; unaffordable choices are refused."""
        with self._lock:
            choices = self.state.current_choices or ()
            choice = next((c for c in choices if c.id == choice_id), None)
            if choice is None:
                raise GameError(f"No choice with id {choice_id!r} is on offer.", ErrorType.VALIDATION)
            if not choice.affordable(self.state.food, self.state.water):
                raise GameError(
                    f"Not enough supplies for '{choice.action}'.",
                    ErrorType.RESOURCE,
                    data={"food": choice.cost.food, "water": choice.cost.water},
                )
            return self.dispatch(ApplyChoice(choice))

    def hunt(self, hunter_id: str, success: float) -> GameState:
        """Run the hunt calculator for `hunter_id` and resolve the day with it."""
        with self._lock:
            hunter = self.state.survivor(hunter_id)
            if hunter is None or not can_hunt(hunter):
                logger.warning("Survivor %r cannot hunt", hunter_id)
                return self.state
            rng = rng_from("hunt-roll", self.state.day, hunter.id, base_seed=self.config.base_seed)
            result = calculate_hunting_outcome(hunter, success, rng, self.config.mode.resource_multiplier)
            return self.dispatch(ResolveHunt(result))

    def gather(self, gatherer_id: str) -> GameState:
        with self._lock:
            gatherer = self.state.survivor(gatherer_id)
            if gatherer is None or not gatherer.is_alive:
                logger.warning("Survivor %r cannot gather", gatherer_id)
                return self.state
            rng = rng_from("gather-roll", self.state.day, gatherer.id, base_seed=self.config.base_seed)
            result = calculate_gather_water_outcome(gatherer, rng, self.config.mode.resource_multiplier)
            return self.dispatch(ResolveGather(result))

    def name_companion(self, new_name: str) -> GameState:
        with self._lock:
            info = self.state.companion_to_name_info
            survivor_id = info.survivor_id if info is not None else ""
            return self.dispatch(FinishNamingCompanion(survivor_id, new_name))

    def skip_naming(self) -> GameState:
        return self.dispatch(SkipNamingCompanion())

    # -------------------------
    # Event boundary
    # -------------------------

    def fetch_event_if_needed(self) -> GameState:
        """Ask the provider for the day's event when the game is waiting for one.

        The provider call happens outside the lock; its result is folded back in
        only if the snapshot is still waiting for that same day.
        """
        with self._lock:
            if not self.state.is_loading or self._fetching:
                return self.state
            self._fetching = True
            self.state = begin_event_fetch(self.state)
            ticket = (self._generation, self.state.day)
            request = event_request_for(self.state, self.config)

        try:
            if self.provider is None:
                raise GameError("No event provider configured.", ErrorType.UNKNOWN)
            event = self.provider.generate_event(request)
        except GameError as e:
            logger.warning("Event fetch for day %d failed: %s", request.day, e.message)
            return self._finish_fetch(ticket, error=e.display_message())
        except Exception as e:
            logger.exception("Unexpected error while fetching event for day %d", request.day)
            return self._finish_fetch(ticket, error=f"An unexpected error occurred: {e}")
        return self._finish_fetch(ticket, event=event)

    def _finish_fetch(self, ticket: Tuple[int, int], event: Any = None, error: str = "") -> GameState:
        with self._lock:
            if ticket != (self._generation, self.state.day):
                logger.warning("Discarding stale event result for day %d", ticket[1])
                return self.state
            self._fetching = False
            if event is not None:
                self.state = event_loaded(self.state, event)
            else:
                self.state = event_failed(self.state, error)
            return self.state

    # -------------------------
    # Lifecycle
    # -------------------------

    def reset(self) -> GameState:
        with self._lock:
            self._generation += 1
            self.state = reset_game(self.state, self.config)
            self.initial_state = self.state
            self.logs = []
            self._fetching = False
            return self.state

    def save(self, slot: int = 1, name: str = "") -> Dict[str, Any]:
        if self.saves is None:
            raise GameError("Saving is not configured.", ErrorType.RESOURCE)
        with self._lock:
            return self.saves.save(self.state, slot, name, self.config.mode.key)

    def load(self, slot: int = 1) -> bool:
        if self.saves is None:
            raise GameError("Saving is not configured.", ErrorType.RESOURCE)
        loaded = self.saves.load(slot)
        if loaded is None:
            return False
        with self._lock:
            self._generation += 1
            self.state = load_game_state(loaded)
            self._fetching = False
            return True

    def export_run(self) -> Dict[str, Any]:
        with self._lock:
            return make_run_export(
                config=self.config,
                initial_state=self.initial_state,
                final_state=self.state,
                day_logs=self.logs,
            )

