"""engine.sim_runner

Headless runner for quick sanity checks.

This keeps tests deterministic and CI-friendly by avoiding network calls.
It uses a tiny built-in fake event provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from content.errors import ErrorType, EventFetchError
from content.providers.base import EventRequest, ProviderStatus
from content.schemas import GameEvent, event_from_llm
from core.outcomes import can_hunt
from core.state import GameState

from .config import EngineConfig
from .session import GameSession

_SCRIPT: List[Dict[str, Any]] = [
    {
        "description": "Snow drifts bury the road. A collapsed gas station sits half a mile off.",
        "choices": [
            {
                "id": "search_station",
                "action": "Search the gas station",
                "cost": {"food": 0, "water": 1},
                "outcome": "You pry open the stockroom and find a few cans.",
                "effects": {"food": 3, "water": 0, "survivorChanges": [{"target": "player", "healthChange": -3}]},
            },
            {
                "id": "rest",
                "action": "Rest in the cab of a truck",
                "outcome": "You sleep fitfully but wake rested.",
                "effects": {"survivorChanges": [{"target": "all", "healthChange": 2}]},
            },
        ],
    },
    {
        "description": "A starving dog follows you at a distance, ribs showing through matted fur.",
        "choices": [
            {
                "id": "feed_dog",
                "action": "Share some food with the dog",
                "cost": {"food": 2, "water": 0},
                "outcome": "The dog eats, then settles at your feet.",
                "effects": {
                    "survivorChanges": [
                        {
                            "target": "player",
                            "addCompanion": {"type": "dog", "name": "Stray Dog", "bonuses": {"hunting_yield": 20}},
                        }
                    ]
                },
            },
            {"id": "ignore_dog", "action": "Keep walking", "outcome": "The dog eventually gives up."},
        ],
    },
    {
        "description": "A woman waves from a rooftop, shouting that her stairwell has collapsed.",
        "choices": [
            {
                "id": "help_stranger",
                "action": "Help her down",
                "cost": {"food": 1, "water": 1},
                "outcome": "She climbs down and joins you.",
                "effects": {
                    "survivorChanges": [{"target": "new", "name": "Mara", "health": 70, "statuses": ["Cold"]}]
                },
            },
            {"id": "leave_stranger", "action": "Leave her", "outcome": "Her shouts fade behind you."},
        ],
    },
    {
        "description": "Thin ice covers a frozen creek. Water moves underneath.",
        "choices": [
            {
                "id": "break_ice",
                "action": "Break the ice for water",
                "outcome": "The water is freezing but clean.",
                "effects": {
                    "water": 4,
                    "survivorChanges": [{"target": "random", "addStatus": "Hypothermia"}],
                },
            },
            {
                "id": "treat_party",
                "action": "Spend the day treating wounds",
                "cost": {"food": 1, "water": 1},
                "outcome": "You clean cuts and warm frozen hands.",
                "effects": {"survivorChanges": [{"target": "all", "removeStatus": "all_negative"}]},
            },
        ],
    },
]


@dataclass
class FakeEventProvider:
    """Deterministic provider for tests (no LLM)."""

    fail_on_days: tuple = ()

    def status(self) -> ProviderStatus:
        return ProviderStatus(True, "fake", "scripted")

    def generate_event(self, request: EventRequest) -> GameEvent:
        if request.day in self.fail_on_days:
            raise EventFetchError("Scripted outage.", ErrorType.NETWORK)
        return event_from_llm(_SCRIPT[(request.day - 1) % len(_SCRIPT)])


def _play_day(session: GameSession) -> None:
    state = session.state
    if state.is_naming_companion:
        session.name_companion("Rex")
        return

    # hunt every third day, otherwise take the first affordable choice
    hunters = [s for s in state.survivors if can_hunt(s)]
    if state.day % 3 == 0 and hunters and not state.hunt_performed_today:
        session.hunt(hunters[0].id, success=0.6)
        return
    for choice in state.current_choices or ():
        if choice.affordable(state.food, state.water):
            session.choose(choice.id)
            return
    session.gather(state.living_survivors[0].id)


def run_headless_sim(days: int = 12, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """Run a deterministic simulation and return summary."""
    cfg = config or EngineConfig(base_seed=123)
    session = GameSession(config=cfg, provider=FakeEventProvider())

    states: List[GameState] = [session.state]
    # each day takes at most two inputs (naming pauses once)
    for _ in range(days * 2):
        if session.state.is_game_over or session.state.day > days:
            break
        session.fetch_event_if_needed()
        _play_day(session)
        states.append(session.state)

    return {
        "days": days,
        "final": session.state,
        "states": states,
        "logs": list(session.logs),
        "export": session.export_run(),
    }
