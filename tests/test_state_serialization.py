from __future__ import annotations

import json
from dataclasses import replace

from conftest import playing
from core.state import (
    ChoiceCost,
    ChoiceEffects,
    Companion,
    CompanionBonuses,
    CompanionNamingInfo,
    ControlStatus,
    EventHistoryEntry,
    GameChoice,
    Survivor,
    SurvivorChange,
    default_start_state,
    state_from_mapping,
    state_to_dict,
)
from engine.config import EngineConfig
from engine.sim_runner import run_headless_sim

DOG = Companion(id="comp_1", name="Rex", type="dog", bonuses=CompanionBonuses(hunting_yield=20.0))


def _rich_state():
    choice = GameChoice(
        id="c1",
        action="Trade",
        outcome="You trade.",
        cost=ChoiceCost(food=2, water=1),
        effects=ChoiceEffects(
            food=1,
            survivor_changes=(
                SurvivorChange(target="player", health_change=-3, add_status="Cold"),
                SurvivorChange(target="new", new=True, name="Ash", health=70, statuses=("Sick",)),
                SurvivorChange(target="Mara", add_companion=DOG),
                SurvivorChange(target="all", remove_status="all_negative", remove_companion=True),
            ),
        ),
    )
    return playing(
        default_start_state(theme="Flooded World"),
        day=4,
        food=7,
        water=3,
        food_change=-2,
        water_change=1,
        survivors=(
            Survivor(id="player", name="You", health=64, statuses=("Fever", "Hopeful"), companion=DOG),
            Survivor(id="survivor_ab", name="Mara", health=0),
        ),
        current_choices=(choice,),
        error="radio down",
        hunt_performed_today=True,
        event_history=(EventHistoryEntry(day=3, description="Rain.", outcome="You waited."),),
    )


def test_round_trip_rich_state():
    state = _rich_state()
    assert state_from_mapping(state_to_dict(state)) == state


def test_round_trip_through_json_text():
    state = _rich_state()
    assert state_from_mapping(json.loads(json.dumps(state_to_dict(state)))) == state


def test_round_trip_each_control_status():
    base = default_start_state()
    info = CompanionNamingInfo(survivor_id="player", companion=DOG)
    for status in (
        ControlStatus.loading(),
        ControlStatus.playing(),
        ControlStatus.naming_companion(info),
        ControlStatus.game_over("You ran out of water!"),
    ):
        state = replace(base, status=status)
        assert state_from_mapping(state_to_dict(state)) == state


def test_legacy_flags_are_exported():
    d = state_to_dict(default_start_state())
    assert d["isLoading"] is True
    assert d["isGameOver"] is False and d["isNamingCompanion"] is False
    assert d["companionToNameInfo"] is None


def test_unknown_fields_ignored():
    d = state_to_dict(default_start_state())
    d["playtime"] = 99
    d["survivors"][0]["mood"] = "grim"
    assert state_from_mapping(d) == default_start_state()


def test_round_trip_every_state_of_a_run():
    run = run_headless_sim(days=10, config=EngineConfig(base_seed=5))
    for state in run["states"]:
        assert state_from_mapping(state_to_dict(state)) == state
