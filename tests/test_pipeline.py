from __future__ import annotations

from dataclasses import replace

from conftest import playing
from content.schemas import GameEvent
from core.effects import ALL_DEAD, FOOD_OUT
from core.state import (
    ChoiceCost,
    ChoiceEffects,
    Companion,
    GameChoice,
    GatherResult,
    HuntResult,
    Survivor,
    SurvivorChange,
    default_start_state,
    state_to_dict,
)
from engine.config import EngineConfig
from engine.pipeline import (
    FALLBACK_CHOICE,
    WAIT_CHOICE,
    apply_choice,
    begin_event_fetch,
    event_failed,
    event_loaded,
    finish_naming_companion,
    load_game_state,
    reset_game,
    resolve_gather,
    resolve_hunt,
    skip_naming_companion,
)

WAIT = GameChoice(id="wait", action="Wait it out")
DOG_CHOICE = GameChoice(
    id="dog",
    action="Befriend the dog",
    cost=ChoiceCost(food=2),
    effects=ChoiceEffects(
        survivor_changes=(SurvivorChange(target="player", add_companion=Companion(id="", name="Stray Dog", type="dog")),)
    ),
)


def test_plain_choice_advances_day(start_state, config):
    new, log = apply_choice(state=start_state, choice=WAIT, config=config)
    assert (new.day, new.food, new.water) == (2, 19, 19)
    assert new.is_loading and not new.is_game_over and not new.is_naming_companion
    assert (new.food_change, new.water_change) == (-1, -1)
    assert new.last_outcome == "You chose: Wait it out"
    assert new.current_choices is None
    assert log["next_day"] == 2 and log["consumption"] == {"food": 1, "water": 1}


def test_choice_cost_to_zero_ends_game_without_advancing(start_state, config):
    state = replace(start_state, food=1)
    choice = GameChoice(id="eat", action="Eat the last ration", cost=ChoiceCost(food=1))
    new, log = apply_choice(state=state, choice=choice, config=config)
    assert new.is_game_over
    assert new.game_over_message == FOOD_OUT
    assert new.day == 1 and new.food == 0
    assert new.event_text == f"Day 1: The struggle ends... {FOOD_OUT}"
    assert log["game_over"] == FOOD_OUT


def test_consumption_can_end_game_on_same_day(start_state, config):
    new, _ = apply_choice(state=replace(start_state, water=1), choice=WAIT, config=config)
    assert new.is_game_over and new.day == 1 and new.water == 0


def test_status_damage_can_kill_whole_party(start_state, config):
    frail = (Survivor(id="player", name="You", health=3, statuses=("Infected Wound",)),)
    new, _ = apply_choice(state=replace(start_state, survivors=frail), choice=WAIT, config=config)
    assert new.is_game_over and new.game_over_message == ALL_DEAD


def test_resources_clamped_at_zero(start_state, config):
    choice = GameChoice(id="x", action="Spill", effects=ChoiceEffects(water=-50))
    new, _ = apply_choice(state=start_state, choice=choice, config=config)
    assert new.water == 0 and new.food >= 0


def test_new_companion_pauses_for_naming(start_state, config):
    new, log = apply_choice(state=start_state, choice=DOG_CHOICE, config=config)
    assert new.is_naming_companion and not new.is_loading
    info = new.companion_to_name_info
    assert info.survivor_id == "player" and info.companion.name == "Stray Dog"
    # cost applied, consumption deferred
    assert (new.day, new.food, new.water) == (1, 18, 20)
    assert log["naming_companion"] == "player"


def test_finish_naming_resumes_the_day(start_state, config):
    naming, _ = apply_choice(state=start_state, choice=DOG_CHOICE, config=config)
    new, _ = finish_naming_companion(state=naming, survivor_id="player", new_name="  Rex ", config=config)
    assert new.survivor("player").companion.name == "Rex"
    assert (new.day, new.food, new.water) == (2, 17, 19)
    assert (new.food_change, new.water_change) == (-3, -1)
    assert new.is_loading and not new.is_naming_companion
    assert new.last_outcome.endswith("You named the new companion 'Rex'.")


def test_blank_name_keeps_default(start_state, config):
    naming, _ = apply_choice(state=start_state, choice=DOG_CHOICE, config=config)
    new, _ = finish_naming_companion(state=naming, survivor_id="player", new_name="   ", config=config)
    assert new.survivor("player").companion.name == "Stray Dog"


def test_skip_naming(start_state, config):
    naming, _ = apply_choice(state=start_state, choice=DOG_CHOICE, config=config)
    new, _ = skip_naming_companion(state=naming, config=config)
    assert new.day == 2 and new.survivor("player").companion.name == "Stray Dog"
    assert new.last_outcome.endswith("You decided not to name the dog for now.")


def test_naming_without_pending_companion_is_noop(start_state, config):
    new, log = finish_naming_companion(state=start_state, survivor_id="player", new_name="Rex", config=config)
    assert new is start_state and log["rejected"]
    new, _ = skip_naming_companion(state=start_state, config=config)
    assert new is start_state


def test_naming_mismatched_survivor_is_noop(start_state, config):
    naming, _ = apply_choice(state=start_state, choice=DOG_CHOICE, config=config)
    new, log = finish_naming_companion(state=naming, survivor_id="someone_else", new_name="Rex", config=config)
    assert new is naming and log["rejected"] == "mismatched survivor"


def test_inputs_rejected_after_game_over(start_state, config):
    over, _ = apply_choice(state=replace(start_state, food=0), choice=WAIT, config=config)
    assert over.is_game_over
    for new, _ in (
        apply_choice(state=over, choice=WAIT, config=config),
        resolve_hunt(state=over, result=HuntResult("player", 5, -5, "hunt"), config=config),
        resolve_gather(state=over, result=GatherResult("player", 5, -5, "gather"), config=config),
        skip_naming_companion(state=over, config=config),
    ):
        assert new is over


def test_inputs_rejected_while_loading_or_naming(start_state, config):
    loading = default_start_state()
    new, log = apply_choice(state=loading, choice=WAIT, config=config)
    assert new is loading and log["rejected"] == "waiting for event"

    naming, _ = apply_choice(state=start_state, choice=DOG_CHOICE, config=config)
    new, _ = apply_choice(state=naming, choice=WAIT, config=config)
    assert new is naming


def test_hunt_adds_food_and_costs_hunter_health(start_state, config):
    result = HuntResult(hunter_id="player", food_gained=6, health_change=-7, outcome_text="Got a deer.")
    new, log = resolve_hunt(state=start_state, result=result, config=config)
    assert (new.day, new.food, new.water) == (2, 25, 19)
    assert new.survivor("player").health == 93
    assert new.last_outcome == "Got a deer."
    assert not new.hunt_performed_today  # flags reset for the new day
    assert log["actor"] == "player"


def test_gather_adds_water(start_state, config):
    result = GatherResult(gatherer_id="player", water_gained=4, health_change=-5, outcome_text="Found a stream.")
    new, _ = resolve_gather(state=start_state, result=result, config=config)
    assert (new.food, new.water) == (19, 23)
    assert new.survivor("player").health == 95


def test_hunt_twice_in_one_day_rejected(start_state, config):
    state = replace(start_state, hunt_performed_today=True)
    new, log = resolve_hunt(state=state, result=HuntResult("player", 5, -5, "again"), config=config)
    assert new is state and log["rejected"] == "already hunted today"


def test_loaded_save_with_gather_flag_set_rejects_gather(start_state, config):
    saved = state_to_dict(replace(start_state, gather_performed_today=True))
    state = load_game_state(saved)
    new, log = resolve_gather(state=state, result=GatherResult("player", 4, -5, "again"), config=config)
    assert new is state and log["rejected"] == "already gathered today"


def test_hunt_by_unknown_or_dead_survivor_is_noop(start_state, config):
    new, _ = resolve_hunt(state=start_state, result=HuntResult("ghost", 5, -5, "boo"), config=config)
    assert new is start_state

    dead = replace(start_state, survivors=start_state.survivors + (Survivor(id="s2", name="Eli", health=0),))
    new, _ = resolve_gather(state=dead, result=GatherResult("s2", 5, -5, "..."), config=config)
    assert new is dead


def test_event_history_keeps_three_newest(start_state, config):
    state = start_state
    for day in range(1, 6):
        state = playing(replace(state, event_text=f"event {day}"))
        state, _ = apply_choice(state=state, choice=WAIT, config=config)
    assert [h.day for h in state.event_history] == [5, 4, 3]
    assert state.event_history[0].description == "event 5"
    assert state.event_history[0].outcome == "You chose: Wait it out"


def test_consumption_uses_mode_rate(start_state):
    party = start_state.survivors + tuple(Survivor(id=f"s{i}", name=f"S{i}", health=90) for i in range(3))
    hard = EngineConfig(mode_key="hard")
    new, _ = apply_choice(state=replace(start_state, survivors=party), choice=WAIT, config=hard)
    # 4 survivors * 1.2 = 4.8 -> 5
    assert (new.food, new.water) == (15, 15)


def test_begin_event_fetch_text():
    state = default_start_state()
    assert begin_event_fetch(state).event_text == "Establishing contact..."
    assert begin_event_fetch(replace(state, day=4)).event_text == "Planning for Day 4..."


def test_event_loaded_and_fallback():
    state = default_start_state()
    event = GameEvent(description="Ash falls.", choices=(WAIT,))
    loaded = event_loaded(state, event)
    assert not loaded.is_loading and loaded.current_choices == (WAIT,) and loaded.event_text == "Ash falls."

    empty = event_loaded(state, GameEvent(description=""))
    assert empty.current_choices == (FALLBACK_CHOICE,)
    assert empty.event_text == "An eerie silence hangs in the air."


def test_event_failure_offers_single_wait_choice():
    failed = event_failed(default_start_state(), "radio down")
    assert not failed.is_loading
    assert failed.error == "radio down"
    assert failed.current_choices == (WAIT_CHOICE,)


def test_late_event_ignored_when_not_loading(start_state):
    assert event_loaded(start_state, GameEvent(description="late")) is start_state
    assert event_failed(start_state, "late") is start_state


def test_wait_choice_after_failure_advances_day(config):
    failed = event_failed(default_start_state(), "radio down")
    new, _ = apply_choice(state=failed, choice=WAIT_CHOICE, config=config)
    assert new.day == 2 and new.error is None
    assert new.last_outcome == "You cautiously wait, conserving energy."


def test_reset_keeps_theme(config):
    state = replace(default_start_state(theme="Flooded World"), day=9, food=2)
    fresh = reset_game(state, config)
    assert (fresh.day, fresh.food, fresh.theme) == (1, 20, "Flooded World")
    assert fresh.is_loading
