from __future__ import annotations

from core.effects import (
    ALL_DEAD,
    FOOD_OUT,
    WATER_OUT,
    apply_daily_status_effects,
    calculate_daily_consumption,
    check_game_over,
    max_health_for,
)
from core.state import Companion, CompanionBonuses, Survivor


def _s(health=100, statuses=(), companion=None, sid="s1"):
    return Survivor(id=sid, name=sid, health=health, statuses=tuple(statuses), companion=companion)


DOG = Companion(id="c1", name="Rex", type="dog")


def test_fever_caps_health_at_85_for_the_tick():
    (s,) = apply_daily_status_effects([_s(85, ["Fever"])])
    assert s.health == 81

    (s,) = apply_daily_status_effects([_s(100, ["Fever"])])
    assert s.health == 85
    assert max_health_for(s) == 85


def test_status_deltas_stack():
    (s,) = apply_daily_status_effects([_s(50, ["Malnourished", "Poisoned", "Infected Wound"])])
    assert s.health == 50 - 2 - 4 - 5


def test_statuses_without_passive_effect_do_nothing():
    (s,) = apply_daily_status_effects([_s(60, ["Exhausted", "Hopeful", "Broken Limb"])])
    assert s.health == 60


def test_companion_bond_requires_companion():
    (alone,) = apply_daily_status_effects([_s(50, ["Companion Bond"])])
    (bonded,) = apply_daily_status_effects([_s(50, ["Companion Bond"], DOG)])
    assert alone.health == 50
    assert bonded.health == 55


def test_healing_rate_applies_without_bond():
    healer = Companion(id="c2", name="Doc", type="cat", bonuses=CompanionBonuses(healing_rate=3))
    (s,) = apply_daily_status_effects([_s(50, [], healer)])
    assert s.health == 53


def test_health_clamped_to_zero_and_dead_pass_through():
    dying, dead = apply_daily_status_effects([_s(2, ["Infected Wound"], sid="a"), _s(0, ["Poisoned"], sid="b")])
    assert dying.health == 0
    assert dead.health == 0
    assert dead.statuses == ("Poisoned",)


def test_status_sets_are_not_mutated():
    before = _s(70, ["Fever", "Sick"])
    (after,) = apply_daily_status_effects([before])
    assert after.statuses == before.statuses


def test_consumption_counts_living_survivors_only():
    used = calculate_daily_consumption([_s(sid="a"), _s(sid="b"), _s(0, sid="c")])
    assert (used.food_consumed, used.water_consumed) == (2, 2)


def test_consumption_extra_water_and_bond_doubling():
    thirsty = _s(statuses=["Dehydrated", "Heatstroke"], sid="a")
    bonded = _s(statuses=["Companion Bond", "Dehydrated"], companion=DOG, sid="b")
    used = calculate_daily_consumption([thirsty, bonded])
    # a: 1 food, 3 water; b: (1, 2) doubled -> (2, 4)
    assert (used.food_consumed, used.water_consumed) == (3, 7)


def test_hypothermia_does_not_change_water_use():
    used = calculate_daily_consumption([_s(statuses=["Hypothermia"])])
    assert used.water_consumed == 1


def test_consumption_rate_rounds_aggregate():
    party = [_s(sid=str(i)) for i in range(3)]
    used = calculate_daily_consumption(party, rate=1.5)
    assert (used.food_consumed, used.water_consumed) == (5, 5)  # 4.5 rounds half up
    used = calculate_daily_consumption(party, rate=0.7)
    assert (used.food_consumed, used.water_consumed) == (2, 2)


def test_game_over_order():
    alive = [_s()]
    dead = [_s(0)]
    assert check_game_over(0, 0, dead) == FOOD_OUT
    assert check_game_over(5, 0, dead) == WATER_OUT
    assert check_game_over(5, 5, dead) == ALL_DEAD
    assert check_game_over(5, 5, alive) is None


def test_game_over_does_not_single_out_the_player():
    party = [Survivor(id="player", name="You", health=0), _s(30, sid="mara")]
    assert check_game_over(5, 5, party) is None
