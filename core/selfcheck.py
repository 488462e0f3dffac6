"""
core.selfcheck
Minimal "it runs" proof for the day rules, without the engine or a provider.

Run:
  python -m core.selfcheck
"""

from __future__ import annotations

from dataclasses import replace

from .effects import apply_daily_status_effects, calculate_daily_consumption, check_game_over, max_health_for
from .modes import get_mode_spec
from .outcomes import calculate_gather_water_outcome, calculate_hunting_outcome
from .rng import rng_from
from .state import MAX_HEALTH, PLAYER_ID, SurvivorChange, default_start_state
from .survivors import apply_survivor_changes


def run_core_smoke(days: int = 14, mode_key: str = "hard") -> None:
    base_seed = 42
    spec = get_mode_spec(mode_key)
    state = default_start_state(mode=spec)
    food, water, survivors = state.food, state.water, state.survivors

    for day in range(1, days + 1):
        rng = rng_from("selfcheck", day, base_seed=base_seed)

        # alternate hunting and gathering with the player
        player = next(s for s in survivors if s.id == PLAYER_ID)
        if day % 2:
            hunt = calculate_hunting_outcome(player, rng.random(), rng, spec.resource_multiplier)
            food += hunt.food_gained
            hp = hunt.health_change
        else:
            gather = calculate_gather_water_outcome(player, rng, spec.resource_multiplier)
            water += gather.water_gained
            hp = gather.health_change

        changes = [SurvivorChange(target=PLAYER_ID, health_change=hp)]
        if day == 3:
            changes.append(SurvivorChange(new=True, target="new", name="Ash", health=60, statuses=("Fever",)))
        if day == 6:
            changes.append(SurvivorChange(target="all", remove_status="all_negative"))
        survivors = apply_survivor_changes(survivors, changes, rng)

        used = calculate_daily_consumption(survivors, rate=spec.consumption_rate)
        food = max(0, food - used.food_consumed)
        water = max(0, water - used.water_consumed)
        survivors = apply_daily_status_effects(survivors)

        # invariants
        assert food >= 0 and water >= 0
        for s in survivors:
            assert 0 <= s.health <= max_health_for(s) <= MAX_HEALTH
            assert len(set(s.statuses)) == len(s.statuses)

        reason = check_game_over(food, water, survivors)
        if reason:
            print(f"Run ended on day {day}: {reason}")
            break

    final = replace(state, day=day, food=food, water=water, survivors=survivors)
    print(f"OK: {days}-day core smoke test passed ({spec.label}).")
    print("Final:", {"day": final.day, "food": final.food, "water": final.water})
    for s in final.survivors:
        print(f"  {s.name}: {s.health} HP {list(s.statuses)}")


if __name__ == "__main__":
    run_core_smoke()
