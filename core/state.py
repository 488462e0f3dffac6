"""
core.state
Core domain data models (UI/LLM independent).

Everything here is a frozen dataclass: transitions build new snapshots with
dataclasses.replace() instead of mutating the old one.

The module also owns the plain-dict bridge used by saves and run exports
(camelCase keys, same shape the browser build stored).
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .modes import ModeSpec, get_mode_spec


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


MAX_HEALTH = 100
POPULATION_CAP = 5
PLAYER_ID = "player"
DEFAULT_THEME = "Nuclear Winter"
START_FOOD = 20
START_WATER = 20


# -------------------------
# Status tags
# -------------------------

STATUS_DESCRIPTIONS: Dict[str, str] = {
    "Dehydrated": "-10% action success; +1 Water consumption per day.",
    "Malnourished": "-10% movement/reaction speed in mini-games; small HP drain.",
    "Injured (Bleeding)": "Lose 5 HP immediately upon receiving; passive HP loss until treated.",
    "Exhausted": "-20% chance of critical failure in choices; can only perform one mini-game per day.",
    "Fever": "-15 Max HP; feverish days blur together.",
    "Infected Wound": "HP drains every day until disinfected; requires advanced medicine.",
    "Hypothermia": "Passive HP loss in cold environments; actions are less effective.",
    "Heatstroke": "Passive HP loss in hot environments; increased water consumption.",
    "Poisoned": "Steady HP loss until healed.",
    "Broken Limb": "Cannot go hunting or perform strenuous actions until splinted.",
    "Companion Bond": "+5 HP regen per day when traveling with companion, but double resource cost for the pair.",
    "Cold": "Slightly increased chance of getting sick.",
    "Sick": "Moderate passive HP loss; reduced effectiveness.",
    "Hopeful": "+5% action success chance.",
    "Scared": "-10% action success chance.",
}

KNOWN_STATUSES = tuple(STATUS_DESCRIPTIONS)

NEGATIVE_STATUSES = frozenset({
    "Dehydrated",
    "Malnourished",
    "Injured (Bleeding)",
    "Exhausted",
    "Fever",
    "Infected Wound",
    "Hypothermia",
    "Heatstroke",
    "Poisoned",
    "Broken Limb",
    "Cold",
    "Sick",
    "Scared",
})

ALL_NEGATIVE = "all_negative"


# -------------------------
# Party
# -------------------------


@dataclass(frozen=True)
class CompanionBonuses:
    """Percent / flat modifiers a companion grants its owner."""

    hunting_yield: float = 0.0              # % extra food from hunts
    gathering_success_chance: float = 0.0   # % boost to the gathering roll
    healing_rate: float = 0.0               # flat HP per day
    combat_assist: float = 0.0
    scavenging_bonus: float = 0.0


@dataclass(frozen=True)
class Companion:
    id: str
    name: str
    type: str
    bonuses: Optional[CompanionBonuses] = None


@dataclass(frozen=True)
class Survivor:
    id: str
    name: str
    health: int
    statuses: Tuple[str, ...] = ()
    companion: Optional[Companion] = None

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def is_player(self) -> bool:
        return self.id == PLAYER_ID


@dataclass(frozen=True)
class SurvivorChange:
    """One declarative mutation instruction for core.survivors.

    target: "player" | "random" | "all" | <id or name>; ignored when new=True.
    """

    target: str = ""
    new: bool = False
    health_change: Optional[int] = None
    add_status: Optional[str] = None
    remove_status: Optional[str] = None
    add_companion: Optional[Companion] = None
    remove_companion: bool = False
    # new=True only
    name: Optional[str] = None
    health: Optional[int] = None
    statuses: Tuple[str, ...] = ()


# -------------------------
# Choices & action results
# -------------------------


@dataclass(frozen=True)
class ChoiceCost:
    food: int = 0
    water: int = 0


@dataclass(frozen=True)
class ChoiceEffects:
    food: int = 0
    water: int = 0
    survivor_changes: Tuple[SurvivorChange, ...] = ()


@dataclass(frozen=True)
class GameChoice:
    action: str
    outcome: str = ""
    cost: ChoiceCost = field(default_factory=ChoiceCost)
    effects: ChoiceEffects = field(default_factory=ChoiceEffects)
    id: str = ""

    def affordable(self, food: int, water: int) -> bool:
        return self.cost.food <= food and self.cost.water <= water


@dataclass(frozen=True)
class HuntResult:
    hunter_id: str
    food_gained: int
    health_change: int
    outcome_text: str


@dataclass(frozen=True)
class GatherResult:
    gatherer_id: str
    water_gained: int
    health_change: int
    outcome_text: str


@dataclass(frozen=True)
class CompanionNamingInfo:
    survivor_id: str
    companion: Companion


@dataclass(frozen=True)
class EventHistoryEntry:
    day: int
    description: str
    outcome: str


# -------------------------
# Control status
# -------------------------

LOADING = "loading"
PLAYING = "playing"
NAMING_COMPANION = "naming_companion"
GAME_OVER = "game_over"


@dataclass(frozen=True)
class ControlStatus:
    """What the game is waiting for. Exactly one kind at a time."""

    kind: str
    naming: Optional[CompanionNamingInfo] = None
    message: str = ""

    @staticmethod
    def loading() -> "ControlStatus":
        return ControlStatus(LOADING)

    @staticmethod
    def playing() -> "ControlStatus":
        return ControlStatus(PLAYING)

    @staticmethod
    def naming_companion(info: CompanionNamingInfo) -> "ControlStatus":
        return ControlStatus(NAMING_COMPANION, naming=info)

    @staticmethod
    def game_over(message: str) -> "ControlStatus":
        return ControlStatus(GAME_OVER, message=str(message))


@dataclass(frozen=True)
class GameState:
    """Top-level snapshot.

    food/water are kept >= 0 by every transition in engine.pipeline.
    food_change/water_change are display-only deltas of the last transition.
    """

    day: int
    food: int
    water: int
    survivors: Tuple[Survivor, ...]
    status: ControlStatus = field(default_factory=ControlStatus.loading)
    theme: str = DEFAULT_THEME
    food_change: int = 0
    water_change: int = 0
    event_text: str = ""
    last_outcome: str = ""
    current_choices: Optional[Tuple[GameChoice, ...]] = None
    error: Optional[str] = None
    hunt_performed_today: bool = False
    gather_performed_today: bool = False
    event_history: Tuple[EventHistoryEntry, ...] = ()

    @property
    def is_loading(self) -> bool:
        return self.status.kind == LOADING

    @property
    def is_game_over(self) -> bool:
        return self.status.kind == GAME_OVER

    @property
    def is_naming_companion(self) -> bool:
        return self.status.kind == NAMING_COMPANION

    @property
    def companion_to_name_info(self) -> Optional[CompanionNamingInfo]:
        return self.status.naming

    @property
    def game_over_message(self) -> str:
        return self.status.message

    @property
    def living_survivors(self) -> List[Survivor]:
        return [s for s in self.survivors if s.is_alive]

    def survivor(self, survivor_id: str) -> Optional[Survivor]:
        return next((s for s in self.survivors if s.id == survivor_id), None)


def new_survivor_id(rng: random.Random, taken: Sequence[str] = ()) -> str:
    while True:
        sid = f"survivor_{rng.getrandbits(48):012x}"
        if sid not in taken:
            return sid


def new_companion_id(rng: random.Random) -> str:
    return f"comp_{rng.getrandbits(40):010x}"


def default_start_state(theme: str = DEFAULT_THEME, mode: Optional[ModeSpec] = None) -> GameState:
    """Day 1 baseline, shared by the UI, the headless runner and tests."""
    spec = mode or get_mode_spec("normal")
    return GameState(
        day=1,
        food=int(round(START_FOOD * spec.start_supply)),
        water=int(round(START_WATER * spec.start_supply)),
        survivors=(Survivor(id=PLAYER_ID, name="You", health=MAX_HEALTH),),
        status=ControlStatus.loading(),
        theme=str(theme or DEFAULT_THEME),
        event_text="Initializing...",
        last_outcome="The adventure begins...",
    )


# =========================
# Plain-dict bridge
# =========================


def _as_int(x: Any, default: int = 0) -> int:
    try:
        return int(round(float(x)))
    except (TypeError, ValueError):
        return int(default)


def _as_float(x: Any, default: float = 0.0) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return float(default)


def _str_list(x: Any) -> Tuple[str, ...]:
    if not isinstance(x, (list, tuple)):
        return ()
    out: List[str] = []
    for item in x:
        s = str(item or "").strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)


def bonuses_from_mapping(d: Any) -> Optional[CompanionBonuses]:
    if not isinstance(d, Mapping):
        return None
    return CompanionBonuses(
        hunting_yield=_as_float(d.get("hunting_yield")),
        gathering_success_chance=_as_float(d.get("gathering_success_chance")),
        healing_rate=_as_float(d.get("healing_rate")),
        combat_assist=_as_float(d.get("combat_assist")),
        scavenging_bonus=_as_float(d.get("scavenging_bonus")),
    )


def companion_from_mapping(d: Any) -> Optional[Companion]:
    if not isinstance(d, Mapping):
        return None
    ctype = str(d.get("type") or "companion").strip()
    return Companion(
        id=str(d.get("id") or "").strip(),
        name=str(d.get("name") or ctype.title()).strip(),
        type=ctype,
        bonuses=bonuses_from_mapping(d.get("bonuses")),
    )


def survivor_from_mapping(d: Mapping[str, Any]) -> Survivor:
    return Survivor(
        id=str(d.get("id") or ""),
        name=str(d.get("name") or "Survivor"),
        health=int(clamp(_as_int(d.get("health"), MAX_HEALTH), 0, MAX_HEALTH)),
        statuses=_str_list(d.get("statuses")),
        companion=companion_from_mapping(d.get("companion")),
    )


def change_from_mapping(d: Mapping[str, Any]) -> SurvivorChange:
    """Accepts both {"new": true, ...} and {"target": "new", ...}."""
    target = str(d.get("target") or "").strip()
    is_new = bool(d.get("new")) or target == "new"
    hc = d.get("healthChange", d.get("health_change"))
    health = d.get("health")
    return SurvivorChange(
        target=target or ("new" if is_new else ""),
        new=is_new,
        health_change=None if hc is None else _as_int(hc),
        add_status=str(d["addStatus"]).strip() if d.get("addStatus") else None,
        remove_status=str(d["removeStatus"]).strip() if d.get("removeStatus") else None,
        add_companion=companion_from_mapping(d.get("addCompanion")),
        remove_companion=d.get("removeCompanion") is True,
        name=str(d["name"]).strip() if d.get("name") else None,
        health=None if health is None else _as_int(health),
        statuses=_str_list(d.get("statuses")),
    )


def choice_from_mapping(d: Mapping[str, Any]) -> GameChoice:
    """Normalise both choice shapes the generator has emitted.

    Nested: {"cost": {...}, "effects": {"food", "water", "survivorChanges"}}
    Flat:   {"cost": {...}, "foodChange", "waterChange", "survivorChanges"}
    """
    cost = d.get("cost") if isinstance(d.get("cost"), Mapping) else {}
    eff = d.get("effects") if isinstance(d.get("effects"), Mapping) else None
    if eff is None:
        eff = {
            "food": d.get("foodChange", 0),
            "water": d.get("waterChange", 0),
            "survivorChanges": d.get("survivorChanges", []),
        }
    raw_changes = eff.get("survivorChanges") or []
    changes = tuple(change_from_mapping(c) for c in raw_changes if isinstance(c, Mapping))
    return GameChoice(
        id=str(d.get("id") or "").strip(),
        action=str(d.get("action") or d.get("text") or "Continue...").strip(),
        outcome=str(d.get("outcome") or "").strip(),
        cost=ChoiceCost(food=max(0, _as_int(cost.get("food"))), water=max(0, _as_int(cost.get("water")))),
        effects=ChoiceEffects(food=_as_int(eff.get("food")), water=_as_int(eff.get("water")), survivor_changes=changes),
    )


def bonuses_to_dict(b: CompanionBonuses) -> Dict[str, float]:
    return {
        "hunting_yield": float(b.hunting_yield),
        "gathering_success_chance": float(b.gathering_success_chance),
        "healing_rate": float(b.healing_rate),
        "combat_assist": float(b.combat_assist),
        "scavenging_bonus": float(b.scavenging_bonus),
    }


def companion_to_dict(c: Optional[Companion]) -> Optional[Dict[str, Any]]:
    if c is None:
        return None
    out: Dict[str, Any] = {"id": c.id, "name": c.name, "type": c.type}
    if c.bonuses is not None:
        out["bonuses"] = bonuses_to_dict(c.bonuses)
    return out


def survivor_to_dict(s: Survivor) -> Dict[str, Any]:
    return {
        "id": s.id,
        "name": s.name,
        "health": int(s.health),
        "statuses": list(s.statuses),
        "companion": companion_to_dict(s.companion),
    }


def change_to_dict(c: SurvivorChange) -> Dict[str, Any]:
    out: Dict[str, Any] = {"target": c.target}
    if c.new:
        out["new"] = True
    if c.health_change is not None:
        out["healthChange"] = int(c.health_change)
    if c.add_status:
        out["addStatus"] = c.add_status
    if c.remove_status:
        out["removeStatus"] = c.remove_status
    if c.add_companion is not None:
        out["addCompanion"] = companion_to_dict(c.add_companion)
    if c.remove_companion:
        out["removeCompanion"] = True
    if c.name:
        out["name"] = c.name
    if c.health is not None:
        out["health"] = int(c.health)
    if c.statuses:
        out["statuses"] = list(c.statuses)
    return out


def choice_to_dict(c: GameChoice) -> Dict[str, Any]:
    return {
        "id": c.id,
        "action": c.action,
        "outcome": c.outcome,
        "cost": {"food": int(c.cost.food), "water": int(c.cost.water)},
        "effects": {
            "food": int(c.effects.food),
            "water": int(c.effects.water),
            "survivorChanges": [change_to_dict(x) for x in c.effects.survivor_changes],
        },
    }


def state_to_dict(s: GameState) -> Dict[str, Any]:
    naming = s.companion_to_name_info
    return {
        "day": int(s.day),
        "food": int(s.food),
        "water": int(s.water),
        "foodChange": int(s.food_change),
        "waterChange": int(s.water_change),
        "survivors": [survivor_to_dict(x) for x in s.survivors],
        "eventText": s.event_text,
        "lastOutcome": s.last_outcome,
        "currentChoices": None if s.current_choices is None else [choice_to_dict(c) for c in s.current_choices],
        "isLoading": s.is_loading,
        "error": s.error,
        "isGameOver": s.is_game_over,
        "gameOverMessage": s.game_over_message,
        "isNamingCompanion": s.is_naming_companion,
        "companionToNameInfo": None if naming is None else {
            "survivorId": naming.survivor_id,
            "companion": companion_to_dict(naming.companion),
        },
        "theme": s.theme,
        "huntPerformedToday": bool(s.hunt_performed_today),
        "gatherPerformedToday": bool(s.gather_performed_today),
        "eventHistory": [
            {"day": int(h.day), "description": h.description, "outcome": h.outcome} for h in s.event_history
        ],
    }


def _status_from_mapping(d: Mapping[str, Any]) -> ControlStatus:
    if d.get("isGameOver"):
        return ControlStatus.game_over(str(d.get("gameOverMessage") or ""))
    info = d.get("companionToNameInfo")
    if d.get("isNamingCompanion") and isinstance(info, Mapping):
        companion = companion_from_mapping(info.get("companion"))
        if companion is not None:
            return ControlStatus.naming_companion(
                CompanionNamingInfo(survivor_id=str(info.get("survivorId") or ""), companion=companion)
            )
    if d.get("isLoading"):
        return ControlStatus.loading()
    return ControlStatus.playing()


def state_from_mapping(d: Mapping[str, Any]) -> GameState:
    """Rebuild a GameState from a saved dict. Unknown keys are ignored."""
    raw_choices = d.get("currentChoices")
    choices: Optional[Tuple[GameChoice, ...]] = None
    if isinstance(raw_choices, list):
        choices = tuple(choice_from_mapping(c) for c in raw_choices if isinstance(c, Mapping))

    raw_survivors = d.get("survivors")
    if isinstance(raw_survivors, list) and raw_survivors:
        survivors = tuple(survivor_from_mapping(x) for x in raw_survivors if isinstance(x, Mapping))
    else:
        survivors = (Survivor(id=PLAYER_ID, name="You", health=MAX_HEALTH),)

    history = tuple(
        EventHistoryEntry(
            day=_as_int(h.get("day"), 1),
            description=str(h.get("description") or ""),
            outcome=str(h.get("outcome") or ""),
        )
        for h in (d.get("eventHistory") or [])
        if isinstance(h, Mapping)
    )
    error = d.get("error")

    return GameState(
        day=max(1, _as_int(d.get("day"), 1)),
        food=max(0, _as_int(d.get("food"), START_FOOD)),
        water=max(0, _as_int(d.get("water"), START_WATER)),
        survivors=survivors,
        status=_status_from_mapping(d),
        theme=str(d.get("theme") or DEFAULT_THEME),
        food_change=_as_int(d.get("foodChange")),
        water_change=_as_int(d.get("waterChange")),
        event_text=str(d.get("eventText") or ""),
        last_outcome=str(d.get("lastOutcome") or ""),
        current_choices=choices,
        error=None if error is None else str(error),
        hunt_performed_today=bool(d.get("huntPerformedToday", False)),
        gather_performed_today=bool(d.get("gatherPerformedToday", False)),
        event_history=history,
    )
