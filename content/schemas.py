"""content.schemas

Contract for the narrative event the generator returns each day:

    {"description": str, "choices": [GameChoice-like, ...] | null}

The model decides story and declared effects; the engine decides what they
cost in the day cycle. Two choice shapes are accepted (nested "effects" and
the older flat foodChange/waterChange/survivorChanges) and both become a
core.state.GameChoice.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.state import (
    ALL_NEGATIVE,
    KNOWN_STATUSES,
    GameChoice,
    SurvivorChange,
    choice_from_mapping,
    choice_to_dict,
)

from .errors import ErrorType, GameError

MAX_CHOICES = 3

_STATUS_LOOKUP = {s.lower(): s for s in KNOWN_STATUSES}
_STATUS_ALIASES = {
    "injured": "Injured (Bleeding)",
    "bleeding": "Injured (Bleeding)",
    "wounded": "Injured (Bleeding)",
    "fatigued": "Exhausted",
    "tired": "Exhausted",
    "starving": "Malnourished",
    "hungry": "Malnourished",
    "thirsty": "Dehydrated",
    "infected": "Infected Wound",
    "frostbite": "Hypothermia",
    "freezing": "Hypothermia",
    "feverish": "Fever",
    "broken leg": "Broken Limb",
    "broken arm": "Broken Limb",
    "bonded": "Companion Bond",
    "afraid": "Scared",
    "hope": "Hopeful",
}


def normalize_status(tag: Any) -> Optional[str]:
    """Map generator spellings onto canonical tags; unknown tags pass through."""
    t = str(tag or "").strip()
    if not t:
        return None
    low = t.lower()
    if low == ALL_NEGATIVE:
        return ALL_NEGATIVE
    return _STATUS_LOOKUP.get(low) or _STATUS_ALIASES.get(low) or t


def _normalize_change(c: SurvivorChange) -> SurvivorChange:
    statuses: List[str] = []
    for tag in c.statuses:
        n = normalize_status(tag)
        if n and n != ALL_NEGATIVE and n not in statuses:
            statuses.append(n)
    return replace(
        c,
        add_status=normalize_status(c.add_status),
        remove_status=normalize_status(c.remove_status),
        statuses=tuple(statuses),
    )


def normalize_choice(choice: GameChoice) -> GameChoice:
    changes = tuple(_normalize_change(c) for c in choice.effects.survivor_changes)
    return replace(choice, effects=replace(choice.effects, survivor_changes=changes))


@dataclass(frozen=True)
class GameEvent:
    """One day's narrative + the options offered for it."""

    description: str
    choices: Tuple[GameChoice, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "choices": [choice_to_dict(c) for c in self.choices],
        }


def validate_event(e: GameEvent) -> None:
    if not isinstance(e.description, str):
        raise GameError("event.description must be a string", ErrorType.VALIDATION)
    if len(e.choices) > MAX_CHOICES:
        raise GameError(f"event.choices must hold at most {MAX_CHOICES} items", ErrorType.VALIDATION)
    for c in e.choices:
        if not c.action:
            raise GameError("event choice without action text", ErrorType.VALIDATION)


def event_from_llm(data: Mapping[str, Any]) -> GameEvent:
    """Validate and normalise a decoded generator payload.

    Missing/empty choices are allowed (the engine supplies a fallback);
    anything that isn't {"description": str, "choices": list|null} is a
    validation error.
    """
    if not isinstance(data, Mapping):
        raise GameError("event payload is not an object", ErrorType.VALIDATION)

    desc = data.get("description")
    if not isinstance(desc, str):
        raise GameError("event payload has no description string", ErrorType.VALIDATION, data=dict(data))

    raw = data.get("choices")
    if raw is not None and not isinstance(raw, list):
        raise GameError("event.choices must be a list or null", ErrorType.VALIDATION, data=dict(data))

    choices: List[GameChoice] = []
    for i, obj in enumerate((raw or [])[:MAX_CHOICES]):
        if not isinstance(obj, Mapping):
            continue
        choice = normalize_choice(choice_from_mapping(obj))
        if not choice.id:
            choice = replace(choice, id=f"choice_{i + 1}")
        choices.append(choice)

    event = GameEvent(description=desc.strip(), choices=tuple(choices))
    validate_event(event)
    return event
