"""content.providers.base

Provider interfaces.

A provider's job is to turn an EventRequest (the party as it stands at the
start of a day) into a validated GameEvent. Providers raise EventFetchError
when they can't; they never touch game state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

from core.state import Survivor

from ..schemas import GameEvent


@dataclass(frozen=True)
class ProviderStatus:
    ok: bool
    backend: str
    model: str
    note: str = ""
    error: str = ""


@dataclass(frozen=True)
class EventRequest:
    day: int
    food: int
    water: int
    survivors: Tuple[Survivor, ...]
    theme: str
    previous_day_outcome: str = ""
    tone: str = ""


class EventProvider(Protocol):
    def status(self) -> ProviderStatus: ...

    def generate_event(self, request: EventRequest) -> GameEvent:
        """Return the day's event or raise EventFetchError."""
        ...
