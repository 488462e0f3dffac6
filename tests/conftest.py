from __future__ import annotations

import random
from dataclasses import replace
from typing import Sequence

import pytest

from core.state import PLAYER_ID, ControlStatus, GameState, Survivor, default_start_state
from engine.config import EngineConfig


class FixedRandom(random.Random):
    """random.Random whose random() replays a fixed sequence."""

    def __init__(self, values: Sequence[float]) -> None:
        super().__init__(0)
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)

    # keeps randint() on the seeded bit stream instead of random()
    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


def playing(state: GameState, **changes) -> GameState:
    """Snapshot that is waiting for a player input."""
    fields = {"status": ControlStatus.playing(), "current_choices": ()}
    fields.update(changes)
    return replace(state, **fields)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(base_seed=7)


@pytest.fixture
def player() -> Survivor:
    return Survivor(id=PLAYER_ID, name="You", health=100)


@pytest.fixture
def start_state() -> GameState:
    return playing(default_start_state())
