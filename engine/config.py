"""engine.config

Engine configuration passed from UI.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.modes import ModeSpec, get_mode_spec
from core.state import DEFAULT_THEME, POPULATION_CAP


@dataclass(frozen=True)
class EngineConfig:
    base_seed: int = 42
    theme: str = DEFAULT_THEME
    mode_key: str = "normal"
    max_history: int = 3
    population_cap: int = POPULATION_CAP
    save_dir: str = "saves"

    @property
    def mode(self) -> ModeSpec:
        return get_mode_spec(self.mode_key)
