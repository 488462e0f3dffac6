"""
core.modes
Difficulty specifications (yield / consumption / starting supplies).

Kept in core so balancing lives in one place, but UI can still display labels.
"normal" is neutral: every factor is 1.0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ModeSpec:
    key: str
    label: str
    desc: str
    resource_multiplier: float   # hunt/gather yield
    consumption_rate: float      # daily food/water use
    start_supply: float          # starting food/water
    tone: str


DEFAULT_MODES: Dict[str, ModeSpec] = {
    "easy": ModeSpec(
        key="easy",
        label="Easy",
        desc="Generous scavenging and slow rationing. Good for learning the ropes.",
        resource_multiplier=1.5,
        consumption_rate=0.7,
        start_supply=1.25,
        tone="hopeful but weary; setbacks are survivable",
    ),
    "normal": ModeSpec(
        key="normal",
        label="Normal",
        desc="The wasteland as intended. Every ration counts.",
        resource_multiplier=1.0,
        consumption_rate=1.0,
        start_supply=1.0,
        tone="grim and grounded; fair trade-offs",
    ),
    "hard": ModeSpec(
        key="hard",
        label="Hard",
        desc="Lean hunts, hungry mouths. Mistakes compound quickly.",
        resource_multiplier=0.7,
        consumption_rate=1.2,
        start_supply=0.85,
        tone="harsh and tense; little margin for error",
    ),
    "apocalypse": ModeSpec(
        key="apocalypse",
        label="Apocalypse",
        desc="The world wants you dead. Survive as long as you can.",
        resource_multiplier=0.5,
        consumption_rate=1.5,
        start_supply=0.7,
        tone="merciless and bleak; every choice costs something",
    ),
}


def get_mode_spec(mode_key: str) -> ModeSpec:
    return DEFAULT_MODES.get(str(mode_key or "").lower(), DEFAULT_MODES["normal"])
