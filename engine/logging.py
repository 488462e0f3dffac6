"""engine.logging

Small helpers for storing run logs.

A run log is JSON-serializable so it can be exported/imported later.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from core import API_VERSION
from core.state import GameState, state_to_dict

from .config import EngineConfig


def config_to_dict(config: EngineConfig) -> Dict[str, Any]:
    return {
        "base_seed": int(config.base_seed),
        "theme": config.theme,
        "mode_key": config.mode.key,
        "max_history": int(config.max_history),
        "population_cap": int(config.population_cap),
        "save_dir": config.save_dir,
    }


def make_run_export(
    *,
    config: EngineConfig,
    initial_state: GameState,
    final_state: GameState,
    day_logs: List[Dict[str, Any]],
) -> Dict[str, Any]:
    return {
        "version": 1,
        "core_api": API_VERSION,
        "seed": int(config.base_seed),
        "config": config_to_dict(config),
        "initial_state": state_to_dict(initial_state),
        "final_state": state_to_dict(final_state),
        "day_logs": list(day_logs),
    }


def dumps_run_export(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True)
