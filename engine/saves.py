"""engine.saves

Directory-backed save slots.

Slot 0 is the autosave; 1..MAX_SAVE_SLOTS are manual. Each slot is one JSON
file holding {"metadata": {...}, "state": state_to_dict(...)}.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from content.errors import ErrorType, GameError
from core.state import DEFAULT_THEME, GameState, state_from_mapping, state_to_dict

logger = logging.getLogger(__name__)

MAX_SAVE_SLOTS = 10
AUTO_SAVE_SLOT = 0
SAVE_VERSION = 1


def _migrate(state: Dict[str, Any], from_version: int) -> Dict[str, Any]:
    """Bring an older save dict up to SAVE_VERSION."""
    out = dict(state)
    if from_version < 1:
        logger.info("Migrating save from version %d to %d", from_version, SAVE_VERSION)
        out.setdefault("theme", DEFAULT_THEME)
        out.setdefault("eventHistory", [])
        out.setdefault("huntPerformedToday", False)
        out.setdefault("gatherPerformedToday", False)
        out.setdefault("isNamingCompanion", False)
        out.setdefault("companionToNameInfo", None)
    return out


@dataclass
class SaveManager:
    save_dir: str = "saves"
    clock: Callable[[], float] = field(default=time.time)

    def _path(self, slot: int) -> Path:
        if not isinstance(slot, int) or not 0 <= slot <= MAX_SAVE_SLOTS:
            raise GameError(
                f"Invalid save slot: {slot}. Must be between 0 and {MAX_SAVE_SLOTS}",
                ErrorType.RESOURCE,
            )
        return Path(self.save_dir) / f"slot_{slot}.json"

    def _read(self, slot: int) -> Optional[Dict[str, Any]]:
        path = self._path(slot)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read save slot %d", slot)
            return None
        if not isinstance(data, dict) or not isinstance(data.get("state"), dict):
            logger.error("Save slot %d has no state payload", slot)
            return None
        return data

    def make_metadata(self, state: GameState, slot: int, name: str = "", mode_key: str = "normal") -> Dict[str, Any]:
        now = self.clock()
        return {
            "slot": int(slot),
            "timestamp": float(now),
            "name": name or f"Day {state.day} - {datetime.fromtimestamp(now).strftime('%Y-%m-%d')}",
            "day": int(state.day),
            "survivors": len(state.living_survivors),
            "food": int(state.food),
            "water": int(state.water),
            "version": SAVE_VERSION,
            "mode": mode_key,
        }

    def save(self, state: GameState, slot: int = 1, name: str = "", mode_key: str = "normal") -> Dict[str, Any]:
        path = self._path(slot)
        metadata = self.make_metadata(state, slot, name, mode_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"metadata": metadata, "state": state_to_dict(state)}
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("Game saved to slot %d (day %d)", slot, state.day)
        return metadata

    def autosave(self, state: GameState, mode_key: str = "normal") -> Dict[str, Any]:
        return self.save(state, AUTO_SAVE_SLOT, "Auto-save", mode_key)

    def load(self, slot: int = 1) -> Optional[GameState]:
        data = self._read(slot)
        if data is None:
            return None
        meta = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        raw = data["state"]
        version = int(meta.get("version") or 0)
        if version < SAVE_VERSION:
            raw = _migrate(raw, version)
        return state_from_mapping(raw)

    def metadata(self, slot: int) -> Optional[Dict[str, Any]]:
        data = self._read(slot)
        if data is None:
            return None
        meta = data.get("metadata")
        return dict(meta) if isinstance(meta, dict) else None

    def list_saves(self) -> List[Dict[str, Any]]:
        """All readable slots, newest first."""
        found = [m for m in (self.metadata(slot) for slot in range(MAX_SAVE_SLOTS + 1)) if m is not None]
        return sorted(found, key=lambda m: float(m.get("timestamp") or 0), reverse=True)

    def delete(self, slot: int) -> bool:
        path = self._path(slot)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted save slot %d", slot)
        return True
