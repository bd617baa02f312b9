"""Save snapshots of :class:`GameState` under a fixed key.

HP counters can outgrow any float, so they are written as ``"BI:<digits>"``
strings and turned back into ``int`` by the reviver; every other number goes
through JSON untouched.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from config import BIG_INT_PREFIX, SAVE_DIR, SAVE_KEY
from tycoon.entities import GameState
from tycoon.simulation import EngineSim

logger = logging.getLogger(__name__)

BIG_INT_FIELDS = ("total_hp", "lifetime_hp_earned")


def _replace_big_ints(data: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(data)
    for key in BIG_INT_FIELDS:
        if isinstance(out.get(key), int):
            out[key] = f"{BIG_INT_PREFIX}{out[key]}"
    return out


def _revive_big_ints(obj: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in obj.items():
        if isinstance(value, str) and value.startswith(BIG_INT_PREFIX):
            obj[key] = int(value[len(BIG_INT_PREFIX):])
    return obj


def encode_state(state: GameState) -> str:
    return json.dumps(_replace_big_ints(asdict(state)), indent=2)


def decode_state(text: str) -> GameState:
    data = json.loads(text, object_hook=_revive_big_ints)
    if not isinstance(data, dict):
        raise ValueError("snapshot is not an object")
    return EngineSim.from_dict(data).state


class SaveStore:
    """File-backed store holding one snapshot named after ``SAVE_KEY``."""

    def __init__(self, directory: Path = SAVE_DIR, key: str = SAVE_KEY) -> None:
        self.path = Path(directory) / f"{key}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[GameState]:
        if not self.path.exists():
            return None
        try:
            return decode_state(self.path.read_text())
        except (OSError, ValueError) as exc:
            logger.error("Failed to load game from %s: %s", self.path, exc)
            return None

    def save(self, state: GameState) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(encode_state(state))
            tmp.replace(self.path)
        except OSError as exc:
            logger.error("Failed to save game to %s: %s", self.path, exc)
            return False
        return True

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryStore:
    """Same contract as :class:`SaveStore`, kept in memory."""

    def __init__(self) -> None:
        self.snapshot: Optional[str] = None

    def exists(self) -> bool:
        return self.snapshot is not None

    def load(self) -> Optional[GameState]:
        if self.snapshot is None:
            return None
        try:
            return decode_state(self.snapshot)
        except ValueError as exc:
            logger.error("Failed to load in-memory snapshot: %s", exc)
            return None

    def save(self, state: GameState) -> bool:
        self.snapshot = encode_state(state)
        return True

    def clear(self) -> None:
        self.snapshot = None
