"""Server-authoritative variant.

One POST endpoint takes ``{"action": ..., "state": ..., **params}`` and answers
``{"success": bool, "state"?: ..., "error"?: str, "offlineEarnings"?: str}``.
On the wire, state keys are camelCase and HP counters are decimal strings so
that no client has to squeeze them through a double.

:class:`GameServer` is the dispatcher, :func:`create_app` mounts it on
FastAPI, and :class:`RemoteGameClient` is the ``requests``-based caller.  The
client only ever replaces its local state with an authoritative response; a
failed call leaves it untouched and is never retried automatically.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import asdict
from typing import Any, Callable, Dict, Optional

import requests

from tycoon.entities import GameState
from tycoon.simulation import EngineSim, apply_offline_earnings, new_game_state, now_ms

logger = logging.getLogger(__name__)

ACTIONS = ("load", "sync", "buy_part", "buy_manual_upgrade", "prestige", "convert_hp_to_tokens")

WIRE_KEYS: Dict[str, str] = {
    "total_hp": "totalHp",
    "lifetime_hp_earned": "lifetimeHpEarned",
    "current_tier": "currentTier",
    "current_rpm": "currentRpm",
    "current_gear": "currentGear",
    "last_click_time": "lastClickTime",
    "redzone_start_time": "redzoneStartTime",
    "throttle_level": "throttleLevel",
    "ecu_level": "ecuLevel",
    "parts": "parts",
    "tokens": "tokens",
    "tokens_earned_today": "tokensEarnedToday",
    "last_token_date": "lastTokenDate",
    "achievements": "achievements",
}
BIG_INT_KEYS = ("total_hp", "lifetime_hp_earned")


def state_to_wire(state: GameState) -> Dict[str, Any]:
    data = asdict(state)
    for key in BIG_INT_KEYS:
        data[key] = str(data[key])
    return {WIRE_KEYS[key]: value for key, value in data.items()}


def state_from_wire(data: Dict[str, Any]) -> GameState:
    local = {key: data[wire] for key, wire in WIRE_KEYS.items() if wire in data}
    return EngineSim.from_dict(local).state


def _failure(error: str) -> Dict[str, Any]:
    return {"success": False, "error": error}


def _success(state: GameState, **extra: Any) -> Dict[str, Any]:
    return {"success": True, "state": state_to_wire(state), **extra}


class GameServer:
    """Validates every action against the stored state before persisting it."""

    def __init__(self, store, clock: Callable[[], int] = now_ms) -> None:
        self.store = store
        self.clock = clock
        self._lock = threading.Lock()
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "load": self._load,
            "sync": self._sync,
            "buy_part": self._buy_part,
            "buy_manual_upgrade": self._buy_manual_upgrade,
            "prestige": self._prestige,
            "convert_hp_to_tokens": self._convert_hp_to_tokens,
        }

    def handle(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            return _failure("Malformed request")
        action = payload.get("action")
        handler = self._handlers.get(action)
        if handler is None:
            return _failure(f"Unknown action {action}")
        with self._lock:
            return handler(payload)

    def _stored_sim(self) -> EngineSim:
        state = self.store.load()
        sim = EngineSim(state if state is not None else new_game_state(self.clock()))
        sim.check_daily_reset()
        return sim

    def _commit(self, sim: EngineSim, ok: bool, **extra: Any) -> Dict[str, Any]:
        if not ok:
            rejection = sim.last_rejection
            return _failure(rejection.message if rejection else "Request rejected")
        if not self.store.save(sim.state):
            return _failure("Save failed")
        return _success(sim.state, **extra)

    def _load(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        sim = self._stored_sim()
        report = apply_offline_earnings(sim.state, sim.parts, now=self.clock())
        extra = {"offlineEarnings": str(report.earned)} if report else {}
        return self._commit(sim, True, **extra)

    def _sync(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        raw = payload.get("state")
        if not isinstance(raw, dict):
            return _failure("Missing state")
        sim = EngineSim(state_from_wire(raw))
        sim.state.last_click_time = self.clock()
        return self._commit(sim, True)

    def _buy_part(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        sim = self._stored_sim()
        return self._commit(sim, sim.buy_part(str(payload.get("partId", ""))))

    def _buy_manual_upgrade(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        sim = self._stored_sim()
        return self._commit(sim, sim.buy_manual_upgrade(str(payload.get("upgradeType", ""))))

    def _prestige(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        sim = self._stored_sim()
        return self._commit(sim, sim.prestige(now=self.clock()))

    def _convert_hp_to_tokens(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        sim = self._stored_sim()
        return self._commit(sim, sim.convert_hp_to_tokens(str(payload.get("packageId", ""))))


def create_app(server: GameServer):
    """Mount ``server`` at ``POST /api/game``; FastAPI is an optional extra."""
    from fastapi import Body, FastAPI

    app = FastAPI(title="Turbo Tycoon")

    # handle() blocks on store I/O; keep this a plain def.
    @app.post("/api/game")
    def game(payload: Dict[str, Any] = Body(...)):
        return server.handle(payload)

    return app


class RemoteGameClient:
    def __init__(self, endpoint: str, session: Optional[requests.Session] = None, timeout: int = 10) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.http = session if session is not None else requests.Session()
        self.timeout = timeout
        self.state: Optional[GameState] = None
        self.offline_earnings: int = 0
        self.last_error: str = ""

    def call(self, action: str, **params: Any) -> Dict[str, Any]:
        payload = {"action": action, **params}
        try:
            r = self.http.post(self.endpoint, json=payload, timeout=(3, max(4, int(self.timeout))))
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("API error [%s]: %s", action, exc)
            return _failure("Network error")
        if not isinstance(data, dict):
            return _failure("Network error")
        return data

    def _apply(self, result: Dict[str, Any]) -> bool:
        raw = result.get("state")
        if result.get("success") and isinstance(raw, dict):
            self.state = state_from_wire(raw)
            self.last_error = ""
            return True
        self.last_error = str(result.get("error") or "Request failed")
        return False

    def load(self) -> bool:
        result = self.call("load")
        ok = self._apply(result)
        self.offline_earnings = 0
        if ok and result.get("offlineEarnings"):
            try:
                self.offline_earnings = int(result["offlineEarnings"])
            except (TypeError, ValueError):
                logger.warning("Ignoring malformed offlineEarnings %r", result["offlineEarnings"])
        return ok

    def sync(self, state: GameState) -> bool:
        return self._apply(self.call("sync", state=state_to_wire(state)))

    def buy_part(self, part_key: str) -> bool:
        return self._apply(self.call("buy_part", partId=part_key))

    def buy_manual_upgrade(self, kind: str) -> bool:
        return self._apply(self.call("buy_manual_upgrade", upgradeType=kind))

    def prestige(self) -> bool:
        return self._apply(self.call("prestige"))

    def convert_hp_to_tokens(self, package_key: str) -> bool:
        return self._apply(self.call("convert_hp_to_tokens", packageId=package_key))
