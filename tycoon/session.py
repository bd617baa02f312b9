"""GameSession: single-writer wrapper that drives an EngineSim from timers.

Every mutation (tick, rev, purchase, exchange, prestige, achievement unlock,
daily reset) runs under one re-entrant lock, so ticks and revs never
interleave partially.  Saves serialise a deep copy taken under the lock and
write it outside.  Background loops run on daemon threads and share one stop
event.
"""
from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Callable, List, Optional, Union

from config import (
    ACHIEVEMENT_CHECK_INTERVAL,
    AUTOSAVE_INTERVAL,
    DAILY_RESET_CHECK_INTERVAL,
    TICK_SECONDS,
)
from achievement_catalog import AchievementDefinition
from tycoon.entities import GameState, OfflineReport, RevResult
from tycoon.feedback import FeedbackSink
from tycoon.persistence import MemoryStore, SaveStore
from tycoon.simulation import EngineSim, apply_offline_earnings, now_ms
from tycoon.toasts import ToastQueue

logger = logging.getLogger(__name__)

Store = Union[SaveStore, MemoryStore]


class GameSession:
    def __init__(self, sim: EngineSim, store: Store, offline_report: Optional[OfflineReport] = None) -> None:
        self.sim = sim
        self.store = store
        self.offline_report = offline_report
        self.toasts: ToastQueue[AchievementDefinition] = ToastQueue()
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    @classmethod
    def open(cls, store: Store, feedback: Optional[FeedbackSink] = None, now: Optional[int] = None) -> "GameSession":
        """Restore from ``store`` (or start fresh) and credit offline earnings once."""
        state = store.load()
        report = None
        if state is not None:
            report = apply_offline_earnings(state, now=now)
        sim = EngineSim(state, feedback)
        sim.check_daily_reset()
        return cls(sim, store, report)

    # ------------------------------------------------------------------
    # Serialised operations
    # ------------------------------------------------------------------

    def tick(self, dt: float = TICK_SECONDS) -> None:
        with self._lock:
            self.sim.tick(dt)

    def rev(self) -> RevResult:
        with self._lock:
            return self.sim.rev()

    def buy_part(self, part_key: str) -> bool:
        with self._lock:
            return self.sim.buy_part(part_key)

    def buy_manual_upgrade(self, kind: str) -> bool:
        with self._lock:
            return self.sim.buy_manual_upgrade(kind)

    def convert_hp_to_tokens(self, package_key: str) -> bool:
        with self._lock:
            return self.sim.convert_hp_to_tokens(package_key)

    def check_daily_reset(self) -> bool:
        with self._lock:
            return self.sim.check_daily_reset()

    def check_achievements(self) -> List[AchievementDefinition]:
        with self._lock:
            unlocked = self.sim.check_achievements()
            self.toasts.push(*unlocked)
        return unlocked

    def prestige(self) -> bool:
        with self._lock:
            if not self.sim.prestige():
                return False
        # Purchasable progress was just discarded; persist right away.
        self.save()
        return True

    def poll_toast(self, now: Optional[float] = None) -> Optional[AchievementDefinition]:
        with self._lock:
            return self.toasts.update(time.monotonic() if now is None else now)

    def read(self, fn: Callable[[EngineSim], object]) -> object:
        """Run a read-only callback against the sim under the lock."""
        with self._lock:
            return fn(self.sim)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> GameState:
        with self._lock:
            return copy.deepcopy(self.sim.state)

    def save(self) -> bool:
        return self.store.save(self.snapshot())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        loops = [
            ("engine-tick", TICK_SECONDS, self.tick),
            ("autosave", AUTOSAVE_INTERVAL, self.save),
            ("achievements", ACHIEVEMENT_CHECK_INTERVAL, self.check_achievements),
            ("daily-reset", DAILY_RESET_CHECK_INTERVAL, self.check_daily_reset),
        ]
        self._threads = [
            threading.Thread(target=self._run_every, args=(period, action), name=name, daemon=True)
            for name, period, action in loops
        ]
        for thread in self._threads:
            thread.start()
        logger.info("GameSession started (tick=%.3fs)", TICK_SECONDS)

    def stop(self) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=2.0)
        self._threads = []
        self.save()
        logger.info("GameSession stopped at %d", now_ms())

    def _run_every(self, period: float, action: Callable[[], object]) -> None:
        next_at = time.monotonic() + period
        while not self._stop.wait(max(0.0, next_at - time.monotonic())):
            next_at += period
            try:
                action()
            except Exception:
                logger.exception("Background loop %s failed", threading.current_thread().name)
