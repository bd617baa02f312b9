from __future__ import annotations

import threading
import time
import unittest

from tycoon import GameSession, GameState
from tycoon.feedback import RecordingFeedback
from tycoon.persistence import MemoryStore
from tycoon.simulation import EngineSim, now_ms


def _store_with(**fields) -> MemoryStore:
    store = MemoryStore()
    store.save(GameState(**fields))
    return store


class TestOpen(unittest.TestCase):
    def test_fresh_game_when_store_empty(self):
        session = GameSession.open(MemoryStore())
        self.assertEqual(session.sim.state.total_hp, 0)
        self.assertIsNone(session.offline_report)

    def test_offline_earnings_credited_once(self):
        store = _store_with(parts={"intake": 1}, last_click_time=0)

        session = GameSession.open(store, now=7_200_000)

        self.assertEqual(session.offline_report.earned, 7200)
        self.assertEqual(session.sim.state.total_hp, 7200)
        session.save()

        again = GameSession.open(store, now=7_200_000)
        self.assertIsNone(again.offline_report)
        self.assertEqual(again.sim.state.total_hp, 7200)

    def test_open_resets_stale_token_window(self):
        store = _store_with(tokens_earned_today=15, last_token_date="2000-01-01", last_click_time=now_ms())

        session = GameSession.open(store)

        self.assertEqual(session.sim.state.tokens_earned_today, 0)


class TestSerialisedOperations(unittest.TestCase):
    def test_concurrent_revs_and_ticks_never_lose_income(self):
        session = GameSession(EngineSim(GameState(last_click_time=now_ms()), RecordingFeedback()), MemoryStore())
        incomes = []
        incomes_lock = threading.Lock()

        def revver():
            for _ in range(200):
                result = session.rev()
                with incomes_lock:
                    incomes.append(result.income)

        def ticker():
            for _ in range(200):
                session.tick()

        threads = [threading.Thread(target=revver) for _ in range(4)] + [threading.Thread(target=ticker)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        state = session.snapshot()
        self.assertEqual(len(incomes), 800)
        # No parts, so only revs and safety shifts pay out.
        self.assertGreaterEqual(state.lifetime_hp_earned, sum(incomes))
        self.assertEqual(state.total_hp, state.lifetime_hp_earned)

    def test_prestige_saves_immediately(self):
        store = MemoryStore()
        session = GameSession(EngineSim(GameState(lifetime_hp_earned=5_000_000, total_hp=10)), store)

        self.assertTrue(session.prestige())

        self.assertEqual(store.load().current_tier, 1)

    def test_failed_prestige_does_not_save(self):
        store = MemoryStore()
        session = GameSession(EngineSim(GameState()), store)

        self.assertFalse(session.prestige())
        self.assertFalse(store.exists())

    def test_achievements_feed_toasts(self):
        session = GameSession(EngineSim(GameState(lifetime_hp_earned=2_000)), MemoryStore())

        unlocked = session.check_achievements()

        self.assertEqual([a.key for a in unlocked], ["hp_1k"])
        self.assertEqual(session.poll_toast(now=0.0).key, "hp_1k")

    def test_snapshot_is_detached(self):
        session = GameSession(EngineSim(GameState(parts={"intake": 1})), MemoryStore())
        snap = session.snapshot()
        snap.parts["intake"] = 50
        self.assertEqual(session.sim.state.parts["intake"], 1)

    def test_read_runs_under_lock(self):
        session = GameSession(EngineSim(GameState(total_hp=42)), MemoryStore())
        self.assertEqual(session.read(lambda sim: sim.state.total_hp), 42)


class TestLifecycle(unittest.TestCase):
    def test_start_runs_tick_loop_and_stop_saves(self):
        store = MemoryStore()
        session = GameSession(EngineSim(GameState(current_rpm=5000, last_click_time=now_ms())), store)

        session.start()
        self.assertTrue(session.running)
        session.start()  # already running; no second set of loops
        time.sleep(0.35)
        session.stop()

        self.assertFalse(session.running)
        self.assertLess(session.sim.state.current_rpm, 5000)
        self.assertTrue(store.exists())

    def test_loop_failure_is_logged_not_fatal(self):
        session = GameSession(EngineSim(GameState()), MemoryStore())
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        worker = threading.Thread(target=session._run_every, args=(0.01, flaky), daemon=True)
        with self.assertLogs("tycoon.session", level="ERROR"):
            worker.start()
            time.sleep(0.1)
        session._stop.set()
        worker.join(timeout=1.0)

        self.assertGreater(len(calls), 1)


if __name__ == "__main__":
    unittest.main()
