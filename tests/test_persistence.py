import json

import pytest

from tycoon.entities import GameState
from tycoon.persistence import MemoryStore, SaveStore, decode_state, encode_state


def _state(**fields) -> GameState:
    fields.setdefault("last_click_time", 1_700_000_000_000)
    fields.setdefault("last_token_date", "2024-03-01")
    return GameState(**fields)


def test_big_ints_written_with_prefix():
    text = encode_state(_state(total_hp=10**30, lifetime_hp_earned=10**31, tokens=7))
    raw = json.loads(text)

    assert raw["total_hp"] == "BI:" + "1" + "0" * 30
    assert raw["lifetime_hp_earned"] == "BI:" + "1" + "0" * 31
    assert raw["tokens"] == 7


def test_decode_restores_exact_values():
    state = _state(
        total_hp=123456789012345678901234567890,
        lifetime_hp_earned=987654321098765432109876543210,
        current_gear=4,
        parts={"intake": 12, "nitrous": 1},
        achievements=["hp_1k", "gear_6"],
    )

    assert decode_state(encode_state(state)) == state


def test_decode_rejects_non_object():
    with pytest.raises(ValueError):
        decode_state("[1, 2, 3]")


def test_save_store_round_trip_on_disk(tmp_path):
    store = SaveStore(tmp_path)
    assert not store.exists()
    assert store.load() is None

    state = _state(total_hp=2**100, lifetime_hp_earned=2**101)
    assert store.save(state)

    assert (tmp_path / "TURBO_TYCOON_V1.json").exists()
    assert not (tmp_path / "TURBO_TYCOON_V1.tmp").exists()
    assert store.load() == state


def test_save_store_corrupt_file_loads_as_none(tmp_path, caplog):
    store = SaveStore(tmp_path)
    store.path.write_text("{truncated")

    assert store.load() is None
    assert "Failed to load" in caplog.text


def test_save_store_bad_big_int_loads_as_none(tmp_path):
    store = SaveStore(tmp_path)
    store.path.write_text(json.dumps({"total_hp": "BI:lots"}))

    assert store.load() is None


def test_save_store_clear(tmp_path):
    store = SaveStore(tmp_path)
    store.save(_state())
    store.clear()
    store.clear()

    assert not store.exists()


def test_save_store_reports_write_failure(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    store = SaveStore(blocker / "saves")

    assert store.save(_state()) is False


def test_memory_store_contract():
    store = MemoryStore()
    assert store.load() is None

    state = _state(total_hp=5)
    store.save(state)
    state.total_hp = 99

    assert store.exists()
    assert store.load().total_hp == 5

    store.clear()
    assert store.load() is None


def test_redzone_timer_not_carried_across_save(tmp_path):
    store = SaveStore(tmp_path)
    store.save(_state(current_rpm=7500, current_gear=2, redzone_start_time=1_700_000_000_500))

    restored = store.load()

    assert restored.current_rpm == 7500
    assert restored.current_gear == 2
    assert restored.redzone_start_time is None
