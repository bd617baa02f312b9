import json

from achievement_catalog import (
    DEFAULT_ACHIEVEMENTS,
    METRIC_LIFETIME_HP,
    achievement_unlocked,
    load_achievement_catalog,
)
from tycoon.entities import GameState


def test_default_catalog_has_sixteen_entries():
    assert len(DEFAULT_ACHIEVEMENTS) == 16
    assert DEFAULT_ACHIEVEMENTS["hp_10b"].threshold == 10_000_000_000


def test_load_achievement_catalog_defaults_when_missing(tmp_path):
    assert load_achievement_catalog(tmp_path / "missing.json") == DEFAULT_ACHIEVEMENTS


def test_load_achievement_catalog_rejects_unknown_metric(tmp_path):
    path = tmp_path / "achievements.json"
    path.write_text(json.dumps({"speedy": {"title": "Speedy", "metric": "top_speed", "threshold": 300}}))

    assert load_achievement_catalog(path) == DEFAULT_ACHIEVEMENTS


def test_load_achievement_catalog_accepts_valid_payload(tmp_path):
    path = tmp_path / "achievements.json"
    path.write_text(
        json.dumps(
            {
                "first_rev": {
                    "title": "First Rev",
                    "description": " Earn your first HP. ",
                    "reward_tokens": 1,
                    "metric": METRIC_LIFETIME_HP,
                    "threshold": 1,
                }
            }
        )
    )

    catalog = load_achievement_catalog(path)

    assert list(catalog) == ["first_rev"]
    assert catalog["first_rev"].description == "Earn your first HP."


def test_achievement_unlocked_compares_metric_to_threshold():
    hp_1k = DEFAULT_ACHIEVEMENTS["hp_1k"]
    assert not achievement_unlocked(hp_1k, GameState(lifetime_hp_earned=999), 0)
    assert achievement_unlocked(hp_1k, GameState(lifetime_hp_earned=1000), 0)

    passive = DEFAULT_ACHIEVEMENTS["passive_10k"]
    assert achievement_unlocked(passive, GameState(), 10_000.0)
    assert not achievement_unlocked(passive, GameState(), 9_999.9)
