import json

from tier_catalog import DEFAULT_TIERS, load_tier_catalog


def test_load_tier_catalog_defaults_when_missing(tmp_path):
    tiers = load_tier_catalog(tmp_path / "missing.json")

    assert tiers == DEFAULT_TIERS
    assert [t.tier for t in tiers] == [0, 1, 2, 3, 4]


def test_load_tier_catalog_accepts_digit_string_thresholds(tmp_path):
    path = tmp_path / "tiers.json"
    path.write_text(
        json.dumps(
            [
                {"display_name": "Go-Kart", "multiplier": 1, "required_lifetime_hp": 0},
                {"display_name": "Hypercar", "multiplier": 9.5, "required_lifetime_hp": "900000000000000000000000"},
            ]
        )
    )

    tiers = load_tier_catalog(path)

    assert [t.display_name for t in tiers] == ["Go-Kart", "Hypercar"]
    assert tiers[1].required_lifetime_hp == 900_000_000_000_000_000_000_000
    assert tiers[1].multiplier == 9.5


def test_load_tier_catalog_rejects_ladder_not_starting_at_zero(tmp_path):
    path = tmp_path / "tiers.json"
    path.write_text(json.dumps([{"display_name": "Go-Kart", "multiplier": 1, "required_lifetime_hp": 10}]))

    assert load_tier_catalog(path) == DEFAULT_TIERS


def test_load_tier_catalog_rejects_decreasing_thresholds(tmp_path):
    path = tmp_path / "tiers.json"
    path.write_text(
        json.dumps(
            [
                {"display_name": "A", "multiplier": 1, "required_lifetime_hp": 0},
                {"display_name": "B", "multiplier": 2, "required_lifetime_hp": 100},
                {"display_name": "C", "multiplier": 3, "required_lifetime_hp": 50},
            ]
        )
    )

    assert load_tier_catalog(path) == DEFAULT_TIERS


def test_load_tier_catalog_rejects_any_invalid_entry(tmp_path):
    path = tmp_path / "tiers.json"
    path.write_text(
        json.dumps(
            [
                {"display_name": "A", "multiplier": 1, "required_lifetime_hp": 0},
                {"display_name": "B", "multiplier": -2, "required_lifetime_hp": 100},
            ]
        )
    )

    assert load_tier_catalog(path) == DEFAULT_TIERS
