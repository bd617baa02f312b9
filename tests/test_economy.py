from part_catalog import DEFAULT_PARTS
from tier_catalog import DEFAULT_TIERS
from tycoon.economy import (
    active_tap_income,
    cost,
    gear_multiplier,
    generator_output,
    manual_upgrade_cost,
    part_cost,
    passive_income_rate,
    prestige_multiplier,
    rpm_gain_per_tap,
    tier_multiplier,
)
from tycoon.entities import GameState


def test_cost_scales_with_owned_level():
    assert cost(66, 1.12, 0) == 66
    assert cost(66, 1.12, 1) == 73
    assert cost(100, 1.12, 2) == 125


def test_generator_output_zero_when_unowned():
    assert generator_output(1, 1.10, 0) == 0
    assert generator_output(1, 1.10, 1) == 1
    assert generator_output(3000, 1.10, 2) == 3630


def test_passive_income_rate_sums_parts_and_doubles_per_tier():
    state = GameState(parts={"intake": 1, "exhaust": 1})
    assert passive_income_rate(state, DEFAULT_PARTS) == 4

    state.current_tier = 2
    assert prestige_multiplier(state) == 4
    assert passive_income_rate(state, DEFAULT_PARTS) == 16


def test_passive_income_ignores_unknown_parts():
    state = GameState(parts={"warp_drive": 5})
    assert passive_income_rate(state, DEFAULT_PARTS) == 0


def test_active_tap_income_applies_every_multiplier():
    state = GameState(throttle_level=1, current_tier=1)
    # (10 + 5) * 1.5 * 1.5 * 2
    assert active_tap_income(state, 1.5, 1.5) == 67


def test_rpm_gain_per_tap_grows_with_ecu():
    assert rpm_gain_per_tap(GameState()) == 90
    assert rpm_gain_per_tap(GameState(ecu_level=4)) == 110


def test_gear_and_tier_multipliers():
    assert gear_multiplier(1) == 1.0
    assert gear_multiplier(6) == 2.5
    assert gear_multiplier(9) == 1.0
    assert tier_multiplier(DEFAULT_TIERS, 3) == 3.0
    assert tier_multiplier(DEFAULT_TIERS, 99) == 1.0


def test_part_and_manual_upgrade_costs():
    state = GameState(parts={"exhaust": 2})
    assert part_cost(state, DEFAULT_PARTS["exhaust"]) == 252
    assert manual_upgrade_cost(0) == 100
    assert manual_upgrade_cost(1) == 112
