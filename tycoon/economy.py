"""Pure economy calculators.

Every function here is a deterministic function of configuration constants and
the levels stored on a :class:`~tycoon.entities.GameState`; none of them mutate
anything.
"""
from __future__ import annotations

import math
from typing import Mapping

from config import (
    BASE_RPM_GAIN,
    BASE_TAP_HP,
    ECU_RPM_PER_LEVEL,
    GEAR_MULTIPLIERS,
    MANUAL_UPGRADE_BASE_COST,
    MANUAL_UPGRADE_SCALING,
    PRESTIGE_INCOME_BASE,
    THROTTLE_HP_PER_LEVEL,
)
from part_catalog import PartDefinition
from tier_catalog import CarTier
from tycoon.entities import GameState


def cost(base: int, scaling: float, level: int) -> int:
    """Price of buying the next level when ``level`` levels are already owned."""
    return int(math.floor(base * scaling ** level))


def generator_output(base: float, scaling: float, level: int) -> int:
    # Level 1 already includes one scaling step; balance numbers assume it.
    if level == 0:
        return 0
    return int(math.floor(base * scaling ** level))


def prestige_multiplier(state: GameState) -> float:
    return PRESTIGE_INCOME_BASE ** state.current_tier


def passive_income_rate(state: GameState, parts: Mapping[str, PartDefinition]) -> float:
    """HP per second from owned parts, doubled per prestige tier."""
    total = 0
    for key, part in parts.items():
        level = state.parts.get(key, 0)
        if level > 0:
            total += generator_output(part.base_output, part.output_scaling, level)
    return total * prestige_multiplier(state)


def active_tap_income(state: GameState, tier_multiplier: float, gear_multiplier: float) -> int:
    base_click = BASE_TAP_HP + THROTTLE_HP_PER_LEVEL * state.throttle_level
    return int(math.floor(base_click * gear_multiplier * tier_multiplier * prestige_multiplier(state)))


def rpm_gain_per_tap(state: GameState) -> int:
    return BASE_RPM_GAIN + ECU_RPM_PER_LEVEL * state.ecu_level


def gear_multiplier(gear: int) -> float:
    return GEAR_MULTIPLIERS.get(gear, 1.0)


def tier_multiplier(tiers: list[CarTier], tier: int) -> float:
    if 0 <= tier < len(tiers):
        return tiers[tier].multiplier
    return 1.0


def part_cost(state: GameState, part: PartDefinition) -> int:
    return cost(part.base_cost, part.cost_scaling, state.parts.get(part.key, 0))


def manual_upgrade_cost(level: int) -> int:
    return cost(MANUAL_UPGRADE_BASE_COST, MANUAL_UPGRADE_SCALING, level)
