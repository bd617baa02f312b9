from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from config import TIERS_FILE


@dataclass(frozen=True)
class CarTier:
    tier: int
    display_name: str
    multiplier: float
    required_lifetime_hp: int


DEFAULT_TIERS: List[CarTier] = [
    CarTier(0, "'02 Toyota Camry", 1.0, 0),
    CarTier(1, "'16 Honda Civic", 1.5, 5_000_000),
    CarTier(2, "'20 5.0 Ford Mustang", 2.0, 50_000_000),
    CarTier(3, "'22 Porsche 911", 3.0, 500_000_000),
    CarTier(4, "'25 Ferrari 296 GTB", 4.0, 5_000_000_000),
]


def _parse_tier_entry(index: int, entry: Dict[str, Any]) -> CarTier | None:
    display_name = entry.get("display_name")
    multiplier = entry.get("multiplier")
    required = entry.get("required_lifetime_hp")

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
        return None
    if not math.isfinite(multiplier) or multiplier <= 0:
        return None
    # Thresholds may exceed float precision, so accept ints or decimal strings.
    if isinstance(required, str) and required.isdigit():
        required = int(required)
    if isinstance(required, bool) or not isinstance(required, int) or required < 0:
        return None

    return CarTier(
        tier=index,
        display_name=display_name.strip(),
        multiplier=float(multiplier),
        required_lifetime_hp=required,
    )


def _is_valid_ladder(tiers: List[CarTier]) -> bool:
    if not tiers or tiers[0].required_lifetime_hp != 0:
        return False
    return all(
        later.required_lifetime_hp >= earlier.required_lifetime_hp
        for earlier, later in zip(tiers, tiers[1:])
    )


def load_tier_catalog(path: Path = TIERS_FILE) -> List[CarTier]:
    """Load the ordered prestige ladder; any invalid entry rejects the whole file."""
    if not path.exists():
        return list(DEFAULT_TIERS)

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return list(DEFAULT_TIERS)

    if not isinstance(raw, list):
        return list(DEFAULT_TIERS)

    tiers: List[CarTier] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            return list(DEFAULT_TIERS)
        tier = _parse_tier_entry(index, entry)
        if tier is None:
            return list(DEFAULT_TIERS)
        tiers.append(tier)

    if not _is_valid_ladder(tiers):
        return list(DEFAULT_TIERS)
    return tiers
