"""Achievement definitions as declarative threshold descriptors.

Each achievement names a *metric* read from the game state (or the live
passive income rate) and a threshold; it unlocks once ``metric >= threshold``.
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable

from config import ACHIEVEMENTS_FILE

ACHIEVEMENT_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")

METRIC_LIFETIME_HP = "lifetime_hp"
METRIC_GEAR = "gear"
METRIC_TIER = "tier"
METRIC_HP_PER_SECOND = "hp_per_second"

METRICS: Dict[str, Callable[[Any, float], float]] = {
    METRIC_LIFETIME_HP: lambda state, _rate: state.lifetime_hp_earned,
    METRIC_GEAR: lambda state, _rate: state.current_gear,
    METRIC_TIER: lambda state, _rate: state.current_tier,
    METRIC_HP_PER_SECOND: lambda _state, rate: rate,
}


@dataclass(frozen=True)
class AchievementDefinition:
    key: str
    title: str
    description: str
    reward_tokens: int
    metric: str
    threshold: int | float


def _a(key: str, title: str, description: str, reward: int, metric: str, threshold: int | float) -> AchievementDefinition:
    return AchievementDefinition(key, title, description, reward, metric, threshold)


DEFAULT_ACHIEVEMENTS: Dict[str, AchievementDefinition] = {
    a.key: a
    for a in (
        _a("hp_1k", "Baby's First Beater", "You hit 1,000 Lifetime HP.", 5, METRIC_LIFETIME_HP, 1_000),
        _a("hp_10k", "Camry Weapon", "You hit 10,000 Lifetime HP.", 10, METRIC_LIFETIME_HP, 10_000),
        _a("hp_100k", "Faster Than Your Ex", "You hit 100,000 Lifetime HP.", 10, METRIC_LIFETIME_HP, 100_000),
        _a("hp_1m", "Ego Check", "Your car is faster than your ego. 1M HP.", 15, METRIC_LIFETIME_HP, 1_000_000),
        _a("hp_10m", "Vengeance Shift", "10 Million HP lifetime.", 20, METRIC_LIFETIME_HP, 10_000_000),
        _a("hp_100m", "Influencer Killer", "Beat 90% of Instagram builds. 100M HP.", 25, METRIC_LIFETIME_HP, 100_000_000),
        _a("hp_1b", "NASA Called", "They want their throttle body back. 1 Billion HP.", 30, METRIC_LIFETIME_HP, 1_000_000_000),
        _a("hp_10b", "EPA Violation", "The government is watching. 10 Billion HP.", 40, METRIC_LIFETIME_HP, 10_000_000_000),
        _a("gear_6", "Boost Heaven", "Reach Gear 6 for the first time.", 0, METRIC_GEAR, 6),
        _a("passive_10k", "Day Job Replacement", "Reach 10,000 HP per second passive income.", 10, METRIC_HP_PER_SECOND, 10_000),
        _a("passive_100k", "Printing Money", "Reach 100,000 HP per second passive income.", 25, METRIC_HP_PER_SECOND, 100_000),
        _a("prestige_1", "Fresh Start", "Reach Prestige Tier 1.", 0, METRIC_TIER, 1),
        _a("prestige_2", "Gapped Yourself", "Reach Prestige Tier 2.", 10, METRIC_TIER, 2),
        _a("prestige_3", "HP Hoarder", "Reach Prestige Tier 3.", 15, METRIC_TIER, 3),
        _a("prestige_4", "Illegal Build", "Reach Prestige Tier 4.", 20, METRIC_TIER, 4),
        _a("prestige_5", "Peak Degeneracy", "Reach Prestige Tier 5.", 25, METRIC_TIER, 5),
    )
}


def achievement_unlocked(definition: AchievementDefinition, state: Any, hp_per_second: float) -> bool:
    metric = METRICS.get(definition.metric)
    if metric is None:
        return False
    return metric(state, hp_per_second) >= definition.threshold


def _is_threshold(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, float) and math.isfinite(value) and value >= 0


def _parse_achievement_entry(key: str, entry: Dict[str, Any]) -> AchievementDefinition | None:
    if not isinstance(key, str) or not ACHIEVEMENT_ID_RE.fullmatch(key):
        return None

    title = entry.get("title")
    description = entry.get("description", "")
    reward = entry.get("reward_tokens", 0)
    metric = entry.get("metric")
    threshold = entry.get("threshold")

    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(description, str):
        return None
    if isinstance(reward, bool) or not isinstance(reward, int) or reward < 0:
        return None
    if metric not in METRICS:
        return None
    if not _is_threshold(threshold):
        return None

    return AchievementDefinition(
        key=key,
        title=title.strip(),
        description=description.strip(),
        reward_tokens=reward,
        metric=metric,
        threshold=threshold,
    )


def _keyed(achievements: Iterable[AchievementDefinition]) -> Dict[str, AchievementDefinition]:
    return {achievement.key: achievement for achievement in achievements}


def load_achievement_catalog(path: Path = ACHIEVEMENTS_FILE) -> Dict[str, AchievementDefinition]:
    if not path.exists():
        return dict(DEFAULT_ACHIEVEMENTS)

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return dict(DEFAULT_ACHIEVEMENTS)

    if not isinstance(raw, dict):
        return dict(DEFAULT_ACHIEVEMENTS)

    parsed = []
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        achievement = _parse_achievement_entry(key, entry)
        if achievement is not None:
            parsed.append(achievement)

    return _keyed(parsed) or dict(DEFAULT_ACHIEVEMENTS)
