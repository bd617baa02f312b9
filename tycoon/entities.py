"""Core dataclasses for the Turbo Tycoon simulation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from config import MIN_GEAR


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


@dataclass
class GameState:
    """The single persisted aggregate.

    ``total_hp`` and ``lifetime_hp_earned`` are unbounded ints; the latter is
    never decremented.  ``last_click_time`` is the freshness stamp in epoch
    milliseconds, refreshed by every tick and every rev, and is what offline
    earnings are measured from.  ``redzone_start_time`` is set only while RPM
    sits continuously in the redzone below top gear.
    """

    total_hp: int = 0
    lifetime_hp_earned: int = 0
    current_tier: int = 0
    current_rpm: int = 0
    current_gear: int = MIN_GEAR
    last_click_time: int = 0
    redzone_start_time: Optional[int] = None
    throttle_level: int = 0
    ecu_level: int = 0
    parts: Dict[str, int] = field(default_factory=dict)
    tokens: int = 0
    tokens_earned_today: int = 0
    last_token_date: str = field(default_factory=utc_today)
    achievements: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RevResult:
    """Outcome of one rev (tap)."""

    income: int
    rpm_gain: int
    shifted: bool = False
    perfect: bool = False


@dataclass(frozen=True)
class OfflineReport:
    earned: int
    elapsed_ms: int

    def describe(self) -> str:
        seconds = self.elapsed_ms // 1000
        hours, minutes = seconds // 3600, (seconds % 3600) // 60
        return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"


@dataclass(frozen=True)
class Rejection:
    code: str
    message: str
