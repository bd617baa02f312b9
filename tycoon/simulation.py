"""EngineSim: deterministic, headless-compatible engine simulation.

All gameplay constants are imported from ``config``.  The simulation has no
pygame dependency of its own (cues go through a :class:`FeedbackSink`) and is
safe to import in headless / test contexts.  Every method that reads the clock
accepts an explicit ``now`` in epoch milliseconds so runs can be replayed
exactly.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

from config import (
    BASE_RPM_DECAY,
    DAILY_TOKEN_CAP,
    DOWNSHIFT_RPM,
    DOWNSHIFT_THRESHOLD,
    EVENT_LOG_SIZE,
    GEAR_DRAG_FACTOR,
    MANUAL_UPGRADES,
    MAX_GEAR,
    MAX_RPM,
    MIN_GEAR,
    OFFLINE_MAX_MS,
    OFFLINE_MIN_MS,
    PERFECT_SHIFT_FLASH_MS,
    PERFECT_SHIFT_RPM,
    REDLINE,
    REJECT_DAILY_LIMIT,
    REJECT_INSUFFICIENT_FUNDS,
    REJECT_PRECONDITION,
    REJECT_UNKNOWN_ITEM,
    REV_VIBRATE_MS,
    SAFETY_SHIFT_MS,
    SAFETY_SHIFT_RPM,
    TICK_SECONDS,
    TOKEN_PACKAGES,
)
from achievement_catalog import AchievementDefinition, achievement_unlocked, load_achievement_catalog
from part_catalog import PartDefinition, load_part_catalog
from tier_catalog import CarTier, load_tier_catalog
from tycoon.economy import (
    active_tap_income,
    gear_multiplier,
    manual_upgrade_cost,
    part_cost,
    passive_income_rate,
    rpm_gain_per_tap,
    tier_multiplier,
)
from tycoon.entities import GameState, OfflineReport, Rejection, RevResult, utc_today
from tycoon.feedback import (
    CUE_DOWNSHIFT,
    CUE_PERFECT_SHIFT,
    CUE_UPSHIFT,
    CUE_VIBRATE,
    FeedbackSink,
    NullFeedback,
    emit,
)

logger = logging.getLogger(__name__)

PARTS = load_part_catalog()
TIERS = load_tier_catalog()
ACHIEVEMENTS = load_achievement_catalog()

REDZONE_IDLE = "idle"
REDZONE_ACTIVE = "in_redzone"


def now_ms() -> int:
    return int(time.time() * 1000)


def clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def new_game_state(now: Optional[int] = None) -> GameState:
    return GameState(last_click_time=now_ms() if now is None else now)


def decay_per_tick(gear: int, dt: float = TICK_SECONDS) -> int:
    """RPM drag for one tick; exponential in gear."""
    return int(math.floor(BASE_RPM_DECAY * GEAR_DRAG_FACTOR ** (gear - 1) * dt))


def apply_offline_earnings(
    state: GameState,
    parts: Mapping[str, PartDefinition] = PARTS,
    now: Optional[int] = None,
) -> Optional[OfflineReport]:
    """Credit passive income for the time since ``state.last_click_time``.

    Gaps of ten seconds or less are ignored and credited time is capped at 24
    hours.  Tap income is never earned offline.  The freshness stamp is moved
    to ``now`` either way, so a second call credits nothing.
    """
    now = now_ms() if now is None else now
    elapsed = min(now - state.last_click_time, OFFLINE_MAX_MS)
    state.last_click_time = max(state.last_click_time, now)
    if elapsed <= OFFLINE_MIN_MS:
        return None
    rate = passive_income_rate(state, parts)
    if rate <= 0:
        return None
    earned = int(math.floor(rate * (elapsed / 1000)))
    if earned <= 0:
        return None
    state.total_hp += earned
    state.lifetime_hp_earned += earned
    logger.info("Offline earnings: %d HP over %d ms", earned, elapsed)
    return OfflineReport(earned=earned, elapsed_ms=elapsed)


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class EngineSim:
    """Tick-based engine simulation.

    State lives in :attr:`state` (a :class:`GameState`); prestige swaps it
    for a fresh one.  The class is fully serialisable to/from a
    JSON-compatible dict via :meth:`to_dict` and :meth:`from_dict`.
    """

    def __init__(
        self,
        state: Optional[GameState] = None,
        feedback: Optional[FeedbackSink] = None,
        *,
        parts: Optional[Mapping[str, PartDefinition]] = None,
        tiers: Optional[List[CarTier]] = None,
        achievements: Optional[Mapping[str, AchievementDefinition]] = None,
    ) -> None:
        self.state: GameState = state if state is not None else new_game_state()
        self.feedback: FeedbackSink = feedback if feedback is not None else NullFeedback()
        self.parts: Mapping[str, PartDefinition] = PARTS if parts is None else parts
        self.tiers: List[CarTier] = TIERS if tiers is None else tiers
        self.achievements: Mapping[str, AchievementDefinition] = ACHIEVEMENTS if achievements is None else achievements
        self.hp_per_second: float = passive_income_rate(self.state, self.parts)
        self.perfect_shift_until: int = 0
        self.event_log: List[str] = []
        self.last_rejection: Optional[Rejection] = None

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict:
        return asdict(self.state)

    @classmethod
    def from_dict(cls, data: Dict, feedback: Optional[FeedbackSink] = None, **catalogs) -> "EngineSim":
        parts = catalogs.get("parts") or PARTS
        tiers = catalogs.get("tiers") or TIERS
        state = cls._normalize_state(data, parts, tiers)
        return cls(state, feedback, **catalogs)

    @staticmethod
    def _normalize_state(data: Dict, parts: Mapping[str, PartDefinition], tiers: List[CarTier]) -> GameState:
        total_hp = max(0, _as_int(data.get("total_hp"), 0))
        lifetime = max(total_hp, _as_int(data.get("lifetime_hp_earned"), 0))

        raw_parts = data.get("parts", {})
        owned: Dict[str, int] = {}
        if isinstance(raw_parts, dict):
            for key, level in raw_parts.items():
                level = _as_int(level, 0)
                if key in parts and level > 0:
                    owned[key] = level

        gear = clamp(_as_int(data.get("current_gear"), MIN_GEAR), MIN_GEAR, MAX_GEAR)

        achievements: List[str] = []
        raw_achievements = data.get("achievements", [])
        for key in raw_achievements if isinstance(raw_achievements, list) else []:
            if isinstance(key, str) and key not in achievements:
                achievements.append(key)

        last_token_date = data.get("last_token_date")
        return GameState(
            total_hp=total_hp,
            lifetime_hp_earned=lifetime,
            current_tier=clamp(_as_int(data.get("current_tier"), 0), 0, len(tiers) - 1),
            current_rpm=clamp(_as_int(data.get("current_rpm"), 0), 0, MAX_RPM),
            current_gear=gear,
            last_click_time=_as_int(data.get("last_click_time"), now_ms()),
            # Redzone dwell counts tick time only, never time spent away.
            redzone_start_time=None,
            throttle_level=max(0, _as_int(data.get("throttle_level"), 0)),
            ecu_level=max(0, _as_int(data.get("ecu_level"), 0)),
            parts=owned,
            tokens=max(0, _as_int(data.get("tokens"), 0)),
            tokens_earned_today=max(0, _as_int(data.get("tokens_earned_today"), 0)),
            last_token_date=last_token_date if isinstance(last_token_date, str) else utc_today(),
            achievements=achievements,
        )

    def _log_event(self, message: str) -> None:
        self.event_log.append(message)
        self.event_log = self.event_log[-EVENT_LOG_SIZE:]

    def _reject(self, code: str, message: str) -> bool:
        self.last_rejection = Rejection(code, message)
        self._log_event(message)
        logger.debug("Rejected (%s): %s", code, message)
        return False

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def tier(self) -> CarTier:
        return self.tiers[self.state.current_tier]

    def next_tier(self) -> Optional[CarTier]:
        index = self.state.current_tier + 1
        return self.tiers[index] if index < len(self.tiers) else None

    def prestige_progress(self) -> float:
        """Percent (0-100) of the lifetime HP needed for the next tier."""
        upcoming = self.next_tier()
        if upcoming is None:
            return 100.0
        if upcoming.required_lifetime_hp <= 0:
            return 100.0
        return min(100.0, self.state.lifetime_hp_earned * 100 / upcoming.required_lifetime_hp)

    def part_cost(self, part_key: str) -> int:
        return part_cost(self.state, self.parts[part_key])

    def manual_upgrade_cost(self, kind: str) -> int:
        level = self.state.throttle_level if kind == "throttle" else self.state.ecu_level
        return manual_upgrade_cost(level)

    def tap_income(self) -> int:
        state = self.state
        return active_tap_income(
            state,
            tier_multiplier(self.tiers, state.current_tier),
            gear_multiplier(state.current_gear),
        )

    @property
    def redzone_phase(self) -> str:
        return REDZONE_IDLE if self.state.redzone_start_time is None else REDZONE_ACTIVE

    def perfect_shift_active(self, now: Optional[int] = None) -> bool:
        now = now_ms() if now is None else now
        return now < self.perfect_shift_until

    # ------------------------------------------------------------------
    # Main tick
    # ------------------------------------------------------------------

    def tick(self, dt: float = TICK_SECONDS, now: Optional[int] = None) -> None:
        now = now_ms() if now is None else now
        state = self.state

        # Passive accrual
        self.hp_per_second = passive_income_rate(state, self.parts)
        earned = int(math.floor(self.hp_per_second * dt))

        # Drag
        rpm = max(0, state.current_rpm - decay_per_tick(state.current_gear, dt))
        gear = state.current_gear
        redzone = state.redzone_start_time

        # Redzone dwell; top gear never forces a shift
        safety_shift = False
        if gear < MAX_GEAR:
            if REDLINE <= rpm < MAX_RPM:
                if redzone is None:
                    redzone = now
                elif now - redzone > SAFETY_SHIFT_MS:
                    safety_shift = True
                    gear += 1
                    rpm = SAFETY_SHIFT_RPM
                    redzone = None
            else:
                redzone = None
        else:
            redzone = None

        if safety_shift:
            # Paid like a rev in the gear being left.
            earned += self.tap_income()

        downshift = False
        if rpm < DOWNSHIFT_THRESHOLD and gear > MIN_GEAR:
            downshift = True
            gear -= 1
            rpm = DOWNSHIFT_RPM
            redzone = None

        state.total_hp += earned
        state.lifetime_hp_earned += earned
        state.current_rpm = rpm
        state.current_gear = gear
        state.redzone_start_time = redzone
        state.last_click_time = now

        if safety_shift:
            self._log_event(f"Safety shift into gear {gear}")
            emit(self.feedback, CUE_UPSHIFT)
        if downshift:
            emit(self.feedback, CUE_DOWNSHIFT)

    # ------------------------------------------------------------------
    # Rev (tap)
    # ------------------------------------------------------------------

    def rev(self, now: Optional[int] = None) -> RevResult:
        now = now_ms() if now is None else now
        state = self.state

        gain = rpm_gain_per_tap(state)
        rpm = state.current_rpm + gain
        gear = state.current_gear
        redzone = state.redzone_start_time

        if gear < MAX_GEAR and rpm >= REDLINE and state.current_rpm < REDLINE:
            redzone = now

        perfect = False
        if rpm >= MAX_RPM and gear < MAX_GEAR:
            perfect = True
        elif rpm > MAX_RPM:
            rpm = MAX_RPM

        income = self.tap_income()

        if perfect:
            gear += 1
            rpm = PERFECT_SHIFT_RPM
            redzone = None
            self.perfect_shift_until = now + PERFECT_SHIFT_FLASH_MS

        state.total_hp += income
        state.lifetime_hp_earned += income
        state.current_rpm = rpm
        state.current_gear = gear
        state.redzone_start_time = redzone
        state.last_click_time = now

        emit(self.feedback, CUE_VIBRATE, REV_VIBRATE_MS)
        if perfect:
            self._log_event(f"Perfect shift into gear {gear}")
            emit(self.feedback, CUE_PERFECT_SHIFT)
        return RevResult(income=income, rpm_gain=gain, shifted=perfect, perfect=perfect)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def buy_part(self, part_key: str) -> bool:
        if part_key not in self.parts:
            return self._reject(REJECT_UNKNOWN_ITEM, f"Unknown part {part_key}")
        price = self.part_cost(part_key)
        if self.state.total_hp < price:
            return self._reject(REJECT_INSUFFICIENT_FUNDS, f"{self.parts[part_key].display_name} needs {price} HP")
        self.state.total_hp -= price
        level = self.state.parts.get(part_key, 0) + 1
        self.state.parts[part_key] = level
        self.hp_per_second = passive_income_rate(self.state, self.parts)
        self._log_event(f"{self.parts[part_key].display_name} upgraded to level {level} (-{price} HP)")
        return True

    def buy_manual_upgrade(self, kind: str) -> bool:
        if kind not in MANUAL_UPGRADES:
            return self._reject(REJECT_UNKNOWN_ITEM, f"Unknown upgrade {kind}")
        price = self.manual_upgrade_cost(kind)
        if self.state.total_hp < price:
            return self._reject(REJECT_INSUFFICIENT_FUNDS, f"{kind.capitalize()} upgrade needs {price} HP")
        self.state.total_hp -= price
        if kind == "throttle":
            self.state.throttle_level += 1
        else:
            self.state.ecu_level += 1
        self._log_event(f"{kind.capitalize()} upgraded (-{price} HP)")
        return True

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def check_daily_reset(self, today: Optional[str] = None) -> bool:
        """Open a new exchange window when the calendar date has changed."""
        today = utc_today() if today is None else today
        if self.state.last_token_date == today:
            return False
        self.state.tokens_earned_today = 0
        self.state.last_token_date = today
        return True

    def convert_hp_to_tokens(self, package_key: str) -> bool:
        package = TOKEN_PACKAGES.get(package_key)
        if package is None:
            return self._reject(REJECT_UNKNOWN_ITEM, f"Unknown token package {package_key}")
        if self.state.tokens_earned_today > 0:
            return self._reject(REJECT_DAILY_LIMIT, "You can only perform one token exchange per day.")
        if self.state.total_hp < package["hp_cost"]:
            return self._reject(REJECT_INSUFFICIENT_FUNDS, f"Token package {package_key} needs {package['hp_cost']} HP")
        if package["token_amount"] > DAILY_TOKEN_CAP:
            return self._reject(REJECT_DAILY_LIMIT, f"This package exceeds the daily limit of {DAILY_TOKEN_CAP}.")
        self.state.total_hp -= package["hp_cost"]
        self.state.tokens += package["token_amount"]
        self.state.tokens_earned_today += package["token_amount"]
        self._log_event(f"Exchanged {package['hp_cost']} HP for {package['token_amount']} tokens")
        return True

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    def check_achievements(self, hp_per_second: Optional[float] = None) -> List[AchievementDefinition]:
        rate = self.hp_per_second if hp_per_second is None else hp_per_second
        unlocked: List[AchievementDefinition] = []
        for key, definition in self.achievements.items():
            if key in self.state.achievements:
                continue
            if achievement_unlocked(definition, self.state, rate):
                unlocked.append(definition)
        for definition in unlocked:
            self.state.achievements.append(definition.key)
            self.state.tokens += definition.reward_tokens
            self._log_event(f"Achievement unlocked: {definition.title}")
        return unlocked

    # ------------------------------------------------------------------
    # Prestige
    # ------------------------------------------------------------------

    def can_prestige(self) -> bool:
        upcoming = self.next_tier()
        return upcoming is not None and self.state.lifetime_hp_earned >= upcoming.required_lifetime_hp

    def prestige(self, now: Optional[int] = None) -> bool:
        upcoming = self.next_tier()
        if upcoming is None:
            return self._reject(REJECT_PRECONDITION, "Already at the top tier")
        if self.state.lifetime_hp_earned < upcoming.required_lifetime_hp:
            return self._reject(
                REJECT_PRECONDITION,
                f"{upcoming.display_name} needs {upcoming.required_lifetime_hp} lifetime HP",
            )
        old = self.state
        self.state = GameState(
            current_tier=upcoming.tier,
            lifetime_hp_earned=old.lifetime_hp_earned,
            tokens=old.tokens,
            tokens_earned_today=old.tokens_earned_today,
            last_token_date=old.last_token_date,
            achievements=list(old.achievements),
            last_click_time=now_ms() if now is None else now,
        )
        self.hp_per_second = 0.0
        self.perfect_shift_until = 0
        self._log_event(f"Prestiged to {upcoming.display_name}")
        logger.info("Prestige to tier %d", upcoming.tier)
        return True
