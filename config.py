"""Centralised configuration constants for Turbo Tycoon."""
from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------
SCREEN_W: int = 960
SCREEN_H: int = 640
FPS: int = 60

# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------
SAVE_KEY: str = "TURBO_TYCOON_V1"
SAVE_DIR: Path = Path(".")
BIG_INT_PREFIX: str = "BI:"
PARTS_FILE: Path = Path("data/parts.json")
TIERS_FILE: Path = Path("data/tiers.json")
ACHIEVEMENTS_FILE: Path = Path("data/achievements.json")

# ---------------------------------------------------------------------------
# Engine limits
# ---------------------------------------------------------------------------
MAX_RPM: int = 8000
REDLINE: int = 7000
DOWNSHIFT_THRESHOLD: int = 1500
MIN_GEAR: int = 1
MAX_GEAR: int = 6

# Gear → active income multiplier
GEAR_MULTIPLIERS: dict[int, float] = {
    1: 1.0,
    2: 1.25,
    3: 1.5,
    4: 1.75,
    5: 2.0,
    6: 2.5,
}

# ---------------------------------------------------------------------------
# Tick loop tuning
# ---------------------------------------------------------------------------
TICK_SECONDS: float = 0.1              # fixed simulation step (10 ticks per second)
BASE_RPM_DECAY: float = 150.0          # RPM lost per second in first gear
GEAR_DRAG_FACTOR: float = 1.8          # decay multiplier per gear above first
SAFETY_SHIFT_MS: int = 1500            # continuous redzone dwell before a forced upshift
SAFETY_SHIFT_RPM: int = 3000           # RPM after a forced (safety) upshift
PERFECT_SHIFT_RPM: int = 5000          # RPM after a perfect shift
DOWNSHIFT_RPM: int = 4500              # RPM after a downshift
PERFECT_SHIFT_FLASH_MS: int = 800      # how long the perfect-shift flag stays lit
REV_VIBRATE_MS: int = 10               # haptic pulse per rev

# ---------------------------------------------------------------------------
# Active (tap) economy
# ---------------------------------------------------------------------------
BASE_TAP_HP: int = 10                  # HP per rev before multipliers
THROTTLE_HP_PER_LEVEL: int = 5         # extra HP per rev per throttle level
BASE_RPM_GAIN: int = 90                # RPM per rev
ECU_RPM_PER_LEVEL: int = 5             # extra RPM per rev per ECU level
PRESTIGE_INCOME_BASE: float = 2.0      # income multiplier is PRESTIGE_INCOME_BASE ** tier

# ---------------------------------------------------------------------------
# Upgrade pricing
# ---------------------------------------------------------------------------
GLOBAL_COST_SCALING: float = 1.12
GLOBAL_OUTPUT_SCALING: float = 1.10
MANUAL_UPGRADE_BASE_COST: int = 100
MANUAL_UPGRADE_SCALING: float = 1.12
MANUAL_UPGRADES: tuple[str, ...] = ("throttle", "ecu")

# ---------------------------------------------------------------------------
# Offline earnings
# ---------------------------------------------------------------------------
OFFLINE_MIN_MS: int = 10_000                   # ignore gaps shorter than this
OFFLINE_MAX_MS: int = 24 * 60 * 60 * 1000      # cap credited time at one day

# ---------------------------------------------------------------------------
# Tokens: secondary currency bought with HP once per calendar day
# ---------------------------------------------------------------------------
DAILY_TOKEN_CAP: int = 75

TOKEN_PACKAGES: dict[str, dict[str, int]] = {
    "small":  {"hp_cost": 5_000_000,   "token_amount": 3},
    "medium": {"hp_cost": 50_000_000,  "token_amount": 15},
    "large":  {"hp_cost": 500_000_000, "token_amount": 75},
}

# ---------------------------------------------------------------------------
# Background loop periods (seconds)
# ---------------------------------------------------------------------------
AUTOSAVE_INTERVAL: float = 5.0
ACHIEVEMENT_CHECK_INTERVAL: float = 1.0
DAILY_RESET_CHECK_INTERVAL: float = 60.0
TOAST_HOLD_SECONDS: float = 5.0

# ---------------------------------------------------------------------------
# Rejection codes surfaced by gameplay actions
# ---------------------------------------------------------------------------
REJECT_INSUFFICIENT_FUNDS: str = "insufficient_funds"
REJECT_DAILY_LIMIT: str = "daily_limit"
REJECT_PRECONDITION: str = "precondition"
REJECT_UNKNOWN_ITEM: str = "unknown_item"

EVENT_LOG_SIZE: int = 12
