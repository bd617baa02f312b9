from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

from config import GLOBAL_COST_SCALING, GLOBAL_OUTPUT_SCALING, PARTS_FILE

PART_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")


@dataclass(frozen=True)
class PartDefinition:
    """A purchasable passive-income generator."""

    key: str
    display_name: str
    base_cost: int
    base_output: float
    cost_scaling: float = GLOBAL_COST_SCALING
    output_scaling: float = GLOBAL_OUTPUT_SCALING
    icon: str = ""


DEFAULT_PARTS: Dict[str, PartDefinition] = {
    "intake": PartDefinition("intake", "Cold Air Intake", 66, 1, icon="wind"),
    "exhaust": PartDefinition("exhaust", "Cat-Back Exhaust", 201, 3, icon="flame"),
    "ecu_map": PartDefinition("ecu_map", "Stage 1 ECU Map", 696, 8, icon="cpu"),
    "tires": PartDefinition("tires", "Semi-Slick Tires", 1_500, 20, icon="circle"),
    "coilovers": PartDefinition("coilovers", "Coilover Kit", 4_000, 45, icon="spring"),
    "downpipe": PartDefinition("downpipe", "High-Flow Downpipe", 10_000, 100, icon="pipe"),
    "big_turbo": PartDefinition("big_turbo", "Big Turbo", 25_000, 250, icon="fan"),
    "lsd_clutch": PartDefinition("lsd_clutch", "LSD & Clutch", 60_000, 550, icon="cog"),
    "nitrous": PartDefinition("nitrous", "Nitrous System", 150_000, 1_200, icon="zap"),
    "widebody": PartDefinition("widebody", "Widebody Aero", 400_000, 3_000, icon="wing"),
}


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _is_scaling(value: Any) -> bool:
    return _is_positive_number(value) and value >= 1.0


def _parse_part_entry(key: str, entry: Dict[str, Any]) -> PartDefinition | None:
    if not isinstance(key, str) or not PART_ID_RE.fullmatch(key):
        return None

    display_name = entry.get("display_name")
    base_cost = entry.get("base_cost")
    base_output = entry.get("base_output")
    cost_scaling = entry.get("cost_scaling", GLOBAL_COST_SCALING)
    output_scaling = entry.get("output_scaling", GLOBAL_OUTPUT_SCALING)
    icon = entry.get("icon", "")

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if isinstance(base_cost, bool) or not isinstance(base_cost, int) or base_cost <= 0:
        return None
    if not _is_positive_number(base_output):
        return None
    if not _is_scaling(cost_scaling) or not _is_scaling(output_scaling):
        return None
    if not isinstance(icon, str):
        return None

    return PartDefinition(
        key=key,
        display_name=display_name.strip(),
        base_cost=base_cost,
        base_output=base_output,
        cost_scaling=float(cost_scaling),
        output_scaling=float(output_scaling),
        icon=icon.strip(),
    )


def _ordered_catalog(parts: Iterable[PartDefinition]) -> Dict[str, PartDefinition]:
    ordered = sorted(parts, key=lambda part: (part.base_cost, part.key))
    return {part.key: part for part in ordered}


def load_part_catalog(path: Path = PARTS_FILE) -> Dict[str, PartDefinition]:
    """Return parts ordered cheapest first, falling back to the built-in list."""
    defaults = _ordered_catalog(DEFAULT_PARTS.values())
    if not path.exists():
        return defaults

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return defaults

    if not isinstance(raw, dict):
        return defaults

    parsed: Dict[str, PartDefinition] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        part = _parse_part_entry(key, entry)
        if part is None:
            continue
        parsed[key] = part

    if not parsed:
        return defaults

    return _ordered_catalog(parsed.values())
