from __future__ import annotations

_SUFFIXES = (
    (1_000_000_000_000, "T"),
    (1_000_000_000, "B"),
    (1_000_000, "M"),
)


def format_hp(value: int) -> str:
    """Exact with thousands separators below one million, then 2-decimal M/B/T."""
    if value < 1_000_000:
        return f"{value:,}"
    scale, suffix = next((s, x) for s, x in _SUFFIXES if value >= s)
    return f"{value / scale:.2f}{suffix}"


def format_rate(hp_per_second: float) -> str:
    return f"+{format_hp(int(hp_per_second))}/s"
