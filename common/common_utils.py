from datetime import datetime, timezone
import math


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for non-negative scores (66.5 -> 67), unlike round()."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_score(value: float) -> int:
    return int(round_half_up(value))
