"""
Summary statistics over DefiLlama pool chart series.

The ``*_summary`` functions return raw numbers for ranking; the
``calculate_*_stats`` functions return the display strings tools hand back.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from defitools.errors import ParseError
from defitools.utils import format_percent, format_usd


def _summary(values: list[float]) -> dict:
    if not values:
        return {"average": 0.0, "min": 0.0, "max": 0.0, "volatility": 0.0}
    avg = sum(values) / len(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return {
        "average": avg,
        "min": min(values),
        "max": max(values),
        "volatility": math.sqrt(variance),
    }


def apy_summary(values: list[float]) -> dict:
    return _summary(values)


def calculate_apy_stats(values: list[float]) -> dict:
    return {k: format_percent(v) for k, v in _summary(values).items()}


def calculate_tvl_stats(values: list[float]) -> dict:
    summary = _summary(values)
    return {k: format_usd(summary[k]) for k in ("average", "min", "max")}


def calculate_stability_score(average_apy: float, volatility: float) -> float:
    """100 means perfectly flat APY; drops as volatility grows relative to the mean."""
    if average_apy == 0 or volatility == 0:
        return 100.0
    return max(0.0, min(100.0, 100 - (volatility / average_apy) * 100))


def parse_timestamp(value: str) -> datetime:
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def extract_time_series_data(
    points: list[dict], days: int, now: Optional[datetime] = None
) -> list[dict]:
    """Chart points from the last ``days`` days, oldest first."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days)
    try:
        stamped = [(parse_timestamp(p["timestamp"]), p) for p in points]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ParseError(f"Malformed chart point: {e!r}") from e
    stamped.sort(key=lambda pair: pair[0])
    return [p for ts, p in stamped if ts >= cutoff]
