"""
Window helpers over a store snapshot.

Every helper takes the ``pd.Series`` produced by ``TimeSeriesStore.snapshot``
(float values on an ascending DatetimeIndex) and treats missing days as absent
observations: they are skipped, never counted as zero.
"""
import math
from datetime import date
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from gridtrend.constants import DEFAULT_RANGE_DAYS, MAX_RANGE_DAYS, MIN_RANGE_DAYS
from gridtrend.date_keys import add_days, days_in_month, parse_date_key


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def to_optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def value_on(daily: pd.Series, day: Optional[date]) -> Optional[float]:
    """Stored value for ``day`` or None when the day has no observation."""
    if day is None:
        return None
    return to_optional_float(daily.get(pd.Timestamp(day)))


def window_slice(daily: pd.Series, start: date, end: date) -> pd.Series:
    """Observed values on the inclusive range [start, end]; empty when start > end."""
    if start > end:
        return daily.iloc[0:0]
    return daily.loc[pd.Timestamp(start):pd.Timestamp(end)].dropna()


def window_sum_and_count(daily: pd.Series, start: date, end: date) -> Tuple[Optional[float], int]:
    """
    Sum and count of the observations in the inclusive range [start, end].

    Returns:
        tuple: (sum, count); the sum is None when no day in the range has data.
    """
    window = window_slice(daily, start, end)
    count = int(window.count())
    return (float(window.sum()) if count else None), count


def exact_sum(values: np.ndarray) -> float:
    """Correctly rounded sum of the non-NaN entries of a raw window."""
    return math.fsum(values[~np.isnan(values)])


def window_sum(daily: pd.Series, start: date, end: date) -> Optional[float]:
    return window_sum_and_count(daily, start, end)[0]


def window_mean(daily: pd.Series, start: date, end: date) -> Optional[float]:
    total, count = window_sum_and_count(daily, start, end)
    return total / count if count else None


def sum_by_offsets(daily: pd.Series, week_start: date, offsets: Iterable[int]) -> Optional[float]:
    """
    Sum the days ``week_start + offset`` for every offset.

    The comparison is only meaningful when it covers the same weekdays as the
    current bucket, so a single missing offset makes the whole sum None.
    """
    offsets = list(offsets)
    if not offsets:
        return None
    total = 0.0
    for offset in offsets:
        value = value_on(daily, add_days(week_start, offset))
        if value is None:
            return None
        total += value
    return total


def sum_month_up_to_day(daily: pd.Series, year: int, month: int, max_day: int) -> Optional[float]:
    """Sum days 1..max_day of the given month, clamped to the month's length."""
    last_day = min(max_day, days_in_month(year, month))
    return window_sum(daily, date(year, month, 1), date(year, month, last_day))


def resolve_range(daily: pd.Series, start=None, end=None,
                  range_days: int = DEFAULT_RANGE_DAYS) -> Tuple[Optional[date], Optional[date]]:
    """
    Resolve the effective query range.

    ``end`` defaults to the latest observation and ``start`` to ``end`` minus
    ``range_days`` (clamped to [7, 3650]). Reversed bounds are swapped.

    Raises:
        ValueError: If an explicit bound cannot be parsed.

    Returns:
        tuple: (start, end) as dates, or (None, None) when the snapshot is empty and no bounds were given.
    """
    start_day = _parse_bound(start, 'from')
    end_day = _parse_bound(end, 'to')

    if end_day is None:
        if daily.empty:
            if start_day is None:
                return None, None
            end_day = start_day
        else:
            end_day = daily.index[-1].date()
    if start_day is None:
        start_day = add_days(end_day, -clamp(int(range_days), MIN_RANGE_DAYS, MAX_RANGE_DAYS))

    if start_day > end_day:
        start_day, end_day = end_day, start_day
    return start_day, end_day


def _parse_bound(raw, name: str) -> Optional[date]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    parsed = parse_date_key(raw)
    if parsed is None:
        raise ValueError(f"Invalid '{name}' date '{raw}', expected DD-MM-YYYY or YYYY-MM-DD")
    return parsed


def compute_control_limits(values: Iterable[Optional[float]]) -> Optional[dict]:
    """
    Mean with one and two (population) standard deviation bands.

    Args:
        values (iterable): Series values; None and NaN entries are ignored.

    Returns:
        dict: mean, sd, plus1, plus2, minus1 and minus2, or None with fewer than two usable values.
    """
    finite = np.array([v for v in values if v is not None and np.isfinite(v)], dtype='float64')
    if finite.size < 2:
        return None
    mean = float(np.mean(finite))
    sd = float(np.std(finite))
    return {
        'mean': mean,
        'sd': sd,
        'plus1': mean + sd,
        'plus2': mean + 2 * sd,
        'minus1': mean - sd,
        'minus2': mean - 2 * sd,
    }
