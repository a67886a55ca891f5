from datetime import timedelta
from typing import List, Union

import pandas as pd

import gridtrend.rollup_utility as rollup_util
from gridtrend.constants import (
    DEFAULT_RANGE_DAYS,
    MONTH_LABEL_FORMAT,
    MONTHLY_PERIOD_FREQ,
    PY_WEEKLY_OFFSET_DAYS,
    ROLLING_PY_OFFSET_DAYS,
    ROLLING_WINDOW_DAYS,
    WEEK_LABEL_PREFIX,
    WEEKLY_PERIOD_FREQ,
    WOW_OFFSET_DAYS,
)
from gridtrend.date_keys import add_days, add_years, format_dd_mm_yyyy, last_day_of_month, same_day_previous_month
from gridtrend.growth import growth_pct
from gridtrend.models import Frequency, WindowAggregate
from gridtrend.store import TimeSeriesStore


def as_snapshot(source: Union[TimeSeriesStore, pd.Series]) -> pd.Series:
    return source.snapshot() if isinstance(source, TimeSeriesStore) else source


class GrowthRollup:
    """
        Aggregates a daily series into comparable growth buckets.

        Attributes:
            daily (pandas.Series): Snapshot of the store, values on an ascending DatetimeIndex.
            frequency (Frequency): Bucket granularity, one of daily/weekly/monthly/rolling30.
            start (datetime.date): First day of the resolved query range.
            end (datetime.date): Last day of the resolved query range.
            in_range (pandas.Series): Observations between start and end inclusive.
            aggregates (list): Ordered WindowAggregate buckets for the range.
        """
    def __init__(self, source, start=None, end=None, frequency=Frequency.DAILY, range_days=DEFAULT_RANGE_DAYS):
        self.__frequency_dict = {
            Frequency.DAILY: lambda: self.build_daily(),
            Frequency.WEEKLY: lambda: self.build_weekly(),
            Frequency.MONTHLY: lambda: self.build_monthly(),
            Frequency.ROLLING30: lambda: self.build_rolling30(),
        }
        self.daily = as_snapshot(source)
        self.frequency = Frequency.parse(frequency)
        self.start, self.end = rollup_util.resolve_range(self.daily, start, end, range_days)

        if self.start is None:
            self.in_range = self.daily.iloc[0:0]
            self.aggregates = []
        else:
            self.in_range = rollup_util.window_slice(self.daily, self.start, self.end)
            self.aggregates = self.__frequency_dict[self.frequency]()

    def build_daily(self) -> List[WindowAggregate]:
        """
        One bucket per observed date.

        The prior year comparator is the value one calendar year back (29-02
        falls back to 28-02); the prior month comparator only exists when the
        same day-of-month exists one month earlier.
        """
        aggregates = []
        for timestamp, value in self.in_range.items():
            day = timestamp.date()
            py_value = rollup_util.value_on(self.daily, add_years(day, -1))
            pm_value = rollup_util.value_on(self.daily, same_day_previous_month(day))
            aggregates.append(WindowAggregate(
                period_label=format_dd_mm_yyyy(day),
                period_start=day,
                period_end=day,
                current_total=float(value),
                prior_period_total=pm_value,
                prior_year_total=py_value,
                period_over_period_pct=growth_pct(value, pm_value),
                yoy_pct=growth_pct(value, py_value),
                observed_days=1,
            ))
        return aggregates

    def build_weekly(self) -> List[WindowAggregate]:
        """
        ISO weeks (Monday start) over the observed dates.

        The comparison weeks, 364 days back for YoY and 7 days back for WoW,
        are summed over exactly the weekday offsets observed in the current
        week.
        """
        aggregates = []
        weeks = self.in_range.groupby(self.in_range.index.to_period(WEEKLY_PERIOD_FREQ))
        for period, week_values in weeks:
            week_start = period.start_time.date()
            offsets = [(timestamp.date() - week_start).days for timestamp in week_values.index]
            current = float(week_values.sum())
            py_total = rollup_util.sum_by_offsets(self.daily, add_days(week_start, -PY_WEEKLY_OFFSET_DAYS), offsets)
            pw_total = rollup_util.sum_by_offsets(self.daily, add_days(week_start, -WOW_OFFSET_DAYS), offsets)
            aggregates.append(WindowAggregate(
                period_label=WEEK_LABEL_PREFIX + format_dd_mm_yyyy(week_start),
                period_start=week_start,
                period_end=add_days(week_start, 6),
                current_total=current,
                prior_period_total=pw_total,
                prior_year_total=py_total,
                period_over_period_pct=growth_pct(current, pw_total),
                yoy_pct=growth_pct(current, py_total),
                observed_days=len(offsets),
            ))
        return aggregates

    def build_monthly(self) -> List[WindowAggregate]:
        """
        Calendar months over the observed dates.

        A month observed up to day N is compared against days 1..N of the
        previous month and of the same month a year earlier, so a partial month
        is never measured against a full one.
        """
        aggregates = []
        months = self.in_range.groupby(self.in_range.index.to_period(MONTHLY_PERIOD_FREQ))
        for period, month_values in months:
            max_day = int(month_values.index.day.max())
            current = float(month_values.sum())
            previous_month, previous_year = period - 1, period - 12
            pm_total = rollup_util.sum_month_up_to_day(self.daily, previous_month.year, previous_month.month, max_day)
            py_total = rollup_util.sum_month_up_to_day(self.daily, previous_year.year, previous_year.month, max_day)
            month_start = period.start_time.date()
            aggregates.append(WindowAggregate(
                period_label=month_start.strftime(MONTH_LABEL_FORMAT),
                period_start=month_start,
                period_end=last_day_of_month(month_start),
                current_total=current,
                prior_period_total=pm_total,
                prior_year_total=py_total,
                period_over_period_pct=growth_pct(current, pm_total),
                yoy_pct=growth_pct(current, py_total),
                max_day=max_day,
                observed_days=int(month_values.count()),
            ))
        return aggregates

    def build_rolling30(self) -> List[WindowAggregate]:
        """
        Trailing 30-day inclusive sums for every calendar date in range.

        Missing days are skipped; a window without any observation reports
        None. YoY compares against the window ending exactly 365 days earlier.
        """
        unit = self.daily.index.unit
        lookback_start = add_days(self.start, -(ROLLING_PY_OFFSET_DAYS + ROLLING_WINDOW_DAYS - 1))
        calendar_index = pd.date_range(pd.Timestamp(lookback_start), pd.Timestamp(self.end), freq='D', unit=unit)
        rolled = self.daily.reindex(calendar_index).rolling(ROLLING_WINDOW_DAYS, min_periods=1)
        # summed per window, a running total would carry rounding from days that left the window
        totals = rolled.apply(rollup_util.exact_sum, raw=True)
        counts = rolled.count().fillna(0)

        aggregates = []
        for timestamp in pd.date_range(pd.Timestamp(self.start), pd.Timestamp(self.end), freq='D', unit=unit):
            day = timestamp.date()
            py_timestamp = timestamp - timedelta(days=ROLLING_PY_OFFSET_DAYS)
            current = rollup_util.to_optional_float(totals[timestamp])
            py_total = rollup_util.to_optional_float(totals[py_timestamp])
            aggregates.append(WindowAggregate(
                period_label=format_dd_mm_yyyy(day),
                period_start=add_days(day, -(ROLLING_WINDOW_DAYS - 1)),
                period_end=day,
                current_total=current,
                prior_year_total=py_total,
                yoy_pct=growth_pct(current, py_total),
                observed_days=int(counts[timestamp]),
            ))
        return aggregates


def aggregate(source, start=None, end=None, frequency=Frequency.DAILY,
              range_days=DEFAULT_RANGE_DAYS) -> List[WindowAggregate]:
    """Functional entry point: the ordered buckets for ``source`` over the resolved range."""
    return GrowthRollup(source, start, end, frequency, range_days).aggregates
