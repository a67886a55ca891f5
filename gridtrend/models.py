"""
Plain data records exchanged between the store, the engine and the shell.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class Frequency(str, Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    ROLLING30 = 'rolling30'

    @classmethod
    def parse(cls, value) -> 'Frequency':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ', '.join(member.value for member in cls)
            raise ValueError(f"Unsupported frequency '{value}', expected one of: {allowed}")


@dataclass(frozen=True)
class DailyRecord:
    date: date
    value: float


@dataclass
class WindowAggregate:
    """
    One bucket of an aggregation series.

    Attributes:
        period_label (str): Human readable label for the bucket.
        period_start (date): First calendar day covered by the bucket.
        period_end (date): Last calendar day covered by the bucket.
        current_total (float): Sum of the observed values, None only for an empty rolling window.
        prior_period_total (float): Comparable prior period (previous month or week), if any.
        prior_year_total (float): Comparable window one year earlier, if any.
        period_over_period_pct (float): Growth against prior_period_total.
        yoy_pct (float): Growth against prior_year_total.
        max_day (int): Largest day-of-month observed, monthly buckets only.
        observed_days (int): Number of stored days summed into current_total.
    """
    period_label: str
    period_start: date
    period_end: date
    current_total: Optional[float]
    prior_period_total: Optional[float] = None
    prior_year_total: Optional[float] = None
    period_over_period_pct: Optional[float] = None
    yoy_pct: Optional[float] = None
    max_day: Optional[int] = None
    observed_days: int = 0


@dataclass
class KPISnapshot:
    latest_date: Optional[date] = None
    latest_value: Optional[float] = None
    latest_yoy_pct: Optional[float] = None
    avg7: Optional[float] = None
    avg7_yoy_pct: Optional[float] = None
    avg30: Optional[float] = None
    avg30_yoy_pct: Optional[float] = None
    ytd_total: Optional[float] = None
    ytd_yoy_pct: Optional[float] = None
    mtd_avg: Optional[float] = None
    mtd_yoy_pct: Optional[float] = None
    fiscal_year_start: Optional[date] = None


@dataclass(frozen=True)
class RowError:
    row_number: int
    message: str


@dataclass
class IngestResult:
    records: List[DailyRecord] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when no valid row survived parsing."""
        return not self.records

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_messages(self) -> List[str]:
        return [error.message for error in self.errors]
