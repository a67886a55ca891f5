"""
Headline KPIs anchored on the latest stored date.

Every comparator shifts its window back one calendar year with month-end
clamping, so a leap-day anchor (29-02-2024) compares against 28-02-2023.
"""
import logging
import threading
from datetime import date

import fiscalyear

import gridtrend.rollup_utility as rollup_util
from gridtrend.constants import FISCAL_YEAR_START_MONTH, KPI_LONG_WINDOW_DAYS, KPI_SHORT_WINDOW_DAYS
from gridtrend.date_keys import add_days, add_years
from gridtrend.growth import growth_pct
from gridtrend.models import KPISnapshot
from gridtrend.rollup import as_snapshot

logger = logging.getLogger(__name__)

# fiscal_calendar swaps fiscalyear's module-wide settings while it is open
_fiscal_calendar_lock = threading.Lock()


def fiscal_year_start(day: date, start_month: int = FISCAL_YEAR_START_MONTH) -> date:
    """
    First day of the fiscal year containing ``day``.

    The boundary year is the calendar year of ``day`` when its month is on or
    after ``start_month``, otherwise the year before.
    """
    with _fiscal_calendar_lock:
        with fiscalyear.fiscal_calendar(start_year='previous', start_month=start_month, start_day=1):
            fiscal_date = fiscalyear.FiscalDate(day.year, day.month, day.day)
            start = fiscalyear.FiscalYear(fiscal_date.fiscal_year).start
    return date(start.year, start.month, start.day)


class KPIReporter:
    """
        Computes the KPI snapshot for a store or snapshot series.

        Attributes:
            daily (pandas.Series): Snapshot of the store, values on an ascending DatetimeIndex.
            fiscal_year_start_month (int): Month (1-12) on which the fiscal year begins.
    """
    def __init__(self, source, fiscal_year_start_month: int = FISCAL_YEAR_START_MONTH):
        self.daily = as_snapshot(source)
        self.fiscal_year_start_month = fiscal_year_start_month

    def compute(self) -> KPISnapshot:
        if self.daily.empty:
            logger.info("No observations stored, returning an empty KPI snapshot")
            return KPISnapshot()

        latest = self.daily.index[-1].date()
        latest_value = float(self.daily.iloc[-1])
        py_latest = add_years(latest, -1)

        avg7, avg7_py = self._trailing_means(latest, KPI_SHORT_WINDOW_DAYS)
        avg30, avg30_py = self._trailing_means(latest, KPI_LONG_WINDOW_DAYS)

        fy_start = fiscal_year_start(latest, self.fiscal_year_start_month)
        ytd_total = rollup_util.window_sum(self.daily, fy_start, latest)
        ytd_py = rollup_util.window_sum(self.daily, add_years(fy_start, -1), py_latest)

        month_start = latest.replace(day=1)
        mtd_avg = rollup_util.window_mean(self.daily, month_start, latest)
        mtd_py = rollup_util.window_mean(self.daily, add_years(month_start, -1), py_latest)

        return KPISnapshot(
            latest_date=latest,
            latest_value=latest_value,
            latest_yoy_pct=growth_pct(latest_value, rollup_util.value_on(self.daily, py_latest)),
            avg7=avg7,
            avg7_yoy_pct=growth_pct(avg7, avg7_py),
            avg30=avg30,
            avg30_yoy_pct=growth_pct(avg30, avg30_py),
            ytd_total=ytd_total,
            ytd_yoy_pct=growth_pct(ytd_total, ytd_py),
            mtd_avg=mtd_avg,
            mtd_yoy_pct=growth_pct(mtd_avg, mtd_py),
            fiscal_year_start=fy_start,
        )

    def _trailing_means(self, latest: date, window_days: int):
        start = add_days(latest, -(window_days - 1))
        current = rollup_util.window_mean(self.daily, start, latest)
        prior_year = rollup_util.window_mean(self.daily, add_years(start, -1), add_years(latest, -1))
        return current, prior_year


def compute_kpis(source, fiscal_year_start_month: int = FISCAL_YEAR_START_MONTH) -> KPISnapshot:
    return KPIReporter(source, fiscal_year_start_month).compute()
