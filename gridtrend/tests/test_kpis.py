# SPDX-License-Identifier: Apache-2.0
"""
Behavioral tests for KPIReporter in kpis.py.

The main scenario holds a constant 5.0 per day in 2023 and 10.0 per day in
2024 over the same calendar span, so every year-over-year KPI is +100%.
"""
import datetime
from concurrent.futures import ThreadPoolExecutor

import pytest

from gridtrend.kpis import KPIReporter, compute_kpis, fiscal_year_start
from gridtrend.models import KPISnapshot

D = datetime.date


@pytest.fixture
def doubled_store(make_store, daily_records):
    # 01-04 through 10-05 in both years: 40 days
    return make_store(daily_records(D(2023, 4, 1), 40, 5.0) + daily_records(D(2024, 4, 1), 40, 10.0))


class TestFiscalYearStart:
    @pytest.mark.parametrize("day, expected", [
        (D(2024, 4, 1), D(2024, 4, 1)),
        (D(2024, 5, 10), D(2024, 4, 1)),
        (D(2024, 12, 31), D(2024, 4, 1)),
        (D(2024, 3, 31), D(2023, 4, 1)),
        (D(2024, 2, 29), D(2023, 4, 1)),
    ])
    def test_april_start(self, day, expected):
        assert fiscal_year_start(day) == expected

    def test_custom_start_month(self):
        assert fiscal_year_start(D(2024, 9, 30), start_month=10) == D(2023, 10, 1)
        assert fiscal_year_start(D(2024, 10, 1), start_month=10) == D(2024, 10, 1)

    def test_concurrent_calendars_do_not_interfere(self):
        cases = [(D(2024, 9, 30), 4, D(2024, 4, 1)), (D(2024, 9, 30), 10, D(2023, 10, 1))] * 200
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda case: fiscal_year_start(case[0], start_month=case[1]), cases))

        assert results == [expected for _, _, expected in cases]


class TestComputeKpis:
    def test_latest(self, doubled_store):
        kpis = compute_kpis(doubled_store)

        assert kpis.latest_date == D(2024, 5, 10)
        assert kpis.latest_value == 10.0
        assert kpis.latest_yoy_pct == pytest.approx(100.0)

    def test_trailing_averages(self, doubled_store):
        kpis = compute_kpis(doubled_store)

        assert kpis.avg7 == pytest.approx(10.0)
        assert kpis.avg7_yoy_pct == pytest.approx(100.0)
        assert kpis.avg30 == pytest.approx(10.0)
        assert kpis.avg30_yoy_pct == pytest.approx(100.0)

    def test_fiscal_year_to_date(self, doubled_store):
        kpis = compute_kpis(doubled_store)

        assert kpis.fiscal_year_start == D(2024, 4, 1)
        assert kpis.ytd_total == pytest.approx(400.0)
        assert kpis.ytd_yoy_pct == pytest.approx(100.0)

    def test_month_to_date(self, doubled_store):
        kpis = compute_kpis(doubled_store)

        assert kpis.mtd_avg == pytest.approx(10.0)
        assert kpis.mtd_yoy_pct == pytest.approx(100.0)

    def test_ytd_excludes_previous_fiscal_year(self, make_store):
        """March belongs to the previous fiscal year once April starts."""
        store = make_store({D(2024, 3, 31): 1000, D(2024, 4, 1): 7, D(2024, 4, 2): 3})
        assert compute_kpis(store).ytd_total == pytest.approx(10.0)

    def test_ytd_in_january_spans_previous_calendar_year(self, make_store):
        store = make_store({D(2023, 3, 31): 1000, D(2023, 4, 1): 7, D(2024, 1, 15): 3})
        kpis = compute_kpis(store)

        assert kpis.fiscal_year_start == D(2023, 4, 1)
        assert kpis.ytd_total == pytest.approx(10.0)

    def test_custom_fiscal_start_month(self, make_store):
        store = make_store({D(2024, 1, 1): 2, D(2024, 3, 31): 1000, D(2024, 4, 1): 7})
        assert KPIReporter(store, fiscal_year_start_month=1).compute().ytd_total == pytest.approx(1009.0)

    def test_leap_day_compares_against_feb_28(self, make_store):
        store = make_store({D(2023, 2, 28): 100, D(2024, 2, 29): 110})
        kpis = compute_kpis(store)

        assert kpis.latest_date == D(2024, 2, 29)
        assert kpis.latest_yoy_pct == pytest.approx(10.0)
        assert kpis.mtd_yoy_pct == pytest.approx(10.0)

    def test_missing_prior_year_leaves_yoy_empty(self, make_store, daily_records):
        kpis = compute_kpis(make_store(daily_records(D(2024, 4, 1), 10, 3.0)))

        assert kpis.avg7 == pytest.approx(3.0)
        assert kpis.avg7_yoy_pct is None
        assert kpis.latest_yoy_pct is None
        assert kpis.ytd_yoy_pct is None

    def test_averages_skip_missing_days(self, make_store):
        store = make_store({D(2024, 5, 4): 4, D(2024, 5, 10): 8})
        assert compute_kpis(store).avg7 == pytest.approx(6.0)

    def test_empty_store(self, make_store):
        assert compute_kpis(make_store()) == KPISnapshot()
