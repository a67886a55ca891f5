# SPDX-License-Identifier: Apache-2.0
"""
Behavioral tests for date key parsing and calendar arithmetic in date_keys.py.
"""
import datetime

import pandas as pd
import pytest

from gridtrend.date_keys import (
    add_days,
    add_months,
    add_years,
    compare_keys,
    format_dd_mm_yyyy,
    format_key,
    is_last_day_of_month,
    last_day_of_month,
    normalize_date_key,
    parse_date_key,
    same_day_previous_month,
    start_of_week,
)


# ---------------------------------------------------------------------------
# parse_date_key / normalize_date_key
# ---------------------------------------------------------------------------

class TestParseDateKey:
    def test_dd_mm_yyyy(self):
        assert parse_date_key("05-03-2024") == datetime.date(2024, 3, 5)

    def test_iso(self):
        assert parse_date_key("2024-03-05") == datetime.date(2024, 3, 5)

    def test_surrounding_whitespace_is_trimmed(self):
        assert parse_date_key("  05-03-2024 ") == datetime.date(2024, 3, 5)

    def test_leap_day_in_leap_year(self):
        assert parse_date_key("29-02-2024") == datetime.date(2024, 2, 29)

    @pytest.mark.parametrize("raw", [
        "31-02-2024",   # day does not exist
        "29-02-2023",   # not a leap year
        "00-01-2024",
        "01-13-2024",
        "5-3-2024",     # not zero padded
        "2024/03/05",
        "05.03.2024",
        "",
        "date",
    ])
    def test_rejects_malformed_or_impossible_dates(self, raw):
        assert parse_date_key(raw) is None

    def test_non_string_input_is_rejected(self):
        assert parse_date_key(None) is None
        assert parse_date_key(20240305) is None

    def test_date_like_inputs_pass_through(self):
        assert parse_date_key(datetime.date(2024, 3, 5)) == datetime.date(2024, 3, 5)
        assert parse_date_key(datetime.datetime(2024, 3, 5, 13, 30)) == datetime.date(2024, 3, 5)
        assert parse_date_key(pd.Timestamp("2024-03-05")) == datetime.date(2024, 3, 5)

    def test_normalize_returns_canonical_key(self):
        assert normalize_date_key("05-03-2024") == "2024-03-05"
        assert normalize_date_key("2024-03-05") == "2024-03-05"
        assert normalize_date_key("31-04-2024") is None


class TestFormatting:
    def test_format_key_is_zero_padded(self):
        assert format_key(datetime.date(2024, 1, 5)) == "2024-01-05"

    def test_format_dd_mm_yyyy(self):
        assert format_dd_mm_yyyy(datetime.date(2024, 1, 5)) == "05-01-2024"

    def test_compare_keys_follows_date_order(self):
        assert compare_keys("2023-12-31", "2024-01-01") == -1
        assert compare_keys("2024-01-01", "2024-01-01") == 0
        assert compare_keys("2024-10-01", "2024-09-30") == 1


# ---------------------------------------------------------------------------
# Calendar arithmetic
# ---------------------------------------------------------------------------

class TestCalendarArithmetic:
    def test_add_days_crosses_month(self):
        assert add_days(datetime.date(2024, 1, 30), 3) == datetime.date(2024, 2, 2)

    def test_add_years_clamps_leap_day(self):
        """29-02 one year back has no counterpart and falls back to 28-02."""
        assert add_years(datetime.date(2024, 2, 29), -1) == datetime.date(2023, 2, 28)

    def test_add_years_regular_day(self):
        assert add_years(datetime.date(2024, 7, 15), -1) == datetime.date(2023, 7, 15)

    def test_add_months_clamps_to_month_end(self):
        assert add_months(datetime.date(2024, 3, 31), -1) == datetime.date(2024, 2, 29)

    def test_same_day_previous_month(self):
        assert same_day_previous_month(datetime.date(2024, 3, 15)) == datetime.date(2024, 2, 15)

    def test_same_day_previous_month_crosses_year(self):
        assert same_day_previous_month(datetime.date(2024, 1, 10)) == datetime.date(2023, 12, 10)

    def test_same_day_previous_month_missing_day(self):
        """31-03 has no 31-02, so there is no comparable day."""
        assert same_day_previous_month(datetime.date(2024, 3, 31)) is None
        assert same_day_previous_month(datetime.date(2023, 3, 29)) is None

    def test_start_of_week_is_monday(self):
        assert start_of_week(datetime.date(2024, 1, 10)) == datetime.date(2024, 1, 8)
        assert start_of_week(datetime.date(2024, 1, 8)) == datetime.date(2024, 1, 8)
        assert start_of_week(datetime.date(2024, 1, 14)) == datetime.date(2024, 1, 8)

    def test_last_day_of_month(self):
        assert last_day_of_month(datetime.date(2024, 2, 10)) == datetime.date(2024, 2, 29)


class TestIsLastDayOfMonth:
    def test_last_day_jan(self):
        assert is_last_day_of_month(datetime.date(2023, 1, 31)) is True

    def test_not_last_day(self):
        assert is_last_day_of_month(datetime.date(2023, 1, 30)) is False

    def test_feb_leap_year_28th(self):
        """Feb 28 in a leap year is NOT the last day."""
        assert is_last_day_of_month(datetime.date(2024, 2, 28)) is False

    def test_feb_leap_year_29th(self):
        assert is_last_day_of_month(datetime.date(2024, 2, 29)) is True
