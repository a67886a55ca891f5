# SPDX-License-Identifier: Apache-2.0
"""
Shared fixtures for the gridtrend test suite.

Provides small builders for stores filled with hand-crafted daily series so
each test can state exactly which days carry data.
"""
from datetime import date, timedelta

import pytest

from gridtrend.store import TimeSeriesStore


def _daily_records(start, days, value):
    """Yield (date, value) pairs for ``days`` consecutive days; ``value`` may be a callable of the offset."""
    for offset in range(days):
        yield start + timedelta(days=offset), value(offset) if callable(value) else value


@pytest.fixture
def daily_records():
    """Factory fixture: daily_records(date(2024, 1, 1), 10, 5.0) -> list of (date, value)."""
    return lambda start, days, value: list(_daily_records(start, days, value))


@pytest.fixture
def make_store():
    """Factory fixture: make_store({date: value, ...}) or make_store([(date, value), ...])."""
    def _make(records=None):
        store = TimeSeriesStore()
        if records:
            store.merge(records.items() if isinstance(records, dict) else records)
        return store
    return _make


@pytest.fixture
def csv_text():
    """Two years of constant daily values: 5.0 through 2023 and 10.0 from 2024 on."""
    lines = ["date,generation_gwh"]
    for day, value in _daily_records(date(2023, 1, 1), 365, 5.0):
        lines.append(f"{day:%d-%m-%Y},{value}")
    for day, value in _daily_records(date(2024, 1, 1), 91, 10.0):
        lines.append(f"{day:%d-%m-%Y},{value}")
    return "\n".join(lines) + "\n"
