"""
Sparse day -> value container backing every rollup query.
"""
import logging
import math
import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

import pandas as pd

from gridtrend.date_keys import format_dd_mm_yyyy, parse_date_key
from gridtrend.models import DailyRecord

logger = logging.getLogger(__name__)

RecordLike = Union[DailyRecord, Tuple[object, object]]


def _validate(day, value) -> Tuple[date, float]:
    parsed = parse_date_key(day)
    if parsed is None:
        raise ValueError(f"Invalid date '{day}', expected DD-MM-YYYY or YYYY-MM-DD")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value '{value}' for {format_dd_mm_yyyy(parsed)}, expected a number")
    if not math.isfinite(number) or number < 0:
        raise ValueError(f"Invalid value '{value}' for {format_dd_mm_yyyy(parsed)}, expected a non-negative number")
    return parsed, number + 0.0


class SortedRecords:
    """
    Ascending view over a store.

    Every ``iter()`` call takes a fresh point-in-time copy, so the view can be
    traversed any number of times and never observes a half-applied merge.
    """

    def __init__(self, store: 'TimeSeriesStore'):
        self._store = store

    def __iter__(self) -> Iterator[DailyRecord]:
        for day, value in self._store.items():
            yield DailyRecord(day, value)

    def __len__(self):
        return len(self._store)


class TimeSeriesStore:
    """
    Holds at most one non-negative value per calendar day.

    Missing days mean "no observation", never zero. Writers and snapshot
    readers share one re-entrant lock.
    """

    def __init__(self, records: Optional[Iterable[RecordLike]] = None):
        self._values: Dict[date, float] = {}
        self._lock = threading.RLock()
        if records is not None:
            self.merge(records)

    @contextmanager
    def locked(self):
        with self._lock:
            yield self

    def upsert(self, day, value) -> date:
        parsed, number = _validate(day, value)
        with self._lock:
            self._values[parsed] = number
        return parsed

    def remove(self, day) -> bool:
        parsed = parse_date_key(day)
        if parsed is None:
            return False
        with self._lock:
            return self._values.pop(parsed, None) is not None

    def merge(self, records: Iterable[RecordLike]) -> int:
        """
        Upsert a batch of records, last write wins.

        The whole batch is validated before anything is applied, so an invalid
        record leaves the store untouched.

        Returns:
            int: Number of records applied.
        """
        validated: List[Tuple[date, float]] = []
        for record in records:
            if isinstance(record, DailyRecord):
                validated.append(_validate(record.date, record.value))
            else:
                day, value = record
                validated.append(_validate(day, value))

        with self._lock:
            for day, value in validated:
                self._values[day] = value
        logger.debug(f"Merged {len(validated)} records, store now holds {len(self._values)} days")
        return len(validated)

    def replace(self, records: Iterable[RecordLike]) -> int:
        """Swap the contents for ``records`` in a single critical section."""
        with self._lock:
            staged = TimeSeriesStore(records)
            self._values = dict(staged._values)
            return len(self._values)

    def clear(self):
        with self._lock:
            self._values.clear()

    def get(self, day) -> Optional[float]:
        parsed = parse_date_key(day)
        if parsed is None:
            return None
        with self._lock:
            return self._values.get(parsed)

    def items(self) -> List[Tuple[date, float]]:
        with self._lock:
            return sorted(self._values.items())

    def sorted_sequence(self) -> SortedRecords:
        return SortedRecords(self)

    def latest(self) -> Optional[DailyRecord]:
        with self._lock:
            if not self._values:
                return None
            day = max(self._values)
            return DailyRecord(day, self._values[day])

    def snapshot(self) -> pd.Series:
        """
        Immutable read view used by every query.

        Returns:
            pd.Series: Float values on an ascending DatetimeIndex named ``Date``.
        """
        items = self.items()
        index = pd.DatetimeIndex(pd.to_datetime([day for day, _ in items]), name='Date')
        return pd.Series([value for _, value in items], index=index, dtype='float64', name='value')

    def __len__(self):
        with self._lock:
            return len(self._values)

    def __contains__(self, day):
        parsed = parse_date_key(day)
        with self._lock:
            return parsed in self._values
