"""
Two-column ``date,value`` text ingestion and export.

Parsing never raises on content: malformed rows are reported as ``RowError``
entries and skipped, and a text without a single valid row comes back as an
empty ``IngestResult`` for the caller to surface.
"""
import csv
import io
import logging
import math
import re
from typing import Iterable, List, Optional, Union

import pandas as pd

from gridtrend.constants import (
    DEFAULT_DELIMITER,
    DEFAULT_UNIT_TOKEN,
    DEFAULT_VALUE_COLUMN_KEY,
    HEADER_DATE_TOKEN,
    THOUSANDS_SEPARATOR,
)
from gridtrend.date_keys import format_dd_mm_yyyy, parse_date_key
from gridtrend.models import DailyRecord, IngestResult, RowError
from gridtrend.store import TimeSeriesStore

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r'^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?$')

SAMPLE_ROWS = [
    ('18-12-2025', 4140),
    ('19-12-2025', 4215),
    ('20-12-2025', 4198),
]


def _split_rows(text: str, delimiter: str) -> List[List[str]]:
    """
    Tokenize the text into trimmed cell lists, honoring quoted cells.

    Trailing empty cells are dropped, and rows left with fewer than two cells
    are discarded.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []
    # wide enough for the longest line so ragged rows are padded, never rejected
    width = max(2, max(line.count(delimiter) for line in lines) + 1)
    try:
        frame = _read_cells(lines, delimiter, width, csv.QUOTE_MINIMAL)
    except pd.errors.ParserError:
        logger.warning("Unbalanced quotes in input, reading cells without quote handling")
        frame = _read_cells(lines, delimiter, width, csv.QUOTE_NONE)

    rows = []
    for cells in frame.fillna('').values.tolist():
        cells = [str(cell).strip() for cell in cells]
        while cells and not cells[-1]:
            cells.pop()
        if len(cells) >= 2:
            rows.append(cells)
    return rows


def _read_cells(lines: List[str], delimiter: str, width: int, quoting: int) -> pd.DataFrame:
    return pd.read_csv(io.StringIO('\n'.join(lines)), sep=delimiter, header=None, names=list(range(width)),
                       index_col=False, dtype=str, keep_default_na=False, skipinitialspace=True,
                       skip_blank_lines=True, quoting=quoting)


def _is_header(row: List[str], value_column_key: str, unit_token: str) -> bool:
    first, second = row[0].lower(), row[1].lower()
    if HEADER_DATE_TOKEN not in first:
        return False
    return value_column_key.lower() in second or (bool(unit_token) and unit_token.lower() in second)


def parse_value(raw: str) -> Optional[float]:
    """
    Parse a non-negative decimal, tolerating thousands separators.

    Returns:
        float: The value, or None when it is not a plain finite number or is negative.
    """
    text = raw.replace(THOUSANDS_SEPARATOR, '').strip()
    if not NUMBER_PATTERN.match(text):
        return None
    value = float(text)
    if not math.isfinite(value) or value < 0:
        return None
    # "-0" is stored as 0.0
    return value + 0.0


def parse_csv(text: str, value_column_key: str = DEFAULT_VALUE_COLUMN_KEY, unit_token: str = DEFAULT_UNIT_TOKEN,
              delimiter: str = DEFAULT_DELIMITER) -> IngestResult:
    """
    Parse two-column tabular text into daily records.

    Args:
        text (str): Raw text, one ``date<delimiter>value`` row per line, optional header.
        value_column_key (str): Column keyword that marks the first row as a header.
        unit_token (str): Alternative header keyword, e.g. the unit name.
        delimiter (str): Cell separator.

    Returns:
        IngestResult: Valid records in input order and one RowError per rejected row.
    """
    rows = _split_rows(text or '', delimiter)
    if rows and _is_header(rows[0], value_column_key, unit_token):
        rows = rows[1:]

    result = IngestResult()
    for row_number, row in enumerate(rows, start=1):
        if len(row) > 2:
            extra = ', '.join(row[2:])
            result.errors.append(
                RowError(row_number, f"Row {row_number}: unexpected extra columns '{extra}' (expected date,value)"))
            continue
        raw_date, raw_value = row[0], row[1]
        day = parse_date_key(raw_date)
        if day is None:
            result.errors.append(
                RowError(row_number, f"Row {row_number}: invalid date '{raw_date}' (expected DD-MM-YYYY)"))
            continue
        value = parse_value(raw_value)
        if value is None:
            result.errors.append(
                RowError(row_number, f"Row {row_number}: invalid value '{raw_value}' (expected non-negative number)"))
            continue
        result.records.append(DailyRecord(day, value))

    if result.is_empty:
        logger.warning(f"No valid rows found ({len(result.errors)} rejected)")
    else:
        logger.info(f"Parsed {len(result.records)} rows with {len(result.errors)} issues")
    return result


def export_csv(source: Union[TimeSeriesStore, Iterable[DailyRecord]],
               value_column_key: str = DEFAULT_VALUE_COLUMN_KEY) -> str:
    """
    Render records as ``date,<value_column_key>`` text, ascending by date.

    Dates are written as DD-MM-YYYY and values with their shortest round-trip repr, so
    feeding the output back into ``parse_csv`` reproduces the same pairs.
    """
    records = source.sorted_sequence() if isinstance(source, TimeSeriesStore) else sorted(
        source, key=lambda record: record.date)
    records = list(records)
    frame = pd.DataFrame({
        'date': [format_dd_mm_yyyy(record.date) for record in records],
        value_column_key: pd.Series([record.value for record in records], dtype='float64'),
    })
    buffer = io.StringIO()
    frame.to_csv(buffer, index=False, lineterminator='\n')
    return buffer.getvalue()


def sample_csv(value_column_key: str = DEFAULT_VALUE_COLUMN_KEY) -> str:
    lines = [f"date,{value_column_key}"] + [f"{day},{value}" for day, value in SAMPLE_ROWS]
    return '\n'.join(lines) + '\n'
