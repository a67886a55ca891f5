# SPDX-License-Identifier: Apache-2.0
"""
Named constants for the rollup-and-growth engine.

These constants replace magic numbers throughout the codebase so the
comparison windows behind every YoY/MoM/WoW figure are self-documenting.
"""

# ---------------------------------------------------------------------------
# Date formats
# ---------------------------------------------------------------------------
CANONICAL_DATE_FORMAT = '%Y-%m-%d'  # storage key, zero padded so it sorts lexically
DISPLAY_DATE_FORMAT = '%d-%m-%Y'  # import/export and period labels
MONTH_LABEL_FORMAT = '%Y-%m'
WEEK_LABEL_PREFIX = 'Wk of '

# ---------------------------------------------------------------------------
# Year-over-year offsets
# ---------------------------------------------------------------------------
PY_WEEKLY_OFFSET_DAYS = 364  # 52 weeks exactly, preserves weekday alignment
WOW_OFFSET_DAYS = 7
ROLLING_PY_OFFSET_DAYS = 365  # rolling windows compare against the window ending 365 days earlier
DAYS_PER_WEEK = 7

# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------
ROLLING_WINDOW_DAYS = 30
KPI_SHORT_WINDOW_DAYS = 7
KPI_LONG_WINDOW_DAYS = 30
MONTHLY_HISTORY_MONTHS = 24
WEEKLY_PERIOD_FREQ = 'W-SUN'  # pandas period whose weeks run Monday through Sunday
MONTHLY_PERIOD_FREQ = 'M'

# ---------------------------------------------------------------------------
# Query range
# ---------------------------------------------------------------------------
DEFAULT_RANGE_DAYS = 120
MIN_RANGE_DAYS = 7
MAX_RANGE_DAYS = 3650

# ---------------------------------------------------------------------------
# Fiscal calendar
# ---------------------------------------------------------------------------
FISCAL_YEAR_START_MONTH = 4  # fiscal year runs April 1 through March 31
FISCAL_YEAR_START_MONTH_ABBR = 'APR'

# ---------------------------------------------------------------------------
# Comparison scaling and output
# ---------------------------------------------------------------------------
PCT_MULTIPLIER = 100  # percent-change metrics: ((CY - PY) / PY) * 100
OUTPUT_PRECISION = 2  # decimals applied only when results leave the engine

# ---------------------------------------------------------------------------
# Tabular input
# ---------------------------------------------------------------------------
DEFAULT_VALUE_COLUMN_KEY = 'generation_gwh'
DEFAULT_UNIT_TOKEN = 'gwh'
DEFAULT_DELIMITER = ','
THOUSANDS_SEPARATOR = ','
HEADER_DATE_TOKEN = 'date'
