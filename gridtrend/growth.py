from typing import Optional

import pandas as pd

from gridtrend.constants import PCT_MULTIPLIER


def _is_missing(value) -> bool:
    return value is None or bool(pd.isna(value))


def safe_div(numerator, denominator) -> Optional[float]:
    """Divide, returning None when either side is missing or the denominator is zero."""
    if _is_missing(numerator) or _is_missing(denominator) or denominator == 0:
        return None
    return numerator / denominator


def growth_pct(curr, prev) -> Optional[float]:
    """
    Percent change of ``curr`` over ``prev``.

    A missing or zero comparator gives None rather than an infinity; a zero
    current value against a positive comparator is a -100% change.
    """
    if _is_missing(curr) or _is_missing(prev):
        return None
    ratio = safe_div(curr - prev, prev)
    return None if ratio is None else float(ratio * PCT_MULTIPLIER)
