import dataclasses
import datetime
import logging
from enum import Enum
from json import JSONEncoder
from typing import List, Optional

import yaml
from yaml import SafeLoader

import gridtrend.rollup_utility as rollup_util
from gridtrend.constants import (
    DEFAULT_RANGE_DAYS,
    FISCAL_YEAR_START_MONTH_ABBR,
    MONTHLY_HISTORY_MONTHS,
    OUTPUT_PRECISION,
)
from gridtrend.date_keys import format_dd_mm_yyyy, parse_date_key
from gridtrend.kpis import KPIReporter
from gridtrend.models import Frequency, IngestResult, KPISnapshot, WindowAggregate
from gridtrend.rollup import GrowthRollup
from gridtrend.store import TimeSeriesStore
from gridtrend.validator import fiscal_start_month_number


class GrowthDeck:
    def __init__(self):
        self.title = ""
        self.seriesLabel = ""
        self.unitLabel = ""
        self.frequency = Frequency.DAILY.value
        self.rangeFrom = None
        self.rangeTo = None
        self.latestDate = None
        self.kpis = {}
        self.aggregates = []
        self.monthlyHistory = []
        self.controlLines = None
        self.errors = []


class Encoder(JSONEncoder):
    def default(self, o):
        if isinstance(o, (datetime.date, datetime.datetime)):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        if dataclasses.is_dataclass(o):
            return dataclasses.asdict(o)
        return o.__dict__


class SafeLineLoader(SafeLoader):
    def construct_mapping(self, node, deep=False):
        mapping = super(SafeLineLoader, self).construct_mapping(node, deep=deep)
        # Add 1 so line numbering starts at 1
        mapping['__line__'] = node.start_mark.line + 1
        return mapping


def round_output(value, ndigits: int = OUTPUT_PRECISION) -> Optional[float]:
    """Round once at the presentation boundary; missing values stay None."""
    value = rollup_util.to_optional_float(value)
    return None if value is None else round(value, ndigits)


def present_aggregate(aggregate: WindowAggregate) -> dict:
    return {
        'label': aggregate.period_label,
        'periodStart': aggregate.period_start.isoformat(),
        'periodEnd': aggregate.period_end.isoformat(),
        'current': round_output(aggregate.current_total),
        'priorPeriod': round_output(aggregate.prior_period_total),
        'priorYear': round_output(aggregate.prior_year_total),
        'periodOverPeriodPct': round_output(aggregate.period_over_period_pct),
        'yoyPct': round_output(aggregate.yoy_pct),
        'maxDay': aggregate.max_day,
        'observedDays': aggregate.observed_days,
    }


def present_kpis(snapshot: KPISnapshot) -> dict:
    presented = {}
    for kpi_field in dataclasses.fields(snapshot):
        value = getattr(snapshot, kpi_field.name)
        if isinstance(value, datetime.date):
            presented[kpi_field.name] = format_dd_mm_yyyy(value)
        else:
            presented[kpi_field.name] = round_output(value)
    return presented


def present_control_lines(aggregates: List[WindowAggregate]) -> dict:
    limits = {
        'totals': rollup_util.compute_control_limits([a.current_total for a in aggregates]),
        'yoyPct': rollup_util.compute_control_limits([a.yoy_pct for a in aggregates]),
    }
    return {name: None if band is None else {k: round_output(v) for k, v in band.items()}
            for name, band in limits.items()}


def get_query_params(cfg: dict, overrides: Optional[dict] = None) -> dict:
    """
    Merge the config's setup/query sections with request overrides.

    Returns:
        dict: frequency, start, end, range_days, fiscal_year_start_month and control_lines.
    """
    setup = cfg.get('setup') or {}
    query = dict(cfg.get('query') or {})
    query.update({k: v for k, v in (overrides or {}).items() if v not in (None, '')})
    return {
        'frequency': Frequency.parse(query.get('frequency', Frequency.DAILY)),
        'start': _as_text(query.get('from')),
        'end': _as_text(query.get('to')),
        'range_days': int(query.get('range_days', setup.get('range_days', DEFAULT_RANGE_DAYS))),
        'fiscal_year_start_month': fiscal_start_month_number(
            setup.get('fiscal_year_start_month', FISCAL_YEAR_START_MONTH_ABBR)),
        'control_lines': str(query.get('control_lines', False)).lower() in ('true', '1', 'yes'),
    }


def check_query_overrides(overrides: dict) -> None:
    """
    Reject request overrides that cannot be applied to a query.

    Raises:
        ValueError: On an unknown frequency, a non-integer range_days or an unparsable from/to date.
    """
    if overrides.get('frequency'):
        Frequency.parse(overrides['frequency'])
    if overrides.get('range_days'):
        try:
            int(overrides['range_days'])
        except ValueError:
            raise ValueError(f"Invalid 'range_days' '{overrides['range_days']}', expected a whole number of days")
    for bound in ('from', 'to'):
        if overrides.get(bound) and parse_date_key(overrides[bound]) is None:
            raise ValueError(f"Invalid '{bound}' date '{overrides[bound]}', expected DD-MM-YYYY or YYYY-MM-DD")


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value)


def get_growth_deck(cfg: dict, store: TimeSeriesStore, ingest_result: IngestResult = None,
                    overrides: Optional[dict] = None) -> GrowthDeck:
    """
    Assemble the JSON-ready report for a store.

    Args:
        cfg (dict): The report YAML configuration.
        store (TimeSeriesStore): The populated store.
        ingest_result (IngestResult, optional): Parse outcome whose row errors are reported alongside.
        overrides (dict, optional): Request level replacements for the query section.

    Returns:
        GrowthDeck: Rounded aggregates, KPIs, monthly history and optional control lines.
    """
    setup = cfg.get('setup') or {}
    params = get_query_params(cfg, overrides)
    snapshot = store.snapshot()

    rollup = GrowthRollup(snapshot, params['start'], params['end'], params['frequency'], params['range_days'])
    kpis = KPIReporter(snapshot, params['fiscal_year_start_month']).compute()

    deck = GrowthDeck()
    deck.title = setup.get('title', "")
    deck.seriesLabel = setup.get('series_label', "")
    deck.unitLabel = setup.get('unit_label', "")
    deck.frequency = params['frequency'].value
    deck.rangeFrom = format_dd_mm_yyyy(rollup.start) if rollup.start else None
    deck.rangeTo = format_dd_mm_yyyy(rollup.end) if rollup.end else None
    deck.latestDate = format_dd_mm_yyyy(kpis.latest_date) if kpis.latest_date else None
    deck.kpis = present_kpis(kpis)
    deck.aggregates = [present_aggregate(aggregate) for aggregate in rollup.aggregates]

    if not snapshot.empty:
        history = GrowthRollup(snapshot, snapshot.index[0].date(), snapshot.index[-1].date(), Frequency.MONTHLY)
        deck.monthlyHistory = [present_aggregate(a) for a in history.aggregates[-MONTHLY_HISTORY_MONTHS:]]

    if params['control_lines']:
        deck.controlLines = present_control_lines(rollup.aggregates)
    if ingest_result is not None:
        deck.errors = ingest_result.error_messages
    return deck


def load_yaml_from_stream(config_file):
    """Load a YAML config from an uploaded file, tagging every mapping with its line number."""
    content = config_file.read()
    if isinstance(content, bytes):
        content = content.decode('utf-8')
    try:
        return yaml.load(content, SafeLineLoader) or {}
    except yaml.YAMLError as e:
        logging.error(e, exc_info=True)
        raise ValueError(f"Could not build growth metrics due to incorrect yaml, caused by: {e}")
