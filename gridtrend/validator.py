import logging
from datetime import datetime

from gridtrend.date_keys import parse_date_key
from gridtrend.models import Frequency

logger = logging.getLogger(__name__)
fiscal_month_format = '%b'


def _line(section) -> str:
    return section.get('__line__', '?') if isinstance(section, dict) else '?'


def fiscal_start_month_number(abbreviation: str) -> int:
    """Convert a three-letter month abbreviation (APR) into its month number."""
    return datetime.strptime(str(abbreviation).strip().title(), fiscal_month_format).month


class GridTrendValidator:
    def __init__(self, cfg: dict):
        """
        Initializes the GridTrendValidator that validates the yaml report configuration.

        Args:
            cfg (dict): The YAML configuration loaded with SafeLineLoader.
        """
        self.cfg = cfg

    def validate_yaml(self):
        self.check_setup()
        self.check_query()

    def check_setup(self):
        """
        Checks the setup section of the configuration.

        Raises:
            KeyError: If the 'setup' section or its 'value_column_key' is missing.
            ValueError: If delimiter, fiscal_year_start_month or range_days are malformed.
        """
        if not isinstance(self.cfg, dict) or not isinstance(self.cfg.get('setup'), dict):
            raise KeyError("The configuration must contain a 'setup' section")
        setup = self.cfg['setup']

        if not setup.get('value_column_key'):
            raise KeyError(f"Error in SETUP section, value_column_key is missing at line {_line(setup)}")

        if 'delimiter' in setup and (not isinstance(setup['delimiter'], str) or len(setup['delimiter']) != 1):
            raise ValueError(f"delimiter must be a single character, got '{setup['delimiter']}' at line: "
                             f"{_line(setup)}")

        if 'fiscal_year_start_month' in setup:
            try:
                fiscal_start_month_number(setup['fiscal_year_start_month'])
            except ValueError:
                raise ValueError(f"fiscal_year_start_month is in an invalid format, example of correct format: APR, "
                                 f"at line: {_line(setup)}")

        if 'range_days' in setup and (isinstance(setup['range_days'], bool)
                                      or not isinstance(setup['range_days'], int)):
            raise ValueError(f"range_days must be a whole number of days, got '{setup['range_days']}' at line: "
                             f"{_line(setup)}")

    def check_query(self):
        """
        Checks the optional query section: frequency and the from/to bounds.

        Raises:
            ValueError: If the frequency is unknown or a bound is not a valid date.
        """
        query = self.cfg.get('query')
        if query is None:
            return
        if not isinstance(query, dict):
            raise ValueError("The 'query' section must be a mapping")

        if 'frequency' in query:
            try:
                Frequency.parse(query['frequency'])
            except ValueError as e:
                raise ValueError(f"{e} at line: {_line(query)}")

        for bound in ('from', 'to'):
            if query.get(bound) is not None and parse_date_key(str(query[bound])) is None:
                raise ValueError(f"'{bound}' is in an invalid format, example of correct format: 25-09-2024, "
                                 f"at line: {_line(query)}")
