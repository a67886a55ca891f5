import copy
import unittest

import yaml

from gridtrend.controller_utility import SafeLineLoader
from gridtrend.validator import GridTrendValidator, fiscal_start_month_number


class TestGridTrendValidator(unittest.TestCase):

    def setUp(self):
        self.base_config = {
            "setup": {
                "__line__": 1,
                "title": "India Electricity Generation",
                "value_column_key": "generation_gwh",
                "unit_token": "gwh",
                "delimiter": ",",
                "fiscal_year_start_month": "APR",
                "range_days": 120,
            },
            "query": {
                "__line__": 9,
                "frequency": "monthly",
                "from": "01-09-2024",
                "to": "2024-12-31",
            },
        }

    def config_with(self, section, **values):
        config = copy.deepcopy(self.base_config)
        config[section].update(values)
        return config

    def test_valid_config_passes(self):
        GridTrendValidator(self.base_config).validate_yaml()

    def test_query_section_is_optional(self):
        config = copy.deepcopy(self.base_config)
        del config["query"]
        GridTrendValidator(config).validate_yaml()

    def test_missing_setup(self):
        with self.assertRaises(KeyError):
            GridTrendValidator({"query": {}}).validate_yaml()

    def test_missing_value_column_key_reports_line(self):
        config = copy.deepcopy(self.base_config)
        del config["setup"]["value_column_key"]
        with self.assertRaisesRegex(KeyError, "value_column_key is missing at line 1"):
            GridTrendValidator(config).validate_yaml()

    def test_delimiter_must_be_single_character(self):
        with self.assertRaisesRegex(ValueError, "delimiter"):
            GridTrendValidator(self.config_with("setup", delimiter=";;")).validate_yaml()

    def test_invalid_fiscal_month(self):
        with self.assertRaisesRegex(ValueError, "fiscal_year_start_month"):
            GridTrendValidator(self.config_with("setup", fiscal_year_start_month="XYZ")).validate_yaml()

    def test_range_days_must_be_integer(self):
        for bad_value in ("abc", 12.5, True):
            with self.subTest(bad_value=bad_value):
                with self.assertRaisesRegex(ValueError, "range_days"):
                    GridTrendValidator(self.config_with("setup", range_days=bad_value)).validate_yaml()

    def test_unknown_frequency_reports_line(self):
        with self.assertRaisesRegex(ValueError, "Unsupported frequency 'hourly'.*line: 9"):
            GridTrendValidator(self.config_with("query", frequency="hourly")).validate_yaml()

    def test_invalid_bounds(self):
        for bound in ("from", "to"):
            with self.subTest(bound=bound):
                with self.assertRaisesRegex(ValueError, f"'{bound}' is in an invalid format"):
                    GridTrendValidator(self.config_with("query", **{bound: "2024/01/01"})).validate_yaml()

    def test_line_numbers_from_yaml(self):
        content = (
            "setup:\n"
            "  title: Demand\n"
            "query:\n"
            "  frequency: weekly\n"
        )
        config = yaml.load(content, SafeLineLoader)
        with self.assertRaisesRegex(KeyError, "line 2"):
            GridTrendValidator(config).validate_yaml()

    def test_fiscal_start_month_number(self):
        self.assertEqual(fiscal_start_month_number("APR"), 4)
        self.assertEqual(fiscal_start_month_number("oct"), 10)


if __name__ == '__main__':
    unittest.main()
