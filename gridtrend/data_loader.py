import logging
import os

from gridtrend.constants import DEFAULT_DELIMITER, DEFAULT_UNIT_TOKEN, DEFAULT_VALUE_COLUMN_KEY
from gridtrend.ingest import parse_csv
from gridtrend.store import TimeSeriesStore

logger = logging.getLogger(__name__)


class DataLoader:

    def __init__(self, cfg: dict, csv_data: any = None, store: TimeSeriesStore = None, replace: bool = False):
        """
        Initializes the DataLoader that loads data based on the fallback logic:
        1. Use `csv_data` if provided.
        2. If not, use `default_csv_path` from the `setup` section of `cfg`.
        3. If neither is available, raise an error.

        Args:
            cfg (dict): The report YAML configuration.
            csv_data (any, optional): A file path or a readable stream for a CSV file. Defaults to None.
            store (TimeSeriesStore, optional): Store receiving the records. A new one is created if omitted.
            replace (bool, optional): Replace the store contents instead of merging into them.
        """
        self.cfg = cfg
        self.store = store if store is not None else TimeSeriesStore()
        setup = self.cfg.get('setup') or {}

        if csv_data:
            logger.info("CSV data provided. Using CSV as the primary data source.")
            source = csv_data
        else:
            logger.info("No CSV data provided. Attempting to load the default CSV path from the config.")
            source = setup.get('default_csv_path')
            if not source:
                raise ValueError(
                    "No data source provided. Please provide either a CSV file or a 'default_csv_path' in your "
                    "YAML config.")

        self.source_name = _source_name(source)
        self.ingest_result = parse_csv(
            _read_text(source),
            value_column_key=setup.get('value_column_key', DEFAULT_VALUE_COLUMN_KEY),
            unit_token=setup.get('unit_token', DEFAULT_UNIT_TOKEN),
            delimiter=setup.get('delimiter', DEFAULT_DELIMITER),
        )

        if self.ingest_result.is_empty:
            self.loaded_rows = 0
            logger.warning(f"No valid rows found in {self.source_name}, store left unchanged.")
        elif replace:
            self.loaded_rows = self.store.replace(self.ingest_result.records)
        else:
            self.loaded_rows = self.store.merge(self.ingest_result.records)
        logger.info(self.status)

    @property
    def status(self) -> str:
        if self.ingest_result.is_empty:
            return f"No valid rows found in {self.source_name}."
        message = f"Loaded {self.source_name} ({self.loaded_rows} rows)"
        if self.ingest_result.has_errors:
            return message + f" with {len(self.ingest_result.errors)} issues."
        return message + "."


def _source_name(source) -> str:
    if isinstance(source, (str, os.PathLike)):
        return os.path.basename(os.fspath(source))
    return getattr(source, 'filename', None) or getattr(source, 'name', None) or 'uploaded data'


def _read_text(source) -> str:
    """
    Reads CSV text from a local path or a readable stream.

    Raises:
        FileNotFoundError: If a path is given and does not exist.
    """
    if isinstance(source, (str, os.PathLike)):
        if not os.path.isfile(source):
            raise FileNotFoundError(f"CSV file not found: {os.fspath(source)}")
        with open(source, encoding='utf-8-sig') as csv_file:
            return csv_file.read()

    content = source.read()
    if isinstance(content, bytes):
        content = content.decode('utf-8-sig')
    return content
