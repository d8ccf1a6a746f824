import csv
import logging
from pathlib import Path
from typing import Dict, List, Optional

from customer_analytics.logging_utils import default_logger
from customer_analytics.models import RAW_COLUMNS, RawCustomer


class SourceError(Exception):
    # Raised when the raw customer source cannot be read.
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        base = f"SourceError: {self.args[0]}"
        if self.path:
            base += f" | Path: {self.path}"
        return base


def validate_csv_header(fieldnames: Optional[List[str]], path: str) -> None:
    if not fieldnames:
        raise SourceError("CSV file is empty or has no header", path=path)
    missing = [col for col in RAW_COLUMNS if col not in fieldnames]
    if missing:
        raise SourceError(f"CSV file is missing required columns: {missing}", path=path)


def read_customers_csv(
    path: str, logger: Optional[logging.Logger] = None
) -> List[Dict]:
    """
    Read a CSV export of the raw customer table.

    Every row is coerced through RawCustomer, so blank cells and malformed
    numbers become None. Extra columns are ignored.
    """
    logger = logger or default_logger("CustomerSource")
    csv_path = Path(path)
    if not csv_path.exists():
        raise SourceError("CSV file not found", path=str(path))

    rows = []
    try:
        with csv_path.open(newline="", encoding="utf-8") as fh:
            reader = csv.DictReader(fh)
            validate_csv_header(reader.fieldnames, str(path))
            for line in reader:
                raw = RawCustomer.model_validate({col: line.get(col) for col in RAW_COLUMNS})
                rows.append(raw.model_dump())
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise SourceError(f"Could not read CSV file: {exc}", path=str(path)) from exc

    logger.info("Read %d raw customers from %s", len(rows), path)
    return rows
