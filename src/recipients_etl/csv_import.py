from __future__ import annotations

import csv
import logging
import re
from typing import Dict, List, Optional

from .errors import CsvFormatError
from .models import CsvParseResult, ParsedRow
from .validation import ValidationSettings, validate_recipient

logger = logging.getLogger(__name__)

COLUMN_MAPPINGS = {
    "name": ["name", "full_name", "fullname", "recipient"],
    "address1": ["address1", "address", "street", "address_line_1", "addressline1"],
    "address2": ["address2", "address_line_2", "addressline2"],
    "city": ["city"],
    "state": ["state", "province"],
    "zip": ["zip", "zipcode", "postal_code", "zip_code", "postalcode"],
    "country": ["country"],
}

REQUIRED_COLUMNS = ["name", "address1", "city", "state", "zip"]

TEMPLATE_HEADERS = ["name", "address1", "address2", "city", "state", "zip", "country"]
TEMPLATE_EXAMPLE = ["John Doe", "123 Main St", "Apt 4B", "New York", "NY", "10001", "US"]

_ALIAS_TO_COLUMN: Dict[str, str] = {
    alias: column for column, aliases in COLUMN_MAPPINGS.items() for alias in aliases
}


def normalize_column_name(header: str) -> Optional[str]:
    # Excel exports prefix the first header with a BOM
    return _ALIAS_TO_COLUMN.get((header or "").replace("\ufeff", "").strip().lower())


def split_csv_line(line: str) -> List[str]:
    """Split one line on commas outside double quotes; "" inside quotes is a literal quote."""
    return next(csv.reader([line]), [])


def _resolve_columns(headers: List[str]) -> Dict[int, str]:
    column_map: Dict[int, str] = {}
    for index, header in enumerate(headers):
        column = normalize_column_name(header)
        # first occurrence of a canonical column wins
        if column and column not in column_map.values():
            column_map[index] = column
    return column_map


def parse_csv(text: str, settings: Optional[ValidationSettings] = None) -> CsvParseResult:
    lines = re.split(r"\r?\n", (text or "").strip())
    if len(lines) < 2:
        raise CsvFormatError("CSV must contain at least a header row and one data row")

    column_map = _resolve_columns(split_csv_line(lines[0]))
    found = set(column_map.values())
    missing = [column for column in REQUIRED_COLUMNS if column not in found]
    if missing:
        raise CsvFormatError(f"Missing required columns: {', '.join(missing)}")

    result = CsvParseResult(total_rows=len(lines) - 1)
    for offset, raw_line in enumerate(lines[1:]):
        row_number = offset + 2
        line = raw_line.strip()
        if not line:
            continue
        row_data: Dict[str, str] = {}
        for index, value in enumerate(split_csv_line(line)):
            column = column_map.get(index)
            if column:
                row_data[column] = value.strip()

        cleaned, errors = validate_recipient(row_data, settings)
        if errors:
            logger.debug("CSV row %d rejected: %s", row_number, "; ".join(errors))
            result.invalid.append(
                ParsedRow(data=row_data, row_number=row_number, is_valid=False, errors=errors)
            )
        else:
            result.valid.append(ParsedRow(data=cleaned, row_number=row_number, is_valid=True))

    logger.info(
        "Parsed CSV: %d valid, %d invalid of %d row(s)",
        len(result.valid),
        len(result.invalid),
        result.total_rows,
    )
    return result


def generate_csv_template() -> str:
    return "\n".join([",".join(TEMPLATE_HEADERS), ",".join(TEMPLATE_EXAMPLE)])
