"""Tabular upload parsing for the BCG bulk import.

Expected headers (case-insensitive, surrounding whitespace ignored):

    product_name, market_name, market_growth_rate,
    market_share_percent, largest_rival_share_percent

Validation is all-or-nothing: one bad row rejects the whole batch so that an
incomplete dataset is never imported silently.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from bizanalysis.errors import RowIssue, ValidationError
from bizanalysis.models import ImportRow, MarketIn

logger = logging.getLogger(__name__)

TEXT_COLUMNS = ("product_name", "market_name")
NUMERIC_COLUMNS = (
    "market_growth_rate",
    "market_share_percent",
    "largest_rival_share_percent",
)
EXPECTED_COLUMNS = TEXT_COLUMNS + NUMERIC_COLUMNS

TEMPLATE_FILENAME = "bcg_import_template.csv"
TEMPLATE_SAMPLE_ROWS = (
    ("Alpha", "US SMB HR", "14", "30", "25"),
    ("Beta", "US SMB HR", "14", "18", "35"),
)

INVALID_BATCH_MESSAGE = "Invalid or missing values detected. Ensure headers match the template."


def _normalize_header(header: Optional[str]) -> str:
    return (header or "").lower().strip()


def _coerce_number(value: Any) -> Optional[float]:
    """Parse a numeric cell; blank, non-numeric and non-finite values give None."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def _validate_row(raw: Mapping[str, Any], row_number: int) -> tuple[Optional[ImportRow], List[RowIssue]]:
    issues: List[RowIssue] = []
    text_values: Dict[str, str] = {}
    for column in TEXT_COLUMNS:
        value = str(raw.get(column) or "").strip()
        if not value:
            issues.append(RowIssue(row_number, column, "required"))
        text_values[column] = value

    numbers: Dict[str, float] = {}
    for column in NUMERIC_COLUMNS:
        number = _coerce_number(raw.get(column))
        if number is None:
            issues.append(RowIssue(row_number, column, f"not a number: {raw.get(column)!r}"))
        else:
            numbers[column] = number

    if issues:
        return None, issues
    return ImportRow(**text_values, **numbers), []


def validate_rows(raw_rows: Sequence[Mapping[str, Any]], first_row_number: int = 1) -> List[ImportRow]:
    """Validate a parsed batch, rejecting all of it if any row is invalid.

    Args:
        raw_rows: Mappings keyed by the expected column names.
        first_row_number: Number reported for the first row in issues. CSV
            input passes 2 because line 1 holds the headers.
    Returns:
        The validated rows in input order.
    Raises:
        ValidationError: with one :class:`RowIssue` per failing field.
    """

    rows: List[ImportRow] = []
    issues: List[RowIssue] = []
    for offset, raw in enumerate(raw_rows):
        row, row_issues = _validate_row(raw, first_row_number + offset)
        if row_issues:
            issues.extend(row_issues)
        elif row is not None:
            rows.append(row)

    if issues:
        logger.info("Rejected import batch of %d rows with %d issue(s)", len(raw_rows), len(issues))
        raise ValidationError(INVALID_BATCH_MESSAGE, issues)
    return rows


def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def read_csv_rows(content: bytes | str) -> List[Dict[str, Any]]:
    """Read CSV content into dicts keyed by normalized headers.

    Blank lines are skipped. Missing expected columns raise
    :class:`ValidationError` before any row is looked at.
    """

    reader = csv.DictReader(io.StringIO(_decode(content)))
    if not reader.fieldnames:
        raise ValidationError("No headers found in CSV file")

    headers = [_normalize_header(name) for name in reader.fieldnames]
    missing = [column for column in EXPECTED_COLUMNS if column not in headers]
    if missing:
        raise ValidationError(
            f"Missing required column(s): {missing}. Found columns: {headers}."
        )

    rows: List[Dict[str, Any]] = []
    for raw in reader:
        values = [value for key, value in raw.items() if key is not None]
        if all(value is None or not str(value).strip() for value in values):
            continue
        rows.append({_normalize_header(key): value for key, value in raw.items() if key is not None})
    return rows


def parse_import_csv(content: bytes | str) -> List[ImportRow]:
    """Parse and validate a CSV upload in one step."""

    return validate_rows(read_csv_rows(content), first_row_number=2)


def load_import_file(path: Path | str) -> List[ImportRow]:
    return parse_import_csv(Path(path).read_bytes())


def unique_markets(rows: Iterable[ImportRow]) -> List[MarketIn]:
    """Collapse rows to one market per exact name; the first row's growth wins."""

    markets: Dict[str, MarketIn] = {}
    for row in rows:
        if row.market_name not in markets:
            markets[row.market_name] = MarketIn(name=row.market_name, growth_rate=row.market_growth_rate)
    return list(markets.values())


def _quote(cell: str) -> str:
    return '"' + (cell or "").replace('"', '""') + '"'


def template_csv() -> str:
    """Return the downloadable import template with two sample rows."""

    lines = [EXPECTED_COLUMNS, *TEMPLATE_SAMPLE_ROWS]
    return "\n".join(",".join(_quote(cell) for cell in line) for line in lines)


__all__ = [
    "EXPECTED_COLUMNS",
    "INVALID_BATCH_MESSAGE",
    "TEMPLATE_FILENAME",
    "load_import_file",
    "parse_import_csv",
    "read_csv_rows",
    "template_csv",
    "unique_markets",
    "validate_rows",
]
