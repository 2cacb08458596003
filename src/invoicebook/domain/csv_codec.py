"""Tabular (CSV) codec for invoice records."""

import csv
from pathlib import Path
from typing import Any, Iterable, Optional

from invoicebook.domain.columns import (
    BOOLEAN_COLUMNS,
    DECIMAL_COLUMNS,
    DEFAULT_COLUMNS,
    DEFAULT_LAYOUT,
    INTEGER_COLUMNS,
    ColumnLayout,
    resolve_column,
)
from invoicebook.domain.entities import InvoiceRecord
from invoicebook.domain.errors import StorageError
from invoicebook.utils.amount_parser import (
    format_amount,
    format_bool,
    parse_amount_or_zero,
    parse_bool_or_false,
    parse_int_or_zero,
)

CSV_FILENAME = "invoices.csv"


class InvoiceCSVCodec:
    """Reads and writes the per-partition invoices CSV file.

    The header uses canonical column identifiers in the order of the
    configured layout. Decimal cells always use '.' with two fraction digits,
    boolean cells are literal true/false.
    """

    def __init__(self, layout: ColumnLayout = DEFAULT_LAYOUT):
        """Initialize CSV codec.

        Args:
            layout: Column layout used for writing
        """
        self.layout = layout

    def load(self, path: str | Path) -> list[InvoiceRecord]:
        """Read all records from a CSV file.

        A missing file yields an empty list. A header without any known
        column is treated as a headerless legacy file in default order.

        Raises:
            StorageError: If the file cannot be read or is not valid CSV
        """
        csv_path = Path(path)
        if not csv_path.exists():
            return []

        try:
            with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
                rows = list(csv.reader(f, strict=True))
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise StorageError("read CSV", csv_path, e) from e

        if not rows:
            return []

        header_map, start = _parse_header(rows[0])
        records = []
        for row in rows[start:]:
            if not row or all(not cell.strip() for cell in row):
                continue
            records.append(_row_to_record(row, header_map))
        return records

    def append(self, path: str | Path, record: InvoiceRecord) -> None:
        """Append one record, writing a header first if the file is missing or empty.

        An existing file whose header differs from the configured layout is
        rewritten under the new layout first.

        Raises:
            StorageError: If the file cannot be read or written
        """
        csv_path = Path(path)
        try:
            needs_header = not csv_path.exists() or csv_path.stat().st_size == 0
        except OSError as e:
            raise StorageError("append to CSV", csv_path, e) from e
        if not needs_header and not self.header_matches(csv_path):
            existing = self.load(csv_path)
            self.rewrite(csv_path, existing)

        try:
            with open(csv_path, "a", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                if needs_header:
                    writer.writerow(self.layout.header)
                writer.writerow(self.record_to_row(record))
        except OSError as e:
            raise StorageError("append to CSV", csv_path, e) from e

    def rewrite(self, path: str | Path, records: Iterable[InvoiceRecord]) -> None:
        """Overwrite the file with a header and one row per record.

        Raises:
            StorageError: If the file cannot be written
        """
        csv_path = Path(path)
        try:
            with open(csv_path, "w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(self.layout.header)
                for record in records:
                    writer.writerow(self.record_to_row(record))
        except OSError as e:
            raise StorageError("write CSV", csv_path, e) from e

    def header_matches(self, path: str | Path) -> bool:
        """Check whether the file header equals the configured layout.

        An empty file counts as matching.

        Raises:
            StorageError: If the file cannot be read
        """
        csv_path = Path(path)
        try:
            with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
                header = next(csv.reader(f, strict=True), None)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise StorageError("read CSV header", csv_path, e) from e
        if header is None:
            return True
        return [cell.strip() for cell in header] == self.layout.header

    def record_to_row(self, record: InvoiceRecord) -> list[str]:
        """Serialize a record into cells in layout order."""
        return [_format_cell(column, getattr(record, column)) for column in self.layout.columns]


def _parse_header(header: list[str]) -> tuple[dict[str, int], int]:
    """Map known columns to cell indexes.

    Returns the mapping and the index of the first data row. Known columns
    absent from the header map to -1.
    """
    header_map: dict[str, int] = {}
    for idx, cell in enumerate(header):
        column = resolve_column(cell)
        if column is not None and column not in header_map:
            header_map[column] = idx

    if not header_map:
        return {column: idx for idx, column in enumerate(DEFAULT_COLUMNS)}, 0

    for column in DEFAULT_COLUMNS:
        header_map.setdefault(column, -1)
    return header_map, 1


def _value_for_column(row: list[str], header_map: dict[str, int], column: str) -> str:
    idx = header_map.get(column, -1)
    if idx < 0 or idx >= len(row):
        return ""
    return row[idx]


def _row_to_record(row: list[str], header_map: dict[str, int]) -> InvoiceRecord:
    values: dict[str, Any] = {}
    for column in DEFAULT_COLUMNS:
        values[column] = _parse_cell(column, _value_for_column(row, header_map, column))
    return InvoiceRecord(**values)


def _parse_cell(column: str, raw: str) -> Any:
    if column in DECIMAL_COLUMNS:
        return parse_amount_or_zero(raw)
    if column in INTEGER_COLUMNS:
        return parse_int_or_zero(raw)
    if column in BOOLEAN_COLUMNS:
        return parse_bool_or_false(raw)
    return raw


def _format_cell(column: str, value: Optional[Any]) -> str:
    if column in DECIMAL_COLUMNS:
        return format_amount(value)
    if column in INTEGER_COLUMNS:
        return str(value or 0)
    if column in BOOLEAN_COLUMNS:
        return format_bool(bool(value))
    return "" if value is None else str(value)
