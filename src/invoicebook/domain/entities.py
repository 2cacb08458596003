"""Domain model entities for invoicebook.

These are pure data classes representing business concepts, independent of
the database schema and of the tabular export layout.
"""

import re
from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

from invoicebook.domain.errors import ValidationError

SHORT_DESCRIPTION_MAX_LENGTH = 80

_PARTITION_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


@dataclass(frozen=True, order=True)
class Partition:
    """A (year, month) storage unit."""

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Invalid month {self.month}: must be between 1 and 12")
        if not 1 <= self.year <= 9999:
            raise ValidationError(f"Invalid year {self.year}")

    @classmethod
    def parse(cls, value: str) -> "Partition":
        """Parse a partition from 'YYYY-MM'."""
        match = _PARTITION_PATTERN.match(value.strip()) if value else None
        if match is None:
            raise ValidationError(f"Invalid partition '{value}': expected YYYY-MM")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_date(cls, value: date) -> "Partition":
        """Partition containing the given calendar date."""
        return cls(value.year, value.month)

    @property
    def year_str(self) -> str:
        return f"{self.year:04d}"

    @property
    def month_str(self) -> str:
        return f"{self.month:02d}"

    @property
    def folder_name(self) -> str:
        """Folder name for this partition (YYYY-MM)."""
        return f"{self.year:04d}-{self.month:02d}"

    def __str__(self) -> str:
        return self.folder_name


@dataclass(frozen=True)
class InvoiceRecord:
    """Invoice metadata record.

    ``year`` and ``month`` are stored independently of ``invoice_date``:
    once persisted they hold the partition the record was filed under,
    which may differ from the calendar month of the invoice itself.
    """

    company: str = ""
    short_description: str = ""
    invoice_number: str = ""
    tax_id: str = ""
    net_amount: Decimal = Decimal("0.00")
    tax_percent: Decimal = Decimal("0.00")
    tax_amount: Decimal = Decimal("0.00")
    gross_amount: Decimal = Decimal("0.00")
    currency: str = ""
    invoice_date: str = ""
    payment_date: str = ""
    year: str = ""
    month: str = ""
    account: int = 0
    bank_account: str = ""
    partial_payment: bool = False
    comment: str = ""
    net_amount_default_currency: Decimal = Decimal("0.00")
    fee: Decimal = Decimal("0.00")
    has_attachments: bool = False
    filename: str = ""
    # Stem of the source document, kept for the ${OriginalName} token
    original_name: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def partition(self) -> Optional[Partition]:
        """Partition derived from the stored year/month fields, if valid."""
        try:
            return Partition(int(self.year), int(self.month))
        except (TypeError, ValueError):
            return None
