"""Duplicate detection for invoice records.

Two records in the same partition are duplicates when they agree on the
normalized issuer, invoice number, invoice date, gross amount (within
AMOUNT_TOLERANCE) and the partial-payment flag.
"""

import re
from decimal import Decimal
from typing import Iterable, Optional

from invoicebook.domain.entities import InvoiceRecord

AMOUNT_TOLERANCE = Decimal("0.01")

_WHITESPACE = re.compile(r"\s+")


def normalize_issuer(name: Optional[str]) -> str:
    """Lowercase, trim and collapse whitespace in an issuer name."""
    return _WHITESPACE.sub(" ", (name or "").strip().lower())


def amounts_match(a: Decimal, b: Decimal) -> bool:
    """Whether two amounts differ by less than AMOUNT_TOLERANCE."""
    return abs(Decimal(str(a or 0)) - Decimal(str(b or 0))) < AMOUNT_TOLERANCE


def same_invoice(existing: InvoiceRecord, candidate: InvoiceRecord) -> bool:
    """Whether two records collide on the duplicate key."""
    return (
        normalize_issuer(existing.company) == normalize_issuer(candidate.company)
        and existing.invoice_number == candidate.invoice_number
        and existing.invoice_date == candidate.invoice_date
        and amounts_match(existing.gross_amount, candidate.gross_amount)
        and existing.partial_payment == candidate.partial_payment
    )


def find_duplicate(
    existing_records: Iterable[InvoiceRecord], candidate: InvoiceRecord
) -> Optional[InvoiceRecord]:
    """Return the first existing record the candidate duplicates, if any."""
    for existing in existing_records:
        if same_invoice(existing, candidate):
            return existing
    return None


def is_duplicate(existing_records: Iterable[InvoiceRecord], candidate: InvoiceRecord) -> bool:
    """Check whether a candidate duplicates any of the existing records."""
    return find_duplicate(existing_records, candidate) is not None


def check_consistency(record: InvoiceRecord) -> bool:
    """Check that net + tax matches gross within AMOUNT_TOLERANCE.

    Advisory only; an inconsistent record is still accepted.
    """
    calculated = Decimal(str(record.net_amount or 0)) + Decimal(str(record.tax_amount or 0))
    return amounts_match(calculated, record.gross_amount)
