"""Mapper functions to convert between domain records and SQLAlchemy rows.

This layer isolates the conversion logic, so the record type does not need to
know about column types or derived ordering columns.
"""

from decimal import Decimal
from typing import Any, Optional

from invoicebook.domain.entities import InvoiceRecord
from invoicebook.database.models import Invoice as ORMInvoice
from invoicebook.utils.date_parser import try_parse_canonical

# Fields copied verbatim between record and row, excluding identity and timestamps
MUTABLE_FIELDS: tuple[str, ...] = (
    "filename",
    "invoice_date",
    "year",
    "month",
    "company",
    "short_description",
    "invoice_number",
    "tax_id",
    "net_amount",
    "tax_percent",
    "tax_amount",
    "gross_amount",
    "currency",
    "account",
    "bank_account",
    "payment_date",
    "partial_payment",
    "comment",
    "net_amount_default_currency",
    "fee",
    "has_attachments",
    "original_name",
)

_DECIMAL_FIELDS = {
    "net_amount",
    "tax_percent",
    "tax_amount",
    "gross_amount",
    "net_amount_default_currency",
    "fee",
}


def record_to_values(record: InvoiceRecord) -> dict[str, Any]:
    """Column values for inserting or updating a row from a record."""
    values = {name: getattr(record, name) for name in MUTABLE_FIELDS}
    values["invoice_day"] = try_parse_canonical(record.invoice_date)
    return values


def record_to_orm(record: InvoiceRecord) -> ORMInvoice:
    """Build a new SQLAlchemy Invoice row from a domain record."""
    return ORMInvoice(**record_to_values(record))


def _decimal(value: Optional[Any]) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value))


def invoice_to_domain(orm_invoice: ORMInvoice) -> InvoiceRecord:
    """Convert SQLAlchemy Invoice model to domain InvoiceRecord entity."""
    values: dict[str, Any] = {}
    for name in MUTABLE_FIELDS:
        value = getattr(orm_invoice, name)
        if name in _DECIMAL_FIELDS:
            value = _decimal(value)
        elif name in ("partial_payment", "has_attachments"):
            value = bool(value)
        elif name == "account":
            value = value or 0
        elif value is None:
            value = ""
        values[name] = value
    return InvoiceRecord(
        id=orm_invoice.id,
        created_at=orm_invoice.created_at,
        updated_at=orm_invoice.updated_at,
        **values,
    )
