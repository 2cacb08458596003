"""Known tabular columns and configurable column layouts."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

# Canonical column identifiers, in default order. Each identifier is also the
# name of the InvoiceRecord attribute it holds. The first sixteen match the
# layout of headerless legacy files.
DEFAULT_COLUMNS: tuple[str, ...] = (
    "filename",
    "invoice_date",
    "year",
    "month",
    "company",
    "short_description",
    "invoice_number",
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
    "tax_id",
)

DECIMAL_COLUMNS = frozenset(
    {
        "net_amount",
        "tax_percent",
        "tax_amount",
        "gross_amount",
        "net_amount_default_currency",
        "fee",
    }
)
INTEGER_COLUMNS = frozenset({"account"})
BOOLEAN_COLUMNS = frozenset({"partial_payment", "has_attachments"})

# Header identifiers written by older versions of the application.
LEGACY_COLUMN_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "Dateiname": "filename",
        "Rechnungsdatum": "invoice_date",
        "Jahr": "year",
        "Monat": "month",
        "Firmenname": "company",
        "Auftraggeber": "company",
        "Kurzbezeichnung": "short_description",
        "Verwendungszweck": "short_description",
        "Rechnungsnummer": "invoice_number",
        "BetragNetto": "net_amount",
        "Steuersatz_Prozent": "tax_percent",
        "Steuersatz_Betrag": "tax_amount",
        "Bruttobetrag": "gross_amount",
        "Waehrung": "currency",
        "Gegenkonto": "account",
        "Bankkonto": "bank_account",
        "Bezahldatum": "payment_date",
        "Teilzahlung": "partial_payment",
        "Kommentar": "comment",
        "BetragNetto_EUR": "net_amount_default_currency",
        "Gebuehr": "fee",
        "HatAnhaenge": "has_attachments",
        "UStIdNr": "tax_id",
    }
)

COLUMN_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "filename": "Filename",
        "invoice_date": "Invoice date",
        "year": "Year",
        "month": "Month",
        "company": "Company",
        "short_description": "Description",
        "invoice_number": "Invoice no.",
        "net_amount": "Net",
        "tax_percent": "Tax %",
        "tax_amount": "Tax",
        "gross_amount": "Gross",
        "currency": "Currency",
        "account": "Account",
        "bank_account": "Bank account",
        "payment_date": "Paid on",
        "partial_payment": "Partial",
        "comment": "Comment",
        "net_amount_default_currency": "Net (default currency)",
        "fee": "Fee",
        "has_attachments": "Attachments",
        "tax_id": "Tax ID",
    }
)


def resolve_column(identifier: str) -> Optional[str]:
    """Map a header cell to its canonical column identifier.

    Accepts canonical identifiers and legacy aliases; returns None for
    anything else.
    """
    identifier = identifier.strip().lstrip("\ufeff")
    if identifier in DEFAULT_COLUMNS:
        return identifier
    return LEGACY_COLUMN_ALIASES.get(identifier)


@dataclass(frozen=True)
class ColumnLayout:
    """A permutation of the known columns.

    Build instances through ``from_order`` so the permutation invariant holds.
    """

    columns: tuple[str, ...] = DEFAULT_COLUMNS

    @classmethod
    def from_order(cls, order: Optional[Iterable[str]]) -> "ColumnLayout":
        """Build a layout from a user-configured order.

        Unknown and repeated identifiers are dropped; known columns missing
        from the order are appended in default order.
        """
        seen: list[str] = []
        for identifier in order or ():
            column = resolve_column(identifier)
            if column is not None and column not in seen:
                seen.append(column)
        seen.extend(column for column in DEFAULT_COLUMNS if column not in seen)
        return cls(tuple(seen))

    @property
    def header(self) -> list[str]:
        return list(self.columns)

    def labels(self) -> list[str]:
        """Display labels in layout order."""
        return [COLUMN_LABELS[column] for column in self.columns]


DEFAULT_LAYOUT = ColumnLayout()
