"""Filename template rendering.

Templates use ``${Token}`` placeholders. Older templates may use the German
token vocabulary, which is rewritten to canonical tokens before substitution.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from invoicebook.domain.entities import InvoiceRecord
from invoicebook.domain.errors import ValidationError
from invoicebook.utils.amount_parser import format_amount
from invoicebook.utils.date_parser import split_canonical

DEFAULT_TEMPLATE = "${YYYY}-${MM}-${DD}_${Company}_${GrossAmount}_${Currency}.pdf"
DECIMAL_SEPARATORS = (",", ".")

LEGACY_TOKEN_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "${Firma}": "${Company}",
        "${Rechnungsnummer}": "${InvoiceNumber}",
        "${Kurzbez}": "${ShortDescription}",
        "${Kurzbezeichnung}": "${ShortDescription}",
        "${BetragNetto}": "${NetAmount}",
        "${SteuersatzProzent}": "${TaxPercent}",
        "${Steuerbetrag}": "${TaxAmount}",
        "${Bruttobetrag}": "${GrossAmount}",
        "${Waehrung}": "${Currency}",
        "${Jahr}": "${YYYY}",
        "${Monat}": "${MM}",
        "${Tag}": "${DD}",
        "${Originalname}": "${OriginalName}",
    }
)

_TOKEN_PATTERN = re.compile(r"\$\{([^}]*)\}")
_UNSAFE_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(name: str) -> str:
    """Make a string safe to use as a filename.

    Path separators become hyphens, reserved and control characters are
    removed, whitespace runs collapse to one space and the ends are trimmed.
    """
    name = name.replace("/", "-").replace("\\", "-")
    name = _UNSAFE_CHARS.sub("", name)
    name = _WHITESPACE.sub(" ", name)
    return name.strip()


def extract_day(invoice_date: str) -> str:
    """Return the day segment of a DD.MM.YYYY date, or '' when malformed."""
    parts = split_canonical(invoice_date)
    if parts is None:
        return ""
    return parts[0]


@dataclass(frozen=True)
class FilenameTemplate:
    """A naming template plus the formatting options used to render it."""

    template: str = DEFAULT_TEMPLATE
    decimal_separator: str = ","
    aliases: Mapping[str, str] = field(default_factory=lambda: LEGACY_TOKEN_ALIASES, compare=False)

    def __post_init__(self):
        if self.decimal_separator not in DECIMAL_SEPARATORS:
            raise ValidationError(
                f"Invalid decimal separator '{self.decimal_separator}'. "
                f"Must be one of: {', '.join(DECIMAL_SEPARATORS)}"
            )

    def canonical(self) -> str:
        """Template text with legacy aliases resolved."""
        result = self.template
        for alias, canonical in self.aliases.items():
            result = result.replace(alias, canonical)
        return result

    def token_values(self, record: InvoiceRecord, original_name: str = "") -> dict[str, str]:
        """Substitution values for every canonical token."""
        sep = self.decimal_separator
        return {
            "YYYY": record.year,
            "MM": record.month,
            "DD": extract_day(record.invoice_date),
            "Company": record.company,
            "InvoiceNumber": record.invoice_number,
            "ShortDescription": record.short_description,
            "NetAmount": format_amount(record.net_amount, sep),
            "TaxPercent": format_amount(record.tax_percent, sep),
            "TaxAmount": format_amount(record.tax_amount, sep),
            "GrossAmount": format_amount(record.gross_amount, sep),
            "Currency": record.currency,
            "OriginalName": original_name,
        }

    def render(self, record: InvoiceRecord, original_name: str = "") -> str:
        """Render a sanitized filename for a record.

        Unknown tokens render as empty strings.
        """
        values = self.token_values(record, original_name)
        rendered = _TOKEN_PATTERN.sub(lambda m: values.get(m.group(1), "") or "", self.canonical())
        return sanitize_filename(rendered)


def render_filename(
    template: str,
    record: InvoiceRecord,
    decimal_separator: str = ",",
    original_name: str = "",
) -> str:
    """Render a filename from a template string."""
    return FilenameTemplate(template, decimal_separator).render(record, original_name)
