"""Utility functions for invoicebook."""

from invoicebook.utils.date_parser import parse_date, format_date, normalize_date
from invoicebook.utils.amount_parser import parse_amount, format_amount

__all__ = ["parse_date", "format_date", "normalize_date", "parse_amount", "format_amount"]
