"""Amount and cell value parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

ZERO = Decimal("0.00")

_TRUE_VALUES = {"1", "t", "true", "yes", "y", "ja"}


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "-123.45"
    - "€123.45"
    - "1,234.56"
    - "123,45" (comma as the only separator is read as decimal comma)
    - "1.234,56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and codes
    amount_str = re.sub(r"[$€£¥]|\b[A-Z]{3}\b", "", amount_str).strip()
    amount_str = amount_str.replace(" ", "")

    if "," in amount_str and "." in amount_str:
        if amount_str.rfind(",") > amount_str.rfind("."):
            # 1.234,56
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            # 1,234.56
            amount_str = amount_str.replace(",", "")
    elif amount_str.count(",") == 1:
        amount_str = amount_str.replace(",", ".")
    else:
        amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}': not a finite number")
    return -amount if is_negative else amount


def parse_amount_or_zero(value: str | None) -> Decimal:
    """Parse an amount, returning zero for empty or malformed input."""
    try:
        return parse_amount(value)
    except ValueError:
        return ZERO


def parse_int_or_zero(value: str | None) -> int:
    """Parse an integer cell, returning 0 on error."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def parse_bool_or_false(value: str | None) -> bool:
    """Parse a boolean cell, returning False on error."""
    if value is None:
        return False
    normalized = str(value).strip().lower()
    return normalized in _TRUE_VALUES


def format_amount(amount: Decimal | int | float | None, separator: str = ".") -> str:
    """Format an amount with exactly two fraction digits.

    Args:
        amount: Amount to format (None formats as zero)
        separator: Fraction separator to use in the output

    Returns:
        Formatted amount string such as "119.00" or "119,00"
    """
    if amount is None:
        amount = ZERO
    formatted = f"{Decimal(str(amount)):.2f}"
    if separator != ".":
        formatted = formatted.replace(".", separator, 1)
    return formatted


def format_bool(value: bool) -> str:
    """Format a boolean as literal true/false."""
    return "true" if value else "false"
