"""Tests for column layouts."""

from invoicebook.domain.columns import (
    DEFAULT_COLUMNS,
    DEFAULT_LAYOUT,
    ColumnLayout,
    resolve_column,
)


def test_empty_order_is_default():
    assert ColumnLayout.from_order([]).columns == DEFAULT_COLUMNS
    assert ColumnLayout.from_order(None) == DEFAULT_LAYOUT


def test_unknown_and_repeated_columns_dropped():
    layout = ColumnLayout.from_order(["gross_amount", "bogus", "gross_amount", "company"])

    assert layout.columns[:2] == ("gross_amount", "company")
    assert "bogus" not in layout.columns
    assert len(layout.columns) == len(DEFAULT_COLUMNS)


def test_missing_columns_appended_in_default_order():
    layout = ColumnLayout.from_order(["tax_id"])

    assert layout.columns[0] == "tax_id"
    assert list(layout.columns[1:]) == [c for c in DEFAULT_COLUMNS if c != "tax_id"]


def test_legacy_identifiers_resolve():
    assert resolve_column("Bruttobetrag") == "gross_amount"
    assert resolve_column(" company ") == "company"
    assert resolve_column("Unknown") is None
    assert ColumnLayout.from_order(["Firmenname"]).columns[0] == "company"


def test_labels_follow_layout():
    layout = ColumnLayout.from_order(["gross_amount", "company"])

    assert layout.labels()[:2] == ["Gross", "Company"]
