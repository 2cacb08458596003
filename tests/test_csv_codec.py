"""Tests for the invoice CSV codec."""

from decimal import Decimal

import pytest

from invoicebook.domain.columns import DEFAULT_COLUMNS, ColumnLayout
from invoicebook.domain.csv_codec import InvoiceCSVCodec
from invoicebook.domain.entities import InvoiceRecord
from invoicebook.domain.errors import StorageError


def _records():
    return [
        InvoiceRecord(
            filename="2025-03-15_Acme GmbH_119.00_EUR.pdf",
            invoice_date="15.03.2025",
            year="2025",
            month="03",
            company="Acme GmbH",
            short_description="Office chairs, black",
            invoice_number="R-100",
            net_amount=Decimal("100.00"),
            tax_percent=Decimal("19.00"),
            tax_amount=Decimal("19.00"),
            gross_amount=Decimal("119.00"),
            currency="EUR",
            account=4930,
            bank_account="Sparkasse",
            payment_date="20.03.2025",
            partial_payment=True,
            comment='Quoted "comment"\nwith a newline',
            tax_id="DE123456789",
        ),
        InvoiceRecord(
            filename="2025-03-02_Beta Ltd_50.50_USD.pdf",
            invoice_date="02.03.2025",
            year="2025",
            month="03",
            company="Beta Ltd",
            invoice_number="B-7",
            gross_amount=Decimal("50.50"),
            currency="USD",
            net_amount_default_currency=Decimal("46.10"),
            fee=Decimal("1.25"),
            has_attachments=True,
        ),
    ]


class TestLoad:
    """Tests for loading CSV files."""

    def test_missing_file_is_empty(self, codec, tmp_path):
        assert codec.load(tmp_path / "missing.csv") == []

    def test_empty_file_is_empty(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        path.write_text("", encoding="utf-8")
        assert codec.load(path) == []

    def test_headerless_file_uses_default_order(self, codec, tmp_path):
        """A first row without known identifiers is data in default order."""
        path = tmp_path / "invoices.csv"
        path.write_text(
            "a.pdf,15.03.2025,2025,03,Acme,Chairs,R-1,100.00,19.00,19.00,119.00,EUR,4930,Bank,,false\n",
            encoding="utf-8",
        )

        records = codec.load(path)

        assert len(records) == 1
        assert records[0].filename == "a.pdf"
        assert records[0].company == "Acme"
        assert records[0].gross_amount == Decimal("119.00")
        assert records[0].account == 4930
        assert records[0].comment == ""

    def test_unknown_columns_ignored_and_missing_columns_empty(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        path.write_text(
            "company,extra,gross_amount\nAcme,ignored,119.00\n",
            encoding="utf-8",
        )

        records = codec.load(path)

        assert records == [InvoiceRecord(company="Acme", gross_amount=Decimal("119.00"))]

    def test_legacy_german_header(self, codec, tmp_path):
        """Headers written by older versions map onto canonical columns."""
        path = tmp_path / "invoices.csv"
        path.write_text(
            "Dateiname,Rechnungsdatum,Jahr,Monat,Firmenname,Rechnungsnummer,Bruttobetrag,Teilzahlung\n"
            "a.pdf,15.03.2025,2025,03,Acme GmbH,R-100,119.00,true\n",
            encoding="utf-8",
        )

        record = codec.load(path)[0]

        assert record.filename == "a.pdf"
        assert record.company == "Acme GmbH"
        assert record.invoice_number == "R-100"
        assert record.gross_amount == Decimal("119.00")
        assert record.partial_payment is True

    def test_malformed_cells_default(self, codec, tmp_path):
        """One bad cell does not fail the load."""
        path = tmp_path / "invoices.csv"
        path.write_text(
            "company,gross_amount,account,partial_payment\nAcme,n/a,four,maybe\n",
            encoding="utf-8",
        )

        record = codec.load(path)[0]

        assert record.gross_amount == Decimal("0.00")
        assert record.account == 0
        assert record.partial_payment is False

    def test_short_rows_are_padded(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        path.write_text("company,invoice_number,gross_amount\nAcme\n", encoding="utf-8")

        record = codec.load(path)[0]

        assert record.company == "Acme"
        assert record.invoice_number == ""
        assert record.gross_amount == Decimal("0.00")

    def test_blank_rows_skipped(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        path.write_text("company\nAcme\n\n,\nBeta\n", encoding="utf-8")

        assert [r.company for r in codec.load(path)] == ["Acme", "Beta"]

    def test_corrupt_file_raises(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        path.write_text('company,invoice_number\n"Acme"GmbH,R-1\n', encoding="utf-8")

        with pytest.raises(StorageError) as excinfo:
            codec.load(path)

        assert str(path) in str(excinfo.value)


class TestWrite:
    """Tests for writing CSV files."""

    def test_round_trip_default_order(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        records = _records()

        codec.rewrite(path, records)

        assert codec.load(path) == records

    def test_round_trip_custom_order(self, tmp_path):
        path = tmp_path / "invoices.csv"
        layout = ColumnLayout.from_order(reversed(DEFAULT_COLUMNS))
        codec = InvoiceCSVCodec(layout)
        records = _records()

        codec.rewrite(path, records)

        assert codec.load(path) == records
        header = path.read_text(encoding="utf-8").splitlines()[0]
        assert header == ",".join(reversed(DEFAULT_COLUMNS))

    def test_wire_format(self, tmp_path):
        path = tmp_path / "invoices.csv"
        codec = InvoiceCSVCodec(
            ColumnLayout.from_order(["company", "gross_amount", "partial_payment", "account"])
        )

        codec.rewrite(
            path,
            [InvoiceRecord(company="Acme", gross_amount=Decimal("119"), partial_payment=True, account=7)],
        )

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("company,gross_amount,partial_payment,account,filename,")
        assert lines[1].startswith("Acme,119.00,true,7,")
        assert "false" in lines[1]

    def test_append_creates_file_with_header(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        record = _records()[0]

        codec.append(path, record)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == ",".join(DEFAULT_COLUMNS)
        assert codec.load(path) == [record]

    def test_append_to_matching_file(self, codec, tmp_path):
        path = tmp_path / "invoices.csv"
        first, second = _records()

        codec.append(path, first)
        codec.append(path, second)

        assert codec.load(path) == [first, second]

    def test_append_migrates_header(self, tmp_path):
        """Appending under a new column order rewrites existing rows first."""
        path = tmp_path / "invoices.csv"
        first, second = _records()
        InvoiceCSVCodec(ColumnLayout.from_order(["company", "invoice_number"])).rewrite(path, [first])

        order_b = ColumnLayout.from_order(["gross_amount", "filename", "company"])
        codec_b = InvoiceCSVCodec(order_b)
        codec_b.append(path, second)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == ",".join(order_b.columns)
        assert codec_b.header_matches(path)
        assert codec_b.load(path) == [first, second]

    def test_write_failure_raises_storage_error(self, codec, tmp_path):
        directory = tmp_path / "invoices.csv"
        directory.mkdir()

        with pytest.raises(StorageError):
            codec.rewrite(directory, _records())


def test_append_to_empty_file_writes_header(tmp_path):
    """An empty existing file gets the configured header before the first row."""
    path = tmp_path / "invoices.csv"
    path.write_text("", encoding="utf-8")
    codec = InvoiceCSVCodec(ColumnLayout.from_order(["gross_amount", "company"]))
    record = _records()[0]

    codec.append(path, record)

    assert path.read_text(encoding="utf-8").startswith("gross_amount,company,")
    assert codec.load(path) == [record]
