"""Tests for the SQLAlchemy invoice store."""

import dataclasses
from decimal import Decimal

import pytest

from invoicebook.database.factories import StoreProvider, partition_store_path
from invoicebook.domain.entities import InvoiceRecord, Partition
from invoicebook.domain.errors import NotFoundError, ValidationError


def _stored(record: InvoiceRecord, filename: str, partition: Partition) -> InvoiceRecord:
    return dataclasses.replace(
        record, filename=filename, year=partition.year_str, month=partition.month_str
    )


class TestInsertAndGet:
    """Tests for inserting and reading records."""

    def test_insert_returns_id(self, temp_db, acme_invoice, march):
        invoice_id = temp_db.insert(_stored(acme_invoice, "a.pdf", march))

        record = temp_db.get(invoice_id)

        assert record.id == invoice_id
        assert record.company == "Acme GmbH"
        assert record.gross_amount == Decimal("119.00")
        assert record.partition == march
        assert record.created_at is not None
        assert record.updated_at is not None

    def test_get_missing(self, temp_db):
        assert temp_db.get(999) is None

    def test_insert_requires_partition(self, temp_db, acme_invoice):
        with pytest.raises(ValidationError):
            temp_db.insert(dataclasses.replace(acme_invoice, year="", month=""))

    def test_find_by_filename(self, temp_db, acme_invoice, march):
        temp_db.insert(_stored(acme_invoice, "a.pdf", march))

        assert temp_db.find(march, "a.pdf").invoice_number == "R-100"
        assert temp_db.find(march, "b.pdf") is None
        assert temp_db.find(Partition(2025, 4), "a.pdf") is None

    def test_all_fields_survive(self, temp_db, march):
        record = InvoiceRecord(
            filename="full.pdf",
            invoice_date="01.03.2025",
            year="2025",
            month="03",
            company="Beta Ltd",
            short_description="Hosting",
            invoice_number="B-1",
            tax_id="GB123",
            net_amount=Decimal("10.00"),
            tax_percent=Decimal("20.00"),
            tax_amount=Decimal("2.00"),
            gross_amount=Decimal("12.00"),
            currency="GBP",
            account=6810,
            bank_account="Main",
            payment_date="05.03.2025",
            partial_payment=True,
            comment="first half",
            net_amount_default_currency=Decimal("11.70"),
            fee=Decimal("0.35"),
            has_attachments=True,
        )

        stored = temp_db.get(temp_db.insert(record))

        assert dataclasses.replace(stored, id=None, created_at=None, updated_at=None) == record


class TestList:
    """Tests for listing a partition."""

    def test_newest_date_first_then_filename(self, temp_db, acme_invoice, march):
        for filename, invoice_date in [
            ("b.pdf", "01.03.2025"),
            ("c.pdf", "20.03.2025"),
            ("a.pdf", "20.03.2025"),
            ("d.pdf", "28.02.2025"),
            ("e.pdf", "05.04.2025"),
        ]:
            temp_db.insert(
                _stored(dataclasses.replace(acme_invoice, invoice_date=invoice_date), filename, march)
            )

        filenames = [r.filename for r in temp_db.list_invoices(march)]

        assert filenames == ["e.pdf", "a.pdf", "c.pdf", "b.pdf", "d.pdf"]

    def test_only_requested_partition(self, temp_db, acme_invoice, march):
        temp_db.insert(_stored(acme_invoice, "a.pdf", march))
        temp_db.insert(_stored(acme_invoice, "b.pdf", Partition(2025, 4)))

        assert [r.filename for r in temp_db.list_invoices(march)] == ["a.pdf"]
        assert temp_db.list_invoices(Partition(2024, 1)) == []
        assert temp_db.count() == 2
        assert temp_db.count(march) == 1


class TestUpdate:
    """Tests for updating records."""

    def test_update_by_filename(self, temp_db, acme_invoice, march):
        invoice_id = temp_db.insert(_stored(acme_invoice, "a.pdf", march))
        before = temp_db.get(invoice_id)
        changed = _stored(
            dataclasses.replace(acme_invoice, comment="paid", gross_amount=Decimal("120.00")),
            "renamed.pdf",
            march,
        )

        assert temp_db.update(march, "a.pdf", changed) == 1

        after = temp_db.get(invoice_id)
        assert after.filename == "renamed.pdf"
        assert after.comment == "paid"
        assert after.gross_amount == Decimal("120.00")
        assert after.created_at == before.created_at
        assert after.updated_at >= before.updated_at

    def test_update_by_id(self, temp_db, acme_invoice, march):
        invoice_id = temp_db.insert(_stored(acme_invoice, "a.pdf", march))

        affected = temp_db.update_by_id(invoice_id, _stored(acme_invoice, "b.pdf", march))

        assert affected == 1
        assert temp_db.get(invoice_id).filename == "b.pdf"

    def test_update_without_match(self, temp_db, acme_invoice, march):
        temp_db.insert(_stored(acme_invoice, "a.pdf", march))

        assert temp_db.update(march, "missing.pdf", acme_invoice) == 0
        assert temp_db.update(Partition(2025, 4), "a.pdf", acme_invoice) == 0
        assert temp_db.update_by_id(999, acme_invoice) == 0
        assert temp_db.find(march, "a.pdf") is not None


class TestDelete:
    """Tests for deleting records."""

    def test_delete(self, temp_db, acme_invoice, march):
        temp_db.insert(_stored(acme_invoice, "a.pdf", march))

        temp_db.delete(march, "a.pdf")

        assert temp_db.list_invoices(march) == []

    def test_delete_missing(self, temp_db, march):
        with pytest.raises(NotFoundError):
            temp_db.delete(march, "missing.pdf")

    def test_delete_by_id(self, temp_db, acme_invoice, march):
        invoice_id = temp_db.insert(_stored(acme_invoice, "a.pdf", march))

        temp_db.delete_by_id(invoice_id)

        assert temp_db.get(invoice_id) is None
        with pytest.raises(NotFoundError):
            temp_db.delete_by_id(invoice_id)

    def test_delete_leaves_other_partitions(self, temp_db, acme_invoice, march):
        april = Partition(2025, 4)
        temp_db.insert(_stored(acme_invoice, "a.pdf", march))
        temp_db.insert(_stored(acme_invoice, "a.pdf", april))

        temp_db.delete(march, "a.pdf")

        assert [r.filename for r in temp_db.list_invoices(april)] == ["a.pdf"]


class TestIsDuplicate:
    """Tests for duplicate checks against the store."""

    def test_duplicate_scenarios(self, temp_db, acme_invoice, march):
        temp_db.insert(_stored(acme_invoice, "a.pdf", march))

        assert temp_db.is_duplicate(march, acme_invoice)
        assert temp_db.is_duplicate(
            march, dataclasses.replace(acme_invoice, company="ACME  GMBH")
        )
        assert temp_db.is_duplicate(
            march, dataclasses.replace(acme_invoice, gross_amount=Decimal("119.005"))
        )
        assert not temp_db.is_duplicate(
            march, dataclasses.replace(acme_invoice, gross_amount=Decimal("119.02"))
        )
        assert not temp_db.is_duplicate(
            march, dataclasses.replace(acme_invoice, invoice_number="R-101")
        )
        assert not temp_db.is_duplicate(
            march, dataclasses.replace(acme_invoice, partial_payment=True)
        )
        assert not temp_db.is_duplicate(Partition(2025, 4), acme_invoice)


def test_wipe(temp_db, acme_invoice, march):
    temp_db.insert(_stored(acme_invoice, "a.pdf", march))
    temp_db.marker_path.write_text("migrated", encoding="utf-8")

    temp_db.wipe()

    assert temp_db.list_invoices(march) == []
    assert not temp_db.marker_path.exists()
    temp_db.insert(_stored(acme_invoice, "b.pdf", march))
    assert temp_db.count() == 1


def test_delete_store(temp_db, acme_invoice, march):
    temp_db.insert(_stored(acme_invoice, "a.pdf", march))
    path = temp_db.database_path

    temp_db.delete_store()

    assert not path.exists()


class TestStoreProvider:
    """Tests for per-partition and global store selection."""

    def test_per_partition_paths(self, storage_root, config_dir, march):
        provider = StoreProvider(storage_root, config_dir)

        assert provider.path_for(march) == storage_root / "2025-03" / "invoices.db"
        assert provider.marker_path() == storage_root / ".migrated"

    def test_existing_repository_does_not_create(self, storage_root, config_dir, march):
        provider = StoreProvider(storage_root, config_dir)

        assert provider.existing_repository(march) is None
        assert not partition_store_path(storage_root, march).exists()

        repository = provider.repository_for(march)
        assert provider.existing_repository(march) is repository
        provider.close_all()

    def test_global_store_shared(self, storage_root, config_dir, march):
        provider = StoreProvider(storage_root, config_dir, global_store=True)

        assert provider.repository_for(march) is provider.repository_for(Partition(2024, 12))
        assert provider.path_for(march) == config_dir / "invoices.db"
        assert provider.marker_path() == config_dir / ".migrated"
        provider.close_all()


def test_amounts_stored_unrounded(temp_db, acme_invoice, march):
    """Duplicate tolerance holds in both directions for stored amounts."""
    temp_db.insert(
        _stored(dataclasses.replace(acme_invoice, gross_amount=Decimal("119.009")), "a.pdf", march)
    )

    assert temp_db.find(march, "a.pdf").gross_amount == Decimal("119.009")
    assert temp_db.is_duplicate(march, acme_invoice)
    assert not temp_db.is_duplicate(
        march, dataclasses.replace(acme_invoice, gross_amount=Decimal("119.02"))
    )
