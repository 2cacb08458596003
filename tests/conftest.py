"""Shared pytest fixtures for invoicebook tests."""

from decimal import Decimal
import pytest

from invoicebook.config import Settings
from invoicebook.database.factories import create_sqlite_repository
from invoicebook.domain.csv_codec import InvoiceCSVCodec
from invoicebook.domain.entities import InvoiceRecord, Partition
from invoicebook.domain.ledger import InvoiceLedger


@pytest.fixture
def storage_root(tmp_path):
    """Temporary storage root."""
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def config_dir(tmp_path):
    """Temporary configuration directory."""
    return tmp_path / "config"


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary invoice store for testing."""
    db = create_sqlite_repository(tmp_path / "db" / "invoices.db")
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()


@pytest.fixture
def codec():
    """CSV codec with the default column layout."""
    return InvoiceCSVCodec()


@pytest.fixture
def settings(storage_root, config_dir):
    """Settings pointing at temporary folders, with '.' as decimal separator."""
    return Settings.build(
        storage_root=storage_root,
        config_dir=config_dir,
        decimal_separator=".",
        column_order=[],
    )


@pytest.fixture
def ledger(settings):
    """Invoice ledger over temporary folders."""
    ledger = InvoiceLedger(settings)
    yield ledger
    ledger.close()


@pytest.fixture
def march():
    return Partition(2025, 3)


@pytest.fixture
def acme_invoice():
    """Sample invoice dated in March 2025."""
    return InvoiceRecord(
        company="Acme GmbH",
        invoice_number="R-100",
        invoice_date="15.03.2025",
        year="2025",
        month="03",
        net_amount=Decimal("100.00"),
        tax_percent=Decimal("19.00"),
        tax_amount=Decimal("19.00"),
        gross_amount=Decimal("119.00"),
        currency="EUR",
        partial_payment=False,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_base_args(storage_root, config_dir):
    """Global CLI options pointing at temporary folders."""
    return [
        "--storage-root",
        str(storage_root),
        "--config-dir",
        str(config_dir),
        "--decimal-separator",
        ".",
    ]
