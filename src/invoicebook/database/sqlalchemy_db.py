"""Generic SQLAlchemy invoice store implementation."""

import logging
import os
from contextlib import contextmanager
from datetime import datetime, UTC
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from invoicebook.database.base import InvoiceRepository
from invoicebook.database.mappers import (
    invoice_to_domain,
    record_to_orm,
    record_to_values,
)
from invoicebook.database.models import Base, Invoice, create_session_factory
from invoicebook.domain.dedupe import find_duplicate
from invoicebook.domain.entities import InvoiceRecord, Partition
from invoicebook.domain.errors import (
    NotFoundError,
    StorageError,
    ValidationError,
    invoice_id_not_found,
    invoice_not_found,
)

logger = logging.getLogger(__name__)

MIGRATION_MARKER = ".migrated"


class SQLAlchemyInvoiceRepository(InvoiceRepository):
    """SQLAlchemy-based implementation of InvoiceRepository."""

    def __init__(self, database_url: str, database_path: Optional[str | Path] = None):
        """Initialize SQLAlchemy store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to/invoices.db')
            database_path: Path of the store file when it lives on disk; the
                migration marker is kept next to it
        """
        self.database_url = database_url
        self.database_path = Path(database_path) if database_path is not None else None
        try:
            self.session_factory = create_session_factory(database_url)
        except SQLAlchemyError as e:
            raise StorageError("open invoice store", self.database_path or database_url, e) from e
        self._session: Optional[Session] = None

    @property
    def marker_path(self) -> Optional[Path]:
        """Migration marker colocated with the store file."""
        if self.database_path is None:
            return None
        return self.database_path.parent / MIGRATION_MARKER

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    @contextmanager
    def _storage_errors(self, operation: str) -> Iterator[Session]:
        """Yield the session; roll back and wrap driver errors as StorageError."""
        session = self._get_session()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(operation, self.database_path or self.database_url, e) from e

    def connect(self) -> None:
        """Connect to the store."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the store."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize store schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    def insert(self, record: InvoiceRecord) -> int:
        """Insert a record. Returns its ID."""
        if record.partition is None:
            raise ValidationError(
                f"Invoice '{record.filename}' has no valid partition "
                f"(year '{record.year}', month '{record.month}')"
            )
        with self._storage_errors("insert invoice") as session:
            invoice = record_to_orm(record)
            session.add(invoice)
            session.commit()
            return invoice.id

    def get(self, invoice_id: int) -> Optional[InvoiceRecord]:
        """Get a record by ID."""
        with self._storage_errors("read invoice") as session:
            invoice = session.query(Invoice).filter(Invoice.id == invoice_id).first()
            if invoice is None:
                return None
            return invoice_to_domain(invoice)

    def find(self, partition: Partition, filename: str) -> Optional[InvoiceRecord]:
        """Get a record by partition and filename."""
        with self._storage_errors("read invoice") as session:
            invoice = (
                self._partition_query(session, partition)
                .filter(Invoice.filename == filename)
                .order_by(Invoice.id)
                .first()
            )
            if invoice is None:
                return None
            return invoice_to_domain(invoice)

    def update(self, partition: Partition, old_filename: str, record: InvoiceRecord) -> int:
        """Replace the mutable fields of the row matching (partition, old_filename)."""
        with self._storage_errors("update invoice") as session:
            affected = (
                self._partition_query(session, partition)
                .filter(Invoice.filename == old_filename)
                .update(self._update_values(record), synchronize_session=False)
            )
            session.commit()
        if affected == 0:
            logger.warning("Update matched no invoice '%s' in %s", old_filename, partition)
        return affected

    def update_by_id(self, invoice_id: int, record: InvoiceRecord) -> int:
        """Replace the mutable fields of the row with the given ID."""
        with self._storage_errors("update invoice") as session:
            affected = (
                session.query(Invoice)
                .filter(Invoice.id == invoice_id)
                .update(self._update_values(record), synchronize_session=False)
            )
            session.commit()
        if affected == 0:
            logger.warning("Update matched no invoice with ID %s", invoice_id)
        return affected

    def delete(self, partition: Partition, filename: str) -> None:
        """Delete the row matching (partition, filename)."""
        with self._storage_errors("delete invoice") as session:
            affected = (
                self._partition_query(session, partition)
                .filter(Invoice.filename == filename)
                .delete(synchronize_session=False)
            )
            session.commit()
        if affected == 0:
            raise NotFoundError(invoice_not_found(partition, filename))

    def delete_by_id(self, invoice_id: int) -> None:
        """Delete the row with the given ID."""
        with self._storage_errors("delete invoice") as session:
            affected = (
                session.query(Invoice)
                .filter(Invoice.id == invoice_id)
                .delete(synchronize_session=False)
            )
            session.commit()
        if affected == 0:
            raise NotFoundError(invoice_id_not_found(invoice_id))

    def list_invoices(self, partition: Partition) -> list[InvoiceRecord]:
        """List records of a partition, newest invoice date first, then by filename."""
        with self._storage_errors("list invoices") as session:
            invoices = (
                self._partition_query(session, partition)
                .order_by(Invoice.invoice_day.desc(), Invoice.filename.asc(), Invoice.id.asc())
                .all()
            )
            return [invoice_to_domain(invoice) for invoice in invoices]

    def is_duplicate(self, partition: Partition, candidate: InvoiceRecord) -> bool:
        """Check whether a candidate collides with a record in the partition.

        The exact-match key fields are filtered in SQL; issuer normalization
        and the gross amount tolerance are applied to the remaining rows.
        """
        with self._storage_errors("check duplicate") as session:
            invoices = (
                self._partition_query(session, partition)
                .filter(
                    Invoice.invoice_number == candidate.invoice_number,
                    Invoice.invoice_date == candidate.invoice_date,
                    Invoice.partial_payment == bool(candidate.partial_payment),
                )
                .all()
            )
            existing = [invoice_to_domain(invoice) for invoice in invoices]
        return find_duplicate(existing, candidate) is not None

    def count(self, partition: Optional[Partition] = None) -> int:
        """Count records, optionally within one partition."""
        with self._storage_errors("count invoices") as session:
            if partition is None:
                return session.query(Invoice).count()
            return self._partition_query(session, partition).count()

    def wipe(self) -> None:
        """Drop all records, recreate the schema and forget the migration."""
        self.disconnect()
        session = self.session_factory()
        try:
            engine = session.get_bind()
        finally:
            session.close()
        try:
            Base.metadata.drop_all(engine)
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            raise StorageError("wipe invoice store", self.database_path or self.database_url, e) from e
        self._remove_marker()

    def delete_store(self) -> None:
        """Close the store and delete its file and migration marker.

        The repository is unusable afterwards.
        """
        self.disconnect()
        session = self.session_factory()
        try:
            session.get_bind().dispose()
        finally:
            session.close()
        if self.database_path is not None:
            try:
                os.remove(self.database_path)
            except FileNotFoundError:
                pass
            except OSError as e:
                raise StorageError("delete invoice store", self.database_path, e) from e
        self._remove_marker()

    def _remove_marker(self) -> None:
        if self.marker_path is not None:
            self.marker_path.unlink(missing_ok=True)

    @staticmethod
    def _partition_query(session: Session, partition: Partition):
        return session.query(Invoice).filter(
            Invoice.year == partition.year_str, Invoice.month == partition.month_str
        )

    @staticmethod
    def _update_values(record: InvoiceRecord) -> dict:
        values = record_to_values(record)
        # Partition moves go through delete + insert, never through update
        values.pop("year")
        values.pop("month")
        values["updated_at"] = datetime.now(UTC)
        return values
