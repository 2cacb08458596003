"""Abstract invoice store interface."""

from abc import ABC, abstractmethod
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from invoicebook.domain.entities import InvoiceRecord, Partition


class InvoiceRepository(ABC):
    """Abstract store of invoice records, partitioned by (year, month)."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize the store schema (create tables)."""
        pass

    @abstractmethod
    def insert(self, record: InvoiceRecord) -> int:
        """Insert a record into the partition named by its year/month. Returns its ID."""
        pass

    @abstractmethod
    def get(self, invoice_id: int) -> Optional[InvoiceRecord]:
        """Get a record by ID."""
        pass

    @abstractmethod
    def find(self, partition: Partition, filename: str) -> Optional[InvoiceRecord]:
        """Get a record by partition and filename."""
        pass

    @abstractmethod
    def update(self, partition: Partition, old_filename: str, record: InvoiceRecord) -> int:
        """Replace the mutable fields of the row matching (partition, old_filename).

        Returns the number of rows affected, which is zero when nothing matched.
        """
        pass

    @abstractmethod
    def update_by_id(self, invoice_id: int, record: InvoiceRecord) -> int:
        """Replace the mutable fields of the row with the given ID.

        Returns the number of rows affected.
        """
        pass

    @abstractmethod
    def delete(self, partition: Partition, filename: str) -> None:
        """Delete the row matching (partition, filename).

        Raises:
            NotFoundError: If no row matched
        """
        pass

    @abstractmethod
    def delete_by_id(self, invoice_id: int) -> None:
        """Delete the row with the given ID.

        Raises:
            NotFoundError: If no row matched
        """
        pass

    @abstractmethod
    def list_invoices(self, partition: Partition) -> list[InvoiceRecord]:
        """List records of a partition, newest invoice date first, then by filename."""
        pass

    @abstractmethod
    def is_duplicate(self, partition: Partition, candidate: InvoiceRecord) -> bool:
        """Check whether a candidate collides with a record in the partition."""
        pass

    @abstractmethod
    def wipe(self) -> None:
        """Drop all records and recreate the schema."""
        pass
