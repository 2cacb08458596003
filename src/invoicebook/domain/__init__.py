"""Domain layer for invoicebook."""

from invoicebook.domain.entities import InvoiceRecord, Partition
from invoicebook.domain.errors import (
    DomainError,
    ValidationError,
    NotFoundError,
    ConflictError,
    DuplicateInvoiceError,
    StorageError,
)

__all__ = [
    "InvoiceRecord",
    "Partition",
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "DuplicateInvoiceError",
    "StorageError",
]
