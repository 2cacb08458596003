"""Shared domain error messages and error types."""

from pathlib import Path


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DuplicateInvoiceError(ConflictError):
    """Candidate invoice collides with an existing record in its partition.

    Carries the filename the record would have been stored under so callers
    can ask for confirmation and retry with duplicates allowed.
    """

    def __init__(self, message: str, filename: str):
        super().__init__(message)
        self.filename = filename


class StorageError(DomainError):
    """An I/O or storage operation failed.

    The failing path and operation are kept for reporting; the underlying
    exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, path: str | Path | None, reason: object):
        self.operation = operation
        self.path = str(path) if path is not None else None
        self.reason = str(reason)
        location = f" '{self.path}'" if self.path else ""
        super().__init__(f"Failed to {operation}{location}: {self.reason}")


def invoice_not_found(partition: object, filename: str) -> str:
    """Return message for a missing invoice addressed by filename."""
    return f"Invoice '{filename}' not found in {partition}"


def invoice_id_not_found(invoice_id: int) -> str:
    """Return message for a missing invoice addressed by ID."""
    return f"Invoice {invoice_id} not found"


def duplicate_invoice(company: str, invoice_number: str, partition: object) -> str:
    """Return message for a duplicate invoice candidate."""
    return (
        f"Invoice '{invoice_number}' from '{company}' already exists in {partition}"
    )
