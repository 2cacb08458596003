"""Database layer for invoicebook."""

from invoicebook.database.base import InvoiceRepository
from invoicebook.database.factories import StoreProvider, create_sqlite_repository

__all__ = ["InvoiceRepository", "StoreProvider", "create_sqlite_repository"]
