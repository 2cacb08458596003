"""Store factory functions for creating invoice repositories."""

from pathlib import Path
from typing import Callable, Optional

from invoicebook.database.base import InvoiceRepository
from invoicebook.database.sqlalchemy_db import SQLAlchemyInvoiceRepository
from invoicebook.domain.entities import Partition
from invoicebook.domain.errors import StorageError

STORE_FILENAME = "invoices.db"


def partition_store_path(storage_root: str | Path, partition: Partition) -> Path:
    """Path of the store file for one partition: <root>/YYYY-MM/invoices.db."""
    return Path(storage_root) / partition.folder_name / STORE_FILENAME


def global_store_path(config_dir: str | Path) -> Path:
    """Path of a single store shared by all partitions: <config_dir>/invoices.db."""
    return Path(config_dir) / STORE_FILENAME


def create_sqlite_repository(database_path: str | Path) -> SQLAlchemyInvoiceRepository:
    """Create a SQLite-backed repository, creating its directory if needed.

    Args:
        database_path: Path to SQLite database file

    Returns:
        SQLAlchemyInvoiceRepository instance configured for SQLite

    Raises:
        StorageError: If the directory cannot be created or the store opened
    """
    path = Path(database_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError("create store directory", path.parent, e) from e
    return SQLAlchemyInvoiceRepository(f"sqlite:///{path}", database_path=path)


class StoreProvider:
    """Hands out one open repository per store file.

    With ``global_store`` every partition shares the store in ``config_dir``;
    otherwise each partition gets its own store under the storage root.
    """

    def __init__(
        self,
        storage_root: str | Path,
        config_dir: str | Path,
        global_store: bool = False,
        factory: Callable[[Path], InvoiceRepository] = create_sqlite_repository,
    ):
        self.storage_root = Path(storage_root)
        self.config_dir = Path(config_dir)
        self.global_store = global_store
        self._factory = factory
        self._open: dict[Path, InvoiceRepository] = {}

    def path_for(self, partition: Partition) -> Path:
        if self.global_store:
            return global_store_path(self.config_dir)
        return partition_store_path(self.storage_root, partition)

    def __call__(self, partition: Partition) -> InvoiceRepository:
        return self.repository_for(partition)

    def repository_for(self, partition: Partition) -> InvoiceRepository:
        """Open (or reuse) the repository holding the given partition."""
        path = self.path_for(partition)
        repository = self._open.get(path)
        if repository is None:
            repository = self._factory(path)
            repository.connect()
            repository.initialize_schema()
            self._open[path] = repository
        return repository

    def existing_repository(self, partition: Partition) -> Optional[InvoiceRepository]:
        """Repository for a partition only if its store file already exists."""
        path = self.path_for(partition)
        if path not in self._open and not path.exists():
            return None
        return self.repository_for(partition)

    def marker_path(self) -> Path:
        """Path of the migration marker.

        Colocated with the global store, or at the storage root when stores
        are per partition.
        """
        if self.global_store:
            return self.config_dir / ".migrated"
        return self.storage_root / ".migrated"

    def close_all(self) -> None:
        for repository in self._open.values():
            repository.disconnect()
        self._open.clear()
