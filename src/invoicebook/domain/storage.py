"""Filesystem layout of the invoice storage root."""

import logging
import os
import shutil
from pathlib import Path
from typing import Collection

from invoicebook.domain.csv_codec import CSV_FILENAME
from invoicebook.domain.entities import Partition
from invoicebook.domain.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class StorageManager:
    """Resolves partition folders and places documents inside them."""

    def __init__(self, storage_root: str | Path, use_month_subfolders: bool = True):
        """Initialize storage manager.

        Args:
            storage_root: Root folder holding all partitions
            use_month_subfolders: Keep each partition in its own YYYY-MM folder
        """
        self.storage_root = Path(storage_root)
        self.use_month_subfolders = use_month_subfolders

    def month_folder(self, partition: Partition) -> Path:
        """Folder for a partition (the root itself when subfolders are off)."""
        if not self.use_month_subfolders:
            return self.storage_root
        return self.storage_root / partition.folder_name

    def ensure_month_folder(self, partition: Partition) -> Path:
        """Create the partition folder if needed and return it."""
        folder = self.month_folder(partition)
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError("create partition folder", folder, e) from e
        return folder

    def csv_path(self, partition: Partition) -> Path:
        return self.month_folder(partition) / CSV_FILENAME

    def document_path(self, partition: Partition, filename: str) -> Path:
        return self.month_folder(partition) / filename

    def list_csv_paths(self) -> list[Path]:
        """All invoices CSV files under the storage root, in path order."""
        if not self.storage_root.exists():
            return []
        paths = []
        try:
            for dirpath, _dirnames, filenames in os.walk(self.storage_root, onerror=_raise):
                for name in filenames:
                    if name.lower() == CSV_FILENAME:
                        paths.append(Path(dirpath) / name)
        except OSError as e:
            raise StorageError("scan storage root", self.storage_root, e) from e
        return sorted(paths)

    @staticmethod
    def unique_name(
        folder: Path,
        filename: str,
        ignore: str | None = None,
        taken: Collection[str] = (),
    ) -> str:
        """Return ``filename`` or the first free ``stem_N.ext`` variant.

        A name is taken when a file of that name exists in the folder or it
        is listed in ``taken`` (names already used by stored records).

        Args:
            folder: Target folder
            filename: Desired filename
            ignore: A filename that counts as free (the record being renamed)
            taken: Filenames in use regardless of what is on disk
        """
        candidate = filename
        stem, suffix = os.path.splitext(filename)
        counter = 2
        while candidate != ignore and (candidate in taken or (folder / candidate).exists()):
            candidate = f"{stem}_{counter}{suffix}"
            counter += 1
        return candidate

    def move_into(self, source: str | Path, target: Path) -> Path:
        """Move a document to ``target``, copying across devices if needed.

        Raises:
            NotFoundError: If the source does not exist
            StorageError: If the move fails
        """
        source_path = Path(source)
        if not source_path.exists():
            raise NotFoundError(f"File not found: {source_path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source_path), str(target))
        except OSError as e:
            raise StorageError("move document", source_path, e) from e
        logger.debug("Moved %s to %s", source_path, target)
        return target

    def remove_document(self, partition: Partition, filename: str) -> bool:
        """Delete a document from a partition folder.

        Returns:
            True if a file was removed, False if it did not exist
        """
        path = self.document_path(partition, filename)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError("delete document", path, e) from e
        return True


def _raise(error: OSError) -> None:
    raise error
