"""One-time import of legacy CSV files into the invoice store."""

import dataclasses
import logging
from pathlib import Path
from typing import Callable, Optional

from invoicebook.database.base import InvoiceRepository
from invoicebook.domain.csv_codec import InvoiceCSVCodec
from invoicebook.domain.entities import InvoiceRecord, Partition
from invoicebook.domain.errors import DomainError, ValidationError
from invoicebook.domain.storage import StorageManager
from invoicebook.utils.date_parser import try_parse_canonical

logger = logging.getLogger(__name__)


class CSVMigrationEngine:
    """Imports every invoices CSV under the storage root, at most once.

    A marker file records that the import ran; its content is ignored.
    """

    def __init__(
        self,
        storage: StorageManager,
        codec: InvoiceCSVCodec,
        repository_for: Callable[[Partition], InvoiceRepository],
        marker_path: str | Path,
    ):
        """Initialize migration engine.

        Args:
            storage: Storage manager for the root to scan
            codec: CSV codec used to read legacy files
            repository_for: Returns the store holding a partition
            marker_path: Sentinel file written once migration has run
        """
        self.storage = storage
        self.codec = codec
        self.repository_for = repository_for
        self.marker_path = Path(marker_path)

    def already_migrated(self) -> bool:
        return self.marker_path.exists()

    def run(self) -> int:
        """Run the migration if it has not run yet.

        Returns:
            Number of records newly inserted (0 when already migrated)

        Raises:
            StorageError: If the storage root cannot be scanned
        """
        if self.already_migrated():
            logger.info("Migration already completed (marker %s exists)", self.marker_path)
            return 0

        logger.info("Starting CSV migration from %s", self.storage.storage_root)
        csv_paths = self.storage.list_csv_paths()
        logger.info("Found %d CSV files to migrate", len(csv_paths))

        total_imported = 0
        for csv_path in csv_paths:
            try:
                count = self.import_file(csv_path)
            except DomainError as e:
                logger.warning("Failed to import %s: %s", csv_path, e)
                continue
            total_imported += count
            logger.info("Imported %d invoices from %s", count, csv_path)

        self._write_marker()
        logger.info("Migration complete, imported %d invoices in total", total_imported)
        return total_imported

    def import_file(self, csv_path: str | Path) -> int:
        """Import one CSV file, skipping duplicates.

        Returns:
            Number of records inserted

        Raises:
            StorageError: If the file cannot be read
        """
        csv_path = Path(csv_path)
        imported = 0
        for row_num, record in enumerate(self.codec.load(csv_path), start=1):
            partition = self._partition_for(record, csv_path)
            if partition is None:
                logger.warning(
                    "%s row %d: cannot determine partition for '%s', skipped",
                    csv_path,
                    row_num,
                    record.filename,
                )
                continue
            record = dataclasses.replace(
                record, year=partition.year_str, month=partition.month_str, id=None
            )
            repository = self.repository_for(partition)
            try:
                if repository.is_duplicate(partition, record):
                    continue
                repository.insert(record)
            except DomainError as e:
                logger.warning("%s row %d: %s", csv_path, row_num, e)
                continue
            imported += 1
        return imported

    @staticmethod
    def _partition_for(record: InvoiceRecord, csv_path: Path) -> Optional[Partition]:
        if record.partition is not None:
            return record.partition
        try:
            return Partition.parse(csv_path.parent.name)
        except ValidationError:
            pass
        invoice_day = try_parse_canonical(record.invoice_date)
        if invoice_day is not None:
            return Partition.from_date(invoice_day)
        return None

    def _write_marker(self) -> None:
        try:
            self.marker_path.parent.mkdir(parents=True, exist_ok=True)
            self.marker_path.write_text("migrated", encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to create migration marker %s: %s", self.marker_path, e)
