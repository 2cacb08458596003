"""Invoice ledger service.

Coordinates the store, the CSV export, filename rendering and document
placement for save, update and delete requests coming from the UI layer.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from invoicebook.config import Settings
from invoicebook.database.base import InvoiceRepository
from invoicebook.database.factories import StoreProvider
from invoicebook.domain.csv_codec import InvoiceCSVCodec
from invoicebook.domain.dedupe import check_consistency
from invoicebook.domain.entities import (
    SHORT_DESCRIPTION_MAX_LENGTH,
    InvoiceRecord,
    Partition,
)
from invoicebook.domain.errors import (
    DomainError,
    DuplicateInvoiceError,
    NotFoundError,
    duplicate_invoice,
    invoice_not_found,
)
from invoicebook.domain.export import ExportBridge
from invoicebook.domain.migration import CSVMigrationEngine
from invoicebook.domain.storage import StorageManager
from invoicebook.utils.date_parser import try_parse_canonical

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateCheck:
    """Outcome of a duplicate check for a candidate record."""

    is_duplicate: bool
    filename: str
    consistent: bool


class InvoiceLedger:
    """Service for storing invoices in month partitions."""

    def __init__(self, settings: Settings, stores: Optional[StoreProvider] = None):
        """Initialize the ledger.

        Args:
            settings: Application settings
            stores: Store provider; built from settings when omitted
        """
        self.settings = settings
        self.stores = stores or StoreProvider(
            settings.storage_root, settings.config_dir, global_store=settings.global_store
        )
        self.storage = StorageManager(settings.storage_root, settings.use_month_subfolders)
        self.codec = InvoiceCSVCodec(settings.layout)
        self.template = settings.filename_template()
        self.bridge = ExportBridge(self.storage, self.codec)
        # One mutation (store write, export, file move) at a time
        self._lock = threading.RLock()

    def prepare(self, record: InvoiceRecord) -> InvoiceRecord:
        """Fill derived fields of a draft record.

        Truncates the short description, applies the default currency and
        derives year/month from the invoice date when they are empty.
        """
        changes: dict = {}
        if len(record.short_description) > SHORT_DESCRIPTION_MAX_LENGTH:
            changes["short_description"] = record.short_description[:SHORT_DESCRIPTION_MAX_LENGTH]
        if not record.currency:
            changes["currency"] = self.settings.currency_default
        if not record.year or not record.month:
            invoice_day = try_parse_canonical(record.invoice_date)
            if invoice_day is not None:
                changes.setdefault("year", record.year or f"{invoice_day.year:04d}")
                changes.setdefault("month", record.month or f"{invoice_day.month:02d}")
        return dataclasses.replace(record, **changes) if changes else record

    def preview_filename(self, record: InvoiceRecord, original_name: str = "") -> str:
        """Render the filename a record would be stored under."""
        return self._render(self.prepare(record), original_name)

    def list_invoices(self, partition: Partition) -> list[InvoiceRecord]:
        """Records of a partition; an absent store is an empty partition."""
        repository = self.stores.existing_repository(partition)
        if repository is None:
            return []
        return repository.list_invoices(partition)

    def is_duplicate(self, partition: Partition, record: InvoiceRecord) -> bool:
        repository = self.stores.existing_repository(partition)
        if repository is None:
            return False
        return repository.is_duplicate(partition, self.prepare(record))

    def check(
        self, partition: Partition, record: InvoiceRecord, original_name: str = ""
    ) -> DuplicateCheck:
        """Duplicate verdict, would-be filename and consistency of a candidate."""
        prepared = self.prepare(record)
        return DuplicateCheck(
            is_duplicate=self.is_duplicate(partition, prepared),
            filename=self._render(prepared, original_name),
            consistent=check_consistency(prepared),
        )

    def save(
        self,
        partition: Partition,
        record: InvoiceRecord,
        source_path: Optional[str | Path] = None,
        allow_duplicate: bool = False,
    ) -> InvoiceRecord:
        """Store a new invoice in the working partition.

        The record is filed under ``partition`` regardless of its invoice
        date. The rendered name gets a ``_N`` suffix when a stored record or
        a file in the partition folder already uses it. When ``source_path``
        is given the document is moved into the folder under that name.

        Returns:
            The stored record, with its ID

        Raises:
            DuplicateInvoiceError: If the record duplicates an existing one
                and ``allow_duplicate`` is False
            NotFoundError: If ``source_path`` does not exist
            StorageError: If the store or the document move fails
        """
        if source_path is not None and not Path(source_path).exists():
            raise NotFoundError(f"File not found: {source_path}")
        prepared = self.prepare(record)
        if source_path is not None:
            prepared = dataclasses.replace(prepared, original_name=Path(source_path).stem)
        filename = self._render(prepared)
        if not check_consistency(prepared):
            logger.warning(
                "Invoice '%s': net %s + tax %s does not match gross %s",
                filename,
                prepared.net_amount,
                prepared.tax_amount,
                prepared.gross_amount,
            )

        with self._lock:
            repository = self.stores.repository_for(partition)
            if not allow_duplicate and repository.is_duplicate(partition, prepared):
                raise DuplicateInvoiceError(
                    duplicate_invoice(prepared.company, prepared.invoice_number, partition),
                    filename=filename,
                )

            folder = self.storage.ensure_month_folder(partition)
            filename = self.storage.unique_name(
                folder, filename, taken=self._stored_filenames(partition, repository)
            )
            stored = dataclasses.replace(
                prepared,
                year=partition.year_str,
                month=partition.month_str,
                filename=filename,
                id=None,
            )
            invoice_id = repository.insert(stored)

            if source_path is not None:
                try:
                    self.storage.move_into(source_path, folder / filename)
                except DomainError:
                    logger.warning("Moving %s failed, removing invoice %s again", source_path, invoice_id)
                    repository.delete_by_id(invoice_id)
                    raise

            self._export_after_mutation(partition, repository)
            return repository.get(invoice_id) or dataclasses.replace(stored, id=invoice_id)

    def update(self, partition: Partition, old_filename: str, record: InvoiceRecord) -> bool:
        """Replace an invoice and rename its document to the re-rendered name.

        The row is addressed by ``record.id`` when set, else by
        ``(partition, old_filename)``. The name is rendered from the invoice
        date, not from the partition the record is filed under.

        Returns:
            True if a row was updated; False (logged) when nothing matched
        """
        prepared = self.prepare(record)
        with self._lock:
            repository = self.stores.existing_repository(partition)
            if repository is None:
                logger.warning("Update of '%s': no store for %s", old_filename, partition)
                return False

            folder = self.storage.month_folder(partition)
            filename = self._render(prepared)
            old_path = folder / old_filename
            renamed_to: Optional[Path] = None
            if filename != old_filename:
                taken = self._stored_filenames(partition, repository) - {old_filename}
                filename = self.storage.unique_name(
                    folder, filename, ignore=old_filename, taken=taken
                )
                if filename != old_filename and old_path.exists():
                    renamed_to = self.storage.move_into(old_path, folder / filename)

            stored = dataclasses.replace(
                prepared, year=partition.year_str, month=partition.month_str, filename=filename
            )
            try:
                if record.id is not None:
                    affected = repository.update_by_id(record.id, stored)
                else:
                    affected = repository.update(partition, old_filename, stored)
            except DomainError:
                self._undo_rename(renamed_to, old_path)
                raise

            if affected == 0:
                self._undo_rename(renamed_to, old_path)
                return False

            self._export_after_mutation(partition, repository)
            return True

    def delete(self, partition: Partition, filename: str, remove_file: bool = False) -> None:
        """Delete an invoice, optionally removing its document too.

        Raises:
            NotFoundError: If no invoice with that filename exists in the partition
        """
        with self._lock:
            repository = self.stores.existing_repository(partition)
            if repository is None:
                raise NotFoundError(invoice_not_found(partition, filename))
            repository.delete(partition, filename)
            if remove_file and not self.storage.remove_document(partition, filename):
                logger.info("Document %s was already gone", filename)
            self._export_after_mutation(partition, repository)

    def export(self, partition: Partition) -> Path:
        """Regenerate the CSV export of a partition.

        Raises:
            StorageError: If the export fails
        """
        with self._lock:
            return self.bridge.export(partition, self.stores.repository_for(partition))

    def migrate(self) -> int:
        """Import legacy CSV files once. Returns the number of records imported."""
        engine = CSVMigrationEngine(
            storage=self.storage,
            codec=self.codec,
            repository_for=self.stores.repository_for,
            marker_path=self.stores.marker_path(),
        )
        with self._lock:
            return engine.run()

    def wipe(self, partition: Partition) -> None:
        """Drop every record in the store holding ``partition``.

        With a global store this empties all partitions. The migration marker
        is removed so legacy files can be imported again.
        """
        with self._lock:
            repository = self.stores.repository_for(partition)
            repository.wipe()
            self.stores.marker_path().unlink(missing_ok=True)
            self._export_after_mutation(partition, repository)

    def close(self) -> None:
        self.stores.close_all()

    def _render(self, record: InvoiceRecord, original_name: str = "") -> str:
        # Stored year/month hold the partition; the template wants the invoice month
        invoice_day = try_parse_canonical(record.invoice_date)
        if invoice_day is not None:
            record = dataclasses.replace(
                record, year=f"{invoice_day.year:04d}", month=f"{invoice_day.month:02d}"
            )
        return self.template.render(record, original_name or record.original_name)

    @staticmethod
    def _stored_filenames(partition: Partition, repository: InvoiceRepository) -> set[str]:
        return {stored.filename for stored in repository.list_invoices(partition)}

    def _export_after_mutation(self, partition: Partition, repository: InvoiceRepository) -> None:
        # The store is authoritative; a failed export is repaired by the next one
        try:
            self.bridge.export(partition, repository)
        except DomainError as e:
            logger.error("CSV export for %s failed after store update: %s", partition, e)

    def _undo_rename(self, renamed_to: Optional[Path], original: Path) -> None:
        if renamed_to is None:
            return
        logger.warning("Restoring %s to %s", renamed_to, original)
        self.storage.move_into(renamed_to, original)
