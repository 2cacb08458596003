"""Keeps each partition's CSV export in sync with the invoice store."""

import logging
from pathlib import Path

from invoicebook.database.base import InvoiceRepository
from invoicebook.domain.csv_codec import InvoiceCSVCodec
from invoicebook.domain.entities import Partition
from invoicebook.domain.storage import StorageManager

logger = logging.getLogger(__name__)


class ExportBridge:
    """Regenerates a partition's CSV file from the store's current contents.

    Every export rewrites the whole file, so repeating an export after a
    failure converges to the store state.
    """

    def __init__(self, storage: StorageManager, codec: InvoiceCSVCodec):
        self.storage = storage
        self.codec = codec

    def export(self, partition: Partition, repository: InvoiceRepository) -> Path:
        """Rewrite the CSV file of a partition.

        Returns:
            Path of the written file

        Raises:
            StorageError: If the store cannot be read or the file written
        """
        records = repository.list_invoices(partition)
        self.storage.ensure_month_folder(partition)
        csv_path = self.storage.csv_path(partition)
        self.codec.rewrite(csv_path, records)
        logger.debug("Exported %d invoices to %s", len(records), csv_path)
        return csv_path
