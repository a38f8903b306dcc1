"""DeleteInvoice Use Case

Administrative removal of a stored invoice. The number is never handed
out again: the sequence is not touched.
"""

import logging
from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import DeleteInvoiceResponseDTO
from .get_invoice import invoice_not_found, storage_error

logger = logging.getLogger(__name__)


class DeleteInvoice:
    """Use Case: Delete an invoice by number"""

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, invoice_number: int) -> Result[DeleteInvoiceResponseDTO]:
        try:
            deleted = await self.invoice_repo.delete(invoice_number)
        except Exception as e:
            return Return.err(storage_error(f"Could not delete invoice #{invoice_number}", e))

        if not deleted:
            return Return.err(invoice_not_found(invoice_number))

        logger.warning(f"Invoice #{invoice_number} deleted, its number stays retired")
        return Return.ok(DeleteInvoiceResponseDTO(invoice_number=invoice_number))
