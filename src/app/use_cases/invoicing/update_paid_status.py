"""UpdatePaidStatus Use Case

Marks an invoice paid or unpaid. Payment status is the only thing that
may change once an invoice is issued.
"""

import logging
from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import InvoiceResponseDTO
from .get_invoice import invoice_not_found, storage_error

logger = logging.getLogger(__name__)


class UpdatePaidStatus:
    """Use Case: Toggle the payment status of an invoice"""

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, invoice_number: int, is_paid: bool) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.update(invoice_number, {"is_paid": is_paid})
        except Exception as e:
            return Return.err(storage_error(f"Could not update invoice #{invoice_number}", e))

        if invoice is None:
            return Return.err(invoice_not_found(invoice_number))

        logger.info(f"Invoice #{invoice_number} marked {'paid' if is_paid else 'unpaid'}")
        return Return.ok(InvoiceResponseDTO.from_invoice(invoice))
