"""GetInvoice Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import InvoiceResponseDTO
from .errors import ErrorCode


def invoice_not_found(invoice_number: int) -> Error:
    return Error(
        code=ErrorCode.INVOICE_NOT_FOUND.value,
        message=f"Invoice #{invoice_number} not found",
    )


def storage_error(message: str, e: Exception) -> Error:
    return Error(
        code=ErrorCode.STORAGE_ERROR.value,
        message=message,
        reason=str(e),
    )


class GetInvoice:
    """Use Case: Retrieve a stored invoice by number"""

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, invoice_number: int) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_invoice_number(invoice_number)
        except Exception as e:
            return Return.err(storage_error(f"Could not read invoice #{invoice_number}", e))

        if invoice is None:
            return Return.err(invoice_not_found(invoice_number))

        return Return.ok(InvoiceResponseDTO.from_invoice(invoice))
