"""RenderInvoicePdf Use Case

Re-renders the PDF of a stored invoice for download. Reflects the current
payment status, so the PAID stamp appears once an invoice is marked paid.
"""

import asyncio
import logging
from typing import Optional
from config import ApplicationConfig
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.services.pdf_service import PdfService
from .dtos import InvoicePdfDTO
from .errors import ErrorCode
from .get_invoice import invoice_not_found, storage_error

logger = logging.getLogger(__name__)


class RenderInvoicePdf:
    """Use Case: Render the PDF of an existing invoice"""

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        pdf_service: PdfService,
        render_timeout: Optional[float] = None,
    ):
        self.invoice_repo = invoice_repo
        self.pdf_service = pdf_service
        self.render_timeout = render_timeout or ApplicationConfig.RENDER_TIMEOUT_SECONDS

    async def execute(self, invoice_number: int) -> Result[InvoicePdfDTO]:
        try:
            invoice = await self.invoice_repo.get_by_invoice_number(invoice_number)
        except Exception as e:
            return Return.err(storage_error(f"Could not read invoice #{invoice_number}", e))

        if invoice is None:
            return Return.err(invoice_not_found(invoice_number))

        try:
            content = await asyncio.wait_for(
                asyncio.to_thread(self.pdf_service.generate_invoice, invoice),
                timeout=self.render_timeout,
            )
        except asyncio.TimeoutError:
            return Return.err(
                Error(
                    code=ErrorCode.RENDER_TIMEOUT.value,
                    message=f"Rendering invoice #{invoice_number} timed out",
                )
            )
        except Exception as e:
            logger.error(f"Rendering stored invoice #{invoice_number} failed: {e}")
            return Return.err(
                Error(
                    code=ErrorCode.RENDER_FAILED.value,
                    message=f"Could not render invoice #{invoice_number}",
                    reason=str(e),
                )
            )

        return Return.ok(
            InvoicePdfDTO(
                invoice_number=invoice_number,
                filename=f"invoice-{invoice_number}.pdf",
                content=content,
            )
        )
