"""ListInvoices Use Case

Lists every stored invoice together with aggregate stats.
"""

from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice_stats import InvoiceStats
from .dtos import InvoiceResponseDTO, InvoiceStatsDTO, ListInvoicesResponseDTO
from .get_invoice import storage_error


class ListInvoices:
    """
    Use Case: List invoices, highest number first

    Stats are computed from the same snapshot as the list, so the two
    always agree.
    """

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self) -> Result[ListInvoicesResponseDTO]:
        try:
            invoices = await self.invoice_repo.list_all()
        except Exception as e:
            return Return.err(storage_error("Could not list invoices", e))

        stats = InvoiceStats.from_invoices(invoices)

        return Return.ok(
            ListInvoicesResponseDTO(
                invoices=[InvoiceResponseDTO.from_invoice(invoice) for invoice in invoices],
                stats=InvoiceStatsDTO.from_stats(stats),
            )
        )
