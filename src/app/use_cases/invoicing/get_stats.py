"""GetStats Use Case"""

from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.sequence_repository import SequenceRepository
from .dtos import StatsResponseDTO
from .get_invoice import storage_error


class GetStats:
    """
    Use Case: Aggregate counts and amounts over stored invoices

    Also reports the advisory next invoice number.
    """

    def __init__(self, invoice_repo: InvoiceRepository, sequence_repo: SequenceRepository):
        self.invoice_repo = invoice_repo
        self.sequence_repo = sequence_repo

    async def execute(self) -> Result[StatsResponseDTO]:
        try:
            stats = await self.invoice_repo.stats()
            next_number = await self.sequence_repo.peek_next()
        except Exception as e:
            return Return.err(storage_error("Could not compute invoice stats", e))

        return Return.ok(StatsResponseDTO(**stats.model_dump(), next_invoice_number=next_number))
