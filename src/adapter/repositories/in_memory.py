"""In-memory repositories

Process-local stores for tests and throwaway runs. Records are kept as
plain dicts so callers never share mutable entities with the store.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.sequence_repository import SequenceRepository
from src.domain.exceptions import DuplicateInvoiceNumberError
from src.domain.invoice import Invoice, ensure_mutable, invoice_from_dict, invoice_to_dict
from src.domain.invoice_stats import InvoiceStats

logger = logging.getLogger(__name__)


class InMemorySequenceRepository(SequenceRepository):
    def __init__(self, starting_number: int = 1, last_issued_number: Optional[int] = None):
        self._last = starting_number - 1 if last_issued_number is None else last_issued_number
        self._lock = asyncio.Lock()

    @property
    def last_issued_number(self) -> int:
        return self._last

    async def reserve_next(self) -> int:
        async with self._lock:
            self._last += 1
            logger.info(f"Reserved invoice number {self._last}")
            return self._last

    async def peek_next(self) -> int:
        return self._last + 1

    async def release(self, invoice_number: int) -> bool:
        async with self._lock:
            if self._last != invoice_number:
                logger.warning(f"Invoice number {invoice_number} not released, stays a gap")
                return False
            self._last = invoice_number - 1
            logger.info(f"Released invoice number {invoice_number}")
            return True


class InMemoryInvoiceRepository(InvoiceRepository):
    def __init__(self):
        self._records: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def save(self, invoice: Invoice) -> Invoice:
        async with self._lock:
            if invoice.invoice_number in self._records:
                raise DuplicateInvoiceNumberError(invoice.invoice_number)

            invoice.id = self._next_id
            self._next_id += 1
            for line in invoice.lines:
                line.invoice_id = invoice.id

            self._records[invoice.invoice_number] = invoice_to_dict(invoice)
            return invoice_from_dict(self._records[invoice.invoice_number])

    async def get_by_invoice_number(self, invoice_number: int) -> Optional[Invoice]:
        record = self._records.get(invoice_number)
        return invoice_from_dict(record) if record is not None else None

    async def list_all(self) -> List[Invoice]:
        return [invoice_from_dict(self._records[n]) for n in sorted(self._records, reverse=True)]

    async def update(self, invoice_number: int, fields: Dict[str, Any]) -> Optional[Invoice]:
        ensure_mutable(fields)

        async with self._lock:
            record = self._records.get(invoice_number)
            if record is None:
                return None

            invoice = invoice_from_dict(record)
            if "is_paid" in fields:
                invoice.mark_paid(bool(fields["is_paid"]))
            self._records[invoice_number] = invoice_to_dict(invoice)
            return invoice

    async def delete(self, invoice_number: int) -> bool:
        async with self._lock:
            return self._records.pop(invoice_number, None) is not None

    async def stats(self) -> InvoiceStats:
        return InvoiceStats.from_invoices(invoice_from_dict(r) for r in self._records.values())
