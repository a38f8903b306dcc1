"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async sessions. Each
operation runs in its own session and commits before returning.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
from sqlalchemy import case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select, func
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.exceptions import DuplicateInvoiceNumberError, StorageError
from src.domain.invoice import Invoice, ensure_mutable
from src.domain.invoice_stats import InvoiceStats

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses a session factory; invoice lines are loaded eagerly (selectin) so
    returned entities stay usable after the session closes.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def save(self, invoice: Invoice) -> Invoice:
        """
        Persist a new invoice with its lines in one transaction

        Args:
            invoice: Invoice entity to persist

        Returns:
            Stored Invoice with generated IDs
        """
        async with self.session_factory() as session:
            existing = await self._find(session, invoice.invoice_number)
            if existing is not None:
                raise DuplicateInvoiceNumberError(invoice.invoice_number)

            session.add(invoice)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if await self._find(session, invoice.invoice_number) is not None:
                    raise DuplicateInvoiceNumberError(invoice.invoice_number) from e
                raise StorageError(f"Could not store invoice #{invoice.invoice_number}: {e}") from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageError(f"Could not store invoice #{invoice.invoice_number}: {e}") from e

            logger.debug(f"Stored invoice #{invoice.invoice_number} (id={invoice.id})")
            return invoice

    async def get_by_invoice_number(self, invoice_number: int) -> Optional[Invoice]:
        """
        Retrieve invoice by invoice number

        Args:
            invoice_number: Business invoice number

        Returns:
            Invoice if found, None otherwise
        """
        try:
            async with self.session_factory() as session:
                return await self._find(session, invoice_number)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read invoice #{invoice_number}: {e}") from e

    async def list_all(self) -> List[Invoice]:
        try:
            async with self.session_factory() as session:
                statement = select(Invoice).order_by(Invoice.invoice_number.desc())
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Could not list invoices: {e}") from e

    async def update(self, invoice_number: int, fields: Dict[str, Any]) -> Optional[Invoice]:
        """
        Apply a partial update (payment status only)

        Args:
            invoice_number: Business invoice number
            fields: Mapping of field name to new value

        Returns:
            Updated Invoice, None if it does not exist
        """
        ensure_mutable(fields)

        async with self.session_factory() as session:
            invoice = await self._find(session, invoice_number)
            if invoice is None:
                return None

            if "is_paid" in fields:
                invoice.mark_paid(bool(fields["is_paid"]))

            session.add(invoice)
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageError(f"Could not update invoice #{invoice_number}: {e}") from e

            return invoice

    async def delete(self, invoice_number: int) -> bool:
        async with self.session_factory() as session:
            invoice = await self._find(session, invoice_number)
            if invoice is None:
                return False

            await session.delete(invoice)
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageError(f"Could not delete invoice #{invoice_number}: {e}") from e

            logger.info(f"Deleted invoice #{invoice_number}")
            return True

    async def stats(self) -> InvoiceStats:
        """
        Aggregate counts and amounts in a single query

        Returns:
            InvoiceStats over the current table contents
        """
        paid_amount = case((Invoice.is_paid == True, Invoice.total_amount), else_=0)  # noqa: E712
        paid_flag = case((Invoice.is_paid == True, 1), else_=0)  # noqa: E712

        statement = select(
            func.count(Invoice.id),
            func.coalesce(func.sum(paid_flag), 0),
            func.sum(Invoice.total_amount),
            func.sum(paid_amount),
            func.coalesce(func.max(Invoice.invoice_number), 0),
        )

        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                total_count, paid_count, total_amount, paid_total, last_number = result.one()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not compute invoice stats: {e}") from e

        total_amount = _money(total_amount)
        paid_total = _money(paid_total)

        return InvoiceStats(
            total_count=int(total_count),
            paid_count=int(paid_count),
            unpaid_count=int(total_count) - int(paid_count),
            total_amount=total_amount,
            paid_amount=paid_total,
            unpaid_amount=total_amount - paid_total,
            last_invoice_number=int(last_number),
        )

    @staticmethod
    async def _find(session, invoice_number: int) -> Optional[Invoice]:
        statement = select(Invoice).where(Invoice.invoice_number == invoice_number)
        result = await session.execute(statement)
        return result.scalar_one_or_none()
