"""Invoice Stats Value Object

Aggregates over the stored invoices, computed at call time.
"""

from decimal import Decimal
from typing import Iterable
from sqlmodel import SQLModel

from src.domain.invoice import Invoice


class InvoiceStats(SQLModel):
    """Counts and amounts over all stored invoices"""

    total_count: int = 0
    paid_count: int = 0
    unpaid_count: int = 0
    total_amount: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")
    unpaid_amount: Decimal = Decimal("0.00")
    last_invoice_number: int = 0

    @classmethod
    def from_invoices(cls, invoices: Iterable[Invoice]) -> "InvoiceStats":
        total_count = paid_count = last_number = 0
        total_amount = paid_amount = Decimal("0.00")

        for invoice in invoices:
            total_count += 1
            total_amount += invoice.total_amount
            if invoice.is_paid:
                paid_count += 1
                paid_amount += invoice.total_amount
            last_number = max(last_number, invoice.invoice_number)

        return cls(
            total_count=total_count,
            paid_count=paid_count,
            unpaid_count=total_count - paid_count,
            total_amount=total_amount,
            paid_amount=paid_amount,
            unpaid_amount=total_amount - paid_amount,
            last_invoice_number=last_number,
        )
