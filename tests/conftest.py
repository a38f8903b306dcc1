from datetime import date
from decimal import Decimal

import pytest

from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine


@pytest.fixture
def invoice_factory():
    """Build an unsaved invoice with one line: make(number, amount="100.00", is_paid=False)"""

    def make(invoice_number, amount="100.00", is_paid=False):
        total = Decimal(amount)
        invoice = Invoice(
            invoice_number=invoice_number,
            buyer_name=f"Client {invoice_number}",
            invoice_date=date(2024, 1, 1),
            due_date=date(2024, 1, 15),
            total_amount=total,
            lines=[
                InvoiceLine(
                    position=0,
                    description="Service",
                    unit_price=total,
                    quantity=Decimal("1"),
                    discount_percent=Decimal("0"),
                    total=total,
                )
            ],
        )
        if is_paid:
            invoice.mark_paid(True)
        return invoice

    return make
