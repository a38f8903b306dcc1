from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.use_cases.invoicing.dtos import InvoiceLineCommandDTO, IssueInvoiceCommandDTO
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine


@pytest.fixture
def mock_sequence_repo():
    """Mock sequence repository handing out 42"""
    repo = MagicMock()
    repo.reserve_next = AsyncMock(return_value=42)
    repo.peek_next = AsyncMock(return_value=43)
    repo.release = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def mock_invoice_repo():
    """Mock invoice repository whose save returns the invoice it was given"""
    repo = MagicMock()

    async def save(invoice):
        invoice.id = 1
        return invoice

    repo.save = AsyncMock(side_effect=save)
    return repo


@pytest.fixture
def mock_pdf_service():
    """Mock PDF service"""
    service = MagicMock()
    service.generate_invoice = MagicMock(return_value=b"%PDF-1.4 fake")
    return service


@pytest.fixture
def mock_notification_service():
    """Mock notification service that always delivers"""
    service = MagicMock()
    service.deliver = AsyncMock(return_value=True)
    return service


@pytest.fixture
def sample_command():
    """Valid issuance command with one discounted line"""
    return IssueInvoiceCommandDTO(
        buyer_name="Acme OÜ",
        client_address="Pärnu mnt 1, Tallinn",
        reg_code="12345678",
        client_email="billing@acme.ee",
        invoice_date="2024-01-01",
        due_date="2024-01-15",
        lines=[
            InvoiceLineCommandDTO(
                description="Consulting",
                unit_price="100",
                quantity="2",
                discount_percent="10",
            )
        ],
    )


@pytest.fixture
def sample_invoice():
    """Stored invoice #7 with two lines"""
    return Invoice(
        id=1,
        invoice_number=7,
        buyer_name="Acme OÜ",
        client_address="Pärnu mnt 1, Tallinn",
        reg_code="12345678",
        client_email="billing@acme.ee",
        invoice_date=date(2024, 1, 1),
        due_date=date(2024, 1, 15),
        is_paid=False,
        currency="EUR",
        total_amount=Decimal("230.00"),
        created_at=datetime(2024, 1, 1, 12, 0, 0),
        updated_at=datetime(2024, 1, 1, 12, 0, 0),
        lines=[
            InvoiceLine(
                id=1,
                invoice_id=1,
                position=0,
                description="Consulting",
                unit_price=Decimal("100"),
                quantity=Decimal("2"),
                discount_percent=Decimal("10"),
                total=Decimal("180.00"),
                created_at=datetime(2024, 1, 1, 12, 0, 0),
            ),
            InvoiceLine(
                id=2,
                invoice_id=1,
                position=1,
                description="Travel",
                unit_price=Decimal("50"),
                quantity=Decimal("1"),
                discount_percent=Decimal("0"),
                total=Decimal("50.00"),
                created_at=datetime(2024, 1, 1, 12, 0, 0),
            ),
        ],
    )

