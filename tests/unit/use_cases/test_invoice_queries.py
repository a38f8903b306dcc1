"""Unit tests for invoice management use cases

Tests cover:
- PeekNextNumber
- GetInvoice / INVOICE_NOT_FOUND
- ListInvoices with stats
- UpdatePaidStatus
- DeleteInvoice never touches the sequence
- GetStats with next number
- RenderInvoicePdf
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.use_cases.invoicing import (
    DeleteInvoice,
    GetInvoice,
    GetStats,
    ListInvoices,
    PeekNextNumber,
    RenderInvoicePdf,
    UpdatePaidStatus,
)
from src.domain.exceptions import StorageError
from src.domain.invoice_stats import InvoiceStats


@pytest.mark.asyncio
class TestPeekNextNumber:

    async def test_peek_next_number(self, mock_sequence_repo):
        result = await PeekNextNumber(mock_sequence_repo).execute()

        assert result.is_ok()
        assert result.value.next_invoice_number == 43
        mock_sequence_repo.reserve_next.assert_not_awaited()

    async def test_storage_failure(self, mock_sequence_repo):
        mock_sequence_repo.peek_next = AsyncMock(side_effect=StorageError("corrupted"))

        result = await PeekNextNumber(mock_sequence_repo).execute()

        assert result.is_err()
        assert result.error.code == "STORAGE_ERROR"


@pytest.mark.asyncio
class TestGetInvoice:

    async def test_found(self, mock_invoice_repo, sample_invoice):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=sample_invoice)

        result = await GetInvoice(mock_invoice_repo).execute(7)

        assert result.is_ok()
        assert result.value.invoice_number == 7
        assert len(result.value.lines) == 2
        mock_invoice_repo.get_by_invoice_number.assert_awaited_once_with(7)

    async def test_not_found(self, mock_invoice_repo):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=None)

        result = await GetInvoice(mock_invoice_repo).execute(99)

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"
        assert "99" in result.error.message


@pytest.mark.asyncio
class TestListInvoices:

    async def test_list_with_stats(self, mock_invoice_repo, sample_invoice):
        mock_invoice_repo.list_all = AsyncMock(return_value=[sample_invoice])

        result = await ListInvoices(mock_invoice_repo).execute()

        assert result.is_ok()
        assert [invoice.invoice_number for invoice in result.value.invoices] == [7]
        assert result.value.stats.total_count == 1
        assert result.value.stats.unpaid_amount == Decimal("230.00")
        assert result.value.stats.last_invoice_number == 7

    async def test_empty(self, mock_invoice_repo):
        mock_invoice_repo.list_all = AsyncMock(return_value=[])

        result = await ListInvoices(mock_invoice_repo).execute()

        assert result.value.invoices == []
        assert result.value.stats.total_count == 0


@pytest.mark.asyncio
class TestUpdatePaidStatus:

    async def test_mark_paid(self, mock_invoice_repo, sample_invoice):
        sample_invoice.mark_paid(True)
        mock_invoice_repo.update = AsyncMock(return_value=sample_invoice)

        result = await UpdatePaidStatus(mock_invoice_repo).execute(7, True)

        assert result.is_ok()
        assert result.value.is_paid is True
        mock_invoice_repo.update.assert_awaited_once_with(7, {"is_paid": True})

    async def test_not_found(self, mock_invoice_repo):
        mock_invoice_repo.update = AsyncMock(return_value=None)

        result = await UpdatePaidStatus(mock_invoice_repo).execute(5, False)

        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_store_failure(self, mock_invoice_repo):
        mock_invoice_repo.update = AsyncMock(side_effect=StorageError("database is locked"))

        result = await UpdatePaidStatus(mock_invoice_repo).execute(5, False)

        assert result.error.code == "STORAGE_ERROR"


@pytest.mark.asyncio
class TestDeleteInvoice:

    async def test_delete(self, mock_invoice_repo, mock_sequence_repo):
        mock_invoice_repo.delete = AsyncMock(return_value=True)

        result = await DeleteInvoice(mock_invoice_repo).execute(7)

        assert result.is_ok()
        assert result.value.invoice_number == 7
        assert result.value.deleted is True
        mock_sequence_repo.release.assert_not_awaited()

    async def test_not_found(self, mock_invoice_repo):
        mock_invoice_repo.delete = AsyncMock(return_value=False)

        result = await DeleteInvoice(mock_invoice_repo).execute(7)

        assert result.error.code == "INVOICE_NOT_FOUND"


@pytest.mark.asyncio
class TestGetStats:

    async def test_stats_with_next_number(self, mock_invoice_repo, mock_sequence_repo):
        mock_invoice_repo.stats = AsyncMock(
            return_value=InvoiceStats(
                total_count=2,
                paid_count=1,
                unpaid_count=1,
                total_amount=Decimal("300.00"),
                paid_amount=Decimal("100.00"),
                unpaid_amount=Decimal("200.00"),
                last_invoice_number=42,
            )
        )

        result = await GetStats(mock_invoice_repo, mock_sequence_repo).execute()

        assert result.is_ok()
        assert result.value.total_count == 2
        assert result.value.unpaid_amount == Decimal("200.00")
        assert result.value.next_invoice_number == 43


@pytest.mark.asyncio
class TestRenderInvoicePdf:

    async def test_render(self, mock_invoice_repo, mock_pdf_service, sample_invoice):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=sample_invoice)

        result = await RenderInvoicePdf(mock_invoice_repo, mock_pdf_service).execute(7)

        assert result.is_ok()
        assert result.value.content == b"%PDF-1.4 fake"
        assert result.value.filename == "invoice-7.pdf"
        mock_pdf_service.generate_invoice.assert_called_once_with(sample_invoice)

    async def test_not_found(self, mock_invoice_repo, mock_pdf_service):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=None)

        result = await RenderInvoicePdf(mock_invoice_repo, mock_pdf_service).execute(7)

        assert result.error.code == "INVOICE_NOT_FOUND"
        mock_pdf_service.generate_invoice.assert_not_called()

    async def test_render_failure(self, mock_invoice_repo, mock_pdf_service, sample_invoice):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=sample_invoice)
        mock_pdf_service.generate_invoice = MagicMock(side_effect=ValueError("bad layout"))

        result = await RenderInvoicePdf(mock_invoice_repo, mock_pdf_service).execute(7)

        assert result.error.code == "RENDER_FAILED"
