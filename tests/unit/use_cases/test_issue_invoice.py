"""Unit tests for IssueInvoice use case

Tests cover:
- Validation gate: invalid input never reserves a number
- Successful issuance with server-side totals
- Release on build failure, render failure, render timeout and persistence failure
- No release on duplicate invoice number
- Reservation failure
- Delivery outcomes never undo a stored invoice
"""

import base64
import hashlib
import time
from decimal import Decimal, InvalidOperation
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapter.repositories import InMemoryInvoiceRepository, InMemorySequenceRepository
from src.app.use_cases.invoicing.dtos import InvoiceLineCommandDTO, IssueInvoiceCommandDTO
from src.app.use_cases.invoicing.issue_invoice import IssueInvoice, validate_issue_command
from src.domain.exceptions import DuplicateInvoiceNumberError, StorageError


@pytest.fixture
def issue_invoice_use_case(mock_sequence_repo, mock_invoice_repo, mock_pdf_service, mock_notification_service):
    """IssueInvoice use case instance with mocked dependencies"""
    return IssueInvoice(
        sequence_repo=mock_sequence_repo,
        invoice_repo=mock_invoice_repo,
        pdf_service=mock_pdf_service,
        notification_service=mock_notification_service,
    )


def _command(**overrides):
    data = {
        "buyer_name": "Acme OÜ",
        "invoice_date": "2024-01-01",
        "due_date": "2024-01-15",
        "lines": [InvoiceLineCommandDTO(description="Consulting", unit_price="100", quantity="2")],
    }
    data.update(overrides)
    return IssueInvoiceCommandDTO(**data)


class TestValidateIssueCommand:
    """Validation rules applied before any number is reserved"""

    def test_valid_command(self, sample_command):
        validated, failure = validate_issue_command(sample_command)

        assert failure is None
        assert validated.client_email == "billing@acme.ee"
        assert validated.lines[0].discount_percent == Decimal("10")

    @pytest.mark.parametrize(
        "overrides, expected",
        [
            ({"invoice_date": None}, "invoice_date is required"),
            ({"due_date": ""}, "due_date is required"),
            ({"invoice_date": "01.01.2024"}, "YYYY-MM-DD"),
            ({"due_date": "2023-12-31"}, "due_date cannot be before invoice_date"),
            ({"lines": []}, "At least one line"),
            ({"lines": [InvoiceLineCommandDTO(description="   ", unit_price="5")]}, "At least one line"),
            ({"client_email": "not-an-email"}, "not a valid e-mail"),
            ({"lines": [InvoiceLineCommandDTO(description="X", unit_price="abc")]}, "unit_price must be a number"),
            ({"lines": [InvoiceLineCommandDTO(description="X", discount_percent="101")]}, "between 0 and 100"),
            ({"lines": [InvoiceLineCommandDTO(description="X", discount_percent="-1")]}, "between 0 and 100"),
            ({"lines": [InvoiceLineCommandDTO(description="X", unit_price="1e30")]}, "unit_price must be less than"),
            ({"lines": [InvoiceLineCommandDTO(description="X", quantity="-1e12")]}, "quantity must be less than"),
            (
                {"lines": [InvoiceLineCommandDTO(description="X", unit_price="999999999999", quantity="999999999999")]},
                "Line 1: total must be less than",
            ),
            (
                {
                    "lines": [
                        InvoiceLineCommandDTO(description="A", unit_price="600000000000", quantity="10000"),
                        InvoiceLineCommandDTO(description="B", unit_price="600000000000", quantity="10000"),
                    ]
                },
                "Invoice total must be less than",
            ),
        ],
    )
    def test_invalid_commands(self, overrides, expected):
        validated, failure = validate_issue_command(_command(**overrides))

        assert validated is None
        assert expected in failure

    def test_blank_lines_are_dropped_and_defaults_applied(self):
        command = _command(
            lines=[
                InvoiceLineCommandDTO(description=""),
                InvoiceLineCommandDTO(description="  Support  "),
            ]
        )

        validated, failure = validate_issue_command(command)

        assert failure is None
        assert len(validated.lines) == 1
        line = validated.lines[0]
        assert line.description == "Support"
        assert line.unit_price == Decimal("0")
        assert line.quantity == Decimal("1")
        assert line.discount_percent == Decimal("0")

    def test_blank_email_means_no_recipient(self):
        validated, failure = validate_issue_command(_command(client_email="  "))

        assert failure is None
        assert validated.client_email is None

    def test_due_date_equal_to_invoice_date_is_valid(self):
        _, failure = validate_issue_command(_command(due_date="2024-01-01"))

        assert failure is None


@pytest.mark.asyncio
class TestIssueInvoiceSuccess:

    async def test_issue_invoice_success(
        self, issue_invoice_use_case, mock_sequence_repo, mock_invoice_repo,
        mock_pdf_service, mock_notification_service, sample_command
    ):
        """
        Given: A valid command with a client e-mail
        When: IssueInvoice is executed
        Then: Number 42 is stored with recomputed totals and delivered
        """
        # Act
        result = await issue_invoice_use_case.execute(sample_command)

        # Assert
        assert result.is_ok()
        response = result.value
        assert response.status == "committed_notified"
        assert response.invoice_number == 42
        assert response.invoice.total_amount == Decimal("180.00")
        assert response.invoice.lines[0].total == Decimal("180.00")
        assert base64.b64decode(response.pdf_base64) == b"%PDF-1.4 fake"
        assert response.notification.delivered is True
        assert response.notification.recipient == "billing@acme.ee"

        mock_sequence_repo.reserve_next.assert_awaited_once()
        mock_sequence_repo.release.assert_not_awaited()
        mock_pdf_service.generate_invoice.assert_called_once()

        stored = mock_invoice_repo.save.await_args.args[0]
        assert stored.invoice_number == 42
        assert stored.pdf_size_bytes == len(b"%PDF-1.4 fake")
        assert stored.pdf_sha256 == hashlib.sha256(b"%PDF-1.4 fake").hexdigest()

        artifact, recipient, metadata = mock_notification_service.deliver.await_args.args
        assert artifact == b"%PDF-1.4 fake"
        assert recipient == "billing@acme.ee"
        assert metadata["invoice_number"] == 42

    async def test_totals_computed_server_side(self, issue_invoice_use_case, mock_invoice_repo):
        """Totals come from quantity, price and discount only"""
        command = _command(
            lines=[
                InvoiceLineCommandDTO(description="A", unit_price="19.99", quantity="3"),
                InvoiceLineCommandDTO(description="B", unit_price="10", quantity="1", discount_percent="50"),
            ]
        )

        result = await issue_invoice_use_case.execute(command)

        assert result.is_ok()
        stored = mock_invoice_repo.save.await_args.args[0]
        assert [line.total for line in stored.lines] == [Decimal("59.97"), Decimal("5.00")]
        assert stored.total_amount == Decimal("64.97")

    async def test_no_email_means_no_delivery(
        self, issue_invoice_use_case, mock_notification_service
    ):
        result = await issue_invoice_use_case.execute(_command(client_email=None))

        assert result.is_ok()
        assert result.value.status == "committed"
        assert result.value.notification is None
        mock_notification_service.deliver.assert_not_awaited()

    async def test_send_email_false_skips_delivery(
        self, issue_invoice_use_case, mock_notification_service, sample_command
    ):
        sample_command.send_email = False

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.value.status == "committed"
        mock_notification_service.deliver.assert_not_awaited()

    async def test_without_notification_service(
        self, mock_sequence_repo, mock_invoice_repo, mock_pdf_service, sample_command
    ):
        use_case = IssueInvoice(mock_sequence_repo, mock_invoice_repo, mock_pdf_service)

        result = await use_case.execute(sample_command)

        assert result.value.status == "committed"

    async def test_paid_on_issue(self, issue_invoice_use_case, mock_invoice_repo):
        result = await issue_invoice_use_case.execute(_command(is_paid=True))

        assert result.value.invoice.is_paid is True
        assert result.value.invoice.paid_at is not None

    async def test_currency_from_constructor(
        self, mock_sequence_repo, mock_invoice_repo, mock_pdf_service
    ):
        use_case = IssueInvoice(mock_sequence_repo, mock_invoice_repo, mock_pdf_service, currency="USD")

        result = await use_case.execute(_command())

        assert result.value.invoice.currency == "USD"


@pytest.mark.asyncio
class TestIssueInvoiceValidationGate:

    async def test_invalid_input_never_reserves(
        self, issue_invoice_use_case, mock_sequence_repo, mock_invoice_repo, mock_pdf_service
    ):
        """
        Given: due_date before invoice_date
        When: IssueInvoice is executed
        Then: VALIDATION_ERROR and no store or renderer is touched
        """
        result = await issue_invoice_use_case.execute(_command(due_date="2023-01-01"))

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        mock_sequence_repo.reserve_next.assert_not_awaited()
        mock_pdf_service.generate_invoice.assert_not_called()
        mock_invoice_repo.save.assert_not_awaited()

    async def test_oversized_amount_burns_no_number(self, mock_pdf_service):
        """
        Given: A finite unit_price beyond the storable range
        When: IssueInvoice is executed against real stores
        Then: VALIDATION_ERROR is returned and number 1 is still next
        """
        sequence_repo = InMemorySequenceRepository()
        invoice_repo = InMemoryInvoiceRepository()
        use_case = IssueInvoice(sequence_repo, invoice_repo, mock_pdf_service)

        result = await use_case.execute(
            _command(lines=[InvoiceLineCommandDTO(description="x", unit_price="1e30")])
        )

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        assert await sequence_repo.peek_next() == 1
        assert await invoice_repo.list_all() == []


@pytest.mark.asyncio
class TestIssueInvoiceFailures:

    async def test_reservation_failure(
        self, issue_invoice_use_case, mock_sequence_repo, mock_pdf_service, sample_command
    ):
        mock_sequence_repo.reserve_next = AsyncMock(side_effect=StorageError("disk full"))

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "RESERVATION_FAILED"
        assert "disk full" in result.error.reason
        mock_pdf_service.generate_invoice.assert_not_called()
        mock_sequence_repo.release.assert_not_awaited()

    async def test_build_failure_releases_number(
        self, issue_invoice_use_case, mock_sequence_repo, mock_invoice_repo, mock_pdf_service, sample_command
    ):
        """
        Given: Building the invoice raises after a number was reserved
        When: IssueInvoice is executed
        Then: BUILD_FAILED, number 42 released, nothing rendered or stored
        """
        issue_invoice_use_case._build_invoice = MagicMock(side_effect=InvalidOperation("quantize"))

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "BUILD_FAILED"
        assert result.error.details == {"invoice_number": 42, "number_released": True}
        mock_sequence_repo.release.assert_awaited_once_with(42)
        mock_pdf_service.generate_invoice.assert_not_called()
        mock_invoice_repo.save.assert_not_awaited()

    async def test_render_failure_releases_number(
        self, issue_invoice_use_case, mock_sequence_repo, mock_invoice_repo, mock_pdf_service, sample_command
    ):
        """
        Given: The renderer raises
        When: IssueInvoice is executed
        Then: RENDER_FAILED, number 42 released, nothing stored
        """
        mock_pdf_service.generate_invoice = MagicMock(side_effect=RuntimeError("font missing"))

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "RENDER_FAILED"
        assert result.error.details["number_released"] is True
        mock_sequence_repo.release.assert_awaited_once_with(42)
        mock_invoice_repo.save.assert_not_awaited()

    async def test_render_timeout_releases_number(
        self, mock_sequence_repo, mock_invoice_repo, mock_pdf_service, sample_command
    ):
        def slow_render(invoice):
            time.sleep(0.3)
            return b"%PDF"

        mock_pdf_service.generate_invoice = MagicMock(side_effect=slow_render)
        use_case = IssueInvoice(
            mock_sequence_repo, mock_invoice_repo, mock_pdf_service, render_timeout=0.05
        )

        result = await use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "RENDER_TIMEOUT"
        mock_sequence_repo.release.assert_awaited_once_with(42)
        mock_invoice_repo.save.assert_not_awaited()

    async def test_persistence_failure_releases_number(
        self, issue_invoice_use_case, mock_sequence_repo, mock_invoice_repo, mock_notification_service, sample_command
    ):
        mock_invoice_repo.save = AsyncMock(side_effect=StorageError("database is locked"))

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "PERSISTENCE_FAILED"
        mock_sequence_repo.release.assert_awaited_once_with(42)
        mock_notification_service.deliver.assert_not_awaited()

    async def test_lost_release_race_reports_gap(
        self, issue_invoice_use_case, mock_sequence_repo, mock_invoice_repo, sample_command
    ):
        """A later reservation means release is a no-op and the number stays a gap"""
        mock_invoice_repo.save = AsyncMock(side_effect=StorageError("write failed"))
        mock_sequence_repo.release = AsyncMock(return_value=False)

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.error.code == "PERSISTENCE_FAILED"
        assert result.error.details["number_released"] is False

    async def test_release_error_is_swallowed(
        self, issue_invoice_use_case, mock_sequence_repo, mock_pdf_service, sample_command
    ):
        mock_pdf_service.generate_invoice = MagicMock(side_effect=RuntimeError("boom"))
        mock_sequence_repo.release = AsyncMock(side_effect=StorageError("read-only"))

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.error.code == "RENDER_FAILED"
        assert result.error.details["number_released"] is False

    async def test_duplicate_number_is_not_released(
        self, issue_invoice_use_case, mock_sequence_repo, mock_invoice_repo, sample_command
    ):
        """
        Given: The record store already holds number 42
        When: IssueInvoice is executed
        Then: DUPLICATE_INVOICE_NUMBER and the counter is left alone
        """
        mock_invoice_repo.save = AsyncMock(side_effect=DuplicateInvoiceNumberError(42))

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "DUPLICATE_INVOICE_NUMBER"
        mock_sequence_repo.release.assert_not_awaited()


@pytest.mark.asyncio
class TestIssueInvoiceNotification:

    async def test_delivery_rejected(
        self, issue_invoice_use_case, mock_notification_service, mock_sequence_repo, sample_command
    ):
        mock_notification_service.deliver = AsyncMock(return_value=False)

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.is_ok()
        assert result.value.status == "committed_notify_failed"
        assert "NOTIFICATION_FAILED" in result.value.message
        assert result.value.notification.delivered is False
        mock_sequence_repo.release.assert_not_awaited()

    async def test_delivery_raises(
        self, issue_invoice_use_case, mock_notification_service, mock_sequence_repo, sample_command
    ):
        mock_notification_service.deliver = AsyncMock(side_effect=ConnectionError("smtp down"))

        result = await issue_invoice_use_case.execute(sample_command)

        assert result.is_ok()
        assert result.value.status == "committed_notify_failed"
        assert result.value.notification.error == "smtp down"
        assert result.value.invoice_number == 42
        mock_sequence_repo.release.assert_not_awaited()
