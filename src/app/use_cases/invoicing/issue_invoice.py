"""IssueInvoice Use Case

Issues a new invoice: validate, reserve a number, render the PDF, store the
record and optionally deliver it.
"""

import asyncio
import base64
import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple
from config import ApplicationConfig
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.sequence_repository import SequenceRepository
from src.app.services.notification_service import NotificationService
from src.app.services.pdf_service import PdfService
from src.domain.exceptions import DuplicateInvoiceNumberError
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine, compute_line_total
from .dtos import (
    InvoiceLineCommandDTO,
    IssueInvoiceCommandDTO,
    IssueInvoiceResponseDTO,
    InvoiceResponseDTO,
    NotificationOutcomeDTO,
)
from .errors import ErrorCode, IssueStatus

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

# Bounds of the stored Numeric(18, 6) amounts and Numeric(18, 2) totals
MAX_AMOUNT = Decimal("1e12")
MAX_TOTAL = Decimal("1e16")


@dataclass
class ValidatedLine:
    description: str
    unit_price: Decimal
    quantity: Decimal
    discount_percent: Decimal
    total: Decimal


@dataclass
class ValidatedInvoice:
    buyer_name: str
    client_address: str
    reg_code: str
    client_email: Optional[str]
    invoice_date: date
    due_date: date
    is_paid: bool
    lines: List[ValidatedLine]


def _parse_date(value, field: str) -> date:
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise ValueError(f"{field} is required")
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(f"{field} must be a date in YYYY-MM-DD format, got '{value}'")


def _parse_decimal(value, default: Decimal, field: str, position: int) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Line {position + 1}: {field} must be a number, got '{value}'")
    if not number.is_finite():
        raise ValueError(f"Line {position + 1}: {field} must be a finite number")
    if abs(number) >= MAX_AMOUNT:
        raise ValueError(f"Line {position + 1}: {field} must be less than {MAX_AMOUNT:,.0f} in magnitude")
    return number


def _validate_line(line: InvoiceLineCommandDTO, position: int) -> ValidatedLine:
    discount = _parse_decimal(line.discount_percent, Decimal("0"), "discount_percent", position)
    if discount < 0 or discount > 100:
        raise ValueError(f"Line {position + 1}: discount_percent must be between 0 and 100")

    unit_price = _parse_decimal(line.unit_price, Decimal("0"), "unit_price", position)
    quantity = _parse_decimal(line.quantity, Decimal("1"), "quantity", position)
    try:
        total = compute_line_total(quantity, unit_price, discount)
    except ArithmeticError:
        raise ValueError(f"Line {position + 1}: total cannot be computed")
    if abs(total) >= MAX_TOTAL:
        raise ValueError(f"Line {position + 1}: total must be less than {MAX_TOTAL:,.0f} in magnitude")

    return ValidatedLine(
        description=line.description.strip(),
        unit_price=unit_price,
        quantity=quantity,
        discount_percent=discount,
        total=total,
    )


def validate_issue_command(command: IssueInvoiceCommandDTO) -> Tuple[Optional[ValidatedInvoice], Optional[str]]:
    """
    Check a command before anything is reserved

    Returns:
        (ValidatedInvoice, None) or (None, first failure message)
    """
    try:
        invoice_date = _parse_date(command.invoice_date, "invoice_date")
        due_date = _parse_date(command.due_date, "due_date")
        if due_date < invoice_date:
            raise ValueError("due_date cannot be before invoice_date")

        entered = [line for line in command.lines if line.description and line.description.strip()]
        if not entered:
            raise ValueError("At least one line with a description is required")
        lines = [_validate_line(line, position) for position, line in enumerate(entered)]
        if abs(sum(line.total for line in lines)) >= MAX_TOTAL:
            raise ValueError(f"Invoice total must be less than {MAX_TOTAL:,.0f} in magnitude")

        email = (command.client_email or "").strip() or None
        if email is not None and not EMAIL_PATTERN.match(email):
            raise ValueError(f"client_email '{email}' is not a valid e-mail address")
    except ValueError as e:
        return None, str(e)

    return ValidatedInvoice(
        buyer_name=command.buyer_name.strip(),
        client_address=command.client_address.strip(),
        reg_code=command.reg_code.strip(),
        client_email=email,
        invoice_date=invoice_date,
        due_date=due_date,
        is_paid=command.is_paid,
        lines=lines,
    ), None


class IssueInvoice:
    """
    Use Case: Issue a new invoice

    Business Rules:
    1. Invalid input never reserves a number
    2. Every stored invoice holds a number obtained from reserve_next
    3. A number is released if rendering or storing fails before commit
    4. A duplicate number on save is fatal and never released
    5. Delivery failures never undo a stored invoice

    Flow:
    1. Validate command
    2. Reserve invoice number
    3. Build invoice, recomputing every total
    4. Render PDF in a worker thread, bounded by render_timeout
    5. Persist invoice
    6. Deliver to client_email (optional)
    7. Return response
    """

    def __init__(
        self,
        sequence_repo: SequenceRepository,
        invoice_repo: InvoiceRepository,
        pdf_service: PdfService,
        notification_service: Optional[NotificationService] = None,
        render_timeout: Optional[float] = None,
        currency: str = "EUR",
    ):
        self.sequence_repo = sequence_repo
        self.invoice_repo = invoice_repo
        self.pdf_service = pdf_service
        self.notification_service = notification_service
        self.render_timeout = render_timeout or ApplicationConfig.RENDER_TIMEOUT_SECONDS
        self.currency = currency

    async def execute(self, command: IssueInvoiceCommandDTO) -> Result[IssueInvoiceResponseDTO]:
        """
        Execute invoice issuance

        Args:
            command: IssueInvoiceCommandDTO with client, dates and lines

        Returns:
            Result[IssueInvoiceResponseDTO]: Success with the stored invoice or error
        """
        # Step 1: Validate
        validated, failure = validate_issue_command(command)
        if failure is not None:
            return Return.err(
                Error(
                    code=ErrorCode.VALIDATION_ERROR.value,
                    message=failure,
                )
            )

        # Step 2: Reserve number
        try:
            invoice_number = await self.sequence_repo.reserve_next()
        except Exception as e:
            logger.error(f"Invoice number reservation failed: {e}")
            return Return.err(
                Error(
                    code=ErrorCode.RESERVATION_FAILED.value,
                    message="Could not reserve an invoice number",
                    reason=str(e),
                )
            )

        # Step 3: Build invoice
        try:
            invoice = self._build_invoice(invoice_number, validated)
        except Exception as e:
            logger.error(f"Building invoice #{invoice_number} failed: {e}")
            released = await self._release(invoice_number)
            return Return.err(
                Error(
                    code=ErrorCode.BUILD_FAILED.value,
                    message=f"Could not build invoice #{invoice_number}",
                    reason=str(e),
                    details={"invoice_number": invoice_number, "number_released": released},
                )
            )

        # Step 4: Render
        try:
            pdf_bytes = await asyncio.wait_for(
                asyncio.to_thread(self.pdf_service.generate_invoice, invoice),
                timeout=self.render_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Rendering invoice #{invoice_number} timed out after {self.render_timeout}s")
            released = await self._release(invoice_number)
            return Return.err(
                Error(
                    code=ErrorCode.RENDER_TIMEOUT.value,
                    message=f"Rendering invoice #{invoice_number} timed out",
                    reason=f"No PDF after {self.render_timeout} seconds",
                    details={"invoice_number": invoice_number, "number_released": released},
                )
            )
        except Exception as e:
            logger.error(f"Rendering invoice #{invoice_number} failed: {e}")
            released = await self._release(invoice_number)
            return Return.err(
                Error(
                    code=ErrorCode.RENDER_FAILED.value,
                    message=f"Could not render invoice #{invoice_number}",
                    reason=str(e),
                    details={"invoice_number": invoice_number, "number_released": released},
                )
            )

        invoice.pdf_size_bytes = len(pdf_bytes)
        invoice.pdf_sha256 = hashlib.sha256(pdf_bytes).hexdigest()

        # Step 5: Persist
        try:
            stored = await self.invoice_repo.save(invoice)
        except DuplicateInvoiceNumberError as e:
            logger.critical(
                f"Invoice #{invoice_number} already stored while reserved as new: "
                f"sequence and records disagree"
            )
            return Return.err(
                Error(
                    code=ErrorCode.DUPLICATE_INVOICE_NUMBER.value,
                    message=f"Invoice #{invoice_number} already exists",
                    reason=str(e),
                    details={"invoice_number": invoice_number},
                )
            )
        except Exception as e:
            logger.critical(f"Storing invoice #{invoice_number} failed: {e}")
            released = await self._release(invoice_number)
            return Return.err(
                Error(
                    code=ErrorCode.PERSISTENCE_FAILED.value,
                    message=f"Could not store invoice #{invoice_number}",
                    reason=str(e),
                    details={"invoice_number": invoice_number, "number_released": released},
                )
            )

        logger.info(f"Issued invoice #{invoice_number} ({stored.total_amount} {stored.currency})")

        # Step 6: Deliver
        status = IssueStatus.COMMITTED
        notification = None
        message = f"Invoice #{invoice_number} issued"

        if stored.client_email and command.send_email and self.notification_service is not None:
            notification = await self._deliver(stored, pdf_bytes)
            if notification.delivered:
                status = IssueStatus.COMMITTED_NOTIFIED
                message = f"Invoice #{invoice_number} issued and sent to {stored.client_email}"
            else:
                status = IssueStatus.COMMITTED_NOTIFY_FAILED
                message = (
                    f"Invoice #{invoice_number} issued, "
                    f"{ErrorCode.NOTIFICATION_FAILED.value}: {notification.error}"
                )

        # Step 7: Build response
        response = IssueInvoiceResponseDTO(
            status=status.value,
            invoice_number=invoice_number,
            invoice=InvoiceResponseDTO.from_invoice(stored),
            pdf_base64=base64.b64encode(pdf_bytes).decode("ascii"),
            message=message,
            notification=notification,
        )

        return Return.ok(response)

    def _build_invoice(self, invoice_number: int, validated: ValidatedInvoice) -> Invoice:
        lines = [
            InvoiceLine(
                position=position,
                description=line.description,
                unit_price=line.unit_price,
                quantity=line.quantity,
                discount_percent=line.discount_percent,
                total=line.total,
            )
            for position, line in enumerate(validated.lines)
        ]

        invoice = Invoice(
            invoice_number=invoice_number,
            buyer_name=validated.buyer_name,
            client_address=validated.client_address,
            reg_code=validated.reg_code,
            client_email=validated.client_email,
            invoice_date=validated.invoice_date,
            due_date=validated.due_date,
            currency=self.currency,
            total_amount=sum((line.total for line in lines), Decimal("0.00")),
            lines=lines,
        )
        if validated.is_paid:
            invoice.mark_paid(True)
        return invoice

    async def _release(self, invoice_number: int) -> bool:
        try:
            return await self.sequence_repo.release(invoice_number)
        except Exception as e:
            logger.error(f"Releasing invoice number {invoice_number} failed, it stays a gap: {e}")
            return False

    async def _deliver(self, invoice: Invoice, pdf_bytes: bytes) -> NotificationOutcomeDTO:
        metadata = {
            "invoice_number": invoice.invoice_number,
            "buyer_name": invoice.buyer_name,
            "total_amount": str(invoice.total_amount),
            "currency": invoice.currency,
            "due_date": invoice.due_date.isoformat(),
        }

        try:
            delivered = await self.notification_service.deliver(pdf_bytes, invoice.client_email, metadata)
            error = None if delivered else "Delivery was not accepted"
        except Exception as e:
            delivered = False
            error = str(e)

        if not delivered:
            logger.warning(f"Invoice #{invoice.invoice_number} stored but not delivered: {error}")

        return NotificationOutcomeDTO(
            delivered=delivered,
            recipient=invoice.client_email,
            error=error,
        )
