"""Data Transfer Objects for Invoicing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union
from pydantic import BaseModel, Field

from src.domain.invoice import Invoice
from src.domain.invoice_stats import InvoiceStats


class InvoiceLineCommandDTO(BaseModel):
    """
    One line as entered by the caller

    Numbers may arrive as strings from forms; they are parsed and
    validated by IssueInvoice. A caller-supplied total is never trusted.
    """

    description: Optional[str] = Field(
        default=None,
        description="Line item description; blank lines are dropped"
    )

    unit_price: Optional[Union[Decimal, str]] = Field(
        default=None,
        description="Price per unit (default 0)"
    )

    quantity: Optional[Union[Decimal, str]] = Field(
        default=None,
        description="Quantity (default 1)"
    )

    discount_percent: Optional[Union[Decimal, str]] = Field(
        default=None,
        description="Discount in percent, 0-100 (default 0)"
    )


class IssueInvoiceCommandDTO(BaseModel):
    """
    Command DTO for issuing an invoice

    Used as input to IssueInvoice use case.
    """

    buyer_name: str = Field(
        default="",
        description="Client (buyer) name"
    )

    client_address: str = Field(
        default="",
        description="Client postal address"
    )

    reg_code: str = Field(
        default="",
        description="Client registry code"
    )

    client_email: Optional[str] = Field(
        default=None,
        description="Recipient of the invoice e-mail"
    )

    invoice_date: Optional[Union[date, str]] = Field(
        default=None,
        description="Invoice date (YYYY-MM-DD)"
    )

    due_date: Optional[Union[date, str]] = Field(
        default=None,
        description="Payment due date (YYYY-MM-DD), not before invoice_date"
    )

    is_paid: bool = Field(
        default=False,
        description="Mark the invoice as already paid"
    )

    send_email: bool = Field(
        default=True,
        description="Deliver the invoice to client_email after it is stored"
    )

    lines: List[InvoiceLineCommandDTO] = Field(
        default_factory=list,
        description="Invoice lines"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "buyer_name": "Acme OÜ",
                "client_address": "Pärnu mnt 1, Tallinn",
                "reg_code": "12345678",
                "client_email": "billing@acme.ee",
                "invoice_date": "2024-01-01",
                "due_date": "2024-01-15",
                "is_paid": False,
                "send_email": True,
                "lines": [
                    {"description": "Consulting", "unit_price": "100", "quantity": "2", "discount_percent": "10"}
                ]
            }
        }


class InvoiceLineDTO(BaseModel):
    """Invoice line as stored"""

    position: int
    description: str
    unit_price: Decimal
    quantity: Decimal
    discount_percent: Decimal
    total: Decimal


class InvoiceResponseDTO(BaseModel):
    """
    Response DTO for an invoice

    Returned by GetInvoice, ListInvoices, UpdatePaidStatus and IssueInvoice.
    """

    invoice_id: Optional[int] = Field(
        default=None,
        description="Storage identifier"
    )

    invoice_number: int = Field(
        ...,
        description="Business invoice number"
    )

    buyer_name: str
    client_address: str
    reg_code: str
    client_email: Optional[str] = None
    invoice_date: date
    due_date: date
    is_paid: bool
    paid_at: Optional[datetime] = None
    currency: str
    total_amount: Decimal

    pdf_size_bytes: Optional[int] = Field(
        default=None,
        description="Size of the PDF rendered at issuance"
    )

    pdf_sha256: Optional[str] = Field(
        default=None,
        description="SHA-256 of the PDF rendered at issuance"
    )

    created_at: datetime
    updated_at: datetime
    lines: List[InvoiceLineDTO] = Field(default_factory=list)

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceResponseDTO":
        return cls(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            buyer_name=invoice.buyer_name,
            client_address=invoice.client_address,
            reg_code=invoice.reg_code,
            client_email=invoice.client_email,
            invoice_date=invoice.invoice_date,
            due_date=invoice.due_date,
            is_paid=invoice.is_paid,
            paid_at=invoice.paid_at,
            currency=invoice.currency,
            total_amount=invoice.total_amount,
            pdf_size_bytes=invoice.pdf_size_bytes,
            pdf_sha256=invoice.pdf_sha256,
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
            lines=[
                InvoiceLineDTO(
                    position=line.position,
                    description=line.description,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    discount_percent=line.discount_percent,
                    total=line.total,
                )
                for line in invoice.lines
            ],
        )


class NotificationOutcomeDTO(BaseModel):
    """What happened to the post-commit delivery"""

    delivered: bool = False
    recipient: Optional[str] = None
    error: Optional[str] = None


class IssueInvoiceResponseDTO(BaseModel):
    """
    Response DTO for invoice issuance

    Returned by IssueInvoice use case once the invoice is stored.
    """

    status: str = Field(
        ...,
        description="committed, committed_notified or committed_notify_failed"
    )

    invoice_number: int = Field(
        ...,
        description="Number assigned to the stored invoice"
    )

    invoice: InvoiceResponseDTO

    pdf_base64: str = Field(
        ...,
        description="Rendered PDF, base64 encoded"
    )

    message: str = Field(
        default="",
        description="Short human readable summary"
    )

    notification: Optional[NotificationOutcomeDTO] = Field(
        default=None,
        description="Delivery outcome, None when no delivery was attempted"
    )


class NextNumberResponseDTO(BaseModel):
    """Advisory next invoice number"""

    next_invoice_number: int


class InvoiceStatsDTO(BaseModel):
    """Aggregates over the stored invoices"""

    total_count: int
    paid_count: int
    unpaid_count: int
    total_amount: Decimal
    paid_amount: Decimal
    unpaid_amount: Decimal
    last_invoice_number: int

    @classmethod
    def from_stats(cls, stats: InvoiceStats) -> "InvoiceStatsDTO":
        return cls(**stats.model_dump())


class StatsResponseDTO(InvoiceStatsDTO):
    """Stats plus the advisory next number"""

    next_invoice_number: int


class ListInvoicesResponseDTO(BaseModel):
    """Response DTO for listing invoices"""

    invoices: List[InvoiceResponseDTO]
    stats: InvoiceStatsDTO


class DeleteInvoiceResponseDTO(BaseModel):
    invoice_number: int
    deleted: bool = True


class InvoicePdfDTO(BaseModel):
    """A freshly rendered PDF of a stored invoice"""

    invoice_number: int
    filename: str
    content: bytes
