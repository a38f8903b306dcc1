"""Invoice Domain Entity

Tracks issued invoices and their payment status.
"""

from datetime import datetime, date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlmodel import Field, Column, Index, Relationship
from sqlalchemy import BigInteger, Boolean, Integer, Numeric, String, Date
from src.domain.base import BaseModel, IdType
from src.domain.exceptions import ImmutableFieldError
from src.domain.invoice_line import InvoiceLine

# Fields that may change after issuance. Everything else is fixed.
MUTABLE_FIELDS = frozenset({"is_paid"})


def ensure_mutable(fields) -> None:
    """Raise ImmutableFieldError if any field name is outside MUTABLE_FIELDS"""
    rejected = set(fields) - MUTABLE_FIELDS
    if rejected:
        raise ImmutableFieldError(rejected)


class Invoice(BaseModel, table=True):
    """
    Invoice - Issued invoice for a client

    Domain Rules:
    - invoice_number is unique, assigned once and never reused
    - id is a storage surrogate key, distinct from invoice_number
    - due_date >= invoice_date
    - lines is non-empty; total_amount is the sum of lines.total
    - only is_paid can change after issuance (paid_at follows it)
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_invoice_number', 'invoice_number', unique=True),
        Index('ix_invoices_is_paid', 'is_paid'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique invoice identifier (auto-increment)"
    )

    invoice_number: int = Field(
        sa_column=Column(BigInteger, nullable=False, unique=True),
        description="Business-visible sequential invoice number"
    )

    buyer_name: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
        description="Client (buyer) name"
    )

    client_address: str = Field(
        default="",
        sa_column=Column(String(500), nullable=False, default=""),
        description="Client postal address"
    )

    reg_code: str = Field(
        default="",
        sa_column=Column(String(50), nullable=False, default=""),
        description="Client registry code"
    )

    client_email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Client e-mail address the invoice is delivered to"
    )

    invoice_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Invoice date"
    )

    due_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Payment due date (>= invoice_date)"
    )

    is_paid: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Whether the invoice has been paid"
    )

    paid_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when invoice was marked paid"
    )

    currency: str = Field(
        default="EUR",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    total_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Sum of all line totals"
    )

    pdf_size_bytes: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True),
        description="Size of the PDF rendered at issuance"
    )

    pdf_sha256: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="SHA-256 of the PDF rendered at issuance"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Invoice creation timestamp (immutable)"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    lines: List[InvoiceLine] = Relationship(
        back_populates="invoice",
        sa_relationship_kwargs={
            "lazy": "selectin",
            "order_by": "InvoiceLine.position",
            "cascade": "all, delete-orphan",
        },
    )

    def mark_paid(self, is_paid: bool) -> None:
        """Toggle payment status, keeping paid_at consistent with it"""
        if is_paid and not self.is_paid:
            self.paid_at = datetime.utcnow()
        elif not is_paid:
            self.paid_at = None
        self.is_paid = is_paid
        self.updated_at = datetime.utcnow()

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "invoice_number": 7,
                "buyer_name": "Acme OÜ",
                "client_address": "Pärnu mnt 1, Tallinn",
                "reg_code": "12345678",
                "client_email": "billing@acme.ee",
                "invoice_date": "2024-01-01",
                "due_date": "2024-01-15",
                "is_paid": False,
                "paid_at": None,
                "currency": "EUR",
                "total_amount": "180.00",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }


def invoice_to_dict(invoice: Invoice) -> Dict[str, Any]:
    """Plain JSON-safe representation used by the file and memory stores"""
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "buyer_name": invoice.buyer_name,
        "client_address": invoice.client_address,
        "reg_code": invoice.reg_code,
        "client_email": invoice.client_email,
        "invoice_date": invoice.invoice_date.isoformat(),
        "due_date": invoice.due_date.isoformat(),
        "is_paid": invoice.is_paid,
        "paid_at": invoice.paid_at.isoformat() if invoice.paid_at else None,
        "currency": invoice.currency,
        "total_amount": str(invoice.total_amount),
        "pdf_size_bytes": invoice.pdf_size_bytes,
        "pdf_sha256": invoice.pdf_sha256,
        "created_at": invoice.created_at.isoformat(),
        "updated_at": invoice.updated_at.isoformat(),
        "lines": [
            {
                "id": line.id,
                "position": line.position,
                "description": line.description,
                "unit_price": str(line.unit_price),
                "quantity": str(line.quantity),
                "discount_percent": str(line.discount_percent),
                "total": str(line.total),
                "created_at": line.created_at.isoformat(),
            }
            for line in invoice.lines
        ],
    }


def invoice_from_dict(data: Dict[str, Any]) -> Invoice:
    """Inverse of invoice_to_dict. Raises KeyError/ValueError on malformed input."""
    lines = [
        InvoiceLine(
            id=line.get("id"),
            invoice_id=data.get("id"),
            position=int(line["position"]),
            description=line["description"],
            unit_price=Decimal(line["unit_price"]),
            quantity=Decimal(line["quantity"]),
            discount_percent=Decimal(line["discount_percent"]),
            total=Decimal(line["total"]),
            created_at=datetime.fromisoformat(line["created_at"]),
        )
        for line in data["lines"]
    ]
    return Invoice(
        id=data.get("id"),
        invoice_number=int(data["invoice_number"]),
        buyer_name=data.get("buyer_name", ""),
        client_address=data.get("client_address", ""),
        reg_code=data.get("reg_code", ""),
        client_email=data.get("client_email"),
        invoice_date=date.fromisoformat(data["invoice_date"]),
        due_date=date.fromisoformat(data["due_date"]),
        is_paid=bool(data["is_paid"]),
        paid_at=datetime.fromisoformat(data["paid_at"]) if data.get("paid_at") else None,
        currency=data.get("currency", "EUR"),
        total_amount=Decimal(data["total_amount"]),
        pdf_size_bytes=data.get("pdf_size_bytes"),
        pdf_sha256=data.get("pdf_sha256"),
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=datetime.fromisoformat(data["updated_at"]),
        lines=lines,
    )
