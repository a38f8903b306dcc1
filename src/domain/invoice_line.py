"""Invoice Line Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Optional
from sqlmodel import Field, Column, Index, Relationship
from sqlalchemy import ForeignKey, Integer, Numeric, String
from src.domain.base import BaseModel, IdType

if TYPE_CHECKING:
    from src.domain.invoice import Invoice

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def compute_line_total(quantity: Decimal, unit_price: Decimal, discount_percent: Decimal) -> Decimal:
    """
    Compute a line total: quantity * unit_price * (1 - discount_percent / 100)

    Rounded half-up to 2 decimals. Callers never supply totals.
    """
    gross = Decimal(quantity) * Decimal(unit_price)
    net = gross * (HUNDRED - Decimal(discount_percent)) / HUNDRED
    return net.quantize(CENT, rounding=ROUND_HALF_UP)


class InvoiceLine(BaseModel, table=True):
    """
    Invoice Line - Individual line item within an invoice

    Domain Rules:
    - Each line item belongs to exactly one invoice
    - description is trimmed and never blank
    - discount_percent is within 0..100
    - total = quantity * unit_price * (1 - discount_percent / 100), 2 decimals
    - Immutable once the invoice is issued
    """

    __tablename__ = "invoice_lines"
    __table_args__ = (
        Index('ix_invoice_lines_invoice_id', 'invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique invoice line identifier (auto-increment)"
    )

    invoice_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    position: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Zero-based position of the line on the invoice"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Line item description (e.g., 'Consulting')"
    )

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Price per unit"
    )

    quantity: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Quantity (units, hours)"
    )

    discount_percent: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 2), nullable=False),
        description="Discount in percent (0-100)"
    )

    total: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Line total after discount, rounded to 2 decimals"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Line item creation timestamp"
    )

    invoice: Optional["Invoice"] = Relationship(back_populates="lines")

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "invoice_id": 1,
                "position": 0,
                "description": "Consulting",
                "unit_price": "100.000000",
                "quantity": "2.000000",
                "discount_percent": "10.00",
                "total": "180.00",
                "created_at": "2024-01-01T00:00:00Z"
            }
        }
