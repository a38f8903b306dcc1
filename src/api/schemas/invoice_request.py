"""Request schemas for Invoice API

Pydantic models for validating incoming HTTP requests. Shape checks only;
business validation (dates, e-mail, numbers) is done by IssueInvoice so
that it returns VALIDATION_ERROR instead of a schema error.
"""

from decimal import Decimal
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class InvoiceLineRequestSchema(BaseModel):
    """One invoice line. Numbers may be sent as strings."""

    description: Optional[str] = Field(
        default=None,
        description="Line item description; blank lines are ignored"
    )

    unit_price: Optional[Union[Decimal, str]] = Field(
        default=None,
        description="Price per unit (default 0)"
    )

    quantity: Optional[Union[Decimal, str]] = Field(
        default=None,
        description="Quantity or hours (default 1)"
    )

    discount_percent: Optional[Union[Decimal, str]] = Field(
        default=None,
        description="Discount in percent, 0-100 (default 0)"
    )


class IssueInvoiceRequestSchema(BaseModel):
    """
    Request schema for issuing an invoice

    Used for POST /invoices endpoint.
    """

    buyer_name: str = Field(default="", description="Client name")
    client_address: str = Field(default="", description="Client address")
    reg_code: str = Field(default="", description="Client registry code")
    client_email: Optional[str] = Field(default=None, description="Where to e-mail the invoice")
    invoice_date: Optional[str] = Field(default=None, description="Invoice date (YYYY-MM-DD)")
    due_date: Optional[str] = Field(default=None, description="Due date (YYYY-MM-DD)")
    is_paid: bool = Field(default=False, description="Issue the invoice as already paid")
    send_email: bool = Field(default=True, description="E-mail the invoice after it is stored")
    lines: List[InvoiceLineRequestSchema] = Field(default_factory=list, description="Invoice lines")

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


class UpdateInvoiceRequestSchema(BaseModel):
    """
    Request schema for updating an invoice

    Only the payment status can change; any other field is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    is_paid: bool = Field(..., description="New payment status")
