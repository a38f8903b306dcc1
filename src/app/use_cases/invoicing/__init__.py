"""Invoicing use cases"""
from .issue_invoice import IssueInvoice, validate_issue_command
from .peek_next_number import PeekNextNumber
from .get_invoice import GetInvoice
from .list_invoices import ListInvoices
from .update_paid_status import UpdatePaidStatus
from .delete_invoice import DeleteInvoice
from .get_stats import GetStats
from .render_invoice_pdf import RenderInvoicePdf
from .errors import ErrorCode, IssueStatus
from .dtos import (
    InvoiceLineCommandDTO,
    IssueInvoiceCommandDTO,
    InvoiceLineDTO,
    InvoiceResponseDTO,
    NotificationOutcomeDTO,
    IssueInvoiceResponseDTO,
    NextNumberResponseDTO,
    InvoiceStatsDTO,
    StatsResponseDTO,
    ListInvoicesResponseDTO,
    DeleteInvoiceResponseDTO,
    InvoicePdfDTO,
)

__all__ = [
    "IssueInvoice",
    "validate_issue_command",
    "PeekNextNumber",
    "GetInvoice",
    "ListInvoices",
    "UpdatePaidStatus",
    "DeleteInvoice",
    "GetStats",
    "RenderInvoicePdf",
    "ErrorCode",
    "IssueStatus",
    "InvoiceLineCommandDTO",
    "IssueInvoiceCommandDTO",
    "InvoiceLineDTO",
    "InvoiceResponseDTO",
    "NotificationOutcomeDTO",
    "IssueInvoiceResponseDTO",
    "NextNumberResponseDTO",
    "InvoiceStatsDTO",
    "StatsResponseDTO",
    "ListInvoicesResponseDTO",
    "DeleteInvoiceResponseDTO",
    "InvoicePdfDTO",
]
