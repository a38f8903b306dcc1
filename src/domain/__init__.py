from .base import BaseModel, IdType
from .invoice_line import InvoiceLine, compute_line_total
from .invoice import Invoice, MUTABLE_FIELDS, ensure_mutable, invoice_to_dict, invoice_from_dict
from .sequence_counter import SequenceCounter, INVOICE_SEQUENCE
from .invoice_stats import InvoiceStats
from .exceptions import (
    InvoicingError,
    StorageError,
    CorruptedStoreError,
    DuplicateInvoiceNumberError,
    ImmutableFieldError,
)

__all__ = [
    "BaseModel",
    "IdType",
    "InvoiceLine",
    "compute_line_total",
    "Invoice",
    "MUTABLE_FIELDS",
    "ensure_mutable",
    "invoice_to_dict",
    "invoice_from_dict",
    "SequenceCounter",
    "INVOICE_SEQUENCE",
    "InvoiceStats",
    "InvoicingError",
    "StorageError",
    "CorruptedStoreError",
    "DuplicateInvoiceNumberError",
    "ImmutableFieldError",
]
