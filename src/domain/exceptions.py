"""Typed exceptions raised by the invoicing domain and its stores

    InvoicingError (base)
    +-- StorageError
    |   +-- CorruptedStoreError
    +-- DuplicateInvoiceNumberError
    +-- ImmutableFieldError
"""

from typing import Iterable, Optional


class InvoicingError(Exception):
    """Base class for invoicing errors. Every subclass carries a code."""

    code: str = "INVOICING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StorageError(InvoicingError):
    """A store could not read or durably write its backing state"""

    code = "STORAGE_ERROR"


class CorruptedStoreError(StorageError):
    """Backing file exists but cannot be parsed. Never reinitialized silently."""

    code = "CORRUPTED_STORE"

    def __init__(self, path: str, reason: Optional[str] = None):
        message = f"Backing store {path} is corrupted"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class DuplicateInvoiceNumberError(InvoicingError):
    """A record with the same invoice number is already stored"""

    code = "DUPLICATE_INVOICE_NUMBER"

    def __init__(self, invoice_number: int):
        super().__init__(f"Invoice #{invoice_number} already exists")
        self.invoice_number = invoice_number


class ImmutableFieldError(InvoicingError):
    """An update tried to change fields that are fixed once an invoice is issued"""

    code = "IMMUTABLE_FIELD"

    def __init__(self, fields: Iterable[str]):
        self.fields = sorted(fields)
        super().__init__(f"Fields cannot be updated after issuance: {', '.join(self.fields)}")
