from .sequence_repository import SequenceRepository
from .invoice_repository import InvoiceRepository

__all__ = [
    "SequenceRepository",
    "InvoiceRepository",
]
