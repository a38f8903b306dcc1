from .sequence_repository import SqlAlchemySequenceRepository
from .invoice_repository import SqlAlchemyInvoiceRepository
from .in_memory import InMemorySequenceRepository, InMemoryInvoiceRepository
from .json_file import JsonFileSequenceRepository, JsonFileInvoiceRepository

__all__ = [
    "SqlAlchemySequenceRepository",
    "SqlAlchemyInvoiceRepository",
    "InMemorySequenceRepository",
    "InMemoryInvoiceRepository",
    "JsonFileSequenceRepository",
    "JsonFileInvoiceRepository",
]
