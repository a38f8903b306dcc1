"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from src.domain.invoice import Invoice
from src.domain.invoice_stats import InvoiceStats


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Records are keyed by invoice_number. Write failures raise StorageError;
    a corrupted backing store raises CorruptedStoreError instead of being
    treated as empty.
    """

    @abstractmethod
    async def save(self, invoice: Invoice) -> Invoice:
        """
        Persist a newly issued invoice together with its lines

        Args:
            invoice: Invoice entity to persist

        Returns:
            Stored Invoice with generated IDs

        Raises:
            DuplicateInvoiceNumberError: invoice_number is already stored
            StorageError: The write could not be made durable
        """
        pass

    @abstractmethod
    async def get_by_invoice_number(self, invoice_number: int) -> Optional[Invoice]:
        """
        Retrieve invoice by invoice number

        Args:
            invoice_number: Business invoice number

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_all(self) -> List[Invoice]:
        """
        Retrieve all invoices, highest invoice number first

        Returns:
            List of invoices
        """
        pass

    @abstractmethod
    async def update(self, invoice_number: int, fields: Dict[str, Any]) -> Optional[Invoice]:
        """
        Apply a partial update to an issued invoice

        Args:
            invoice_number: Business invoice number
            fields: Field values to change, restricted to MUTABLE_FIELDS

        Returns:
            Updated Invoice, or None if no such invoice

        Raises:
            ImmutableFieldError: fields names anything outside MUTABLE_FIELDS
        """
        pass

    @abstractmethod
    async def delete(self, invoice_number: int) -> bool:
        """
        Remove an invoice. The number is not returned to the sequence.

        Args:
            invoice_number: Business invoice number

        Returns:
            True if an invoice was removed, False if none existed
        """
        pass

    @abstractmethod
    async def stats(self) -> InvoiceStats:
        """
        Aggregate counts and amounts over the current contents

        Returns:
            InvoiceStats
        """
        pass
