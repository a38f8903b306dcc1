"""PDF Generation Service Interface

Defines the contract for rendering an issued invoice.
"""

from abc import ABC, abstractmethod
from src.domain.invoice import Invoice


class PdfService(ABC):
    """
    Service interface for PDF generation

    Rendering is synchronous and CPU bound; callers run it in a worker
    thread and bound it with a timeout.
    """

    @abstractmethod
    def generate_invoice(self, invoice: Invoice) -> bytes:
        """
        Render an invoice PDF

        Args:
            invoice: Invoice entity with its number assigned and lines attached

        Returns:
            PDF document as bytes

        Raises:
            Exception: Any rendering failure. The caller treats it as fatal
                for the issuance and releases the reserved number.
        """
        pass
