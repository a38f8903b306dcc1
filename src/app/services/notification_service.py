"""Notification Service Interface

Defines the contract for delivering an issued invoice to its recipient.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class NotificationService(ABC):
    """
    Abstract notification service for delivering invoices

    Implementations can deliver via:
    - Email (SMTP)
    - Webhook (HTTP POST)
    - Log only (development)
    """

    @abstractmethod
    async def deliver(self, artifact: bytes, recipient: str, metadata: Dict[str, Any]) -> bool:
        """
        Deliver a rendered invoice

        Args:
            artifact: PDF document bytes
            recipient: Destination e-mail address
            metadata: Invoice facts for subject/body (invoice_number,
                buyer_name, total_amount, currency, due_date)

        Returns:
            True if delivered, False otherwise. May also raise; a failure
            never affects the stored invoice.
        """
        pass
