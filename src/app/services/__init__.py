from .pdf_service import PdfService
from .notification_service import NotificationService

__all__ = [
    "PdfService",
    "NotificationService",
]
