from .pdf_service import ReportLabPdfService, CompanyProfile
from .notification_service import (
    LoggingNotificationService,
    SmtpEmailNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)

__all__ = [
    "ReportLabPdfService",
    "CompanyProfile",
    "LoggingNotificationService",
    "SmtpEmailNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
]
