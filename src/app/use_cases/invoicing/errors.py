"""Error codes returned by the invoicing use cases"""

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RESERVATION_FAILED = "RESERVATION_FAILED"
    BUILD_FAILED = "BUILD_FAILED"
    RENDER_FAILED = "RENDER_FAILED"
    RENDER_TIMEOUT = "RENDER_TIMEOUT"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    DUPLICATE_INVOICE_NUMBER = "DUPLICATE_INVOICE_NUMBER"
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"


class IssueStatus(str, Enum):
    """Outcome of a successful issuance"""

    COMMITTED = "committed"
    COMMITTED_NOTIFIED = "committed_notified"
    COMMITTED_NOTIFY_FAILED = "committed_notify_failed"
