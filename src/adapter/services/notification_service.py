"""Notification Service Implementations

Provides concrete implementations for delivering issued invoices.
"""

import asyncio
import base64
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def attachment_filename(company_name: str, invoice_number: int) -> str:
    """'My Company' + 7 -> 'My-Company-Invoice-7.pdf'"""
    slug = "-".join(company_name.split()) or "Invoice"
    return f"{slug}-Invoice-{invoice_number}.pdf"


class LoggingNotificationService(NotificationService):
    """
    Notification service that only logs deliveries

    Useful for development and testing, or as a fallback.
    """

    async def deliver(self, artifact: bytes, recipient: str, metadata: Dict[str, Any]) -> bool:
        """
        Log the delivery

        Returns:
            Always True (logging never fails)
        """
        logger.info(
            f"[INVOICE DELIVERY] Invoice #{metadata.get('invoice_number')} "
            f"to {recipient} ({len(artifact)} bytes)"
        )
        return True


class SmtpEmailNotificationService(NotificationService):
    """
    Notification service that e-mails the invoice PDF as an attachment

    smtplib is blocking, so the send runs in a worker thread. When
    redirect_to is set every message goes there instead of the client
    (development test mode).
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        from_address: Optional[str] = None,
        from_name: Optional[str] = None,
        company_name: str = "My Company",
        redirect_to: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address or username
        self.from_name = from_name or company_name
        self.company_name = company_name
        self.redirect_to = redirect_to
        self.timeout = timeout

    def build_message(self, artifact: bytes, recipient: str, metadata: Dict[str, Any]) -> EmailMessage:
        invoice_number = metadata.get("invoice_number")
        to_address = self.redirect_to or recipient

        message = EmailMessage()
        message["Subject"] = f"{self.company_name} Invoice #{invoice_number}"
        message["From"] = formataddr((self.from_name, self.from_address or ""))
        message["To"] = to_address

        body = [
            "Hello,",
            "",
            f"Please find attached invoice #{invoice_number}.",
        ]
        if metadata.get("total_amount") is not None:
            body.append(f"Amount due: {metadata['total_amount']} {metadata.get('currency', '')}".rstrip())
        if metadata.get("due_date"):
            body.append(f"Due date: {metadata['due_date']}")
        if self.redirect_to:
            body.extend(["", f"(Test mode: originally addressed to {recipient})"])
        body.extend(["", "Best regards,", self.company_name])
        message.set_content("\n".join(body))

        message.add_attachment(
            artifact,
            maintype="application",
            subtype="pdf",
            filename=attachment_filename(self.company_name, invoice_number),
        )
        return message

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def deliver(self, artifact: bytes, recipient: str, metadata: Dict[str, Any]) -> bool:
        """
        Send the invoice e-mail

        Returns:
            True if the SMTP server accepted the message, False otherwise
        """
        message = self.build_message(artifact, recipient, metadata)

        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                f"Failed to e-mail invoice #{metadata.get('invoice_number')} to {message['To']}: {e}"
            )
            return False

        logger.info(f"E-mailed invoice #{metadata.get('invoice_number')} to {message['To']}")
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that sends invoices via HTTP webhook

    Sends JSON payload with the base64 encoded PDF to configured webhook URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST deliveries to
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def deliver(self, artifact: bytes, recipient: str, metadata: Dict[str, Any]) -> bool:
        """
        Deliver invoice via webhook

        Returns:
            True if webhook call succeeded, False otherwise
        """
        invoice_number = metadata.get("invoice_number")
        payload = {
            "type": "invoice_issued",
            "recipient": recipient,
            "metadata": {key: str(value) if value is not None else None for key, value in metadata.items()},
            "filename": f"invoice-{invoice_number}.pdf",
            "pdf_base64": base64.b64encode(artifact).decode("ascii"),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"Webhook notification sent for invoice #{invoice_number} to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send webhook notification for invoice #{invoice_number}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for delivering to multiple channels (e.g., e-mail + webhook).
    """

    def __init__(self, services: List[NotificationService]):
        """
        Initialize composite notification service

        Args:
            services: List of notification services to delegate to
        """
        self.services = services

    async def deliver(self, artifact: bytes, recipient: str, metadata: Dict[str, Any]) -> bool:
        """
        Deliver to all configured services

        Returns:
            True if at least one service succeeded, False otherwise
        """
        success = False
        for service in self.services:
            try:
                if await service.deliver(artifact, recipient, metadata):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(
    smtp_host: Optional[str] = None,
    smtp_port: int = 587,
    smtp_user: Optional[str] = None,
    smtp_password: Optional[str] = None,
    smtp_use_tls: bool = True,
    email_from: Optional[str] = None,
    email_from_name: Optional[str] = None,
    company_name: str = "My Company",
    redirect_to: Optional[str] = None,
    webhook_url: Optional[str] = None,
) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        smtp_host: SMTP server. If provided, invoices are e-mailed.
        webhook_url: Optional webhook URL. If provided, invoices are posted.

    Returns:
        Configured NotificationService. Logging only when no channel is
        configured, a composite when there are several.
    """
    services: List[NotificationService] = []

    if smtp_host:
        services.append(
            SmtpEmailNotificationService(
                host=smtp_host,
                port=smtp_port,
                username=smtp_user,
                password=smtp_password,
                use_tls=smtp_use_tls,
                from_address=email_from,
                from_name=email_from_name,
                company_name=company_name,
                redirect_to=redirect_to,
            )
        )

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if not services:
        return LoggingNotificationService()

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
