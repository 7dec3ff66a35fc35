"""
Email service for sending announcement notifications.

WHAT: This service provides a unified interface for sending emails using
an SMTP relay, the Resend HTTP API, or a mock provider.

WHY: Announcement dispatch only needs "deliver this subject and body to
this person, tell me if it worked". Provider details stay behind that
seam so the dispatcher can be tested without a mail server.

HOW: EmailService picks a provider from settings:
- SMTP relay when SMTP_HOST is configured
- Resend when RESEND_API_KEY is configured
- MockEmailProvider otherwise (development/testing)

Design decisions:
- Providers never raise for delivery problems; they return EmailResult
- The sender identity comes from MAIL_FROM_ADDRESS / MAIL_FROM_NAME
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage as MIMEMessage
from email.utils import formataddr, make_msgid
from typing import Optional, List

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """
    Represents an email to be sent.

    WHAT: Data container for email content and metadata.
    """

    to_email: str
    """Recipient email address."""

    subject: str
    """Email subject line."""

    html_content: str
    """HTML email body."""

    to_name: Optional[str] = None
    """Recipient display name."""

    from_email: Optional[str] = None
    """Sender email (defaults to configured sender)."""

    from_name: Optional[str] = None
    """Sender display name."""


@dataclass
class EmailResult:
    """
    Result of an email send operation.

    WHY: Provides feedback on email send status for error handling
    and the dispatch report.
    """

    success: bool
    """Whether email was sent successfully."""

    message_id: Optional[str] = None
    """Provider message ID for tracking."""

    error: Optional[str] = None
    """Error message if send failed."""

    provider: Optional[str] = None
    """Which provider was used."""


# ============================================================================
# Email Provider Interface
# ============================================================================


class EmailProvider(ABC):
    """
    Abstract base class for email providers.

    WHY: Provider abstraction allows:
    - Easy switching between SMTP and HTTP APIs
    - Testing with mock providers
    """

    name: str = "abstract"

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: The email message to send

        Returns:
            EmailResult with success status and provider details
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if this provider is properly configured.

        Returns:
            True if credentials/host are present
        """
        pass


class SmtpProvider(EmailProvider):
    """
    SMTP relay provider.

    WHY: Most HR tenants already run a company mail relay.

    HOW: smtplib is blocking, so each send runs in a worker thread via
    asyncio.to_thread to keep the event loop free.
    """

    name = "smtp"

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize SMTP provider.

        Args default to the SMTP_* settings.
        """
        self._host = host or settings.SMTP_HOST
        self._port = port or settings.SMTP_PORT
        self._username = username if username is not None else settings.SMTP_USERNAME
        self._password = password if password is not None else settings.SMTP_PASSWORD
        self._use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self._timeout = timeout or settings.SMTP_TIMEOUT

    def is_configured(self) -> bool:
        """Check if an SMTP host is configured."""
        return bool(self._host)

    def _build_mime(self, message: EmailMessage) -> MIMEMessage:
        mime = MIMEMessage()
        mime["Subject"] = message.subject
        mime["From"] = formataddr(
            (
                message.from_name or settings.mail_from_name,
                message.from_email or settings.MAIL_FROM_ADDRESS,
            )
        )
        mime["To"] = formataddr((message.to_name or "", message.to_email))
        mime["Message-ID"] = make_msgid()
        mime.set_content("This message requires an HTML capable mail client.")
        mime.add_alternative(message.html_content, subtype="html")
        return mime

    def _deliver(self, mime: MIMEMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as client:
            if self._use_tls:
                client.starttls()
            if self._username:
                client.login(self._username, self._password or "")
            client.send_message(mime)

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send email through the SMTP relay.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        if not self.is_configured():
            return EmailResult(
                success=False,
                error="SMTP host not configured",
                provider=self.name,
            )

        mime = self._build_mime(message)

        try:
            await asyncio.to_thread(self._deliver, mime)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                f"SMTP send error: {e}",
                extra={"to": message.to_email, "smtp_host": self._host},
            )
            return EmailResult(success=False, error=str(e), provider=self.name)

        return EmailResult(
            success=True,
            message_id=mime["Message-ID"],
            provider=self.name,
        )


class ResendProvider(EmailProvider):
    """
    Resend email provider implementation.

    WHY: Resend provides a simple HTTP API for tenants without a relay.
    """

    name = "resend"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 30.0):
        """
        Initialize Resend provider.

        Args:
            api_key: Resend API key (defaults to settings)
            timeout: HTTP timeout in seconds
        """
        self._api_key = api_key or settings.RESEND_API_KEY
        self._timeout = timeout

    def is_configured(self) -> bool:
        """Check if Resend API key is configured."""
        return bool(self._api_key)

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send email via Resend API.

        HOW: Uses httpx for async HTTP requests to Resend API.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        if not self.is_configured():
            return EmailResult(
                success=False,
                error="Resend API key not configured",
                provider=self.name,
            )

        sender = formataddr(
            (
                message.from_name or settings.mail_from_name,
                message.from_email or settings.MAIL_FROM_ADDRESS,
            )
        )
        recipient = formataddr((message.to_name or "", message.to_email))

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    "https://api.resend.com/emails",
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": sender,
                        "to": [recipient],
                        "subject": message.subject,
                        "html": message.html_content,
                    },
                    timeout=self._timeout,
                )

                if response.status_code in (200, 201):
                    data = response.json()
                    return EmailResult(
                        success=True,
                        message_id=data.get("id"),
                        provider=self.name,
                    )
                else:
                    return EmailResult(
                        success=False,
                        error=f"Resend API error: {response.status_code} - {response.text}",
                        provider=self.name,
                    )

        except httpx.HTTPError as e:
            logger.error(f"Resend send error: {e}", extra={"to": message.to_email})
            return EmailResult(
                success=False,
                error=str(e),
                provider=self.name,
            )


class MockEmailProvider(EmailProvider):
    """
    Mock email provider for testing and development.

    WHY: Allows testing email flows without sending real emails.
    Logs emails instead of sending them.
    """

    name = "mock"

    sent_emails: List[EmailMessage] = []
    """Class-level list to track sent emails for testing."""

    def is_configured(self) -> bool:
        """Mock provider is always configured."""
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Mock send - logs email instead of sending.

        Args:
            message: Email message to "send"

        Returns:
            Always returns success
        """
        logger.info(
            f"[MOCK EMAIL] To: {message.to_email}, Subject: {message.subject}"
        )

        # Track for testing
        MockEmailProvider.sent_emails.append(message)

        return EmailResult(
            success=True,
            message_id=f"mock-{datetime.utcnow().timestamp()}",
            provider=self.name,
        )

    @classmethod
    def clear_sent_emails(cls):
        """Clear sent emails list (for test cleanup)."""
        cls.sent_emails = []


# ============================================================================
# Email Service
# ============================================================================


class EmailService:
    """
    High-level email service used by the notification dispatcher.

    WHAT: The delivery transport.

    HOW: Wraps one provider, adds the configured sender identity and logs
    each attempt.
    """

    def __init__(self, provider: Optional[EmailProvider] = None):
        """
        Initialize email service.

        Args:
            provider: Email provider to use (auto-detected if not provided)
        """
        if provider:
            self._provider = provider
        elif settings.smtp_enabled:
            self._provider = SmtpProvider()
        elif settings.RESEND_API_KEY:
            self._provider = ResendProvider()
        else:
            # Use mock provider in development/testing
            logger.warning("No email provider configured, using mock provider")
            self._provider = MockEmailProvider()

    @property
    def provider(self) -> EmailProvider:
        return self._provider

    async def send(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        html_body: str,
    ) -> EmailResult:
        """
        Send a single HTML email.

        Args:
            to_email: Recipient email address
            to_name: Recipient display name
            subject: Subject line
            html_body: Rendered HTML body

        Returns:
            EmailResult with send status
        """
        message = EmailMessage(
            to_email=to_email,
            to_name=to_name,
            subject=subject,
            html_content=html_body,
            from_email=settings.MAIL_FROM_ADDRESS,
            from_name=settings.mail_from_name,
        )

        logger.debug(
            f"Sending email to {to_email}",
            extra={"to": to_email, "provider": self._provider.name},
        )

        result = await self._provider.send(message)

        if not result.success:
            logger.error(
                f"Email send failed: {result.error}",
                extra={
                    "to": to_email,
                    "provider": result.provider,
                    "error": result.error,
                },
            )

        return result


# ============================================================================
# Module-level convenience functions
# ============================================================================


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """
    Get or create the global email service instance.

    WHY: Singleton pattern ensures consistent configuration
    across the application.

    Returns:
        EmailService instance
    """
    global _email_service

    if _email_service is None:
        _email_service = EmailService()

    return _email_service
